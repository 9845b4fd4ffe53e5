from __future__ import annotations

import logging
import os
from typing import Optional, Union

from pythonjsonlogger import jsonlogger

LOG_FORMAT_ENV = "TABLE_ENGINE_LOG_FORMAT"
LOG_LEVEL_ENV = "TABLE_ENGINE_LOG_LEVEL"
PACKAGE_LOGGER = "table_engine"

_LOG_PATTERN = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _parse_level(level: Union[int, str, None]) -> Optional[int]:
    if level is None or level == "":
        return None
    if isinstance(level, int):
        return level
    parsed = logging.getLevelName(str(level).upper())
    # getLevelName hands back "Level X" for names it doesn't know
    return parsed if isinstance(parsed, int) else None


def configure_logging(
        level: int = logging.INFO,
        force_format: Optional[str] = None,
        package_level: Union[int, str, None] = None,
) -> None:
    """
    Configure the root logger for a host process or the CLI.

    Modes:
    - JSON (default), extra={} fields become JSON keys
    - plain text for local debugging

    Selection order for the format:
        1) force_format argument ("json" or "plain") if provided
        2) env var TABLE_ENGINE_LOG_FORMAT
        3) default = "json"

    `package_level` (or env var TABLE_ENGINE_LOG_LEVEL) sets the level of the
    `table_engine` logger alone, so engine DEBUG output can be switched on
    while the host's other libraries stay at `level`. Unset means the package
    follows the root level.
    """

    if force_format is not None:
        format_mode = force_format.lower()
    else:
        format_mode = os.getenv(LOG_FORMAT_ENV, "json").lower()

    root = logging.getLogger()
    root.setLevel(level)

    handler = logging.StreamHandler()
    if format_mode == "plain":
        formatter: logging.Formatter = logging.Formatter(_LOG_PATTERN)
    else:
        formatter = jsonlogger.JsonFormatter(_LOG_PATTERN)
    handler.setFormatter(formatter)

    # Replace any existing handlers to avoid duplicate lines
    root.handlers.clear()
    root.addHandler(handler)

    resolved = _parse_level(package_level if package_level is not None else os.getenv(LOG_LEVEL_ENV))
    logging.getLogger(PACKAGE_LOGGER).setLevel(resolved if resolved is not None else logging.NOTSET)
