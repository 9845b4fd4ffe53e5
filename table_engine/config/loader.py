from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping

from table_engine.config.model import TableConfig
from table_engine.core.exceptions import ConfigError
from table_engine.validation.errors import ValidationError
from table_engine.validation.table_validation import validate_table_dict

logger = logging.getLogger(__name__)


def _read_json(path: Path) -> Any:
    try:
        with path.open() as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e


def load_table_config(path: str | Path) -> TableConfig:
    """
    Load and validate one table definition file.

    Raises:
        ConfigError: unreadable file or invalid JSON
        ValidationError: the JSON doesn't describe a valid table
    """
    path = Path(path)
    logger.info("Loading table config", extra={"config_path": str(path)})
    raw = _read_json(path)
    try:
        validate_table_dict(raw)
    except ValidationError as e:
        raise e.with_source(path.name) from None
    return TableConfig.from_raw(raw, source_path=path)


def load_table_configs(root: Path) -> Dict[str, TableConfig]:
    """
    Load every table definition under `root/tables/*.json`.

    Broken files are logged and skipped so one bad definition doesn't take
    the others down. Duplicate table names keep the first file (sorted order).
    """
    root = Path(root)
    tables_dir = root / "tables"
    configs: Dict[str, TableConfig] = {}

    if not tables_dir.is_dir():
        logger.warning(f"Tables directory not found at: {tables_dir}")
        return configs

    # Sort files for deterministic loading
    for config_file in sorted(tables_dir.glob("*.json")):
        # Ignore macOS 'Apple Double' files (._*)
        if config_file.name.startswith("._"):
            continue

        try:
            cfg = load_table_config(config_file)
        except (ConfigError, ValidationError) as e:
            logger.error(f"Failed to load {config_file.name}: {e}")
            continue

        if cfg.name in configs:
            logger.warning(f"Duplicate table name ignored: {cfg.name}")
            continue
        configs[cfg.name] = cfg

    return configs


def load_records(path: str | Path) -> List[Mapping[str, Any]]:
    """Read a JSON array of record objects."""
    path = Path(path)
    raw = _read_json(path)
    if not isinstance(raw, list) or any(not isinstance(r, dict) for r in raw):
        raise ConfigError(f"{path} must contain a JSON array of objects")
    logger.info("Loaded records", extra={"records_path": str(path), "n_records": len(raw)})
    return raw
