from __future__ import annotations

import csv
import datetime as dt
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Sequence

import pandas as pd

from table_engine.core.columns import Column, cell_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CsvExport:
    """CSV text plus the filename the host should offer for download."""

    filename: str
    text: str

    def to_bytes(self) -> bytes:
        return self.text.encode("utf-8")


def export_filename(day: Optional[dt.date] = None) -> str:
    day = day or dt.date.today()
    return f"export-{day.isoformat()}.csv"


def serialize(records: Iterable[Mapping[str, Any]], columns: Sequence[Column]) -> str:
    """
    Render records as CSV over the given (visible) columns.

    - header row: column headers joined by commas, unquoted
    - data rows: every field quoted, embedded quotes doubled, None -> ""
    - rows joined by "\\n", no trailing newline
    - no columns -> "" whatever the record count
    """
    if not columns:
        return ""

    header = ",".join(column.header for column in columns)
    rows = [[cell_text(column.value(record)) for column in columns] for record in records]
    if not rows:
        return header

    body = pd.DataFrame(rows).to_csv(
        index=False,
        header=False,
        quoting=csv.QUOTE_ALL,
        lineterminator="\n",
    )
    # to_csv terminates the last row too
    if body.endswith("\n"):
        body = body[:-1]

    logger.debug("Serialized CSV", extra={"n_rows": len(rows), "n_columns": len(columns)})
    return f"{header}\n{body}"
