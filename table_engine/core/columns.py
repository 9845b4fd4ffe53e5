from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, List, Mapping, Optional, Tuple

from .exceptions import ColumnIndexError

Record = Mapping[str, Any]
CellRenderer = Callable[[Record], Any]


def is_missing(value: Any) -> bool:
    """True for None and float NaN (pandas fills absent fields with NaN)."""
    if value is None:
        return True
    return isinstance(value, float) and math.isnan(value)


def cell_text(value: Any) -> str:
    """
    Text form of a raw cell value, shared by search, quick filters and export.

    - None / NaN -> ""
    - bool -> "true" / "false"
    - everything else -> str(value)
    """
    if is_missing(value):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass(frozen=True)
class Column:
    """
    Declarative column metadata.

    Fields:

    - header: user-facing header text, also the CSV header
    - accessor: record field read for search, sort, filter and export (None for action-only columns)
    - sortable: whether header clicks may sort by this column
    - cell_renderer: optional display override; never used for sort/filter/export
    """

    header: str
    accessor: Optional[str] = None
    sortable: bool = False
    cell_renderer: Optional[CellRenderer] = None

    def value(self, record: Record) -> Any:
        if self.accessor is None:
            return None
        return record.get(self.accessor)

    def display_value(self, record: Record) -> Any:
        if self.cell_renderer is not None:
            return self.cell_renderer(record)
        return self.value(record)


class ColumnRegistry:
    """
    Fixed-order sequence of columns for one table.

    Visibility is keyed by position in this registry, so the registry is
    immutable once built: nothing downstream may reorder or drop columns.
    """

    def __init__(self, columns: Iterable[Column]):
        self._columns: Tuple[Column, ...] = tuple(columns)

    def __len__(self) -> int:
        return len(self._columns)

    def __iter__(self) -> Iterator[Column]:
        return iter(self._columns)

    def __getitem__(self, index: int) -> Column:
        if not 0 <= index < len(self._columns):
            raise ColumnIndexError(f"Column index {index} out of range (0..{len(self._columns) - 1})")
        return self._columns[index]

    @property
    def columns(self) -> Tuple[Column, ...]:
        return self._columns

    def accessors(self) -> List[str]:
        """Accessors of every column that has one, in registry order."""
        return [c.accessor for c in self._columns if c.accessor is not None]

    def index_of(self, accessor: str) -> Optional[int]:
        for idx, column in enumerate(self._columns):
            if column.accessor == accessor:
                return idx
        return None

    def search_headers(self, query: str) -> List[Tuple[int, Column]]:
        """
        Filter the column list itself by header text (the column editor search box).
        Case-insensitive substring; an empty query returns every column.
        """
        needle = (query or "").lower()
        return [
            (idx, column)
            for idx, column in enumerate(self._columns)
            if not needle or needle in column.header.lower()
        ]
