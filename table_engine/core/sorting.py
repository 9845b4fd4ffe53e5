from __future__ import annotations

import datetime as dt
import numbers
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple, TYPE_CHECKING

from .columns import Column, is_missing
from .filters import coerce_date

if TYPE_CHECKING:
    from .dataset import Dataset


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    def toggled(self) -> "SortDirection":
        return SortDirection.DESC if self is SortDirection.ASC else SortDirection.ASC


@dataclass(frozen=True)
class SortState:
    """
    Single-column sort. accessor=None means "unsorted": keep the filtered order.
    """

    accessor: Optional[str] = None
    direction: SortDirection = SortDirection.ASC

    def __post_init__(self) -> None:
        object.__setattr__(self, "direction", SortDirection(self.direction))

    @property
    def is_sorted(self) -> bool:
        return self.accessor is not None

    def to_dict(self) -> Dict[str, Any]:
        return {"accessor": self.accessor, "direction": self.direction.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SortState":
        return cls(accessor=data.get("accessor"), direction=data.get("direction", SortDirection.ASC.value))


def toggle_sort(state: SortState, column: Column) -> SortState:
    """
    Header-click semantics:
    - non-sortable (or accessor-less) column: no change, same object back
    - same column: flip direction
    - other column: that column, ascending
    """
    if not column.sortable or column.accessor is None:
        return state
    if state.accessor == column.accessor:
        return SortState(accessor=state.accessor, direction=state.direction.toggled())
    return SortState(accessor=column.accessor, direction=SortDirection.ASC)


# Type ranks keep mixed-type columns comparable: numbers < text < dates < other < missing
_RANK_NUMBER = 0
_RANK_TEXT = 1
_RANK_DATE = 2
_RANK_OTHER = 3
_RANK_MISSING = 4


def value_sort_key(value: Any) -> Tuple[int, Any]:
    if is_missing(value):
        return (_RANK_MISSING, 0)
    if isinstance(value, bool):
        return (_RANK_NUMBER, int(value))
    if isinstance(value, numbers.Real):
        return (_RANK_NUMBER, float(value))
    if isinstance(value, str):
        return (_RANK_TEXT, value)
    if isinstance(value, (dt.date, dt.datetime)):
        return (_RANK_DATE, coerce_date(value))
    return (_RANK_OTHER, str(value))


def apply_sort(dataset: "Dataset", state: SortState) -> "Dataset":
    """
    Order a Dataset by one accessor.

    Ties are broken by record identifier, so the order is fully deterministic,
    and descending is the exact reverse of ascending.
    """
    if not state.is_sorted:
        return dataset

    values = dataset.column_values(state.accessor)
    ids = dataset.ids
    order = sorted(
        range(len(dataset)),
        key=lambda i: (value_sort_key(values[i]), value_sort_key(ids[i])),
    )
    if state.direction is SortDirection.DESC:
        order.reverse()
    return dataset.take(order)
