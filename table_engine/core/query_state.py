from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple

from .filters import QuickFilter, StructuredFilter
from .sorting import SortState


@dataclass(frozen=True)
class QueryState:
    """
    Everything that decides which records survive and in what order.

    Fields:

    - search_term: free text matched against every column's accessor value
    - filters: structured filters, AND-ed in list order
    - quick_filters: at most one active value per quick filter group
    - sort: single-column sort state

    Frozen and hashable so it can key the Dataset result cache.
    """

    search_term: str = ""
    filters: Tuple[StructuredFilter, ...] = ()
    quick_filters: Tuple[QuickFilter, ...] = ()
    sort: SortState = field(default_factory=SortState)

    def __post_init__(self) -> None:
        object.__setattr__(self, "filters", tuple(self.filters))
        object.__setattr__(self, "quick_filters", tuple(self.quick_filters))

    def with_search(self, term: Optional[str]) -> "QueryState":
        return replace(self, search_term=term or "")

    def with_filter(self, flt: StructuredFilter) -> "QueryState":
        return replace(self, filters=self.filters + (flt,))

    def without_filter(self, filter_id: str) -> "QueryState":
        return replace(self, filters=tuple(f for f in self.filters if f.id != filter_id))

    def with_quick_filter(self, group_id: str, value: Optional[str]) -> "QueryState":
        """Set (or with value=None, clear) the single value for a group."""
        others = tuple(q for q in self.quick_filters if q.group_id != group_id)
        if value is None or value == "":
            return replace(self, quick_filters=others)
        return replace(self, quick_filters=others + (QuickFilter(group_id, value),))

    def quick_filter_value(self, group_id: str) -> Optional[str]:
        for quick in self.quick_filters:
            if quick.group_id == group_id:
                return quick.value
        return None

    def with_sort(self, sort: SortState) -> "QueryState":
        return replace(self, sort=sort)

    def cleared(self) -> "QueryState":
        """Drop structured and quick filters; search and sort stay."""
        return replace(self, filters=(), quick_filters=())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "search_term": self.search_term,
            "filters": [f.to_dict() for f in self.filters],
            "quick_filters": {q.group_id: q.value for q in self.quick_filters},
            "sort": self.sort.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> QueryState:
        return cls(
            search_term=data.get("search_term") or "",
            filters=tuple(StructuredFilter.from_dict(f) for f in data.get("filters", [])),
            quick_filters=tuple(
                QuickFilter(group_id, value)
                for group_id, value in (data.get("quick_filters") or {}).items()
                if value is not None
            ),
            sort=SortState.from_dict(data.get("sort") or {}),
        )
