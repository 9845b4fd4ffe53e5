from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Any, List, Mapping, Sequence, Union, TYPE_CHECKING

if TYPE_CHECKING:
    from .dataset import Dataset

PAGE_SIZE_OPTIONS = (25, 50, 100)
DEFAULT_PAGE_SIZE = 25
MAX_VISIBLE_PAGES = 11
ELLIPSIS = "..."

PageSlot = Union[int, str]


def total_pages_for(count: int, page_size: int) -> int:
    """ceil(count / page_size); 0 records -> 0 pages (the host shows "no records")."""
    return math.ceil(count / max(1, page_size))


def clamp_page(page: int, total_pages: int) -> int:
    return min(max(1, int(page)), max(1, total_pages))


@dataclass(frozen=True)
class PageState:
    page_size: int = DEFAULT_PAGE_SIZE
    current_page: int = 1

    def __post_init__(self) -> None:
        object.__setattr__(self, "page_size", max(1, int(self.page_size)))
        object.__setattr__(self, "current_page", max(1, int(self.current_page)))

    def with_page_size(self, page_size: int) -> "PageState":
        """A new page size always starts over at page 1."""
        return PageState(page_size=page_size, current_page=1)

    def go_to(self, page: int, total_pages: int) -> "PageState":
        return replace(self, current_page=clamp_page(page, total_pages))

    def next(self, total_pages: int) -> "PageState":
        return self.go_to(self.current_page + 1, total_pages)

    def previous(self, total_pages: int) -> "PageState":
        # Clamped too: the stored page can be past the end once records shrink
        return self.go_to(self.current_page - 1, total_pages)

    def first(self) -> "PageState":
        return replace(self, current_page=1)


@dataclass(frozen=True)
class Page:
    """One page of records plus the numbers a pager needs."""

    records: List[Mapping[str, Any]]
    page_number: int
    page_size: int
    total_pages: int
    total_count: int

    @property
    def is_empty(self) -> bool:
        return not self.records

    @property
    def has_previous(self) -> bool:
        return self.page_number > 1

    @property
    def has_next(self) -> bool:
        return self.page_number < self.total_pages

    @property
    def first_index(self) -> int:
        """1-based position of the first record on this page ("Showing X-Y of Z"); 0 when empty."""
        if self.is_empty:
            return 0
        return (self.page_number - 1) * self.page_size + 1

    @property
    def last_index(self) -> int:
        if self.is_empty:
            return 0
        return self.first_index + len(self.records) - 1


def paginate(records: Union["Dataset", Sequence[Mapping[str, Any]]], state: PageState) -> Page:
    """
    Slice records[(p-1)*size : p*size]. An out-of-range current page is
    clamped first, so the result is never past the end.
    """
    count = len(records)
    total = total_pages_for(count, state.page_size)
    page_number = clamp_page(state.current_page, total)
    start = (page_number - 1) * state.page_size
    stop = start + state.page_size
    if hasattr(records, "slice"):
        page_records = records.slice(start, stop)
    else:
        page_records = list(records[start:stop])
    return Page(
        records=page_records,
        page_number=page_number,
        page_size=state.page_size,
        total_pages=total,
        total_count=count,
    )


def compute_range(total_pages: int, current_page: int) -> List[PageSlot]:
    """
    Pager button layout, at most MAX_VISIBLE_PAGES slots:

    - total <= 11: 1..total
    - current <= 6: 1..9, ..., total
    - current >= total-5: 1, ..., total-8..total
    - otherwise: 1, ..., current-3..current+3, ..., total
    """
    if total_pages <= MAX_VISIBLE_PAGES:
        return list(range(1, total_pages + 1))
    if current_page <= 6:
        return list(range(1, 10)) + [ELLIPSIS, total_pages]
    if current_page >= total_pages - 5:
        return [1, ELLIPSIS] + list(range(total_pages - 8, total_pages + 1))
    return [1, ELLIPSIS] + list(range(current_page - 3, current_page + 4)) + [ELLIPSIS, total_pages]
