from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Hashable, Iterable, Iterator


@dataclass(frozen=True)
class SelectionState:
    """
    Selected record identifiers.

    Survives paging, filtering and sorting: ids that are not on the current
    page stay selected until the host clears them.
    """

    ids: FrozenSet[Hashable] = field(default_factory=frozenset)

    @property
    def count(self) -> int:
        return len(self.ids)

    def __len__(self) -> int:
        return len(self.ids)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self.ids

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self.ids)

    def is_page_fully_selected(self, page_ids: Iterable[Hashable]) -> bool:
        """Header checkbox state: every id on a non-empty page is selected."""
        ids = list(page_ids)
        return bool(ids) and all(rid in self.ids for rid in ids)


def toggle(selection: SelectionState, record_id: Hashable) -> SelectionState:
    if record_id in selection.ids:
        return SelectionState(selection.ids - {record_id})
    return SelectionState(selection.ids | {record_id})


def select_all_on_page(selection: SelectionState, page_ids: Iterable[Hashable]) -> SelectionState:
    """
    All of the page already selected -> remove the page's ids.
    Otherwise -> union. Ids from other pages are left alone either way.
    """
    ids = frozenset(page_ids)
    if ids and ids <= selection.ids:
        return SelectionState(selection.ids - ids)
    return SelectionState(selection.ids | ids)


def clear() -> SelectionState:
    return SelectionState()
