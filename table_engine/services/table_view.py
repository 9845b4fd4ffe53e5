from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Hashable, Iterable, List, Mapping, Optional, Sequence

from table_engine.config.model import TableConfig
from table_engine.core import selection as sel
from table_engine.core.columns import CellRenderer, Column, ColumnRegistry
from table_engine.core.dataset import Dataset
from table_engine.core.filters import (
    FilterDraft,
    FilterProperty,
    QuickFilterGroup,
    StructuredFilter,
    search_properties,
)
from table_engine.core.pagination import Page, PageSlot, PageState, compute_range, paginate
from table_engine.core.query_state import QueryState
from table_engine.core.selection import SelectionState
from table_engine.core.sorting import SortState, toggle_sort
from table_engine.core.visibility import ColumnVisibilityManager, VisibilityState
from table_engine.export.csv_export import CsvExport, export_filename, serialize

logger = logging.getLogger(__name__)

Record = Mapping[str, Any]


@dataclass
class TableCallbacks:
    """
    Host hooks. All optional; each is invoked synchronously at the moment of
    the matching user action.
    """
    on_row_click: Optional[Callable[[Record], None]] = None
    on_add: Optional[Callable[[], None]] = None
    on_bulk_delete: Optional[Callable[[List[Hashable]], None]] = None
    on_bulk_export: Optional[Callable[[List[Hashable]], None]] = None
    on_export: Optional[Callable[[], None]] = None
    on_filter_change: Optional[Callable[[str, Optional[str]], None]] = None
    on_filter_clear: Optional[Callable[[str], None]] = None
    row_actions: Dict[str, Callable[[Record], None]] = field(default_factory=dict)


@dataclass(frozen=True)
class TableSnapshot:
    """Everything a host needs to draw the table for the current state."""

    page: Page
    total_records: int
    filtered_records: int
    pagination_range: List[PageSlot]
    visible_columns: List[Column]
    visibility: VisibilityState
    staged_visibility: Optional[VisibilityState]
    selected_ids: frozenset
    page_fully_selected: bool
    query: QueryState

    @property
    def records(self) -> List[Record]:
        return self.page.records

    @property
    def total_pages(self) -> int:
        return self.page.total_pages

    @property
    def current_page(self) -> int:
        return self.page.page_number

    @property
    def selected_count(self) -> int:
        return len(self.selected_ids)

    @property
    def sort(self) -> SortState:
        return self.query.sort


class DataTableView:
    """
    One open table: dataset + column registry + all interactive state.

    Every transition replaces an immutable state value and the pipeline
    (filter -> sort -> paginate) is recomputed on read; the filter+sort step
    is cached on the Dataset per QueryState.
    """

    def __init__(
        self,
        dataset: Dataset,
        registry: ColumnRegistry,
        *,
        page_size: int = 25,
        filter_properties: Sequence[FilterProperty] = (),
        quick_filter_groups: Sequence[QuickFilterGroup] = (),
        callbacks: Optional[TableCallbacks] = None,
    ) -> None:
        self.dataset = dataset
        self.registry = registry
        self.filter_properties: List[FilterProperty] = list(filter_properties)
        self.quick_filter_groups: List[QuickFilterGroup] = list(quick_filter_groups)
        self.callbacks = callbacks or TableCallbacks()

        self.query = QueryState()
        self.page_state = PageState(page_size=page_size)
        self.visibility = ColumnVisibilityManager(registry)
        self.selection = SelectionState()

    @classmethod
    def from_config(
        cls,
        config: TableConfig,
        records: Iterable[Record],
        *,
        renderers: Optional[Mapping[str, CellRenderer]] = None,
        callbacks: Optional[TableCallbacks] = None,
    ) -> "DataTableView":
        dataset = Dataset(name=config.name, records=records, id_field=config.id_field)
        return cls(
            dataset,
            config.build_registry(renderers),
            page_size=config.page_size,
            filter_properties=config.filter_properties,
            quick_filter_groups=config.quick_filter_groups,
            callbacks=callbacks,
        )

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------
    def filtered(self) -> Dataset:
        """Filtered and sorted, before pagination. This is what export sees."""
        return self.dataset.subset_for_state(self.query, self.registry, self.quick_filter_groups)

    def current_page(self) -> Page:
        return paginate(self.filtered(), self.page_state)

    def snapshot(self) -> TableSnapshot:
        filtered = self.filtered()
        page = paginate(filtered, self.page_state)
        page_ids = [r[self.dataset.id_field] for r in page.records]
        return TableSnapshot(
            page=page,
            total_records=len(self.dataset),
            filtered_records=len(filtered),
            pagination_range=compute_range(page.total_pages, page.page_number),
            visible_columns=self.visibility.visible_columns(),
            visibility=self.visibility.committed,
            staged_visibility=self.visibility.staged,
            selected_ids=self.selection.ids,
            page_fully_selected=self.selection.is_page_fully_selected(page_ids),
            query=self.query,
        )

    def replace_records(self, records: Iterable[Record]) -> None:
        """Host refreshed its data. Selection is kept; ids that vanished simply match nothing."""
        self.dataset = Dataset(name=self.dataset.name, records=records, id_field=self.dataset.id_field)
        logger.debug("Records replaced", extra={"table": self.dataset.name, "n_records": len(self.dataset)})

    # ------------------------------------------------------------------
    # Search & filters (all reset to page 1)
    # ------------------------------------------------------------------
    def _set_query(self, query: QueryState) -> None:
        self.query = query
        self.page_state = self.page_state.first()

    def set_search(self, term: Optional[str]) -> None:
        logger.debug("Search changed", extra={"table": self.dataset.name, "search_term": term})
        self._set_query(self.query.with_search(term))

    def add_filter(self, flt: StructuredFilter) -> bool:
        """Admit a filter to the active list. Filters without a value are refused."""
        if not flt.value:
            logger.debug("Empty filter refused", extra={"filter_id": flt.id})
            return False
        self._set_query(self.query.with_filter(flt))
        logger.debug("Filter added", extra={"table": self.dataset.name, "filter": flt.describe()})
        return True

    def start_filter(self, property_id: str, draft_id: Optional[str] = None) -> FilterDraft:
        prop = next((p for p in self.filter_properties if p.property_id == property_id), None)
        if prop is None:
            raise KeyError(f"Filter property '{property_id}' not found")
        # Distinct ids let the same property be filtered twice
        draft_id = draft_id or f"{property_id}-{len(self.query.filters) + 1}"
        return FilterDraft.start(prop, draft_id=draft_id)

    def save_draft(self, draft: FilterDraft) -> Optional[StructuredFilter]:
        flt = draft.commit()
        if flt is None:
            return None
        self.add_filter(flt)
        return flt

    def remove_filter(self, filter_id: str) -> None:
        self._set_query(self.query.without_filter(filter_id))

    def search_filter_properties(self, query: str) -> List[FilterProperty]:
        return search_properties(self.filter_properties, query)

    def set_quick_filter(self, group_id: str, value: Optional[str]) -> None:
        self._set_query(self.query.with_quick_filter(group_id, value))
        if self.callbacks.on_filter_change is not None:
            self.callbacks.on_filter_change(group_id, value)

    def clear_quick_filter(self, group_id: str) -> None:
        self._set_query(self.query.with_quick_filter(group_id, None))
        if self.callbacks.on_filter_clear is not None:
            self.callbacks.on_filter_clear(group_id)

    def clear_all_filters(self) -> None:
        """Drop every structured filter and every quick filter group's value."""
        self._set_query(self.query.cleared())
        if self.callbacks.on_filter_clear is not None:
            for group in self.quick_filter_groups:
                self.callbacks.on_filter_clear(group.group_id)

    # ------------------------------------------------------------------
    # Sort (keeps the current page)
    # ------------------------------------------------------------------
    def sort_by(self, column_index: int) -> SortState:
        column = self.registry[column_index]
        new_sort = toggle_sort(self.query.sort, column)
        if new_sort is not self.query.sort:
            self.query = self.query.with_sort(new_sort)
            logger.debug("Sort changed", extra={"table": self.dataset.name, **new_sort.to_dict()})
        return self.query.sort

    # ------------------------------------------------------------------
    # Paging
    # ------------------------------------------------------------------
    def _total_pages(self) -> int:
        return paginate(self.filtered(), self.page_state).total_pages

    def go_to_page(self, page: int) -> int:
        self.page_state = self.page_state.go_to(page, self._total_pages())
        return self.page_state.current_page

    def next_page(self) -> int:
        self.page_state = self.page_state.next(self._total_pages())
        return self.page_state.current_page

    def previous_page(self) -> int:
        self.page_state = self.page_state.previous(self._total_pages())
        return self.page_state.current_page

    def set_page_size(self, page_size: int) -> None:
        self.page_state = self.page_state.with_page_size(page_size)

    # ------------------------------------------------------------------
    # Selection (never cleared implicitly)
    # ------------------------------------------------------------------
    def toggle_row(self, record_id: Hashable) -> SelectionState:
        self.selection = sel.toggle(self.selection, record_id)
        return self.selection

    def toggle_select_all(self) -> SelectionState:
        page = self.current_page()
        page_ids = [r[self.dataset.id_field] for r in page.records]
        self.selection = sel.select_all_on_page(self.selection, page_ids)
        return self.selection

    def clear_selection(self) -> SelectionState:
        self.selection = sel.clear()
        return self.selection

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------
    def export(self, day: Optional[dt.date] = None) -> Optional[CsvExport]:
        """
        CSV of the whole filtered+sorted set over the committed visible columns.
        A host-supplied on_export replaces the built-in export.
        """
        if self.callbacks.on_export is not None:
            self.callbacks.on_export()
            return None
        filtered = self.filtered()
        text = serialize(filtered.records, self.visibility.visible_columns())
        logger.info(
            "Exported table",
            extra={"table": self.dataset.name, "n_rows": len(filtered), "n_columns": self.visibility.committed.visible_count()},
        )
        return CsvExport(filename=export_filename(day), text=text)

    # ------------------------------------------------------------------
    # Host intents
    # ------------------------------------------------------------------
    def click_row(self, record_id: Hashable) -> None:
        record = self.dataset.get(record_id)
        if self.callbacks.on_row_click is not None:
            self.callbacks.on_row_click(record)

    def add(self) -> None:
        if self.callbacks.on_add is not None:
            self.callbacks.on_add()

    def _selected_ids(self) -> List[Hashable]:
        # Stable order for the host: dataset order first, then ids no longer in the dataset
        present = [rid for rid in self.dataset.ids if rid in self.selection]
        missing = [rid for rid in self.selection if rid not in self.dataset]
        return present + missing

    def bulk_delete(self) -> bool:
        if not self.selection.count or self.callbacks.on_bulk_delete is None:
            return False
        self.callbacks.on_bulk_delete(self._selected_ids())
        return True

    def bulk_export(self) -> bool:
        if not self.selection.count or self.callbacks.on_bulk_export is None:
            return False
        self.callbacks.on_bulk_export(self._selected_ids())
        return True

    def run_row_action(self, name: str, record_id: Hashable) -> None:
        try:
            action = self.callbacks.row_actions[name]
        except KeyError:
            raise KeyError(f"Row action '{name}' not found")
        action(self.dataset.get(record_id))
