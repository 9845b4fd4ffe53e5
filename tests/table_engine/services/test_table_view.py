import datetime as dt

import pytest

from table_engine.config.model import TableConfig
from table_engine.core.columns import Column, ColumnRegistry
from table_engine.core.exceptions import ColumnIndexError, UnknownRecordError
from table_engine.core.filters import FilterProperty, QuickFilterGroup, QuickFilterOption, StructuredFilter
from table_engine.core.dataset import Dataset
from table_engine.core.sorting import SortDirection
from table_engine.services.table_view import DataTableView, TableCallbacks


def _make_records(n=30):
    records = []
    for i in range(1, n + 1):
        name = {3: "Jane Smith", 17: "Bob Smith"}.get(i, f"Customer {i}")
        records.append(
            {
                "recordId": f"r{i:02d}",
                "name": name,
                "email": f"c{i}@example.com",
                "lifetimeValue": i * 10,
                "status": "active" if i % 2 == 0 else "inactive",
            }
        )
    return records


def _make_registry():
    return ColumnRegistry(
        [
            Column("Name", "name", sortable=True),
            Column("Email", "email"),
            Column("Total", "lifetimeValue", sortable=True),
            Column("Status", "status"),
            Column("Actions"),
        ]
    )


def _make_view(callbacks=None, n=30):
    return DataTableView(
        Dataset(name="customers", records=_make_records(n)),
        _make_registry(),
        page_size=25,
        filter_properties=[
            FilterProperty("lifetimeValue", "Total spent", "number", "lifetimeValue"),
            FilterProperty("name", "Name", "text", "name"),
        ],
        quick_filter_groups=[
            QuickFilterGroup(
                "status",
                "Status",
                accessor="status",
                options=(QuickFilterOption("active", "Active"), QuickFilterOption("inactive", "Inactive")),
            )
        ],
        callbacks=callbacks,
    )


def _page_ids(view):
    return [r["recordId"] for r in view.snapshot().records]


def test_thirty_records_two_pages():
    view = _make_view()

    snap = view.snapshot()
    assert len(snap.records) == 25
    assert snap.total_pages == 2
    assert snap.pagination_range == [1, 2]
    assert snap.total_records == 30
    assert (snap.page.first_index, snap.page.last_index) == (1, 25)

    assert view.next_page() == 2
    snap = view.snapshot()
    assert len(snap.records) == 5
    assert (snap.page.first_index, snap.page.last_index) == (26, 30)

    # already on the last page
    assert view.next_page() == 2


def test_search_resets_to_first_page():
    view = _make_view()
    view.go_to_page(2)

    view.set_search("smith")

    snap = view.snapshot()
    assert snap.current_page == 1
    assert snap.filtered_records == 2
    assert _page_ids(view) == ["r03", "r17"]


def test_sort_keeps_current_page():
    view = _make_view()
    view.go_to_page(2)

    state = view.sort_by(2)
    assert state.accessor == "lifetimeValue"
    assert state.direction is SortDirection.ASC
    assert view.snapshot().current_page == 2

    view.sort_by(2)
    assert view.snapshot().current_page == 2
    assert _page_ids(view) == ["r05", "r04", "r03", "r02", "r01"]


def test_sort_by_non_sortable_column_is_a_no_op():
    view = _make_view()
    before = view.query

    view.sort_by(1)

    assert view.query is before


def test_sort_by_unknown_column_raises():
    view = _make_view()

    with pytest.raises(ColumnIndexError):
        view.sort_by(9)


def test_page_size_change_resets_to_first_page():
    view = _make_view()
    view.go_to_page(2)

    view.set_page_size(50)

    snap = view.snapshot()
    assert snap.current_page == 1
    assert snap.total_pages == 1
    assert len(snap.records) == 30


def test_go_to_page_is_clamped():
    view = _make_view()

    assert view.go_to_page(99) == 2
    assert view.go_to_page(0) == 1
    assert view.previous_page() == 1


def test_filter_draft_workflow():
    view = _make_view()
    view.go_to_page(2)

    draft = view.start_filter("lifetimeValue")
    assert view.save_draft(draft) is None
    assert view.query.filters == ()

    flt = view.save_draft(draft.with_operator("greaterThan").with_value("250"))

    assert flt.label == "Total spent"
    snap = view.snapshot()
    assert snap.current_page == 1
    assert _page_ids(view) == ["r26", "r27", "r28", "r29", "r30"]

    view.remove_filter(flt.id)
    assert view.snapshot().filtered_records == 30


def test_same_property_can_be_filtered_twice():
    view = _make_view()

    first = view.save_draft(view.start_filter("lifetimeValue").with_operator("greaterThan").with_value("50"))
    second = view.save_draft(view.start_filter("lifetimeValue").with_operator("lessThan").with_value("100"))

    assert first.id != second.id
    assert _page_ids(view) == ["r06", "r07", "r08", "r09"]


def test_start_filter_for_unknown_property_raises():
    view = _make_view()

    with pytest.raises(KeyError):
        view.start_filter("nope")


def test_add_filter_refuses_empty_value():
    view = _make_view()

    assert not view.add_filter(StructuredFilter("f", "name", "text", "contains", ""))
    assert view.query.filters == ()


def test_quick_filter_notifies_host():
    changes, clears = [], []
    view = _make_view(
        TableCallbacks(
            on_filter_change=lambda group, value: changes.append((group, value)),
            on_filter_clear=clears.append,
        )
    )

    view.set_quick_filter("status", "active")
    assert view.snapshot().filtered_records == 15
    assert changes == [("status", "active")]

    view.clear_quick_filter("status")
    assert view.snapshot().filtered_records == 30
    assert clears == ["status"]


def test_clear_all_filters_keeps_search():
    clears = []
    view = _make_view(TableCallbacks(on_filter_clear=clears.append))
    view.set_search("smith")
    view.set_quick_filter("status", "active")
    view.add_filter(StructuredFilter("f", "lifetimeValue", "number", "greaterThan", "0"))
    assert view.snapshot().filtered_records == 0

    view.clear_all_filters()

    assert view.snapshot().filtered_records == 2
    assert clears == ["status"]


def test_selection_survives_paging():
    view = _make_view()

    view.toggle_select_all()
    assert view.snapshot().selected_count == 25
    assert view.snapshot().page_fully_selected

    view.next_page()
    snap = view.snapshot()
    assert not snap.page_fully_selected
    assert snap.selected_count == 25

    view.toggle_select_all()
    assert view.snapshot().selected_count == 30

    view.previous_page()
    view.toggle_select_all()
    assert view.selection.ids == frozenset({"r26", "r27", "r28", "r29", "r30"})


def test_selection_survives_filtering():
    view = _make_view()
    view.toggle_row("r01")

    view.set_search("smith")

    assert "r01" in view.snapshot().selected_ids
    assert view.clear_selection().count == 0


def test_export_uses_filtered_set_and_committed_columns():
    view = _make_view()
    view.set_search("smith")
    view.set_page_size(25)
    view.visibility.toggle(1)
    view.visibility.toggle(4)

    # staged only: export still sees every column
    assert view.export(dt.date(2024, 3, 5)).text.splitlines()[0] == "Name,Email,Total,Status,Actions"

    view.visibility.apply()
    export = view.export(dt.date(2024, 3, 5))

    assert export.filename == "export-2024-03-05.csv"
    assert export.text == 'Name,Total,Status\n"Jane Smith","30","inactive"\n"Bob Smith","170","inactive"'


def test_export_covers_every_page():
    view = _make_view()

    export = view.export()

    assert len(export.text.split("\n")) == 31


def test_export_callback_replaces_built_in_export():
    calls = []
    view = _make_view(TableCallbacks(on_export=lambda: calls.append("export")))

    assert view.export() is None
    assert calls == ["export"]


def test_bulk_actions_need_a_selection():
    deleted = []
    view = _make_view(TableCallbacks(on_bulk_delete=deleted.append))

    assert not view.bulk_delete()
    assert deleted == []

    view.toggle_row("r10")
    view.toggle_row("r02")
    assert view.bulk_delete()
    assert deleted == [["r02", "r10"]]
    # bulk export has no handler
    assert not view.bulk_export()


def test_row_click_and_row_actions_receive_the_record():
    clicked, archived = [], []
    view = _make_view(
        TableCallbacks(on_row_click=clicked.append, row_actions={"archive": archived.append})
    )

    view.click_row("r03")
    view.run_row_action("archive", "r04")

    assert clicked == [view.dataset.get("r03")]
    assert archived[0]["name"] == "Customer 4"

    with pytest.raises(KeyError):
        view.run_row_action("delete", "r04")
    with pytest.raises(UnknownRecordError):
        view.click_row("r99")


def test_add_callback():
    calls = []
    view = _make_view(TableCallbacks(on_add=lambda: calls.append(True)))

    view.add()

    assert calls == [True]


def test_empty_dataset_snapshot():
    view = _make_view(n=0)

    snap = view.snapshot()

    assert snap.records == []
    assert snap.total_pages == 0
    assert snap.pagination_range == []
    assert not snap.page_fully_selected
    assert view.export().text == "Name,Email,Total,Status,Actions"


def test_from_config():
    cfg = TableConfig.from_raw(
        {
            "name": "customers",
            "page_size": 10,
            "columns": [{"header": "Name", "accessor": "name", "sortable": True}],
            "quick_filter_groups": [{"id": "status", "accessor": "status"}],
        }
    )

    view = DataTableView.from_config(cfg, _make_records())

    snap = view.snapshot()
    assert snap.total_pages == 3
    assert [c.header for c in snap.visible_columns] == ["Name"]
    view.set_quick_filter("status", "inactive")
    assert view.snapshot().filtered_records == 15


def test_replace_records_keeps_state():
    view = _make_view()
    view.set_search("smith")
    view.toggle_row("r03")

    view.replace_records(_make_records(5))

    snap = view.snapshot()
    assert _page_ids(view) == ["r03"]
    assert "r03" in snap.selected_ids


def test_single_text_match_exports_header_and_one_row():
    records = _make_records()
    records[16]["name"] = "Bob Jones"
    view = DataTableView(Dataset(name="customers", records=records), ColumnRegistry([Column("Name", "name")]))

    view.add_filter(StructuredFilter("name-1", "name", "text", "contains", "smith"))

    assert view.snapshot().filtered_records == 1
    assert view.export().text.split("\n") == ["Name", '"Jane Smith"']


def test_previous_page_clamps_after_records_shrink():
    view = _make_view(n=60)
    assert view.go_to_page(3) == 3

    view.replace_records(_make_records(5))

    assert view.previous_page() == 1
    assert view.snapshot().current_page == 1
