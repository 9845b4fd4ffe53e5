import datetime as dt

from table_engine.core.columns import Column
from table_engine.core.dataset import Dataset
from table_engine.core.sorting import (
    SortDirection,
    SortState,
    apply_sort,
    toggle_sort,
    value_sort_key,
)


def _make_dataset(values, field="name"):
    records = [{"recordId": i + 1, field: v} for i, v in enumerate(values)]
    return Dataset(name="sortable", records=records)


def test_toggle_sort_header_clicks():
    name = Column("Name", "name", sortable=True)
    total = Column("Total", "lifetimeValue", sortable=True)

    state = toggle_sort(SortState(), name)
    assert state == SortState("name", SortDirection.ASC)

    state = toggle_sort(state, name)
    assert state.direction is SortDirection.DESC

    state = toggle_sort(state, name)
    assert state.direction is SortDirection.ASC

    state = toggle_sort(state, total)
    assert state == SortState("lifetimeValue", SortDirection.ASC)


def test_toggle_sort_ignores_non_sortable_columns():
    state = SortState("name", SortDirection.DESC)

    assert toggle_sort(state, Column("Email", "email")) is state
    assert toggle_sort(state, Column("Actions", None, sortable=True)) is state


def test_apply_sort_ascending_breaks_ties_by_id_and_puts_missing_last():
    ds = _make_dataset(["b", "a", None, "a", "c"])

    out = apply_sort(ds, SortState("name", SortDirection.ASC))

    assert out.ids == [2, 4, 1, 5, 3]


def test_apply_sort_descending_is_exact_reverse():
    ds = _make_dataset(["b", "a", None, "a", "c"])

    asc = apply_sort(ds, SortState("name", SortDirection.ASC))
    desc = apply_sort(ds, SortState("name", SortDirection.DESC))

    assert desc.ids == list(reversed(asc.ids))
    assert desc.ids[0] == 3


def test_apply_sort_numbers_compare_numerically():
    ds = _make_dataset([100, 9, 25.5, 1000], field="lifetimeValue")

    out = apply_sort(ds, SortState("lifetimeValue"))

    assert out.column_values("lifetimeValue") == [9, 25.5, 100, 1000]


def test_apply_sort_mixed_types_do_not_raise():
    ds = _make_dataset(["9", 10, dt.date(2024, 1, 1), None, 2.5])

    out = apply_sort(ds, SortState("name"))

    assert out.ids == [5, 2, 1, 3, 4]


def test_apply_sort_unsorted_state_returns_dataset_unchanged():
    ds = _make_dataset(["b", "a"])

    assert apply_sort(ds, SortState()) is ds


def test_apply_sort_keeps_record_objects():
    ds = _make_dataset(["b", "a"])
    first = ds.records[0]

    out = apply_sort(ds, SortState("name"))

    assert out.records[1] is first


def test_value_sort_key_ranks():
    assert value_sort_key(5) < value_sort_key("5")
    assert value_sort_key("z") < value_sort_key(dt.datetime(2020, 1, 1))
    assert value_sort_key(dt.date(2030, 1, 1)) < value_sort_key(None)
    assert value_sort_key(float("nan")) == value_sort_key(None)


def test_sort_state_dict_roundtrip():
    st = SortState("createdAt", SortDirection.DESC)

    assert SortState.from_dict(st.to_dict()) == st
    assert SortState.from_dict({}) == SortState()


def test_is_sorted():
    assert not SortState().is_sorted
    assert SortState("name").is_sorted
