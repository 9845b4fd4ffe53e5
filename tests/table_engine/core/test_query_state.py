from __future__ import annotations

from table_engine.core.filters import StructuredFilter
from table_engine.core.query_state import QueryState
from table_engine.core.sorting import SortDirection, SortState


def _flt(fid="f1"):
    return StructuredFilter(fid, "lifetimeValue", "number", "greaterThan", "100", label="Total spent")


def test_query_state_to_from_dict_roundtrip():
    st = QueryState(
        search_term="smith",
        filters=(_flt(),),
        sort=SortState("name", SortDirection.DESC),
    ).with_quick_filter("status", "active")

    raw = st.to_dict()
    rebuilt = QueryState.from_dict(raw)

    assert rebuilt == st


def test_quick_filter_has_one_value_per_group():
    st = QueryState().with_quick_filter("status", "active").with_quick_filter("status", "inactive")

    assert st.quick_filter_value("status") == "inactive"
    assert len(st.quick_filters) == 1

    st = st.with_quick_filter("status", None)
    assert st.quick_filter_value("status") is None
    assert st.quick_filters == ()


def test_filters_added_and_removed_by_id():
    st = QueryState().with_filter(_flt("a")).with_filter(_flt("b"))

    assert [f.id for f in st.filters] == ["a", "b"]
    assert [f.id for f in st.without_filter("a").filters] == ["b"]


def test_cleared_keeps_search_and_sort():
    sort = SortState("name")
    st = QueryState(search_term="rex", filters=(_flt(),), sort=sort).with_quick_filter("status", "active")

    cleared = st.cleared()

    assert cleared.filters == ()
    assert cleared.quick_filters == ()
    assert cleared.search_term == "rex"
    assert cleared.sort == sort


def test_equal_states_hash_equal():
    a = QueryState(search_term="x", filters=(_flt(),))
    b = QueryState(search_term="x", filters=[_flt()])

    assert a == b
    assert hash(a) == hash(b)
