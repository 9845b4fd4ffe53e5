import pytest

from table_engine.core.columns import Column, ColumnRegistry
from table_engine.core.dataset import Dataset
from table_engine.core.exceptions import DatasetSchemaError, UnknownRecordError
from table_engine.core.filters import StructuredFilter
from table_engine.core.query_state import QueryState
from table_engine.core.sorting import SortDirection, SortState


def _make_dataset():
    records = [
        {"recordId": "p1", "name": "Rex", "species": "dog", "age": 4},
        {"recordId": "p2", "name": "Tom", "species": "cat", "age": 9},
        {"recordId": "p3", "name": "Bella", "species": "dog"},
    ]
    return Dataset(name="pets", records=records)


def _make_registry():
    return ColumnRegistry([Column("Name", "name", sortable=True), Column("Species", "species")])


def test_dataset_lookup_by_identifier():
    ds = _make_dataset()

    assert len(ds) == 3
    assert ds.ids == ["p1", "p2", "p3"]
    assert ds.get("p2")["name"] == "Tom"
    assert "p3" in ds
    assert "p9" not in ds


def test_unknown_identifier_raises():
    ds = _make_dataset()

    with pytest.raises(UnknownRecordError):
        ds.get("p9")
    # also a KeyError for callers that only know the mapping protocol
    with pytest.raises(KeyError):
        ds.get("p9")


@pytest.mark.parametrize(
    "records",
    [
        [{"name": "no id"}],
        [{"recordId": 1}, {"recordId": 1}],
        [{"recordId": 1}, ["not", "a", "mapping"]],
        [{"recordId": [1, 2]}],
    ],
)
def test_invalid_records_are_rejected(records):
    with pytest.raises(DatasetSchemaError):
        Dataset(name="bad", records=records)


def test_custom_id_field():
    ds = Dataset(name="owners", records=[{"ownerId": 7, "name": "Ann"}], id_field="ownerId")

    assert ds.get(7)["name"] == "Ann"


def test_records_are_handed_back_untouched():
    rec = {"recordId": "p1", "name": "Rex"}
    ds = Dataset(name="pets", records=[rec])

    assert ds.records[0] is rec
    assert ds.take([0]).records[0] is rec


def test_column_for_absent_field_is_all_missing():
    ds = _make_dataset()

    assert list(ds.column("microchip")) == [None, None, None]
    assert ds.column_values("age") == [4, 9, None]


def test_subset_for_state_filters_then_sorts():
    ds = _make_dataset()
    state = QueryState(search_term="dog", sort=SortState("name", SortDirection.ASC))

    sub = ds.subset_for_state(state, _make_registry())

    assert sub.ids == ["p3", "p1"]
    assert len(ds) == 3


def test_subset_for_state_is_cached():
    ds = _make_dataset()
    registry = _make_registry()

    first = ds.subset_for_state(QueryState(search_term="dog"), registry)
    second = ds.subset_for_state(QueryState(search_term="dog"), registry)

    assert first is second

    ds.clear_caches()
    assert ds.subset_for_state(QueryState(search_term="dog"), registry) is not first


def test_unhashable_filter_value_bypasses_cache():
    ds = _make_dataset()
    registry = _make_registry()
    flt = StructuredFilter("f1", "species", "text", "contains", ["dog"])
    state = QueryState(filters=(flt,))

    first = ds.subset_for_state(state, registry)
    second = ds.subset_for_state(state, registry)

    assert first is not second
    assert first.ids == second.ids


def test_subset_cache_is_bounded():
    ds = _make_dataset()
    ds.MAX_SUBSET_CACHE = 2
    registry = _make_registry()

    for term in ("a", "b", "c"):
        ds.subset_for_state(QueryState(search_term=term), registry)

    assert len(ds._subset_cache) == 0


def test_cache_tells_equal_values_of_different_types_apart():
    ds = Dataset(name="codes", records=[{"recordId": 1, "code": "x1.0"}, {"recordId": 2, "code": "x1"}])
    registry = ColumnRegistry([Column("Code", "code")])

    as_int = QueryState(filters=(StructuredFilter("f1", "code", "text", "contains", 1),))
    as_float = QueryState(filters=(StructuredFilter("f1", "code", "text", "contains", 1.0),))

    assert ds.subset_for_state(as_int, registry).ids == [1, 2]
    assert ds.subset_for_state(as_float, registry).ids == [1]
