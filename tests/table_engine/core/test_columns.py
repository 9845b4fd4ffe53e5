import pytest

from table_engine.core.columns import Column, ColumnRegistry, cell_text
from table_engine.core.exceptions import ColumnIndexError


def _make_registry():
    return ColumnRegistry(
        [
            Column("Name", "name", sortable=True),
            Column("Email address", "email"),
            Column("Total spent", "lifetimeValue", sortable=True),
            Column("Actions"),
        ]
    )


def test_search_headers_is_case_insensitive_substring():
    registry = _make_registry()

    hits = registry.search_headers("SPENT")

    assert [(idx, col.header) for idx, col in hits] == [(2, "Total spent")]


def test_search_headers_keeps_registry_positions():
    registry = _make_registry()

    hits = registry.search_headers("e")

    # positions stay those of the full registry so visibility toggles hit the right column
    assert [idx for idx, _ in hits] == [0, 1, 2]
    assert all(registry[idx] is col for idx, col in hits)


def test_search_headers_empty_query_returns_every_column():
    registry = _make_registry()

    assert [idx for idx, _ in registry.search_headers("")] == [0, 1, 2, 3]
    assert [idx for idx, _ in registry.search_headers(None)] == [0, 1, 2, 3]
    assert registry.search_headers("phone") == []


def test_index_of_accessor():
    registry = _make_registry()

    assert registry.index_of("lifetimeValue") == 2
    assert registry.index_of("phone") is None
    assert registry.accessors() == ["name", "email", "lifetimeValue"]


def test_getitem_out_of_range():
    with pytest.raises(ColumnIndexError):
        _make_registry()[4]


def test_column_value_and_display_value():
    col = Column("Name", "name", cell_renderer=lambda r: r["name"].title())

    assert col.value({"name": "rex"}) == "rex"
    assert col.display_value({"name": "rex"}) == "Rex"
    assert Column("Actions").value({"name": "rex"}) is None


def test_cell_text():
    assert cell_text(None) == ""
    assert cell_text(float("nan")) == ""
    assert cell_text(False) == "false"
    assert cell_text(12) == "12"
