from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from table_engine.core.columns import CellRenderer, Column, ColumnRegistry
from table_engine.core.dataset import DEFAULT_ID_FIELD
from table_engine.core.filters import FilterProperty, QuickFilterGroup, QuickFilterOption
from table_engine.core.pagination import DEFAULT_PAGE_SIZE


@dataclass(frozen=True)
class ColumnConfig:
    header: str
    accessor: Optional[str] = None
    sortable: bool = False

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> ColumnConfig:
        return cls(
            header=str(raw.get("header", "")),
            accessor=raw.get("accessor"),
            sortable=bool(raw.get("sortable", False)),
        )


@dataclass
class TableConfig:
    """
    Parsed definition of one table: columns, filterable properties and quick filter groups.
    """
    name: str
    id_field: str = DEFAULT_ID_FIELD
    page_size: int = DEFAULT_PAGE_SIZE
    search_placeholder: str = "Search..."
    columns: List[ColumnConfig] = field(default_factory=list)
    filter_properties: List[FilterProperty] = field(default_factory=list)
    quick_filter_groups: List[QuickFilterGroup] = field(default_factory=list)
    source_path: Optional[Path] = None

    @classmethod
    def from_raw(cls, raw: Dict[str, Any], source_path: Optional[Path] = None) -> TableConfig:
        return cls(
            name=raw.get("name") or (source_path.stem if source_path else "table"),
            id_field=raw.get("id_field", DEFAULT_ID_FIELD),
            page_size=int(raw.get("page_size", DEFAULT_PAGE_SIZE)),
            search_placeholder=raw.get("search_placeholder", "Search..."),
            columns=[ColumnConfig.from_raw(c) for c in raw.get("columns", [])],
            filter_properties=[
                FilterProperty(
                    property_id=str(p["id"]),
                    label=p.get("label", p["id"]),
                    property_type=p["type"],
                    accessor=p.get("accessor", p["id"]),
                )
                for p in raw.get("filter_properties", [])
            ],
            quick_filter_groups=[
                QuickFilterGroup(
                    group_id=str(g["id"]),
                    label=g.get("label", g["id"]),
                    accessor=g.get("accessor"),
                    options=tuple(
                        QuickFilterOption(value=str(o["value"]), label=str(o.get("label", o["value"])))
                        for o in g.get("options", [])
                    ),
                )
                for g in raw.get("quick_filter_groups", [])
            ],
            source_path=source_path,
        )

    def build_registry(self, renderers: Optional[Mapping[str, CellRenderer]] = None) -> ColumnRegistry:
        """
        Columns can't carry code in JSON, so display renderers are attached
        here by header text.
        """
        renderers = renderers or {}
        return ColumnRegistry(
            Column(
                header=c.header,
                accessor=c.accessor,
                sortable=c.sortable,
                cell_renderer=renderers.get(c.header),
            )
            for c in self.columns
        )
