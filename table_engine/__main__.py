"""Entry point for ``python -m table_engine``."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from table_engine.config.loader import load_records, load_table_config, load_table_configs
from table_engine.config.model import TableConfig
from table_engine.core.columns import cell_text
from table_engine.core.exceptions import TableEngineError
from table_engine.core.filters import PropertyType, StructuredFilter
from table_engine.core.pagination import PAGE_SIZE_OPTIONS
from table_engine.core.sorting import SortDirection, SortState
from table_engine.logging_config import configure_logging
from table_engine.services.table_view import DataTableView
from table_engine.validation.errors import ValidationError

logger = logging.getLogger(__name__)

CONFIG_ROOT_ENV = "TABLE_ENGINE_CONFIG_ROOT"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m table_engine",
        description="Query a JSON record set through a table definition and print one page or export CSV.",
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--config", type=Path, help="Path to a table definition JSON file.")
    source.add_argument(
        "--table",
        help=f"Table name to look up under <config root>/tables/*.json (root from --config-root or ${CONFIG_ROOT_ENV}).",
    )
    parser.add_argument("--config-root", type=Path, default=None, help="Config root directory for --table.")
    parser.add_argument("--records", type=Path, required=True, help="JSON array of record objects.")
    parser.add_argument("--search", default="", help="Free-text search term.")
    parser.add_argument(
        "--filter",
        action="append",
        default=[],
        metavar="ACCESSOR:TYPE:OPERATOR:VALUE[:VALUE2]",
        help="Structured filter; repeatable, AND-ed in order.",
    )
    parser.add_argument("--sort", metavar="ACCESSOR[:desc]", help="Sort by one column.")
    parser.add_argument("--page", type=int, default=1)
    parser.add_argument("--page-size", type=int, choices=PAGE_SIZE_OPTIONS, default=None)
    parser.add_argument("--export", type=Path, default=None, help="Write the filtered+sorted set to this CSV file.")
    parser.add_argument("--log-format", choices=("json", "plain"), default=None)
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging.")
    return parser


def parse_filter(spec: str, index: int) -> StructuredFilter:
    """'lifetimeValue:number:greaterThan:100' -> StructuredFilter. Dates may not contain ':'."""
    parts = spec.split(":")
    if len(parts) < 4:
        raise argparse.ArgumentTypeError(f"Filter '{spec}' must look like accessor:type:operator:value[:value2]")
    accessor, ptype, operator, value = parts[:4]
    value2 = parts[4] if len(parts) > 4 else None
    return StructuredFilter(
        id=f"cli-{index}",
        accessor=accessor,
        property_type=PropertyType.from_value(ptype),
        operator=operator,
        value=value,
        value2=value2,
    )


def parse_sort(spec: Optional[str]) -> SortState:
    if not spec:
        return SortState()
    accessor, _, direction = spec.partition(":")
    return SortState(accessor=accessor, direction=direction or SortDirection.ASC.value)


def apply_sort_request(view: DataTableView, requested: SortState) -> SortState:
    """
    Replay a --sort request as header clicks, so the same rules apply: an
    accessor without a sortable column leaves the order untouched.
    """
    if not requested.is_sorted:
        return view.query.sort
    idx = view.registry.index_of(requested.accessor)
    if idx is None or not view.registry[idx].sortable:
        logger.warning("Sort request ignored", extra={"accessor": requested.accessor})
        return view.query.sort
    state = view.sort_by(idx)
    if requested.direction is SortDirection.DESC:
        state = view.sort_by(idx)
    return state


def _resolve_config(args: argparse.Namespace) -> TableConfig:
    if args.config is not None:
        return load_table_config(args.config)

    root = args.config_root or Path(os.getenv(CONFIG_ROOT_ENV, "config"))
    configs = load_table_configs(root)
    if args.table not in configs:
        raise TableEngineError(f"Table '{args.table}' not found under {root / 'tables'}")
    return configs[args.table]


def _render_page(view: DataTableView) -> List[str]:
    snap = view.snapshot()
    lines = [f"Showing {snap.page.first_index}-{snap.page.last_index} of {snap.filtered_records}"]
    columns = snap.visible_columns
    lines.append("\t".join(c.header for c in columns))
    for record in snap.records:
        lines.append("\t".join(cell_text(c.value(record)) for c in columns))
    if snap.total_pages > 1:
        pager = " ".join(str(slot) for slot in snap.pagination_range)
        lines.append(f"Page {snap.current_page}/{snap.total_pages}: {pager}")
    return lines


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    configure_logging(
        level=logging.WARNING,
        force_format=args.log_format,
        package_level=logging.DEBUG if args.verbose else None,
    )

    try:
        config = _resolve_config(args)
        records = load_records(args.records)
        view = DataTableView.from_config(config, records)

        view.set_search(args.search)
        for i, spec in enumerate(args.filter, start=1):
            view.add_filter(parse_filter(spec, i))
        apply_sort_request(view, parse_sort(args.sort))
        if args.page_size is not None:
            view.set_page_size(args.page_size)
        view.go_to_page(args.page)
    except ValidationError as e:
        logger.error("Table definition rejected", extra={"issue_codes": e.codes})
        print(f"Invalid table definition:\n{e}", file=sys.stderr)
        return 2
    except (TableEngineError, argparse.ArgumentTypeError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.export is not None:
        export = view.export()
        args.export.write_text(export.text, encoding="utf-8")
        print(f"Wrote {len(view.filtered())} rows to {args.export}")
        return 0

    print("\n".join(_render_page(view)))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
