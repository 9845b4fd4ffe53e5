"""Free-text search, typed structured filters and quick filters."""
from __future__ import annotations

import logging
import math
import numbers
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, TYPE_CHECKING

import numpy as np
import pandas as pd

from .columns import ColumnRegistry, cell_text, is_missing
from .exceptions import InvalidFilterError

if TYPE_CHECKING:
    from .dataset import Dataset

logger = logging.getLogger(__name__)


class PropertyType(str, Enum):
    """Value type a structured filter compares as."""

    TEXT = "text"
    NUMBER = "number"
    DATE = "date"

    @classmethod
    def from_value(cls, value: str) -> "PropertyType":
        try:
            return cls(value)
        except ValueError as exc:
            valid_values = ", ".join(item.value for item in cls)
            raise InvalidFilterError(f"Invalid property type '{value}'. Expected one of: {valid_values}.") from exc


class FilterOperator(str, Enum):
    CONTAINS = "contains"
    NOT_CONTAINS = "notContains"
    EQUALS = "equals"
    NOT_EQUALS = "notEquals"
    GREATER_THAN = "greaterThan"
    LESS_THAN = "lessThan"
    AFTER = "after"
    BEFORE = "before"
    BETWEEN = "between"

    @classmethod
    def from_value(cls, value: str) -> "FilterOperator":
        try:
            return cls(value)
        except ValueError as exc:
            valid_values = ", ".join(item.value for item in cls)
            raise InvalidFilterError(f"Invalid filter operator '{value}'. Expected one of: {valid_values}.") from exc


# Ordered: the first operator is the default for a new filter of that type
OPERATORS_BY_TYPE: Dict[PropertyType, Tuple[Tuple[FilterOperator, str], ...]] = {
    PropertyType.TEXT: (
        (FilterOperator.CONTAINS, "contains"),
        (FilterOperator.NOT_CONTAINS, "does not contain"),
        (FilterOperator.EQUALS, "is equal to"),
        (FilterOperator.NOT_EQUALS, "is not equal to"),
    ),
    PropertyType.NUMBER: (
        (FilterOperator.EQUALS, "is equal to"),
        (FilterOperator.NOT_EQUALS, "is not equal to"),
        (FilterOperator.GREATER_THAN, "is greater than"),
        (FilterOperator.LESS_THAN, "is less than"),
    ),
    PropertyType.DATE: (
        (FilterOperator.AFTER, "is after"),
        (FilterOperator.BEFORE, "is before"),
        (FilterOperator.BETWEEN, "is between"),
    ),
}


def operators_for(property_type: PropertyType) -> List[FilterOperator]:
    return [op for op, _ in OPERATORS_BY_TYPE[PropertyType(property_type)]]


def operator_label(property_type: PropertyType, operator: FilterOperator) -> str:
    for op, label in OPERATORS_BY_TYPE[PropertyType(property_type)]:
        if op == operator:
            return label
    return str(FilterOperator(operator).value)


# -----------------------------------------------------------------------------
# Value coercion: never raises, NaN means "cannot evaluate"
# -----------------------------------------------------------------------------
def coerce_number(value: Any) -> float:
    if is_missing(value) or (isinstance(value, str) and not value.strip()):
        return math.nan
    try:
        return float(value)
    except (TypeError, ValueError, OverflowError):
        return math.nan


def coerce_date(value: Any) -> float:
    """
    Nanoseconds since the epoch (UTC), or NaN. Naive values are read as UTC;
    bare numbers are epoch milliseconds.
    """
    if is_missing(value) or (isinstance(value, str) and not value.strip()):
        return math.nan
    if isinstance(value, bool):
        return math.nan
    try:
        if isinstance(value, numbers.Real):
            ts = pd.Timestamp(value, unit="ms")
        else:
            ts = pd.Timestamp(value)
    except (TypeError, ValueError, OverflowError):
        return math.nan
    if pd.isna(ts):
        return math.nan
    ts = ts.tz_localize("UTC") if ts.tzinfo is None else ts.tz_convert("UTC")
    return float(ts.value)


# -----------------------------------------------------------------------------
# Filter models
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class StructuredFilter:
    """
    A typed predicate over one record field.

    `value2` is only read for the date `between` operator (inclusive upper bound).
    """

    id: str
    accessor: str
    property_type: PropertyType
    operator: FilterOperator
    value: Any
    value2: Any = None
    label: Optional[str] = None

    def __post_init__(self) -> None:
        ptype = PropertyType.from_value(self.property_type)
        op = FilterOperator.from_value(self.operator)
        if op not in operators_for(ptype):
            raise InvalidFilterError(
                f"Operator '{op.value}' is not allowed for {ptype.value} filters "
                f"(allowed: {', '.join(o.value for o in operators_for(ptype))})"
            )
        object.__setattr__(self, "property_type", ptype)
        object.__setattr__(self, "operator", op)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StructuredFilter":
        return cls(
            id=str(data["id"]),
            accessor=data["accessor"],
            property_type=data["property_type"],
            operator=data["operator"],
            value=data.get("value"),
            value2=data.get("value2"),
            label=data.get("label"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "accessor": self.accessor,
            "property_type": self.property_type.value,
            "operator": self.operator.value,
            "value": self.value,
            "value2": self.value2,
            "label": self.label,
        }

    def describe(self) -> str:
        """Human-readable summary, e.g. 'Create date is between 2024-01-01 and 2024-02-01'."""
        name = self.label or self.accessor
        text = f"{name} {operator_label(self.property_type, self.operator)} {self.value}"
        if self.operator is FilterOperator.BETWEEN and self.value2:
            text += f" and {self.value2}"
        return text


@dataclass(frozen=True)
class FilterProperty:
    """A field the filter-authoring workflow offers, e.g. 'Total spent' (number, lifetimeValue)."""

    property_id: str
    label: str
    property_type: PropertyType
    accessor: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "property_type", PropertyType.from_value(self.property_type))


def search_properties(properties: Iterable[FilterProperty], query: str) -> List[FilterProperty]:
    needle = (query or "").lower()
    return [p for p in properties if not needle or needle in p.label.lower()]


@dataclass(frozen=True)
class QuickFilterOption:
    value: str
    label: str


@dataclass(frozen=True)
class QuickFilterGroup:
    """A categorical dropdown (e.g. Status) whose single active value must equal the record field."""

    group_id: str
    label: str
    accessor: Optional[str] = None
    options: Tuple[QuickFilterOption, ...] = ()

    def option_label(self, value: str) -> str:
        for option in self.options:
            if option.value == value:
                return option.label
        return value


@dataclass(frozen=True)
class QuickFilter:
    group_id: str
    value: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.value is not None and self.value != ""


# -----------------------------------------------------------------------------
# Authoring workflow
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class FilterDraft:
    """
    A filter being configured. Only `commit()` turns it into a StructuredFilter,
    and only when a value was entered.
    """

    filter_property: FilterProperty
    operator: FilterOperator
    value: Any = ""
    value2: Any = ""
    draft_id: str = ""

    @classmethod
    def start(cls, prop: FilterProperty, draft_id: str = "") -> "FilterDraft":
        return cls(filter_property=prop, operator=operators_for(prop.property_type)[0], draft_id=draft_id)

    def with_operator(self, operator: FilterOperator) -> "FilterDraft":
        op = FilterOperator.from_value(operator)
        if op not in operators_for(self.filter_property.property_type):
            raise InvalidFilterError(f"Operator '{op.value}' is not allowed for {self.filter_property.property_type.value} filters")
        return replace(self, operator=op)

    def with_value(self, value: Any) -> "FilterDraft":
        return replace(self, value=value)

    def with_value2(self, value2: Any) -> "FilterDraft":
        return replace(self, value2=value2)

    def commit(self) -> Optional[StructuredFilter]:
        if not self.value:
            return None
        return StructuredFilter(
            id=self.draft_id or self.filter_property.property_id,
            accessor=self.filter_property.accessor,
            property_type=self.filter_property.property_type,
            operator=self.operator,
            value=self.value,
            value2=self.value2 if self.operator is FilterOperator.BETWEEN else None,
            label=self.filter_property.label,
        )


# -----------------------------------------------------------------------------
# Engine
# -----------------------------------------------------------------------------
def _text(series: pd.Series) -> pd.Series:
    return series.map(cell_text).astype(str).str.lower()


def _text_mask(series: pd.Series, flt: StructuredFilter) -> np.ndarray:
    values = _text(series)
    needle = cell_text(flt.value).lower()
    op = flt.operator
    if op is FilterOperator.CONTAINS:
        return values.str.contains(needle, regex=False).to_numpy(dtype=bool)
    if op is FilterOperator.NOT_CONTAINS:
        return (~values.str.contains(needle, regex=False)).to_numpy(dtype=bool)
    if op is FilterOperator.EQUALS:
        return (values == needle).to_numpy(dtype=bool)
    return (values != needle).to_numpy(dtype=bool)


def _compare(values: pd.Series, target: float, op: FilterOperator) -> np.ndarray:
    valid = values.notna()
    if math.isnan(target):
        return np.zeros(len(values), dtype=bool)
    if op is FilterOperator.EQUALS:
        hit = values == target
    elif op is FilterOperator.NOT_EQUALS:
        hit = values != target
    elif op in (FilterOperator.GREATER_THAN, FilterOperator.AFTER):
        hit = values > target
    else:
        hit = values < target
    return (hit & valid).to_numpy(dtype=bool)


def _number_mask(series: pd.Series, flt: StructuredFilter) -> np.ndarray:
    values = series.map(coerce_number).astype(float)
    return _compare(values, coerce_number(flt.value), flt.operator)


def _date_mask(series: pd.Series, flt: StructuredFilter) -> np.ndarray:
    values = series.map(coerce_date).astype(float)
    lower = coerce_date(flt.value)
    if flt.operator is FilterOperator.BETWEEN:
        upper = coerce_date(flt.value2)
        if math.isnan(lower) or math.isnan(upper):
            return np.zeros(len(values), dtype=bool)
        return (values.notna() & (values >= lower) & (values <= upper)).to_numpy(dtype=bool)
    return _compare(values, lower, flt.operator)


_MASK_BUILDERS: Dict[PropertyType, Callable[[pd.Series, StructuredFilter], np.ndarray]] = {
    PropertyType.TEXT: _text_mask,
    PropertyType.NUMBER: _number_mask,
    PropertyType.DATE: _date_mask,
}


class FilterEngine:
    """
    Applies search, structured filters and quick filters to a Dataset.

    Every predicate becomes a boolean mask; masks are AND-ed, so survivors
    keep their input order. Values that cannot be coerced never match and
    never raise.
    """

    def __init__(self, registry: ColumnRegistry, quick_filter_groups: Sequence[QuickFilterGroup] = ()):
        self._registry = registry
        self._groups = {group.group_id: group for group in quick_filter_groups}

    def search_mask(self, dataset: "Dataset", search_term: str) -> np.ndarray:
        n = len(dataset)
        if not search_term or not search_term.strip():
            return np.ones(n, dtype=bool)

        needle = search_term.lower()
        mask = np.zeros(n, dtype=bool)
        for accessor in self._registry.accessors():
            mask |= _text(dataset.column(accessor)).str.contains(needle, regex=False).to_numpy(dtype=bool)
        return mask

    def filter_mask(self, dataset: "Dataset", flt: StructuredFilter) -> np.ndarray:
        return _MASK_BUILDERS[flt.property_type](dataset.column(flt.accessor), flt)

    def quick_filter_mask(self, dataset: "Dataset", quick: QuickFilter) -> np.ndarray:
        n = len(dataset)
        if not quick.is_active:
            return np.ones(n, dtype=bool)
        group = self._groups.get(quick.group_id)
        if group is None or group.accessor is None:
            logger.debug("Quick filter has no field to match; ignored", extra={"group_id": quick.group_id})
            return np.ones(n, dtype=bool)
        values = dataset.column(group.accessor).map(cell_text)
        return (values == str(quick.value)).to_numpy(dtype=bool)

    def build_mask(
        self,
        dataset: "Dataset",
        search_term: str = "",
        filters: Sequence[StructuredFilter] = (),
        quick_filters: Sequence[QuickFilter] = (),
    ) -> np.ndarray:
        mask = self.search_mask(dataset, search_term)
        for quick in quick_filters:
            mask &= self.quick_filter_mask(dataset, quick)
        for flt in filters:
            mask &= self.filter_mask(dataset, flt)
        return mask

    def apply(
        self,
        dataset: "Dataset",
        search_term: str = "",
        filters: Sequence[StructuredFilter] = (),
        quick_filters: Sequence[QuickFilter] = (),
    ) -> "Dataset":
        mask = self.build_mask(dataset, search_term, filters, quick_filters)
        return dataset.take(np.flatnonzero(mask))
