from __future__ import annotations

import logging
from typing import Any, Dict, Hashable, Iterable, List, Mapping, Optional, Sequence, Tuple, TYPE_CHECKING

import numpy as np
import pandas as pd

from .exceptions import DatasetSchemaError, UnknownRecordError

if TYPE_CHECKING:
    from .columns import ColumnRegistry
    from .filters import QuickFilterGroup
    from .query_state import QueryState

logger = logging.getLogger(__name__)

DEFAULT_ID_FIELD = "recordId"


class Dataset:
    """
    In-memory record set used throughout the engine.

    Includes:
    - The caller's original record mappings, handed back untouched on every page
    - An object-dtype DataFrame mirror used to build boolean masks
    - Identity by the stable identifier field, never by position
    - Cached filter+sort results per QueryState
    """

    MAX_SUBSET_CACHE = 128

    # -------------------------------------------------------------------------
    # Constructor
    # -------------------------------------------------------------------------
    def __init__(
        self,
        name: str,
        records: Iterable[Mapping[str, Any]],
        id_field: str = DEFAULT_ID_FIELD,
    ) -> None:
        self.name = name
        self.id_field = id_field

        rows: List[Mapping[str, Any]] = list(records)
        self._validate_records(rows, id_field)

        self._records: List[Mapping[str, Any]] = rows
        self._ids: List[Hashable] = [row[id_field] for row in rows]
        self._position_by_id: Dict[Hashable, int] = {rid: i for i, rid in enumerate(self._ids)}

        # object dtype keeps ints as ints (no float upcast when a field is absent)
        self.frame: pd.DataFrame = pd.DataFrame([dict(row) for row in rows], dtype=object)

        # Cache of filtered+sorted Dataset objects
        self._subset_cache: Dict[Tuple[Any, ...], "Dataset"] = {}

    @staticmethod
    def _validate_records(rows: Sequence[Any], id_field: str) -> None:
        seen: set = set()
        for pos, row in enumerate(rows):
            if not isinstance(row, Mapping):
                raise DatasetSchemaError(f"Record at position {pos} is not a mapping: {type(row).__name__}")
            if id_field not in row:
                raise DatasetSchemaError(f"Record at position {pos} has no '{id_field}' field")
            rid = row[id_field]
            try:
                duplicate = rid in seen
            except TypeError:
                raise DatasetSchemaError(f"Record at position {pos} has an unhashable identifier: {rid!r}")
            if duplicate:
                raise DatasetSchemaError(f"Duplicate record identifier {rid!r} at position {pos}")
            seen.add(rid)

    @classmethod
    def _from_parts(
        cls,
        name: str,
        id_field: str,
        records: List[Mapping[str, Any]],
        frame: pd.DataFrame,
    ) -> "Dataset":
        # Skips validation: parts always come from an already-validated Dataset
        ds = cls.__new__(cls)
        ds.name = name
        ds.id_field = id_field
        ds._records = records
        ds._ids = [row[id_field] for row in records]
        ds._position_by_id = {rid: i for i, rid in enumerate(ds._ids)}
        ds.frame = frame
        ds._subset_cache = {}
        return ds

    # -------------------------------------------------------------------------
    # Sequence-ish access
    # -------------------------------------------------------------------------
    def __len__(self) -> int:
        return len(self._records)

    @property
    def records(self) -> List[Mapping[str, Any]]:
        """Return the original record mappings, in current order."""
        return list(self._records)

    @property
    def ids(self) -> List[Hashable]:
        return list(self._ids)

    def get(self, record_id: Hashable) -> Mapping[str, Any]:
        try:
            return self._records[self._position_by_id[record_id]]
        except (KeyError, TypeError):
            raise UnknownRecordError(f"Record '{record_id}' not found in dataset '{self.name}'")

    def __contains__(self, record_id: object) -> bool:
        try:
            return record_id in self._position_by_id
        except TypeError:
            return False

    def column(self, accessor: str) -> pd.Series:
        """
        Return the raw values for an accessor as an object Series aligned with the records.
        Fields no record carries come back as an all-None Series rather than a KeyError.
        """
        if accessor in self.frame.columns:
            return self.frame[accessor]
        return pd.Series([None] * len(self), index=self.frame.index, dtype=object)

    def column_values(self, accessor: str) -> List[Any]:
        return [row.get(accessor) for row in self._records]

    def take(self, positions: Sequence[int]) -> "Dataset":
        """Return a new Dataset holding the records at `positions`, in that order."""
        idx = np.asarray(positions, dtype=np.intp)
        records = [self._records[i] for i in idx]
        frame = self.frame.iloc[idx].reset_index(drop=True)
        return Dataset._from_parts(self.name, self.id_field, records, frame)

    def slice(self, start: int, stop: int) -> List[Mapping[str, Any]]:
        return self._records[start:stop]

    # -------------------------------------------------------------------------
    # Filter + sort with caching
    # -------------------------------------------------------------------------
    def subset_for_state(
        self,
        state: "QueryState",
        registry: "ColumnRegistry",
        quick_filter_groups: Sequence["QuickFilterGroup"] = (),
    ) -> "Dataset":
        """
        Run the Filter Engine then the Sort Engine for `state`.

        Results are cached per (state, registry, groups). Filter values that
        cannot be hashed (lists, dicts) just bypass the cache.
        """
        from .filters import FilterEngine
        from .sorting import apply_sort

        # Filter values are matched by their text form and 1 == 1.0 == True, so
        # value types are part of the key
        value_types = tuple((type(f.value), type(f.value2)) for f in state.filters)
        key: Optional[Tuple[Any, ...]] = (state, value_types, registry, tuple(quick_filter_groups))
        try:
            cached = self._subset_cache.get(key)
        except TypeError:
            key = None
            cached = None
        if cached is not None:
            return cached

        engine = FilterEngine(registry, quick_filter_groups)
        filtered = engine.apply(
            self,
            search_term=state.search_term,
            filters=state.filters,
            quick_filters=state.quick_filters,
        )
        result = apply_sort(filtered, state.sort)

        logger.debug(
            "Computed subset",
            extra={"dataset": self.name, "n_in": len(self), "n_out": len(result), "cached": key is not None},
        )

        if key is not None:
            self._subset_cache[key] = result

            # Prevent unbounded growth
            if len(self._subset_cache) > self.MAX_SUBSET_CACHE:
                self._subset_cache.clear()

        return result

    # -------------------------------------------------------------------------
    # Cache management
    # -------------------------------------------------------------------------
    def clear_caches(self) -> None:
        """Reset the filter+sort result cache."""
        self._subset_cache.clear()
