from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

from .columns import Column, ColumnRegistry
from .exceptions import ColumnIndexError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VisibilityState:
    """
    Immutable column-index -> shown mapping.

    Keyed by registry position, never by a copy of the Column, so search,
    filter and sort can't disturb it.
    """

    flags: Tuple[bool, ...]

    @classmethod
    def all_visible(cls, n_columns: int) -> "VisibilityState":
        return cls(flags=(True,) * n_columns)

    @classmethod
    def all_hidden(cls, n_columns: int) -> "VisibilityState":
        return cls(flags=(False,) * n_columns)

    @classmethod
    def from_mapping(cls, mapping: Mapping[int, bool], n_columns: int) -> "VisibilityState":
        """Missing indexes default to visible."""
        return cls(flags=tuple(bool(mapping.get(i, True)) for i in range(n_columns)))

    def __len__(self) -> int:
        return len(self.flags)

    def is_visible(self, index: int) -> bool:
        self._check(index)
        return self.flags[index]

    def toggled(self, index: int) -> "VisibilityState":
        self._check(index)
        flags = list(self.flags)
        flags[index] = not flags[index]
        return VisibilityState(flags=tuple(flags))

    def visible_indices(self) -> List[int]:
        return [i for i, shown in enumerate(self.flags) if shown]

    def visible_count(self) -> int:
        return sum(self.flags)

    def as_dict(self) -> Dict[int, bool]:
        return dict(enumerate(self.flags))

    def _check(self, index: int) -> None:
        if not 0 <= index < len(self.flags):
            raise ColumnIndexError(f"Column index {index} out of range (0..{len(self.flags) - 1})")


class ColumnVisibilityManager:
    """
    Committed visibility plus an optional staged copy for the column editor.

    - begin_edit(): staged := committed
    - toggle()/remove_all(): change staged only; the live table still reads committed
    - apply(): committed := staged in one replace, edit session ends
    - cancel(): staged dropped, committed untouched
    """

    def __init__(self, registry: ColumnRegistry, initial: Optional[VisibilityState] = None):
        self._registry = registry
        self._committed = initial if initial is not None else VisibilityState.all_visible(len(registry))
        if len(self._committed) != len(registry):
            raise ColumnIndexError(
                f"Visibility has {len(self._committed)} entries but the registry has {len(registry)} columns"
            )
        self._staged: Optional[VisibilityState] = None

    @property
    def committed(self) -> VisibilityState:
        return self._committed

    @property
    def staged(self) -> Optional[VisibilityState]:
        return self._staged

    @property
    def is_editing(self) -> bool:
        return self._staged is not None

    def begin_edit(self) -> VisibilityState:
        self._staged = self._committed
        return self._staged

    def toggle(self, index: int) -> VisibilityState:
        if self._staged is None:
            self.begin_edit()
        self._staged = self._staged.toggled(index)
        return self._staged

    def remove_all(self) -> VisibilityState:
        if self._staged is None:
            self.begin_edit()
        self._staged = VisibilityState.all_hidden(len(self._registry))
        return self._staged

    def apply(self) -> VisibilityState:
        if self._staged is not None:
            self._committed = self._staged
            self._staged = None
        logger.debug("Column visibility applied", extra={"visible": self._committed.visible_indices()})
        return self._committed

    def cancel(self) -> VisibilityState:
        self._staged = None
        return self._committed

    def staged_selected_count(self) -> int:
        state = self._staged if self._staged is not None else self._committed
        return state.visible_count()

    def visible_columns(self) -> List[Column]:
        """Committed visible columns, in registry order."""
        return [self._registry[i] for i in self._committed.visible_indices()]
