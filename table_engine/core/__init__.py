"""
Core domain layer: record set, column registry, filter/sort/page engines,
column visibility, selection and the shared edit token
"""

from .columns import Column, ColumnRegistry
from .dataset import Dataset
from .query_state import QueryState
from .visibility import ColumnVisibilityManager, VisibilityState
from .selection import SelectionState

__all__ = [
    "Column",
    "ColumnRegistry",
    "Dataset",
    "QueryState",
    "ColumnVisibilityManager",
    "VisibilityState",
    "SelectionState",
]
