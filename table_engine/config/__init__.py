"""
Config package for table_engine.

Responsible for:
- config models (TableConfig, ColumnConfig)
- config I/O helpers (load_table_config / load_table_configs / load_records)
"""

from .model import ColumnConfig, TableConfig
from .loader import load_records, load_table_config, load_table_configs

__all__ = ["ColumnConfig", "TableConfig", "load_records", "load_table_config", "load_table_configs"]
