"""
Top-level package for the table query engine.

Records in, one page of records out: search, structured and quick filters,
single-column sort, pagination, column visibility, row selection and CSV export.
Most code should import from submodules such as:
    table_engine.core
    table_engine.services
    table_engine.config
"""

__all__: list[str] = []
