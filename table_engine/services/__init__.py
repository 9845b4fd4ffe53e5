from .table_view import DataTableView, TableCallbacks, TableSnapshot

__all__ = ["DataTableView", "TableCallbacks", "TableSnapshot"]
