from .csv_export import CsvExport, export_filename, serialize

__all__ = ["CsvExport", "export_filename", "serialize"]
