"""Parser modules for spreadsheet sources."""
from catalog_import.parsers.csv_parser import CsvRowReader

__all__ = [
    "CsvRowReader",
]
