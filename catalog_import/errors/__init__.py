"""Error handling module."""
from catalog_import.errors.exceptions import (
    DataIngestionError,
    ParserError,
    ValidationError,
    DatabaseError,
    CategoryResolutionError,
    ReconciliationError,
    BatchWriteError,
)

__all__ = [
    "DataIngestionError",
    "ParserError",
    "ValidationError",
    "DatabaseError",
    "CategoryResolutionError",
    "ReconciliationError",
    "BatchWriteError",
]
