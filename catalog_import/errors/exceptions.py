"""Custom exception hierarchy for catalog import errors."""


class DataIngestionError(Exception):
    """Base exception for all catalog import errors."""

    def __init__(self, message: str, *args, **kwargs):
        """Initialize error with message."""
        self.message = message
        super().__init__(message, *args, **kwargs)


class ParserError(DataIngestionError):
    """Raised when the source file cannot be read or parsed."""
    pass


class ValidationError(DataIngestionError):
    """Raised when input data validation fails."""
    pass


class DatabaseError(DataIngestionError):
    """Raised when database operations fail."""
    pass


class CategoryResolutionError(DataIngestionError):
    """Raised when a category triple cannot be found or created."""

    def __init__(self, message: str, category_key=None):
        self.category_key = category_key
        super().__init__(message)


class ReconciliationError(DataIngestionError):
    """Raised when a reconciliation shard fails."""

    def __init__(self, message: str, shard: int = -1):
        self.shard = shard
        super().__init__(message)


class BatchWriteError(DatabaseError):
    """Raised when a write batch fails, carrying the ids it left unwritten."""

    def __init__(self, message: str, record_ids=None):
        self.record_ids = list(record_ids or [])
        super().__init__(message)
