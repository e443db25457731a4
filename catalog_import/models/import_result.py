"""Import mode and run outcome models."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ImportMode(str, Enum):
    """How structural duplicates of stored products are treated."""
    SKIP = "skip"
    OVERWRITE = "overwrite"

    @classmethod
    def normalize(cls, value: Optional[Any]) -> "ImportMode":
        """Map a caller-supplied mode to an ImportMode.

        Only ``"overwrite"`` selects overwrite; anything else, including
        None and unknown strings, falls back to skip.
        """
        if isinstance(value, cls):
            return value
        if value == cls.OVERWRITE.value:
            return cls.OVERWRITE
        return cls.SKIP


class BatchKind(str, Enum):
    """Kind of write batch."""
    CREATE = "create"
    UPDATE = "update"


@dataclass
class BatchFailure:
    """A write batch that failed and was skipped."""
    kind: BatchKind
    start_index: int
    size: int
    error: str
    record_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/response."""
        return {
            "kind": self.kind.value,
            "start_index": self.start_index,
            "size": self.size,
            "error": self.error,
            "record_ids": list(self.record_ids),
        }


@dataclass
class ImportResult:
    """Outcome of a single import run."""
    mode: ImportMode = ImportMode.SKIP
    rows_parsed: int = 0
    rows_rejected: int = 0
    rows_unresolved: int = 0
    categories_resolved: int = 0
    category_errors: int = 0
    existing_matched: int = 0
    to_create: int = 0
    to_update: int = 0
    skipped_duplicates: int = 0
    created_count: int = 0
    updated_count: int = 0
    batch_errors: List[BatchFailure] = field(default_factory=list)
    reconcile_degraded: bool = False
    cancelled: bool = False
    duration_seconds: float = 0.0

    @property
    def success(self) -> bool:
        """True when the pipeline ran to the end.

        Individual batch failures are tolerated and reported in
        ``batch_errors``; only cancellation marks the run unsuccessful.
        """
        return not self.cancelled

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/response."""
        return {
            "mode": self.mode.value,
            "success": self.success,
            "rows_parsed": self.rows_parsed,
            "rows_rejected": self.rows_rejected,
            "rows_unresolved": self.rows_unresolved,
            "categories_resolved": self.categories_resolved,
            "category_errors": self.category_errors,
            "existing_matched": self.existing_matched,
            "to_create": self.to_create,
            "to_update": self.to_update,
            "skipped_duplicates": self.skipped_duplicates,
            "created_count": self.created_count,
            "updated_count": self.updated_count,
            "batch_errors": [failure.to_dict() for failure in self.batch_errors],
            "reconcile_degraded": self.reconcile_degraded,
            "cancelled": self.cancelled,
            "duration_seconds": round(self.duration_seconds, 3),
        }
