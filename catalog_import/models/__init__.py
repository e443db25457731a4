"""Data models for the import pipeline."""
from catalog_import.models.product_draft import (
    PLACEHOLDER,
    CategoryKey,
    ExistingProduct,
    ProductDraft,
    ProductUpdate,
    canonical_specifications,
    specifications_equal,
)
from catalog_import.models.import_result import (
    BatchFailure,
    BatchKind,
    ImportMode,
    ImportResult,
)
from catalog_import.models.queue_message import ImportTaskMessage

__all__ = [
    "PLACEHOLDER",
    "CategoryKey",
    "ExistingProduct",
    "ProductDraft",
    "ProductUpdate",
    "canonical_specifications",
    "specifications_equal",
    "BatchFailure",
    "BatchKind",
    "ImportMode",
    "ImportResult",
    "ImportTaskMessage",
]
