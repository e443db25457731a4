"""CSV bulk import pipeline.

Key Components:
    - normalize_rows: Raw rows into product drafts
    - CategoryResolver: Category triples into persistent ids
    - ExistingRecordIndex: Stored products indexed by name and specifications
    - reconcile: Drafts into create and update lists
    - BatchWriter: Batched, bounded-concurrency writes
    - import_csv: The whole pipeline
"""
from catalog_import.services.importer.normalizer import (
    STANDARD_COLUMNS,
    NormalizedRows,
    normalize_row,
    normalize_rows,
    parse_int_or_null,
)
from catalog_import.services.importer.categories import (
    CategoryIdMap,
    CategoryResolver,
    assign_category_ids,
)
from catalog_import.services.importer.existing_index import ExistingRecordIndex
from catalog_import.services.importer.reconciliation import (
    ReconcilePlan,
    reconcile,
    reconcile_chunk,
)
from catalog_import.services.importer.batch_writer import BatchWriter, CancellationToken
from catalog_import.services.importer.ids import IdAllocator, generate_product_id
from catalog_import.services.importer.pipeline import import_csv, read_drafts

__all__ = [
    "STANDARD_COLUMNS",
    "NormalizedRows",
    "normalize_row",
    "normalize_rows",
    "parse_int_or_null",
    "CategoryIdMap",
    "CategoryResolver",
    "assign_category_ids",
    "ExistingRecordIndex",
    "ReconcilePlan",
    "reconcile",
    "reconcile_chunk",
    "BatchWriter",
    "CancellationToken",
    "IdAllocator",
    "generate_product_id",
    "import_csv",
    "read_drafts",
]
