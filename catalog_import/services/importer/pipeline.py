"""CSV bulk import pipeline.

Phases run in order; each is internally concurrent:

    1. read + normalize rows       (thread, chunked pandas reader)
    2. resolve category triples    (batched find-or-create)
    3. index existing products     (paged, concurrent lookups by name)
    4. reconcile drafts            (sharded across threads)
    5. write creates and updates   (bounded concurrent batches)

Row, category and batch failures are logged and absorbed. A missing or
unreadable file, or a failed existing-product lookup, aborts the run.
"""
from pathlib import Path
from typing import Optional, Union
import asyncio
import time
import structlog

from catalog_import.config import ImportSettings, import_settings
from catalog_import.db.operations import CatalogStore, SqlAlchemyCatalogStore
from catalog_import.models.import_result import ImportMode, ImportResult
from catalog_import.parsers.csv_parser import CsvRowReader
from catalog_import.services.importer.batch_writer import BatchWriter, CancellationToken
from catalog_import.services.importer.categories import CategoryResolver, assign_category_ids
from catalog_import.services.importer.existing_index import ExistingRecordIndex
from catalog_import.services.importer.ids import IdAllocator, IdFactory, generate_product_id
from catalog_import.services.importer.normalizer import NormalizedRows, normalize_rows
from catalog_import.services.importer.reconciliation import reconcile

logger = structlog.get_logger(__name__)


def read_drafts(file_path: Union[str, Path], config: ImportSettings) -> NormalizedRows:
    """Stream the CSV file and normalize every row."""
    reader = CsvRowReader(
        str(file_path),
        chunk_size=config.csv_chunk_size,
        encoding=config.csv_encoding,
        delimiter=config.csv_delimiter,
    )
    normalized = normalize_rows(reader.iter_rows())
    normalized.rows_failed += reader.skipped_lines
    return normalized


async def import_csv(
    file_path: Union[str, Path],
    import_mode: Optional[str] = None,
    *,
    store: Optional[CatalogStore] = None,
    config: Optional[ImportSettings] = None,
    cancel_token: Optional[CancellationToken] = None,
    id_factory: IdFactory = generate_product_id,
) -> ImportResult:
    """Import products from a CSV file.

    Args:
        file_path: Path to the CSV file
        import_mode: "overwrite" to update structural duplicates; anything
            else skips them
        store: Storage backend (defaults to the SQLAlchemy store)
        config: Pipeline tuning (defaults to IMPORT_* environment settings)
        cancel_token: Stops dispatching write batches once cancelled
        id_factory: Generator for new product ids

    Returns:
        ImportResult with counts and any per-batch failures

    Raises:
        ParserError: If the file is missing or cannot be parsed
        DatabaseError: If existing products cannot be fetched
    """
    started = time.perf_counter()
    mode = ImportMode.normalize(import_mode)
    config = config or import_settings
    store = store or SqlAlchemyCatalogStore()
    result = ImportResult(mode=mode)
    log = logger.bind(file_path=str(file_path), import_mode=mode.value)
    log.info("import_started")

    try:
        # Phase 1: parse and normalize
        phase_started = time.perf_counter()
        normalized = await asyncio.to_thread(read_drafts, file_path, config)
        result.rows_parsed = normalized.rows_parsed
        result.rows_rejected = normalized.rows_rejected + normalized.rows_failed
        log.info(
            "import_rows_normalized",
            rows_parsed=normalized.rows_parsed,
            drafts=len(normalized.drafts),
            rows_rejected=normalized.rows_rejected,
            rows_failed=normalized.rows_failed,
            categories=len(normalized.category_keys),
            names=len(normalized.names),
            duration_seconds=round(time.perf_counter() - phase_started, 3),
        )

        # Phase 2: categories
        phase_started = time.perf_counter()
        resolver = CategoryResolver(store, batch_size=config.category_batch_size)
        category_ids = await resolver.resolve(normalized.category_keys)
        drafts, unresolved = assign_category_ids(normalized.drafts, category_ids)
        result.categories_resolved = len(category_ids)
        result.category_errors = len(category_ids.failures)
        result.rows_unresolved = unresolved
        log.info(
            "import_categories_resolved",
            categories_resolved=len(category_ids),
            category_errors=len(category_ids.failures),
            drafts_dropped=unresolved,
            duration_seconds=round(time.perf_counter() - phase_started, 3),
        )

        # Phase 3: existing products
        phase_started = time.perf_counter()
        index = await ExistingRecordIndex.build(
            store,
            {draft.name for draft in drafts} & normalized.names,
            page_size=config.fetch_batch_size,
            max_concurrency=config.max_concurrent_fetches,
        )
        log.info(
            "import_existing_indexed",
            existing_records=index.record_count,
            existing_names=index.name_count,
            duration_seconds=round(time.perf_counter() - phase_started, 3),
        )

        # Phase 4: reconcile
        phase_started = time.perf_counter()
        plan = await reconcile(
            drafts, index, mode, shards=config.shard_count(), id_factory=id_factory
        )
        result.existing_matched = plan.matched
        result.skipped_duplicates = plan.skipped
        result.to_create = len(plan.to_create)
        result.to_update = len(plan.to_update)
        result.reconcile_degraded = plan.degraded
        log.info(
            "import_reconciled",
            to_create=result.to_create,
            to_update=result.to_update,
            skipped_duplicates=result.skipped_duplicates,
            duration_seconds=round(time.perf_counter() - phase_started, 3),
        )

        # Phase 5: write
        phase_started = time.perf_counter()
        writer = BatchWriter(
            store,
            batch_size=config.write_batch_size,
            max_concurrency=config.max_concurrent_writes,
            id_allocator=IdAllocator(id_factory),
            id_retries=config.id_collision_retries,
            cancel_token=cancel_token,
        )
        await writer.write(plan.to_create, plan.to_update, result)
        log.info(
            "import_written",
            created_count=result.created_count,
            updated_count=result.updated_count,
            failed_batches=len(result.batch_errors),
            duration_seconds=round(time.perf_counter() - phase_started, 3),
        )
    except Exception as e:
        log.error(
            "import_failed",
            error=str(e),
            error_type=type(e).__name__,
            duration_seconds=round(time.perf_counter() - started, 3),
        )
        raise

    result.duration_seconds = time.perf_counter() - started
    log.info("import_completed", **result.to_dict())
    return result
