"""Batched writes of reconciled creates and updates."""
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence
import asyncio
import threading
import structlog

from catalog_import.db.operations import CatalogStore
from catalog_import.errors.exceptions import BatchWriteError
from catalog_import.models.import_result import BatchFailure, BatchKind, ImportResult
from catalog_import.models.product_draft import ProductUpdate
from catalog_import.services.importer.batching import chunked
from catalog_import.services.importer.ids import IdAllocator

logger = structlog.get_logger(__name__)


class CancellationToken:
    """Cooperative cancellation flag for an import run.

    Checked before each write batch starts; a batch already running is
    always allowed to finish its transaction. Safe to set from any thread.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class BatchWriter:
    """Flushes create and update lists to storage in bounded batches.

    Creates are bulk inserted with duplicate ids skipped; rows skipped that
    way get a fresh id and are retried up to ``id_retries`` times. Each
    update batch is a single transaction. Up to ``max_concurrency`` batches
    run at once. A failing batch is logged and recorded in
    ``ImportResult.batch_errors``; the other batches carry on.
    """

    def __init__(
        self,
        store: CatalogStore,
        batch_size: int = 250,
        max_concurrency: int = 8,
        id_allocator: Optional[IdAllocator] = None,
        id_retries: int = 3,
        cancel_token: Optional[CancellationToken] = None,
    ):
        self.store = store
        self.batch_size = batch_size
        self.max_concurrency = max_concurrency
        self.id_allocator = id_allocator or IdAllocator()
        self.id_retries = id_retries
        self.cancel_token = cancel_token or CancellationToken()

    async def _create_batch(self, start: int, batch: List[Dict[str, Any]], result: ImportResult) -> None:
        pending = batch
        for attempt in range(self.id_retries + 1):
            try:
                inserted = set(await self.store.create_products(pending))
            except Exception as e:
                # rows stored by earlier attempts are not part of the failure
                raise BatchWriteError(str(e), record_ids=[record["id"] for record in pending]) from e
            result.created_count += len(inserted)
            pending = [record for record in pending if record["id"] not in inserted]
            if not pending:
                return
            if attempt == self.id_retries:
                break
            logger.info(
                "create_batch_id_collisions_retrying",
                start_index=start,
                collisions=len(pending),
                attempt=attempt + 1,
            )
            for record in pending:
                record["id"] = self.id_allocator.next()

        logger.warning(
            "create_batch_rows_dropped",
            start_index=start,
            dropped=len(pending),
            reason="id_collision",
        )
        result.batch_errors.append(BatchFailure(
            kind=BatchKind.CREATE,
            start_index=start,
            size=len(batch),
            error=f"{len(pending)} rows kept colliding with existing ids",
            record_ids=[record["id"] for record in pending],
        ))

    async def _update_batch(self, start: int, batch: List[ProductUpdate], result: ImportResult) -> None:
        updated = await self.store.update_products(batch)
        result.updated_count += updated

    async def _run_batch(
        self,
        semaphore: asyncio.Semaphore,
        kind: BatchKind,
        start: int,
        batch: list,
        write: Callable[[int, list, ImportResult], Awaitable[None]],
        result: ImportResult,
    ) -> None:
        async with semaphore:
            if self.cancel_token.cancelled:
                result.cancelled = True
                return
            try:
                await write(start, batch, result)
                logger.debug(
                    "write_batch_completed",
                    kind=kind.value,
                    start_index=start,
                    batch_size=len(batch),
                    created_total=result.created_count,
                    updated_total=result.updated_count,
                )
            except Exception as e:
                if isinstance(e, BatchWriteError):
                    record_ids = e.record_ids
                else:
                    record_ids = [
                        item.id if isinstance(item, ProductUpdate) else item["id"]
                        for item in batch
                    ]
                logger.error(
                    "write_batch_failed",
                    kind=kind.value,
                    start_index=start,
                    end_index=start + len(batch) - 1,
                    batch_size=len(batch),
                    unwritten=len(record_ids),
                    error=str(e),
                    error_type=type(e.__cause__ or e).__name__,
                )
                result.batch_errors.append(BatchFailure(
                    kind=kind,
                    start_index=start,
                    size=len(batch),
                    error=str(e),
                    record_ids=record_ids,
                ))

    async def write(
        self,
        to_create: Sequence[Dict[str, Any]],
        to_update: Sequence[ProductUpdate],
        result: ImportResult,
    ) -> ImportResult:
        """Write all batches and accumulate counts into ``result``."""
        for record in to_create:
            self.id_allocator.issued.add(record["id"])

        semaphore = asyncio.Semaphore(self.max_concurrency)
        jobs = [
            self._run_batch(semaphore, BatchKind.CREATE, start, batch, self._create_batch, result)
            for start, batch in chunked(to_create, self.batch_size)
        ]
        jobs += [
            self._run_batch(semaphore, BatchKind.UPDATE, start, batch, self._update_batch, result)
            for start, batch in chunked(to_update, self.batch_size)
        ]
        await asyncio.gather(*jobs)

        if result.cancelled:
            logger.warning(
                "write_cancelled",
                created_count=result.created_count,
                updated_count=result.updated_count,
            )
        logger.info(
            "write_completed",
            batches=len(jobs),
            created_count=result.created_count,
            updated_count=result.updated_count,
            failed_batches=len(result.batch_errors),
        )
        return result
