"""Reconciliation of drafts against stored products.

Each draft is matched by (name, canonical specifications):

    no match              -> create with a generated id
    match, skip mode      -> dropped
    match, overwrite mode -> update of the matched record

Drafts are split into contiguous shards reconciled in a thread pool against
one shared, read-only ``ExistingRecordIndex``. Shards only read the index and
their own drafts; their plans are concatenated afterwards.
"""
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence
import asyncio
import structlog

from catalog_import.errors.exceptions import ReconciliationError
from catalog_import.models.import_result import ImportMode
from catalog_import.models.product_draft import ProductDraft, ProductUpdate
from catalog_import.services.importer.batching import partition
from catalog_import.services.importer.existing_index import ExistingRecordIndex
from catalog_import.services.importer.ids import IdAllocator, IdFactory, generate_product_id

logger = structlog.get_logger(__name__)


@dataclass
class ReconcilePlan:
    """Create and update lists produced by reconciliation."""
    to_create: List[Dict[str, Any]] = field(default_factory=list)
    to_update: List[ProductUpdate] = field(default_factory=list)
    matched: int = 0
    skipped: int = 0
    shards: int = 1
    degraded: bool = False
    id_redraws: int = 0

    def extend(self, other: "ReconcilePlan") -> None:
        self.to_create.extend(other.to_create)
        self.to_update.extend(other.to_update)
        self.matched += other.matched
        self.skipped += other.skipped


def reconcile_chunk(
    drafts: Sequence[ProductDraft],
    index: ExistingRecordIndex,
    mode: ImportMode,
    id_factory: IdFactory = generate_product_id,
) -> ReconcilePlan:
    """Reconcile drafts one by one against the index."""
    plan = ReconcilePlan()
    for draft in drafts:
        match = index.find_match(draft.name, draft.canonical_specifications)
        if match is None:
            record = draft.to_record()
            record["id"] = id_factory()
            plan.to_create.append(record)
            continue

        plan.matched += 1
        if mode is ImportMode.OVERWRITE:
            plan.to_update.append(ProductUpdate(id=match.id, values=draft.to_record()))
        else:
            plan.skipped += 1
    return plan


def _run_shard(
    shard: int,
    drafts: Sequence[ProductDraft],
    index: ExistingRecordIndex,
    mode: ImportMode,
    id_factory: IdFactory,
) -> ReconcilePlan:
    try:
        return reconcile_chunk(drafts, index, mode, id_factory)
    except Exception as e:
        raise ReconciliationError(f"Shard {shard} failed: {e}", shard=shard) from e


async def _reconcile_sharded(
    chunks: List[List[ProductDraft]],
    index: ExistingRecordIndex,
    mode: ImportMode,
    id_factory: IdFactory,
) -> ReconcilePlan:
    loop = asyncio.get_running_loop()
    with ThreadPoolExecutor(max_workers=len(chunks), thread_name_prefix="reconcile") as executor:
        futures = [
            loop.run_in_executor(executor, _run_shard, shard, chunk, index, mode, id_factory)
            for shard, chunk in enumerate(chunks)
        ]
        # Wait for every shard so that none is left running on failure
        outcomes = await asyncio.gather(*futures, return_exceptions=True)

    merged = ReconcilePlan(shards=len(chunks))
    for outcome in outcomes:
        if isinstance(outcome, Exception):
            raise outcome
        merged.extend(outcome)
    return merged


async def reconcile(
    drafts: Sequence[ProductDraft],
    index: ExistingRecordIndex,
    mode: ImportMode,
    shards: int = 1,
    id_factory: IdFactory = generate_product_id,
) -> ReconcilePlan:
    """Reconcile all drafts, sharded across up to ``shards`` threads.

    If any shard fails, the whole draft list is reconciled again in a single
    pass and the plan is flagged ``degraded``. Generated ids are made unique
    across shards before the plan is returned.
    """
    chunks = partition(drafts, shards)
    log = logger.bind(draft_count=len(drafts), shards=len(chunks), mode=mode.value)

    if len(chunks) <= 1:
        plan = await asyncio.to_thread(reconcile_chunk, drafts, index, mode, id_factory)
    else:
        try:
            plan = await _reconcile_sharded(chunks, index, mode, id_factory)
        except (ReconciliationError, RuntimeError) as e:
            log.warning(
                "reconcile_sharding_failed_falling_back",
                error=str(e),
                error_type=type(e).__name__,
                shard=getattr(e, "shard", None),
            )
            plan = await asyncio.to_thread(reconcile_chunk, drafts, index, mode, id_factory)
            plan.degraded = True

    allocator = IdAllocator(id_factory)
    for record in plan.to_create:
        record["id"] = allocator.claim(record["id"])
    plan.id_redraws = allocator.redraws

    log.info(
        "reconcile_completed",
        to_create=len(plan.to_create),
        to_update=len(plan.to_update),
        matched=plan.matched,
        skipped=plan.skipped,
        degraded=plan.degraded,
        id_redraws=plan.id_redraws,
    )
    return plan
