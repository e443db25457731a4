"""Category resolution: distinct category triples to persistent ids."""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple
import asyncio
import structlog

from catalog_import.db.operations import CatalogStore
from catalog_import.errors.exceptions import CategoryResolutionError
from catalog_import.models.product_draft import CategoryKey, ProductDraft
from catalog_import.services.importer.batching import chunked

logger = structlog.get_logger(__name__)


@dataclass
class CategoryIdMap:
    """Resolved category ids for one import run.

    Built once by ``CategoryResolver.resolve`` and only read afterwards.
    Triples that failed to resolve are listed in ``failures`` and have no id.
    """
    ids: Dict[CategoryKey, int] = field(default_factory=dict)
    failures: Dict[CategoryKey, str] = field(default_factory=dict)

    def get(self, key: CategoryKey) -> Optional[int]:
        return self.ids.get(key)

    def __len__(self) -> int:
        return len(self.ids)


class CategoryResolver:
    """Finds or creates one category per distinct triple.

    Triples are processed in batches; within a batch every triple is
    resolved concurrently. Each triple is looked up before it is created,
    and distinct triples never share a create, so a run never inserts two
    rows for one triple.
    """

    def __init__(self, store: CatalogStore, batch_size: int = 50):
        self.store = store
        self.batch_size = batch_size

    async def _find_or_create(self, key: CategoryKey) -> int:
        try:
            category_id = await self.store.find_category_id(key)
            if category_id is None:
                category_id = await self.store.create_category(key)
                logger.debug("category_created", category_key=str(key), category_id=category_id)
            return category_id
        except Exception as e:
            raise CategoryResolutionError(
                f"Failed to resolve category {key}: {e}", category_key=key
            ) from e

    async def _resolve_one(self, key: CategoryKey) -> Tuple[CategoryKey, Optional[int], Optional[str]]:
        try:
            return key, await self._find_or_create(key), None
        except CategoryResolutionError as e:
            logger.error(
                "category_resolution_failed",
                category_key=str(key),
                error=str(e.__cause__ or e),
                error_type=type(e.__cause__ or e).__name__,
            )
            return key, None, str(e)

    async def resolve(self, keys: Iterable[CategoryKey]) -> CategoryIdMap:
        """Resolve every triple; failed triples are recorded, not raised."""
        keys = list(dict.fromkeys(keys))
        resolved = CategoryIdMap()
        for start, batch in chunked(keys, self.batch_size):
            outcomes = await asyncio.gather(*(self._resolve_one(key) for key in batch))
            for key, category_id, error in outcomes:
                if category_id is None:
                    resolved.failures[key] = error or "unresolved"
                else:
                    resolved.ids[key] = category_id
            logger.debug(
                "category_batch_resolved",
                start_index=start,
                batch_size=len(batch),
                resolved_total=len(resolved.ids),
            )
        return resolved


def assign_category_ids(
    drafts: Iterable[ProductDraft],
    category_ids: CategoryIdMap,
) -> Tuple[List[ProductDraft], int]:
    """Attach category ids to drafts, dropping drafts whose triple failed.

    Returns:
        Tuple of (drafts with category_id set, number of dropped drafts)
    """
    assigned: List[ProductDraft] = []
    dropped: Dict[CategoryKey, int] = {}
    for draft in drafts:
        category_id = category_ids.get(draft.category_key)
        if category_id is None:
            dropped[draft.category_key] = dropped.get(draft.category_key, 0) + 1
            continue
        draft.category_id = category_id
        assigned.append(draft)

    for key, count in dropped.items():
        logger.warning(
            "drafts_skipped_unresolved_category",
            category_key=str(key),
            draft_count=count,
        )
    return assigned, sum(dropped.values())
