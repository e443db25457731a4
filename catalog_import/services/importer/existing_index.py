"""Index of stored products for structural duplicate lookup."""
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import asyncio
import structlog

from catalog_import.db.operations import CatalogStore
from catalog_import.models.product_draft import ExistingProduct, canonical_specifications
from catalog_import.services.importer.batching import chunked

logger = structlog.get_logger(__name__)


class ExistingRecordIndex:
    """Stored products grouped by name, with canonical specifications cached.

    Names are not unique in storage, so each name maps to an ordered list.
    Each record's specifications are canonicalized once at build time;
    ``find_match`` is then a dictionary lookup. When several records with the
    same name are structurally equal, the first one in fetch order wins.

    The index is never mutated after construction and may be read from
    several threads at once.
    """

    def __init__(self, records: Iterable[ExistingProduct] = ()):
        self._by_name: Dict[str, List[Tuple[str, ExistingProduct]]] = {}
        self._by_key: Dict[Tuple[str, str], ExistingProduct] = {}
        self.record_count = 0
        for record in records:
            canonical = canonical_specifications(record.specifications)
            self._by_name.setdefault(record.name, []).append((canonical, record))
            self._by_key.setdefault((record.name, canonical), record)
            self.record_count += 1

    @property
    def name_count(self) -> int:
        return len(self._by_name)

    def candidates(self, name: str) -> List[ExistingProduct]:
        """Return every stored record with this name, in fetch order."""
        return [record for _, record in self._by_name.get(name, ())]

    def find_match(self, name: str, canonical: str) -> Optional[ExistingProduct]:
        """Return the first stored record with this name and canonical specifications."""
        return self._by_key.get((name, canonical))

    @classmethod
    async def build(
        cls,
        store: CatalogStore,
        names: Iterable[str],
        page_size: int = 1000,
        max_concurrency: int = 8,
    ) -> "ExistingRecordIndex":
        """Fetch stored products for ``names`` in pages and index them.

        Pages run concurrently up to ``max_concurrency``. Results are
        flattened in page order. A failed page propagates: without it,
        duplicates could not be detected.
        """
        ordered_names: Sequence[str] = sorted(set(names))
        semaphore = asyncio.Semaphore(max_concurrency)

        async def fetch_page(start: int, page: List[str]) -> List[ExistingProduct]:
            async with semaphore:
                records = await store.find_products_by_names(page)
                logger.debug(
                    "existing_products_page_fetched",
                    start_index=start,
                    name_count=len(page),
                    record_count=len(records),
                )
                return records

        pages = await asyncio.gather(
            *(fetch_page(start, page) for start, page in chunked(ordered_names, page_size))
        )
        return cls(record for page in pages for record in page)
