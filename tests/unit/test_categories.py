"""Unit tests for category resolution."""
import pytest

from catalog_import.models.product_draft import CategoryKey, ProductDraft
from catalog_import.services.importer.categories import (
    CategoryIdMap,
    CategoryResolver,
    assign_category_ids,
)


KEY_A = CategoryKey("Semiconductors", "Resistors", "Chip")
KEY_B = CategoryKey("Semiconductors", "Resistors", None)
KEY_C = CategoryKey("Passives", "Capacitors", "MLCC")


class TestCategoryResolver:
    """Test CategoryResolver.resolve()."""

    @pytest.mark.asyncio
    async def test_reuses_existing_category(self, store):
        """Verify an existing triple is found rather than created again."""
        existing_id = store.add_category(KEY_A)

        resolved = await CategoryResolver(store).resolve([KEY_A])

        assert resolved.get(KEY_A) == existing_id
        assert len(store.categories) == 1

    @pytest.mark.asyncio
    async def test_creates_missing_categories_once(self, store):
        """Verify repeated triples produce exactly one category record."""
        keys = [KEY_A, KEY_A, KEY_C, KEY_A, KEY_C]

        resolved = await CategoryResolver(store, batch_size=2).resolve(keys)

        assert len(store.categories) == 2
        assert len(resolved) == 2
        assert resolved.failures == {}

    @pytest.mark.asyncio
    async def test_null_sub_category_is_its_own_triple(self, store):
        """Verify a null sub-category does not match a named one."""
        store.add_category(KEY_A)

        resolved = await CategoryResolver(store).resolve([KEY_B])

        assert resolved.get(KEY_B) != resolved.get(KEY_A)
        assert KEY_B in store.categories

    @pytest.mark.asyncio
    async def test_failure_is_recorded_per_triple(self, store):
        """Verify one failing triple does not prevent the others."""
        store.failing_categories.add(KEY_C)

        resolved = await CategoryResolver(store, batch_size=1).resolve([KEY_A, KEY_C, KEY_B])

        assert resolved.get(KEY_C) is None
        assert KEY_C in resolved.failures
        assert "lookup failed" in resolved.failures[KEY_C]
        assert resolved.get(KEY_A) is not None
        assert resolved.get(KEY_B) is not None


class TestAssignCategoryIds:
    def test_drops_drafts_with_unresolved_triples(self):
        """Verify drafts whose triple has no id are dropped and counted."""
        category_ids = CategoryIdMap(ids={KEY_A: 1}, failures={KEY_C: "boom"})
        drafts = [
            ProductDraft(name="R1", category_key=KEY_A),
            ProductDraft(name="C1", category_key=KEY_C),
            ProductDraft(name="C2", category_key=KEY_C),
        ]

        assigned, dropped = assign_category_ids(drafts, category_ids)

        assert [d.name for d in assigned] == ["R1"]
        assert assigned[0].category_id == 1
        assert dropped == 2
