"""Unit tests for single-product creation."""
import pytest

from catalog_import.errors.exceptions import DatabaseError, ValidationError
from catalog_import.models.product_draft import CategoryKey
from catalog_import.services.product_service import add_product


class TestAddProduct:
    """Test add_product()."""

    @pytest.mark.asyncio
    async def test_creates_product_with_defaults(self, store):
        """Verify missing fields get defaults and extra keys become specifications."""
        record = await add_product(
            {
                "mainCategory": "Semiconductors",
                "category": "Resistors",
                "subCategory": "-",
                "name": " R1 ",
                "stockQty": "12 pcs",
                "Resistance": "10k",
            },
            store=store,
            id_factory=lambda: "AB12345",
        )

        assert record["id"] == "AB12345"
        assert record["name"] == "R1"
        assert record["cpn"] == "-"
        assert record["manufacturer"] == "-"
        assert record["stock_qty"] == 12
        assert record["source"] is None
        assert record["specifications"] == {"Resistance": "10k"}
        assert record["category_id"] == store.categories[CategoryKey("Semiconductors", "Resistors", None)]
        assert "AB12345" in store.products

    @pytest.mark.asyncio
    async def test_reuses_existing_category(self, store):
        category_id = store.add_category(CategoryKey("A", "B", "C"))

        record = await add_product(
            {"mainCategory": "A", "category": "B", "subCategory": "C"}, store=store
        )

        assert record["category_id"] == category_id
        assert record["specifications"] is None
        assert len(store.categories) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload,message", [
        ({"category": "B"}, "mainCategory is required."),
        ({"mainCategory": "  ", "category": "B"}, "mainCategory is required."),
        ({"mainCategory": "A"}, "category is required."),
    ])
    async def test_requires_categories(self, store, payload, message):
        with pytest.raises(ValidationError) as exc_info:
            await add_product(payload, store=store)

        assert exc_info.value.message == message
        assert store.products == {}

    @pytest.mark.asyncio
    async def test_category_failure_raises(self, store):
        store.failing_categories.add(CategoryKey("A", "B", None))

        with pytest.raises(DatabaseError):
            await add_product({"mainCategory": "A", "category": "B"}, store=store)

    @pytest.mark.asyncio
    async def test_duplicate_id_raises(self, store):
        """Verify an id already present in storage is reported."""
        store.add_product("AB12345", "other")

        with pytest.raises(DatabaseError):
            await add_product(
                {"mainCategory": "A", "category": "B"},
                store=store,
                id_factory=lambda: "AB12345",
            )
