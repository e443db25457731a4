"""Single-product creation sharing the bulk importer's rules."""
from typing import Any, Dict, Mapping, Optional
import structlog

from catalog_import.db.operations import CatalogStore, SqlAlchemyCatalogStore
from catalog_import.errors.exceptions import DatabaseError, ValidationError
from catalog_import.models.product_draft import PLACEHOLDER, CategoryKey, ProductDraft
from catalog_import.services.importer.categories import CategoryResolver
from catalog_import.services.importer.ids import IdFactory, generate_product_id
from catalog_import.services.importer.normalizer import parse_int_or_null

logger = structlog.get_logger(__name__)

KNOWN_FIELDS = frozenset({
    "source", "name", "cpn", "mainCategory", "category", "subCategory",
    "datasheetLink", "description", "manufacturer", "mfrPartNumber",
    "stockQty", "spq", "moq", "ltwks", "remarks",
})


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


async def add_product(
    data: Mapping[str, Any],
    *,
    store: Optional[CatalogStore] = None,
    id_factory: IdFactory = generate_product_id,
) -> Dict[str, Any]:
    """Create one product from a camelCase payload.

    ``mainCategory`` and ``category`` are required. A missing or "-"
    ``subCategory`` means no sub-category. Keys that are not product fields
    are stored as specifications.

    Args:
        data: Product payload (e.g. a JSON request body)
        store: Storage backend (defaults to the SQLAlchemy store)
        id_factory: Generator for the product id

    Returns:
        The stored column values, including ``id`` and ``category_id``

    Raises:
        ValidationError: If a required category field is missing
        DatabaseError: If the category or product cannot be written
    """
    main_category = _text(data.get("mainCategory"))
    if not main_category:
        raise ValidationError("mainCategory is required.")
    category = _text(data.get("category"))
    if not category:
        raise ValidationError("category is required.")
    sub_category = _text(data.get("subCategory"))
    if sub_category == PLACEHOLDER:
        sub_category = None

    store = store or SqlAlchemyCatalogStore()
    key = CategoryKey(main_category, category, sub_category)
    category_ids = await CategoryResolver(store, batch_size=1).resolve([key])
    category_id = category_ids.get(key)
    if category_id is None:
        raise DatabaseError(f"Failed to resolve category {key}: {category_ids.failures.get(key)}")

    specifications = {k: v for k, v in data.items() if k not in KNOWN_FIELDS}
    draft = ProductDraft(
        source=_text(data.get("source")),
        name=_text(data.get("name")) or PLACEHOLDER,
        cpn=_text(data.get("cpn")) or PLACEHOLDER,
        datasheet_link=_text(data.get("datasheetLink")),
        description=_text(data.get("description")),
        manufacturer=_text(data.get("manufacturer")) or PLACEHOLDER,
        mfr_part_number=_text(data.get("mfrPartNumber")) or PLACEHOLDER,
        stock_qty=parse_int_or_null(data.get("stockQty")),
        spq=parse_int_or_null(data.get("spq")),
        moq=parse_int_or_null(data.get("moq")),
        ltwks=_text(data.get("ltwks")) or PLACEHOLDER,
        remarks=_text(data.get("remarks")) or PLACEHOLDER,
        specifications=specifications or None,
        category_key=key,
        category_id=category_id,
    )

    record = draft.to_record()
    record["id"] = id_factory()
    inserted = await store.create_products([record])
    if not inserted:
        raise DatabaseError(f"Product id {record['id']} already exists")

    logger.info(
        "product_added",
        product_id=record["id"],
        name=record["name"],
        category_id=category_id,
    )
    return record
