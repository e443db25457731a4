"""Database operations for the catalog import pipeline.

The import engine talks to storage only through the ``CatalogStore``
protocol. ``SqlAlchemyCatalogStore`` implements it on the async ORM; every
call opens its own session so that callers can run calls concurrently.
"""
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from typing import Any, Dict, List, Optional, Protocol, Sequence
import structlog

from catalog_import.db.base import async_session_maker
from catalog_import.db.models.category import Category
from catalog_import.db.models.product import Product
from catalog_import.errors.exceptions import DatabaseError
from catalog_import.models.product_draft import CategoryKey, ExistingProduct, ProductUpdate

logger = structlog.get_logger(__name__)

products_table = Product.__table__


class CatalogStore(Protocol):
    """Storage operations the import engine depends on."""

    async def find_category_id(self, key: CategoryKey) -> Optional[int]:
        """Return the id of the category with exactly this triple, if any."""
        ...

    async def create_category(self, key: CategoryKey) -> int:
        """Create the category for this triple and return its id."""
        ...

    async def find_products_by_names(self, names: Sequence[str]) -> List[ExistingProduct]:
        """Return stored products whose name is in ``names``."""
        ...

    async def create_products(self, records: Sequence[Dict[str, Any]]) -> List[str]:
        """Bulk insert, skipping rows whose id exists; return inserted ids."""
        ...

    async def update_products(self, updates: Sequence[ProductUpdate]) -> int:
        """Apply all updates in one transaction; return rows updated."""
        ...


async def find_category(session: AsyncSession, key: CategoryKey) -> Optional[Category]:
    """Find a category by its exact triple.

    A None sub-category matches only NULL, never the empty string.
    """
    query = (
        select(Category)
        .where(Category.main_category == key.main_category)
        .where(Category.category == key.category)
    )
    if key.sub_category is None:
        query = query.where(Category.sub_category.is_(None))
    else:
        query = query.where(Category.sub_category == key.sub_category)
    result = await session.execute(query.order_by(Category.id).limit(1))
    return result.scalar_one_or_none()


def _insert_ignoring_duplicates(dialect_name: str, records: List[Dict[str, Any]]):
    """Build a multi-row INSERT that skips id conflicts and returns inserted ids."""
    if dialect_name == "postgresql":
        stmt = pg_insert(products_table)
    elif dialect_name == "sqlite":
        stmt = sqlite_insert(products_table)
    else:
        raise DatabaseError(f"Bulk insert not supported for dialect '{dialect_name}'")
    return (
        stmt.values(records)
        .on_conflict_do_nothing(index_elements=[products_table.c.id])
        .returning(products_table.c.id)
    )


class SqlAlchemyCatalogStore:
    """CatalogStore backed by the SQLAlchemy async session factory."""

    def __init__(self, session_maker: Optional[async_sessionmaker] = None):
        self._session_maker = session_maker or async_session_maker

    async def find_category_id(self, key: CategoryKey) -> Optional[int]:
        try:
            async with self._session_maker() as session:
                category = await find_category(session, key)
                return category.id if category else None
        except SQLAlchemyError as e:
            logger.error(
                "find_category_failed",
                category_key=str(key),
                error=str(e),
                error_type=type(e).__name__
            )
            raise DatabaseError(f"Failed to find category {key}: {e}") from e

    async def create_category(self, key: CategoryKey) -> int:
        """Create a category, re-reading the winner if another writer beat us.

        Raises:
            DatabaseError: If the insert fails for any other reason
        """
        try:
            async with self._session_maker() as session:
                category = Category(
                    main_category=key.main_category,
                    category=key.category,
                    sub_category=key.sub_category,
                )
                session.add(category)
                try:
                    await session.commit()
                except IntegrityError:
                    await session.rollback()
                    existing = await find_category(session, key)
                    if existing is None:
                        raise
                    logger.debug(
                        "category_create_race_resolved",
                        category_key=str(key),
                        category_id=existing.id
                    )
                    return existing.id

                logger.debug("category_created", category_key=str(key), category_id=category.id)
                return category.id
        except SQLAlchemyError as e:
            logger.error(
                "create_category_failed",
                category_key=str(key),
                error=str(e),
                error_type=type(e).__name__
            )
            raise DatabaseError(f"Failed to create category {key}: {e}") from e

    async def find_products_by_names(self, names: Sequence[str]) -> List[ExistingProduct]:
        if not names:
            return []
        try:
            async with self._session_maker() as session:
                result = await session.execute(
                    select(Product.id, Product.name, Product.specifications)
                    .where(Product.name.in_(list(names)))
                    .order_by(Product.created_at, Product.id)
                )
                return [
                    ExistingProduct(id=row.id, name=row.name, specifications=row.specifications)
                    for row in result
                ]
        except SQLAlchemyError as e:
            logger.error(
                "find_products_by_names_failed",
                name_count=len(names),
                error=str(e),
                error_type=type(e).__name__
            )
            raise DatabaseError(f"Failed to fetch products by name: {e}") from e

    async def create_products(self, records: Sequence[Dict[str, Any]]) -> List[str]:
        if not records:
            return []
        try:
            async with self._session_maker() as session:
                async with session.begin():
                    stmt = _insert_ignoring_duplicates(session.bind.dialect.name, list(records))
                    result = await session.execute(stmt)
                    return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(
                "create_products_failed",
                record_count=len(records),
                error=str(e),
                error_type=type(e).__name__
            )
            raise DatabaseError(f"Failed to create products: {e}") from e

    async def update_products(self, updates: Sequence[ProductUpdate]) -> int:
        if not updates:
            return 0
        try:
            async with self._session_maker() as session:
                async with session.begin():
                    updated = 0
                    for item in updates:
                        result = await session.execute(
                            update(products_table)
                            .where(products_table.c.id == item.id)
                            .values(**item.values)
                        )
                        updated += result.rowcount
                    return updated
        except SQLAlchemyError as e:
            logger.error(
                "update_products_failed",
                record_count=len(updates),
                error=str(e),
                error_type=type(e).__name__
            )
            raise DatabaseError(f"Failed to update products: {e}") from e
