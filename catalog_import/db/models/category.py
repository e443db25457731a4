"""Category ORM model keyed by the (main, category, sub) triple."""
from sqlalchemy import String, UniqueConstraint, func, DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship
from catalog_import.db.base import Base
from datetime import datetime
from typing import List, TYPE_CHECKING

if TYPE_CHECKING:
    from catalog_import.db.models.product import Product


class Category(Base):
    """Three-level product category.

    A category is identified by (main_category, category, sub_category) where
    sub_category may be NULL. The unique constraint treats NULLs as equal on
    PostgreSQL 15+ so a NULL sub-category cannot be duplicated either.
    """

    __tablename__ = "categories"
    __table_args__ = (
        UniqueConstraint(
            'main_category', 'category', 'sub_category',
            name='uq_category_triple',
            postgresql_nulls_not_distinct=True,
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    main_category: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(255), nullable=False)
    sub_category: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    # Relationships
    products: Mapped[List["Product"]] = relationship(
        back_populates="category"
    )

    def __repr__(self) -> str:
        return (
            f"<Category(id={self.id}, main='{self.main_category}', "
            f"category='{self.category}', sub={self.sub_category!r})>"
        )
