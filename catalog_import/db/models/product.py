"""Product ORM model with a free-form specifications document."""
from sqlalchemy import String, Text, Integer, ForeignKey, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship
from catalog_import.db.base import Base, TimestampMixin
from typing import Any, Dict, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from catalog_import.db.models.category import Category


# SQL NULL (not JSON 'null') for missing specifications so that
# "no attributes" and "empty attribute map" stay distinguishable
SpecificationsType = JSON(none_as_null=True).with_variant(
    JSONB(none_as_null=True), "postgresql"
)


class Product(Base, TimestampMixin):
    """Product model representing one catalog entry.

    Attributes:
        id: Generated identifier (two letters and five digits, e.g. AB12345)
        name: Product name / part number; not unique
        specifications: Arbitrary spreadsheet columns (string -> string)
        category_id: Reference to the resolved category

    Relationships:
        category: Reference to Category
    """

    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(16), primary_key=True)
    source: Mapped[str | None] = mapped_column(String(255), nullable=True)
    name: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    cpn: Mapped[str] = mapped_column(String(255), nullable=False, server_default="-")
    manufacturer: Mapped[str] = mapped_column(String(255), nullable=False, server_default="-")
    mfr_part_number: Mapped[str] = mapped_column(String(255), nullable=False, server_default="-")
    stock_qty: Mapped[int | None] = mapped_column(Integer, nullable=True)
    spq: Mapped[int | None] = mapped_column(Integer, nullable=True)
    moq: Mapped[int | None] = mapped_column(Integer, nullable=True)
    ltwks: Mapped[str] = mapped_column(String(100), nullable=False, server_default="-")
    remarks: Mapped[str] = mapped_column(Text, nullable=False, server_default="-")
    datasheet_link: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    specifications: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        SpecificationsType,
        nullable=True,
        doc="Free-form attributes from non-standard spreadsheet columns"
    )
    category_id: Mapped[int | None] = mapped_column(
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    # Relationships
    category: Mapped[Optional["Category"]] = relationship(back_populates="products")

    def __repr__(self) -> str:
        return f"<Product(id='{self.id}', name='{self.name}')>"
