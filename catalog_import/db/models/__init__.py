"""Database models for the catalog import pipeline."""
from catalog_import.db.models.category import Category
from catalog_import.db.models.product import Product

__all__ = [
    "Category",
    "Product",
]
