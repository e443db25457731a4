"""Bulk CSV product import and reconciliation service."""

__version__ = "1.0.0"
