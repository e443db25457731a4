"""Service modules for catalog import."""
