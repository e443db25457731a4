"""Queue task definitions for the import pipeline.

This module contains arq task functions for:
    - import_csv_task: Run a CSV bulk import from an uploaded file
"""
from catalog_import.tasks.import_tasks import import_csv_task

__all__ = [
    "import_csv_task",
]
