"""Queue task for CSV bulk imports.

The HTTP layer stores the uploaded file and enqueues ``import_csv_task``
instead of importing inline. The file is removed after a successful import
and kept after a failure so the import can be retried.
"""
from pathlib import Path
from typing import Any, Dict, Optional
import time
import structlog

from catalog_import.errors.exceptions import DataIngestionError
from catalog_import.models.import_result import ImportMode
from catalog_import.services.importer.pipeline import import_csv

logger = structlog.get_logger(__name__)


def _delete_uploaded_file(file_path: Path, log: Any) -> bool:
    """Remove the uploaded file; failures are logged, not raised."""
    try:
        file_path.unlink()
        log.debug("uploaded_file_deleted")
        return True
    except FileNotFoundError:
        return False
    except OSError as e:
        log.warning("uploaded_file_delete_failed", error=str(e))
        return False


async def import_csv_task(
    ctx: Dict[str, Any],
    task_id: str,
    file_path: str,
    import_mode: Optional[str] = "skip",
    delete_after: bool = True,
    **kwargs
) -> Dict[str, Any]:
    """Run a CSV import as a background job.

    Args:
        ctx: Worker context (contains Redis connection; may carry a
             ``catalog_store`` to override the default store)
        task_id: Unique task identifier for logging
        file_path: Path to the uploaded CSV
        import_mode: "overwrite" or anything else for skip
        delete_after: Remove the file after a successful import

    Returns:
        Dictionary with task status and import counts

    Raises:
        DataIngestionError: If the import fails as a whole (arq retries it)
    """
    start_time = time.time()
    mode = ImportMode.normalize(import_mode)
    path = Path(file_path)
    log = logger.bind(task_id=task_id, file_path=str(path), import_mode=mode.value)
    log.info("import_csv_task_started")

    try:
        result = await import_csv(path, mode, store=ctx.get("catalog_store"))
    except DataIngestionError as e:
        log.error(
            "import_csv_task_failed",
            error=e.message,
            error_type=type(e).__name__,
            duration_seconds=round(time.time() - start_time, 3),
        )
        raise

    if result.cancelled:
        status = "cancelled"
        message = f"CSV import in {mode.value} mode was cancelled."
    elif result.batch_errors or result.category_errors:
        status = "partial_success"
        message = (
            f"CSV imported in {mode.value} mode with {len(result.batch_errors)} failed batches "
            f"and {result.category_errors} unresolved categories."
        )
    else:
        status = "success"
        message = f"CSV imported successfully in {mode.value} mode!"

    file_deleted = False
    if delete_after and result.success:
        file_deleted = _delete_uploaded_file(path, log)

    log.info(
        "import_csv_task_completed",
        status=status,
        created_count=result.created_count,
        updated_count=result.updated_count,
        file_deleted=file_deleted,
        duration_seconds=round(time.time() - start_time, 3),
    )
    return {
        "task_id": task_id,
        "status": status,
        "message": message,
        "file_deleted": file_deleted,
        **result.to_dict(),
    }
