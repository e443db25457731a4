"""Unit tests for the import queue task and worker settings."""
from unittest.mock import AsyncMock, patch

import pytest

from catalog_import.errors.exceptions import ParserError
from catalog_import.models.import_result import ImportMode, ImportResult
from catalog_import.tasks.import_tasks import import_csv_task


ROW = "Main Category,Category,Product Name/Part No.\nSemiconductors,Resistors,R1\n"


class TestImportCsvTask:
    """Test import_csv_task()."""

    @pytest.mark.asyncio
    async def test_imports_and_deletes_file(self, store, tmp_path):
        """Verify a successful import removes the uploaded file."""
        path = tmp_path / "upload.csv"
        path.write_text(ROW, encoding="utf-8")

        response = await import_csv_task({"catalog_store": store}, "task-1", str(path))

        assert response["task_id"] == "task-1"
        assert response["status"] == "success"
        assert response["message"] == "CSV imported successfully in skip mode!"
        assert response["created_count"] == 1
        assert response["file_deleted"] is True
        assert not path.exists()

    @pytest.mark.asyncio
    async def test_keep_file_when_requested(self, store, tmp_path):
        path = tmp_path / "upload.csv"
        path.write_text(ROW, encoding="utf-8")

        response = await import_csv_task(
            {"catalog_store": store}, "task-2", str(path), import_mode="overwrite", delete_after=False
        )

        assert response["mode"] == "overwrite"
        assert response["file_deleted"] is False
        assert path.exists()

    @pytest.mark.asyncio
    async def test_unknown_mode_falls_back_to_skip(self, tmp_path):
        """Verify the task normalizes the mode before importing."""
        with patch(
            "catalog_import.tasks.import_tasks.import_csv",
            new=AsyncMock(return_value=ImportResult()),
        ) as mock_import:
            await import_csv_task({}, "task-3", str(tmp_path / "a.csv"), import_mode="merge")

        args, kwargs = mock_import.call_args
        assert args[1] is ImportMode.SKIP
        assert kwargs["store"] is None

    @pytest.mark.asyncio
    async def test_partial_success_keeps_reporting(self, store, tmp_path):
        """Verify batch failures mark the task partial_success."""
        path = tmp_path / "upload.csv"
        path.write_text(ROW, encoding="utf-8")
        store.create_products = AsyncMock(side_effect=RuntimeError("disk full"))

        response = await import_csv_task({"catalog_store": store}, "task-4", str(path))

        assert response["status"] == "partial_success"
        assert response["message"] == "CSV imported in skip mode with 1 failed batches and 0 unresolved categories."
        assert response["batch_errors"][0]["error"] == "disk full"

    @pytest.mark.asyncio
    async def test_cancelled_import_message(self, tmp_path):
        """Verify a cancelled run is not reported as a success and keeps the file."""
        path = tmp_path / "upload.csv"
        path.write_text(ROW, encoding="utf-8")
        with patch(
            "catalog_import.tasks.import_tasks.import_csv",
            new=AsyncMock(return_value=ImportResult(mode=ImportMode.OVERWRITE, cancelled=True)),
        ):
            response = await import_csv_task({}, "task-6", str(path), import_mode="overwrite")

        assert response["status"] == "cancelled"
        assert response["message"] == "CSV import in overwrite mode was cancelled."
        assert response["file_deleted"] is False
        assert path.exists()

    @pytest.mark.asyncio
    async def test_fatal_error_propagates_and_keeps_file(self, tmp_path):
        """Verify a failed import re-raises so the queue can retry it."""
        with patch(
            "catalog_import.tasks.import_tasks.import_csv",
            new=AsyncMock(side_effect=ParserError("CSV parsing error")),
        ):
            with pytest.raises(ParserError):
                await import_csv_task({}, "task-5", str(tmp_path / "a.csv"))


class TestWorkerSettings:
    def test_registers_import_task(self):
        from catalog_import.worker import WorkerSettings

        assert import_csv_task in WorkerSettings.functions
        assert WorkerSettings.queue_name == "catalog-import-queue"
        assert len(WorkerSettings.cron_jobs) == 1
