#!/usr/bin/env python3
"""Helper script for enqueuing CSV import tasks to the Redis queue.

Usage:
    python scripts/enqueue_import.py --file /shared/uploads/products.csv --mode overwrite
"""
import asyncio
import argparse
from datetime import datetime, timezone
from typing import Optional

from arq.connections import RedisSettings, create_pool
from arq import ArqRedis

from catalog_import.config import settings
from catalog_import.models.queue_message import ImportTaskMessage


async def enqueue_import_task(message: ImportTaskMessage) -> Optional[str]:
    """Enqueue an import_csv_task job.

    Args:
        message: Validated task message

    Returns:
        Enqueued job ID, or None if a job with the same ID already exists
    """
    redis_settings = RedisSettings.from_dsn(settings.redis_url)

    print(f"📤 Connecting to Redis: {settings.redis_url.split('@')[-1]}")

    pool: ArqRedis = await create_pool(redis_settings)

    try:
        job = await pool.enqueue_job(
            "import_csv_task",
            task_id=message.task_id,
            file_path=message.file_path,
            import_mode=message.import_mode,
            delete_after=message.delete_after,
            _job_id=message.task_id,
            _queue_name=settings.queue_name,
        )
        if job is None:
            print(f"⚠️  Job {message.task_id} is already queued")
            return None

        print(f"✅ Task enqueued successfully!")
        print(f"   Task ID:  {message.task_id}")
        print(f"   Queue:    {settings.queue_name}")
        print(f"   File:     {message.file_path}")
        print(f"   Mode:     {message.import_mode}")

        return job.job_id

    finally:
        await pool.close()


def main():
    parser = argparse.ArgumentParser(
        description="Enqueue CSV product import task to Redis queue",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Skip rows that match stored products
  python scripts/enqueue_import.py --file /shared/uploads/products.csv

  # Overwrite matching products, keep the file afterwards
  python scripts/enqueue_import.py --file /shared/uploads/products.csv \\
    --mode overwrite --keep-file
        """
    )

    parser.add_argument(
        "--task-id",
        help="Unique task ID (auto-generated if not provided)"
    )
    parser.add_argument(
        "--file",
        required=True,
        help="Path to the CSV file as seen by the worker"
    )
    parser.add_argument(
        "--mode",
        default="skip",
        help="'overwrite' to update matching products; anything else skips them"
    )
    parser.add_argument(
        "--keep-file",
        action="store_true",
        help="Do not delete the file after a successful import"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print task details without enqueuing"
    )

    args = parser.parse_args()

    timestamp = int(datetime.now(timezone.utc).timestamp())
    message = ImportTaskMessage(
        task_id=args.task_id or f"import-{timestamp}",
        file_path=args.file,
        import_mode=args.mode,
        delete_after=not args.keep_file,
    )

    if args.dry_run:
        print("🔍 DRY RUN - Task details:")
        print(f"   Task ID:     {message.task_id}")
        print(f"   File:        {message.file_path}")
        print(f"   Mode:        {message.import_mode}")
        print(f"   Delete file: {message.delete_after}")
        return

    asyncio.run(enqueue_import_task(message))


if __name__ == "__main__":
    main()
