"""arq worker configuration for processing import tasks.

This module configures the arq worker with:
    - import_csv_task: Bulk CSV product import
    - monitor_queue_depth: Cron job logging queue depth
"""
from arq.connections import RedisSettings, ArqRedis
from arq import cron
from typing import Dict, Any
import structlog

from catalog_import.config import settings, configure_logging
from catalog_import.db.base import engine
from catalog_import.db.operations import SqlAlchemyCatalogStore
from catalog_import.tasks.import_tasks import import_csv_task

# Configure logging
configure_logging(settings.log_level)
logger = structlog.get_logger(__name__)


async def startup(ctx: Dict[str, Any]) -> None:
    """Share one catalog store across jobs run by this worker."""
    ctx["catalog_store"] = SqlAlchemyCatalogStore()
    logger.info("worker_started", queue_name=settings.queue_name, max_jobs=settings.max_workers)


async def shutdown(ctx: Dict[str, Any]) -> None:
    """Dispose of pooled database connections."""
    await engine.dispose()
    logger.info("worker_stopped")


async def monitor_queue_depth(ctx: Dict[str, Any]) -> None:
    """Periodic task to log queue depth for monitoring.

    Args:
        ctx: Worker context (contains Redis connection)
    """
    try:
        redis: ArqRedis = ctx.get("redis")
        if not redis:
            logger.warning("monitor_queue_depth_no_redis")
            return

        queue_depth = await redis.zcard(settings.queue_name)
        logger.info(
            "queue_depth_monitor",
            queue_name=settings.queue_name,
            queue_depth=queue_depth,
        )
    except Exception as e:
        logger.error("monitor_queue_depth_error", error=str(e))


class WorkerSettings:
    """arq worker configuration settings.

    This class is imported by arq CLI: `arq catalog_import.worker.WorkerSettings`

    Registered Tasks:
        - import_csv_task: Import products from an uploaded CSV

    Cron Jobs:
        - monitor_queue_depth: Every 5 minutes
    """

    redis_settings = RedisSettings.from_dsn(settings.redis_url)
    queue_name = settings.queue_name
    max_jobs = settings.max_workers
    job_timeout = settings.job_timeout
    keep_result = 3600  # Keep results for 1 hour
    max_tries = 2

    functions = [
        import_csv_task,
    ]

    on_startup = startup
    on_shutdown = shutdown

    cron_jobs = [
        cron(monitor_queue_depth, minute={0, 5, 10, 15, 20, 25, 30, 35, 40, 45, 50, 55}),
    ]
