"""Background cache-warming tasks executed by Redis workers."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from redis import Redis
from rq import Queue
from rq.job import Job

from storekb.cache import build_cache_store
from storekb.config import settings
from storekb.scanner import build_scanner

logger = logging.getLogger(__name__)


def scan_all_task(options: Optional[Dict[str, bool]] = None) -> Dict[str, Any]:
    """Run a full scan so the shared Redis cache holds a fresh snapshot.

    Writes go to Redis regardless of ``cache_backend`` so scanners in other
    processes read them. Only the report envelope is returned.
    """
    if settings.cache_backend != "redis":
        logger.info("Warming the redis cache (configured backend: %s)", settings.cache_backend)
    scanner = build_scanner(cache=build_cache_store("redis", prefix=settings.cache_prefix))
    report = scanner.scan_all(options)
    if not report.success:
        logger.warning("Scheduled scan finished with errors: %s", report.failed_sources)
    return {
        "success": report.success,
        "summary": report.summary,
        "errors": [{"source": error.source, "message": error.message} for error in report.errors],
        "duration": report.duration,
    }


def get_scan_queue(connection: Optional[Redis] = None) -> Queue:
    return Queue(
        settings.redis_queue_scan,
        connection=connection or Redis.from_url(settings.redis_url),
        default_timeout=3600,
    )


def enqueue_scan_all(
    options: Optional[Dict[str, bool]] = None,
    *,
    queue: Optional[Queue] = None,
) -> Job:
    """Queue ``scan_all_task`` for a worker."""
    queue = queue or get_scan_queue()
    job = queue.enqueue(
        "storekb.tasks.scan_all_task",
        options,
        job_timeout=1800,
        result_ttl=86400,
        failure_ttl=86400,
        meta={"options": options or {}},
    )
    logger.info("Enqueued full scan job %s on %s", job.id, queue.name)
    return job
