"""Entrypoint for Redis-backed scan workers."""

from __future__ import annotations

import logging
import sys
from typing import Iterable

from redis import Redis
from rq import Worker

from storekb.config import settings

LOGGER = logging.getLogger(__name__)


def _run_worker(name: str, queue_names: Iterable[str]) -> None:
    redis_conn = Redis.from_url(settings.redis_url)
    worker = Worker(list(queue_names), connection=redis_conn, name=name)
    LOGGER.info("Worker %s starting; queues=%s", name, queue_names)
    worker.work(with_scheduler=True)


def _configure_logging() -> None:
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))


def main() -> None:
    _configure_logging()
    _run_worker("kb-scan-1", [settings.redis_queue_scan])


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:  # pragma: no cover - graceful shutdown
        sys.exit(0)
