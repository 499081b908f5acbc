#!/usr/bin/env python3
"""
Worker Entry Point - Main Layer

Starts the Celery worker, with the embedded beat scheduler that
triggers the synchronization and dispatch jobs.
"""

import os

from fleetsync.main.config import get_settings
from fleetsync.shared import (
    configure_logging,
    get_logger,
    update_logging_from_settings,
)

configure_logging()

settings = get_settings()

update_logging_from_settings(settings)

logger = get_logger(__name__)


def create_worker():
    """Configure and return the Celery application for the worker."""
    settings = get_settings()

    os.environ.setdefault("CELERY_BROKER_URL", settings.celery.broker_url)
    os.environ.setdefault("CELERY_RESULT_BACKEND", settings.celery.result_backend_url)

    from fleetsync.infrastructure.services.celery_config import create_celery_app

    worker_app = create_celery_app(
        broker_url=settings.celery.broker_url,
        backend_url=settings.celery.result_backend_url,
        job_settings=settings.jobs,
    )

    logger.info(
        "worker.configured",
        broker_url=settings.celery.broker_url,
        backend_url=settings.celery.result_backend_url,
        app_name=worker_app.main,
        schedule=sorted(worker_app.conf.beat_schedule),
    )

    return worker_app


def worker_arguments(settings) -> list:
    from fleetsync.infrastructure.services.celery_config import (
        COMMANDS_QUEUE,
        SYNC_QUEUE,
    )

    return [
        "worker",
        "--beat",
        f"--loglevel={settings.logging.level.value.lower()}",
        f"--queues={SYNC_QUEUE},{COMMANDS_QUEUE}",
        f"--concurrency={settings.celery.concurrency}",
    ]


def main():
    """Main entry point for Celery worker."""

    logger.info("worker.starting")

    worker_app = create_worker()
    worker_app.worker_main(worker_arguments(get_settings()))


if __name__ == "__main__":
    main()
