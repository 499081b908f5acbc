"""
Logging Configuration - Shared Layer

structlog on top of the standard logging handlers, so that celery, pymongo
and httpx records share the renderer used by the jobs.
"""

import logging
import os
import sys
from typing import Any, List, Optional

import structlog
from structlog.types import Processor

from fleetsync.shared.consts import NOISY_LOGGERS, EnumEnvironment


def configure_logging(
    level: Optional[str] = None,
    file_path: Optional[str] = None,
    environment: str = EnumEnvironment.DEVELOPMENT.value,
) -> None:
    """
    Configure the root logger and structlog.

    Called once at process start with environment defaults, then again
    through ``update_logging_from_settings`` once settings are loaded.

    Args:
        level: Log level name, defaults to ``LOG_LEVEL`` or INFO.
        file_path: Optional log file, defaults to ``LOG_FILE_PATH``.
        environment: Deployment environment; production renders JSON.
    """
    log_level = level or os.environ.get("LOG_LEVEL") or "INFO"
    log_file = file_path or os.environ.get("LOG_FILE_PATH")
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)
    renderer: Processor
    if environment.lower() == EnumEnvironment.PRODUCTION:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            timestamper,
        ],
    )
    for handler in handlers:
        handler.setFormatter(formatter)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            timestamper,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.handlers = handlers
    root_logger.setLevel(numeric_level)

    if numeric_level > logging.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.info(f"Logging configured with level: {log_level}")
    if log_file:
        logging.info(f"Logging to file: {log_file}")


def update_logging_from_settings(settings: Any) -> None:
    """
    Reconfigure logging from the loaded application settings.

    Args:
        settings: Settings object exposing ``logging`` and ``environment``.
    """
    try:
        log_level = getattr(settings.logging.level, "value", settings.logging.level)
        environment = getattr(settings.environment, "value", settings.environment)
        configure_logging(
            level=log_level,
            file_path=settings.logging.file_path,
            environment=environment,
        )
        logging.info("Logging configuration updated from application settings")
    except Exception as e:
        logging.error(f"Failed to update logging from settings: {e}")


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger configured for the project."""
    return structlog.get_logger(name)
