"""Structured logging for the concert-group batch job.

Every record carries a ``job`` field, and while a formation run is in
progress also its ``run_id`` and the ``artist_id`` being worked on, so a
single run or a single artist can be pulled out of the scheduler's log.

Rendering uses a **dual-renderer pattern**: the same processor chain feeds
either a coloured ConsoleRenderer for local runs or a JSONRenderer for the
scheduled job.  The renderer is selected from ``APP_ENV`` (default
``"development"``), or forced via ``json_output``.

Standard-library ``logging`` is routed through the same chain.  httpx logs
every request at INFO, so the HTTP and SQLite client loggers are held at
WARNING unless DEBUG output is requested.
"""

import logging
import os
import sys
from typing import Any
from uuid import uuid4

import structlog

JOB_NAME = "concert_groups"

_CHATTY_LIBRARIES = ("httpx", "httpcore", "aiosqlite")


def _job_field(job_name: str) -> structlog.types.Processor:
    def add_job(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("job", job_name)
        return event_dict

    return add_job


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = False,
    job_name: str = JOB_NAME,
) -> structlog.BoundLogger:
    """Configure structlog and the stdlib bridge for the batch job.

    Args:
        log_level: Logging level string (DEBUG, INFO, WARNING, ERROR).
        json_output: Force JSON output. When False, uses console rendering in
                     development and JSON in production (detected via APP_ENV).
        job_name: Value of the ``job`` field stamped on every record.

    Returns:
        A configured structlog BoundLogger.
    """
    app_env = os.environ.get("APP_ENV", "development")
    use_json = json_output or app_env == "production"
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    # contextvars first so run_id/artist_id bindings reach every renderer.
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        _job_field(job_name),
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    if use_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    library_level = level if level <= logging.DEBUG else max(level, logging.WARNING)
    for name in _CHATTY_LIBRARIES:
        logging.getLogger(name).setLevel(library_level)

    return structlog.get_logger()


def new_run_id() -> str:
    """Short random id that tags every log line of one formation run."""
    return uuid4().hex[:12]


def run_context(run_id: str) -> Any:
    """Bind ``run_id`` to every record logged inside the ``with`` block.

    Tasks created inside the block inherit the binding, so concurrent
    artist workers are tagged too.
    """
    return structlog.contextvars.bound_contextvars(run_id=run_id)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a named structlog logger, configuring defaults on first use."""
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(logger_name=name)
