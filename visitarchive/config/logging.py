"""
Logging Configuration for Visit Archive

Structured logging through structlog, bridged into the stdlib root logger so
that SQLAlchemy and prefect records share one output. Archiving runs bind the
site and period they work on, and every event logged during the run carries
both.
"""

import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional

import structlog
from structlog.processors import JSONRenderer, TimeStamper
from structlog.stdlib import add_log_level, ProcessorFormatter

from visitarchive.config.settings import get_settings
from visitarchive.core.periods import Period


def configure_logging(log_level: Optional[str] = None) -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Override log level (DEBUG, INFO, WARNING, ERROR)
    """
    settings = get_settings()
    level = log_level or settings.monitoring.log_level
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        add_log_level,
        TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if settings.monitoring.log_format == "json":
        renderer = JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ProcessorFormatter(processor=renderer, foreign_pre_chain=shared_processors))

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)

    # engine echo is opt-in
    sql_level = logging.INFO if settings.database.echo else logging.WARNING
    logging.getLogger("sqlalchemy.engine").setLevel(sql_level)

    structlog.get_logger(__name__).info(
        "Logging configured",
        level=level,
        format=settings.monitoring.log_format,
        environment=settings.app_env,
    )


@contextmanager
def archive_context(site_id: int, period: Period) -> Iterator[None]:
    """Bind site_id and period to every event logged inside the block"""
    with structlog.contextvars.bound_contextvars(site_id=site_id, period=str(period)):
        yield
