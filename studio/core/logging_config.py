# studio/core/logging_config.py
import logging
import sys

import structlog

from studio.config import settings


def _renderer():
    # readable lines on a laptop, JSON everywhere else
    if settings.app_env == "local":
        return structlog.dev.ConsoleRenderer(colors=False)
    return structlog.processors.JSONRenderer()


def setup_logging() -> None:
    """
    Configure structlog on top of stdlib logging.
    Request-scoped values (request_id) come in through contextvars.
    """
    level = getattr(logging, (settings.log_level or "INFO").upper(), logging.INFO)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            _renderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


# Global logger for the whole service
logger = structlog.get_logger("studio")
