"""structlog setup shared by the API, the CLI and background jobs."""

import logging
import sys

import structlog

from brandcollab.settings import settings

# Third-party loggers that are chatty at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "botocore", "boto3", "stripe", "urllib3", "google")


def _renderer():
    if settings.log_format == "json":
        return [structlog.processors.TimeStamper(fmt="iso"), structlog.processors.JSONRenderer()]
    return [structlog.processors.TimeStamper(fmt="%H:%M:%S"), structlog.dev.ConsoleRenderer(colors=False)]


def setup_logging() -> None:
    """Configure structlog and route stdlib logging to stdout.

    ``LOG_FORMAT=json`` switches to one JSON object per line for log
    shipping; anything else renders human-readable console lines.
    """
    level = logging.getLevelName(settings.log_level.upper())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            *_renderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(name)s %(message)s", stream=sys.stdout, level=level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_request_context(**values) -> None:
    """Attach values (request id, caller) to every log line of the current request."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(service=settings.app_name, **values)


def get_logger(name: str) -> structlog.BoundLogger:
    return structlog.get_logger(name)
