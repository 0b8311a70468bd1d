import logging
import logging.config
import sys
from typing import Any, Dict, List

import sentry_sdk
import structlog

from vitalview.core.config import settings

# Third-party loggers that are chatty at INFO (one line per outbound provider call).
_QUIET_LOGGERS = ("httpx", "httpcore", "PIL", "pymongo")


def _build_renderer() -> structlog.types.Processor:
    if settings.ENVIRONMENT in ["local", "dev"]:
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def _init_sentry() -> None:
    if not settings.SENTRY_DSN:
        return
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        traces_sample_rate=1.0 if settings.ENVIRONMENT == "local" else 0.1,
    )


def setup_logging() -> None:
    """
    Configure structured logging for the service.
    - Local/dev: pretty console output.
    - Everything else: one JSON object per line.
    - Sentry is initialised when a DSN is configured.
    """
    shared_processors: List[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    _init_sentry()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    uvicorn_logger: Dict[str, Any] = {
        "handlers": ["default"],
        "level": "INFO",
        "propagate": False,
    }
    loggers: Dict[str, Any] = {
        "": {
            "handlers": ["default"],
            "level": settings.LOG_LEVEL,
            "propagate": True,
        },
        "uvicorn": uvicorn_logger,
        "uvicorn.error": uvicorn_logger,
        "uvicorn.access": uvicorn_logger,
    }
    for name in _QUIET_LOGGERS:
        loggers[name] = {"level": "WARNING"}

    # Route stdlib records (uvicorn, httpx, beanie) through the same renderer
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "processor": _build_renderer(),
                    "foreign_pre_chain": shared_processors,
                },
            },
            "handlers": {
                "default": {
                    "level": settings.LOG_LEVEL,
                    "class": "logging.StreamHandler",
                    "stream": sys.stdout,
                    "formatter": "default",
                },
            },
            "loggers": loggers,
        }
    )
