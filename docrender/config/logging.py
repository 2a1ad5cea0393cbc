"""
Logging Configuration
====================

structlog on top of stdlib logging. Console output while developing, JSON
lines in production, rotating files under ``<storage_path>/logs`` outside of
tests. Request scoped values (request id, output format) are carried through
``structlog.contextvars`` so every line of a render can be correlated.
"""

import logging
import logging.config
import sys
from pathlib import Path
from typing import Any, Dict, List, TYPE_CHECKING

import structlog
from structlog.types import Processor

from .settings import get_settings

if TYPE_CHECKING:
    from .settings import Settings

LOG_FILE = "docrender.log"
ERROR_LOG_FILE = "docrender-errors.log"
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5

# Third party loggers and the level they are held at
LIBRARY_LOG_LEVELS = {
    "uvicorn": "INFO",
    "uvicorn.access": "WARNING",
    "fastapi": "INFO",
    "playwright": "WARNING",
    "asyncio": "WARNING",
    "aiohttp": "WARNING",
}


def _processors(settings: "Settings") -> List[Processor]:
    processors: List[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.is_production:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=settings.environment == "development"))
    return processors


def _rotating_handler(path: Path, level: str) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": "detailed",
        "filename": str(path),
        "maxBytes": MAX_LOG_BYTES,
        "backupCount": LOG_BACKUPS,
        "encoding": "utf-8",
    }


def get_logging_config(settings: "Settings") -> Dict[str, Any]:
    """Build the dictConfig for the given settings."""
    log_dir = settings.storage_path / "logs"
    handlers: Dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": settings.log_level,
            "formatter": "json" if settings.is_production else "standard",
            "stream": sys.stdout,
        },
    }
    # Tests write to the console only
    if settings.environment != "testing":
        handlers["file"] = _rotating_handler(log_dir / LOG_FILE, settings.log_level)
        handlers["error_file"] = _rotating_handler(log_dir / ERROR_LOG_FILE, "ERROR")

    loggers: Dict[str, Any] = {
        name: {"level": level, "handlers": ["console"], "propagate": False}
        for name, level in LIBRARY_LOG_LEVELS.items()
    }
    loggers[""] = {"level": settings.log_level, "handlers": list(handlers)}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "detailed": {
                "format": "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "json": {
                "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                "format": "%(asctime)s %(name)s %(levelname)s %(message)s",
            },
        },
        "handlers": handlers,
        "loggers": loggers,
    }


def setup_logging() -> None:
    """Configure structlog and the stdlib logging tree."""
    settings = get_settings()
    if settings.environment != "testing":
        (settings.storage_path / "logs").mkdir(parents=True, exist_ok=True)

    structlog.configure(
        processors=_processors(settings),
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.config.dictConfig(get_logging_config(settings))


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def bind_request_context(**values: Any) -> None:
    """Attach values to every log line emitted while handling the current request."""
    structlog.contextvars.bind_contextvars(**values)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()


# Initialize logging on import
setup_logging()
