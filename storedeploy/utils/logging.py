"""Structured logging for the deployment service.

Events go through structlog and are written by stdlib handlers to stdout and
to ``<log_directory>/<log_file_name>``. Request and task identifiers bound with
``structlog.contextvars`` are merged into every event.
"""

import logging
import sys
from pathlib import Path
from typing import Any

import structlog

from storedeploy.config import settings

# Libraries that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore")

SHARED_PROCESSORS: list[Any] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]


def resolve_log_file(directory: str | Path | None = None) -> Path:
    """Log file path; relative directories live under the project root."""
    log_dir = Path(settings.log_directory if directory is None else directory)
    if not log_dir.is_absolute():
        log_dir = Path(settings.project_root) / log_dir
    return log_dir / settings.log_file_name


def _handlers(log_file: Path) -> list[logging.Handler]:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    return [
        logging.StreamHandler(sys.stdout),
        logging.FileHandler(log_file, encoding="utf-8"),
    ]


def _renderer(log_format: str) -> Any:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def configure_logging(
    level: str | None = None,
    log_format: str | None = None,
    directory: str | Path | None = None,
) -> Path:
    """Configure stdlib handlers and structlog. Returns the log file path.

    Safe to call more than once; earlier root handlers are replaced.
    """
    level = settings.log_level if level is None else level
    log_format = settings.log_format if log_format is None else log_format
    log_file = resolve_log_file(directory)

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level),
        handlers=_handlers(log_file),
        force=True,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[*SHARED_PROCESSORS, _renderer(log_format)],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    return log_file


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
