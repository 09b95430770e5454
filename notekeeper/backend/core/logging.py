"""
Centralized Logging Configuration.

Every module logs through structlog loggers obtained from get_logger().
Output handlers are described by config/settings/logging.yaml:

    console  - stderr, rendered for humans ("console") or as JSON ("json")
    file     - rotating JSONL file, always JSON

Each record carries timestamp, level, logger, event, func_name and lineno,
plus anything bound to structlog contextvars. Inside an HTTP request that
includes request_id and source (see core/middleware.py); the CLI binds
source="cli" through bind_source().

Usage:
    from notekeeper.backend.core.logging import get_logger, setup_logging

    setup_logging()                      # levels and handlers from logging.yaml
    setup_logging(level="DEBUG")         # override any single setting

    logger = get_logger(__name__)
    logger.info("Note created", extra={"note_id": note.id})
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import structlog
from structlog.typing import Processor

from notekeeper.backend.core.config import find_project_root, get_app_config
from notekeeper.backend.core.config_schema import FileHandlerSchema

VALID_SOURCES = frozenset({"web", "cli", "api", "internal", "unknown"})
"""Values accepted for the 'source' log field. Callers set it explicitly."""

_CALLSITE = structlog.processors.CallsiteParameterAdder(
    parameters=[
        structlog.processors.CallsiteParameter.FUNC_NAME,
        structlog.processors.CallsiteParameter.LINENO,
    ],
)


def _shared_processors() -> list[Processor]:
    """Processors applied to structlog and foreign (stdlib) records alike."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _CALLSITE,
    ]


def _formatter(renderer: Processor) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=_shared_processors(),
    )


def _resolve_log_path(configured_path: str) -> Path:
    """Absolute paths are kept; relative ones are taken from the project root."""
    path = Path(configured_path)
    return path if path.is_absolute() else find_project_root() / path


def _file_handler(config: FileHandlerSchema) -> logging.Handler:
    log_path = _resolve_log_path(config.path)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(log_path),
        maxBytes=config.max_bytes,
        backupCount=config.backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(_formatter(structlog.processors.JSONRenderer()))
    return handler


def _console_handler(format_type: str) -> logging.Handler:
    if format_type == "console":
        renderer: Processor = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    else:
        renderer = structlog.processors.JSONRenderer()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_formatter(renderer))
    return handler


def setup_logging(
    level: str | None = None,
    format_type: str | None = None,
    enable_console: bool | None = None,
    enable_file_logging: bool | None = None,
) -> None:
    """
    Configure structlog and the root logger.

    Arguments left as None take their value from logging.yaml. Calling
    this again replaces the previously installed handlers.

    Args:
        level: Log level name, case-insensitive
        format_type: 'console' or 'json' for the console handler
        enable_console: Write to stderr
        enable_file_logging: Write JSONL to handlers.file.path
    """
    config = get_app_config().logging

    level_name = (level or config.level).upper()
    console_format = format_type or config.format
    console_on = config.handlers.console.enabled if enable_console is None else enable_console
    file_on = config.handlers.file.enabled if enable_file_logging is None else enable_file_logging

    structlog.configure(
        processors=[
            *_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handlers: list[logging.Handler] = []
    if console_on:
        handlers.append(_console_handler(console_format))
    if file_on:
        handlers.append(_file_handler(config.handlers.file))

    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    for handler in handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level_name))

    # Request lines are logged by RequestContextMiddleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str) -> Any:
    """Return a structlog logger named after the calling module."""
    return structlog.get_logger(name)


def bind_source(source: str) -> None:
    """
    Tag every following log record in this context with a source.

    Raises:
        ValueError: If source is not one of VALID_SOURCES
    """
    if source not in VALID_SOURCES:
        raise ValueError(f"Unknown log source {source!r}, expected one of {sorted(VALID_SOURCES)}")
    structlog.contextvars.bind_contextvars(source=source)
