"""Structured logging setup (structlog).

Request-scoped fields (filename, document_id) are bound with
``structlog.contextvars.bound_contextvars`` by the coordinator and merged
into every event emitted while a document is processed.
"""

import logging
import sys

import structlog


def _renderer(fmt: str):
    if fmt == "json" or (fmt == "auto" and not sys.stderr.isatty()):
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def _build_processors(fmt: str = "auto") -> list:
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    renderer = _renderer(fmt)
    if isinstance(renderer, structlog.processors.JSONRenderer):
        # ConsoleRenderer pretty-prints exc_info itself
        processors.append(structlog.processors.format_exc_info)
    processors.append(renderer)
    return processors


def configure_logging(level: str | None = None, fmt: str | None = None) -> None:
    from hybrid_ocr.config import settings

    log_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)

    structlog.configure(
        processors=_build_processors(fmt or settings.log_format),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# Usable before the API lifespan or the CLI calls configure_logging();
# stdout stays clean for CLI output either way.
structlog.configure(
    processors=_build_processors(),
    wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
    logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    cache_logger_on_first_use=False,
)

log = structlog.get_logger("hybrid_ocr")
