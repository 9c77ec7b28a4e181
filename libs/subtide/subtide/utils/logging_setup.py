"""Logging for the CLI: stderr console output plus an optional rotating file."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from subtide.config import LoggingSettings, Settings

# HTTP client libraries log every request at INFO.
_CHATTY_LOGGERS = ("httpx", "httpcore", "anthropic", "google")


def _resolve_level(cfg: LoggingSettings, verbose: bool) -> int:
    if verbose:
        return logging.DEBUG
    return getattr(logging, str(cfg.level or "INFO").upper(), logging.INFO)


def _file_handler(settings: Settings, formatter: logging.Formatter) -> logging.Handler | None:
    cfg = settings.logging
    if not cfg.file:
        return None
    file_path = Path(str(cfg.file))
    if not file_path.is_absolute():
        file_path = Path(settings.log_dir) / file_path
    file_path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        file_path,
        maxBytes=int(cfg.max_bytes),
        backupCount=int(cfg.backup_count),
        encoding="utf-8",
    )
    handler.setFormatter(formatter)
    return handler


def setup_logging(settings: Settings, *, verbose: bool = False) -> None:
    """Configure the `subtide` logger tree.

    Calling it again replaces the handlers installed by the previous call, so
    each CLI invocation logs to the current stderr.
    """
    cfg = settings.logging
    level = _resolve_level(cfg, verbose)
    formatter = logging.Formatter(fmt=str(cfg.format), datefmt=str(cfg.datefmt))

    handlers: list[logging.Handler] = []
    if cfg.console:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(formatter)
        handlers.append(console)
    file_handler = _file_handler(settings, formatter)
    if file_handler is not None:
        handlers.append(file_handler)

    logger = logging.getLogger("subtide")
    for old in logger.handlers:
        old.close()
    for handler in handlers:
        handler.setLevel(level)
    logger.handlers = handlers
    logger.setLevel(level)
    logger.propagate = False

    third_party_level = logging.DEBUG if verbose else logging.WARNING
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)
