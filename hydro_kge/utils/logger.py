"""Logging utility.

Idempotent logging setup shared by every ``hydro_kge`` module.

Primary entry points:
1. get_logger(): Base singleton project logger (no function context).
2. setup_logger(function_name, ...): Returns a LoggerAdapter injecting a logical
   function / task name (func_ctx) into each record, so batch runs over many
   gauges can be traced back to the routine that emitted a line.

Features:
- Optional ANSI colour on interactive consoles.
- Size-based rotating file handler (UTF-8), attached only on request so that
  importing the library never touches the filesystem.
- Safe argument handling (avoids '%'-format crashes when callers pass comma args).
- Environment overrides for level and file path.
- No propagation to the root logger (no duplicated output in host applications).

Environment variables:
- HYDRO_KGE_LOG_LEVEL: default level name (e.g. "DEBUG").
- HYDRO_KGE_LOG_FILE: path of a rotating log file attached by setup_logger().
- NO_COLOR: If set (any value), disables colour.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
import os
from pathlib import Path
import sys
from typing import Any

# --- Constants ---
_DEFAULT_LOGGER_NAME = "hydro_kge"
_LEVEL_ENV = "HYDRO_KGE_LOG_LEVEL"
_FILE_ENV = "HYDRO_KGE_LOG_FILE"
_ROTATE_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
_ROTATE_BACKUP_COUNT = 5

_LEVEL_COLORS: dict[int, str] = {
    logging.DEBUG: "\x1b[38;5;244m",  # Grey
    logging.INFO: "\x1b[38;5;39m",  # Blue
    logging.WARNING: "\x1b[38;5;214m",  # Orange
    logging.ERROR: "\x1b[38;5;196m",  # Red
    logging.CRITICAL: "\x1b[48;5;196;38;5;231m",  # White on Red
}
_RESET_COLOR = "\x1b[0m"


class ContextFormatter(logging.Formatter):
    """Formatter that adds the function context and optional colour."""

    def __init__(self, *, use_color: bool = True):
        super().__init__(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(func_ctx)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        # Records emitted through the bare logger carry no adapter context
        if not hasattr(record, "func_ctx"):
            record.func_ctx = "-"  # type: ignore[attr-defined]

        # Gracefully handle incorrect usage like logger.info("Text:", value)
        if record.args:
            try:
                _ = record.msg % record.args
            except (TypeError, ValueError):
                record.msg = " ".join([str(record.msg), *(str(a) for a in record.args)])
                record.args = ()

        formatted_message = super().format(record)

        if self.use_color and (color := _LEVEL_COLORS.get(record.levelno)):
            return f"{color}{formatted_message}{_RESET_COLOR}"
        return formatted_message


def _determine_log_level(explicit_level: int | str | None) -> int:
    """Resolve the level from the argument, then the environment, then INFO."""
    if isinstance(explicit_level, int):
        return explicit_level
    level_str = str(explicit_level or os.getenv(_LEVEL_ENV, "INFO")).upper()
    level = logging.getLevelName(level_str)
    return level if isinstance(level, int) else logging.INFO


def get_logger(
    name: str = _DEFAULT_LOGGER_NAME, *, level: int | str | None = None
) -> logging.Logger:
    """Return the project logger, configuring it on first use.

    Args:
        name: Logger name. Library code should use the default.
        level: Optional level override (e.g. "DEBUG" or logging.DEBUG). Applied
            even when the logger is already configured.

    Returns:
        A configured ``logging.Logger``.
    """
    logger = logging.getLogger(name)

    if getattr(logger, "_hydro_kge_configured", False):
        if level is not None:
            logger.setLevel(_determine_log_level(level))
        return logger

    logger.setLevel(_determine_log_level(level))
    logger.propagate = False

    use_color = sys.stderr.isatty() and os.getenv("NO_COLOR") is None
    if not any(type(h) is logging.StreamHandler for h in logger.handlers):
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(ContextFormatter(use_color=use_color))
        logger.addHandler(stream_handler)

    logger._hydro_kge_configured = True  # type: ignore[attr-defined]
    return logger


class _FunctionContextAdapter(logging.LoggerAdapter):
    """LoggerAdapter that injects function context via the ``func_ctx`` attribute."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        if self.extra is not None:
            kwargs.setdefault("extra", {})["func_ctx"] = self.extra.get("func_ctx", "-")
        return msg, kwargs


def _attach_file_handler(
    logger: logging.Logger, log_file: str | Path, max_bytes: int, backup_count: int
) -> None:
    """Attach a rotating file handler once per resolved path."""
    try:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    except OSError:
        logger.exception("Failed to create log directory for %s", log_file)
        return

    abs_log_path = str(Path(log_file).resolve())
    if any(
        isinstance(h, RotatingFileHandler) and h.baseFilename == abs_log_path
        for h in logger.handlers
    ):
        return

    try:
        handler = RotatingFileHandler(
            abs_log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
    except OSError:
        logger.exception("Could not add rotating file handler for %s", abs_log_path)
        return

    # File logs are never coloured
    handler.setFormatter(ContextFormatter(use_color=False))
    logger.addHandler(handler)
    logger.debug(
        "Added rotating file handler for %s (max=%d bytes, backups=%d)",
        abs_log_path,
        max_bytes,
        backup_count,
    )


def remove_file_handlers(logger_name: str = _DEFAULT_LOGGER_NAME) -> None:
    """Detach and close every rotating file handler of the project logger."""
    logger = get_logger(logger_name)
    for handler in [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]:
        logger.removeHandler(handler)
        handler.close()


def setup_logger(
    function_name: str,
    *,
    level: int | str | None = None,
    logger_name: str = _DEFAULT_LOGGER_NAME,
    log_file: str | Path | None = None,
    max_bytes: int = _ROTATE_MAX_BYTES,
    backup_count: int = _ROTATE_BACKUP_COUNT,
) -> logging.LoggerAdapter:
    """Return a logger adapter bound to a specific function or logical unit.

    A rotating file handler is attached when ``log_file`` is given or the
    ``HYDRO_KGE_LOG_FILE`` environment variable is set. Filesystem failures while
    attaching it are logged with stack traces and otherwise ignored, so that
    evaluation keeps running with console output only.

    Args:
        function_name: Descriptive name of the current function or task.
        level: Optional level override.
        logger_name: Base logger name, shared project-wide.
        log_file: Explicit log file path. Overrides the environment variable.
        max_bytes: Size in bytes that triggers rotation.
        backup_count: Number of rotated files to keep.

    Returns:
        A ``logging.LoggerAdapter`` that injects ``func_ctx`` into log records.
    """
    base_logger = get_logger(logger_name, level=level)

    effective_log_file = log_file or os.getenv(_FILE_ENV)
    if effective_log_file:
        _attach_file_handler(base_logger, effective_log_file, max_bytes, backup_count)

    return _FunctionContextAdapter(base_logger, {"func_ctx": function_name})


__all__ = ["ContextFormatter", "get_logger", "remove_file_handlers", "setup_logger"]
