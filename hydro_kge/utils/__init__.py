"""Utilities module."""

from .logger import get_logger, remove_file_handlers, setup_logger

__all__ = [
    "get_logger",
    "remove_file_handlers",
    "setup_logger",
]
