"""Structured logging."""

from saintmode.logging.setup import LIBRARY_LOGGER, get_logger, setup_logging

__all__ = ["LIBRARY_LOGGER", "get_logger", "setup_logging"]
