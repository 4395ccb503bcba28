"""Shared utilities: logging setup and atomic file writes."""

from .fileio import atomic_write_text
from .logging_utils import setup_logging

__all__ = ["atomic_write_text", "setup_logging"]
