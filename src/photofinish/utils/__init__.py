"""Shared utilities."""

from photofinish.utils.logging import LogContext, setup_logging

__all__ = ["LogContext", "setup_logging"]
