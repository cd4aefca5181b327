"""Utility modules for the capture engine.

Provides:
- Structured logging configuration
"""

from .logging import LogContext, configure_from_settings, configure_logging, get_logger

__all__ = [
    # Logging
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "LogContext",
]
