"""
Utility helpers shared across ModalORM packages.
"""

from .logging import configure_logging, get_logger, time_call
from .naming import sanitize_identifier, snake_to_camel
from .performance import PerformanceTracker, resolve_slow_query_ms

__all__ = [
    "PerformanceTracker",
    "configure_logging",
    "get_logger",
    "resolve_slow_query_ms",
    "sanitize_identifier",
    "snake_to_camel",
    "time_call",
]
