"""
Utility helpers shared across ForgeORM packages.
"""

from .logging import configure_logging, get_correlation_id, get_logger, set_correlation_id, time_call
from .naming import DefaultNamingStrategy, NamingStrategy, UnderscoreNamingStrategy, camel_to_snake

__all__ = [
    "DefaultNamingStrategy",
    "NamingStrategy",
    "UnderscoreNamingStrategy",
    "camel_to_snake",
    "configure_logging",
    "get_correlation_id",
    "get_logger",
    "set_correlation_id",
    "time_call",
]
