"""
Utility modules for the Pokedex pipeline
"""

from pokedex_sync.utils.logger import (
    ColoredFormatter,
    JSONFormatter,
    LogLevel,
    configure_logging,
    resolve_level,
)

__all__ = [
    "ColoredFormatter",
    "JSONFormatter",
    "LogLevel",
    "configure_logging",
    "resolve_level",
]
