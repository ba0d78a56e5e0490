"""
Core Module
Zentrale Konfiguration, Settings und Fehlerklassen
"""

from .config import Settings, get_settings
from .exceptions import (
    CrawlError,
    RetryExhaustedError,
    StructuralExtractionError,
    TransientFetchError,
)

__all__ = [
    "Settings",
    "get_settings",
    "CrawlError",
    "TransientFetchError",
    "StructuralExtractionError",
    "RetryExhaustedError",
]
