"""Configuration management for SQLBridge.

Usage:
    >>> from sqlbridge.config import get_settings
    >>> settings = get_settings()
    >>> settings.quote_identifiers
    'always'
"""

from sqlbridge.config.settings import NUMERIC_TYPE_SCALE_HIGH, Settings, get_settings

__all__ = [
    "NUMERIC_TYPE_SCALE_HIGH",
    "Settings",
    "get_settings",
]
