"""
Database models for URL shortener.
"""

from .url import UrlMapping

__all__ = ["UrlMapping"]
