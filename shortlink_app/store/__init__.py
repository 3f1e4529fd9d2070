"""
Mapping store for URL shortener.
"""

from .mapping_store import MappingStore

__all__ = ["MappingStore"]
