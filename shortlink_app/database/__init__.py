"""
Database access for URL shortener.
"""

from .connection import Base, ConnectionPool

__all__ = ["Base", "ConnectionPool"]
