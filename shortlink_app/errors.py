"""Exceptions for the mapping store and the services built on it.

Each class maps to one response category at the HTTP boundary, so routes
can translate store outcomes without looking at storage-engine errors.
"""


class StoreError(Exception):
    """Base exception for all mapping store errors."""
    pass


class InvalidInputError(StoreError):
    """The id or URL failed validation. User-correctable."""
    pass


class DuplicateIdError(StoreError):
    """A mapping with this id already exists. The caller must pick a new id."""

    def __init__(self, url_id: str):
        super().__init__(f"URL id '{url_id}' already exists")
        self.url_id = url_id


class MappingNotFoundError(StoreError):
    """No mapping exists for this id."""

    def __init__(self, url_id: str):
        super().__init__(f"URL id '{url_id}' not found")
        self.url_id = url_id


class StoreUnavailableError(StoreError):
    """
    Transient storage failure.

    retryable is True only when nothing reached the database yet (pool
    exhausted, connection refused), so a retry cannot apply a write twice.
    """

    def __init__(self, message: str = "Storage backend unavailable", retryable: bool = False):
        super().__init__(message)
        self.retryable = retryable


class ShortLinkClientError(Exception):
    """The shortener API answered with an unexpected status or body."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code
