"""Validation utilities shared by the API boundary, the store and the client."""

import re
from typing import Tuple
from urllib.parse import urlparse

from shortlink_app.errors import InvalidInputError

ALLOWED_SCHEMES = ("http", "https")
TOKEN_PATTERN = re.compile(r"[A-Za-z0-9_-]+")
# Characters that would break the id out of a single path segment
UNSAFE_SLUG_PATTERN = re.compile(r"[/?#%\\\s\x00-\x1f\x7f]")


def is_valid_url(url: str, max_length: int = 2048) -> Tuple[bool, str]:
    """Validate a destination URL.

    Args:
        url: The URL to validate
        max_length: Maximum accepted length

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not url or not isinstance(url, str):
        return False, "URL is required"

    if len(url) > max_length:
        return False, f"URL is too long (max {max_length} characters)"

    if any(ch.isspace() for ch in url):
        return False, "URL must not contain whitespace"

    try:
        result = urlparse(url)
    except ValueError:
        return False, "Invalid URL format"

    if result.scheme not in ALLOWED_SCHEMES:
        return False, "URL must use http or https protocol"

    if not result.netloc or not result.hostname:
        return False, "URL must have a valid domain"

    return True, ""


def is_valid_short_code(url_id: str, max_length: int = 64, strict: bool = True) -> Tuple[bool, str]:
    """Validate a short id.

    Strict mode accepts opaque tokens only (letters, digits, '-' and '_').
    Otherwise any slug is accepted as long as it stays one path segment.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not url_id or not isinstance(url_id, str):
        return False, "URL id is required"

    if len(url_id) > max_length:
        return False, f"URL id must be at most {max_length} characters"

    if strict:
        if not TOKEN_PATTERN.fullmatch(url_id):
            return False, "URL id can only contain letters, numbers, hyphens, and underscores"
    elif UNSAFE_SLUG_PATTERN.search(url_id) or url_id in (".", ".."):
        return False, "URL id must be a single path segment without whitespace"

    return True, ""


def is_safe_redirect(url: str) -> bool:
    """Check a stored destination again right before navigating to it."""
    valid, _ = is_valid_url(url, max_length=len(url) if url else 0)
    return valid


def validate_mapping_input(
    url_id: str,
    original_url: str,
    *,
    strict_ids: bool = True,
    id_max_length: int = 64,
    url_max_length: int = 2048,
) -> None:
    """Raise InvalidInputError if either half of a new mapping is malformed."""
    valid, message = is_valid_short_code(url_id, max_length=id_max_length, strict=strict_ids)
    if not valid:
        raise InvalidInputError(message)

    valid, message = is_valid_url(original_url, max_length=url_max_length)
    if not valid:
        raise InvalidInputError(message)
