"""
Client for the shortener API.

Plays the part of the browser front end: it draws short ids itself, retries
with a fresh id when the server reports a collision, and re-checks the
destination scheme before handing a URL back for navigation.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

import requests

from shortlink_app.errors import (
    DuplicateIdError,
    InvalidInputError,
    MappingNotFoundError,
    ShortLinkClientError,
)
from shortlink_app.services.short_codes import RandomShortCodeGenerator
from shortlink_app.validators import is_safe_redirect, is_valid_url

logger = logging.getLogger(__name__)


@dataclass
class ShortenedUrl:
    """A mapping created through the client."""

    id: str
    original_url: str
    short_url: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ShortLinkClient:
    """
    Thin HTTP client for POST /api/urls and GET /api/urls/{id}.

    Args:
        base_url: Where the API is served, e.g. http://localhost:3001
        session: Optional requests.Session (connection reuse, testing)
        token_length: Length of generated ids
        max_attempts: How many fresh ids to try before giving up on collisions
        timeout: Per-request timeout in seconds
        public_base_url: Base for the short links handed out (defaults to base_url)
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        token_length: int = 6,
        max_attempts: int = 5,
        timeout: float = 5.0,
        public_base_url: Optional[str] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.public_base_url = (public_base_url or base_url).rstrip("/")
        self.session = session or requests.Session()
        self.generator = RandomShortCodeGenerator(length=token_length)
        self.max_attempts = max_attempts
        self.timeout = timeout

    def short_url(self, url_id: str) -> str:
        return f"{self.public_base_url}/{url_id}"

    def shorten(self, url: str) -> ShortenedUrl:
        """
        Create a short link for url.

        Raises:
            InvalidInputError: url is not an http(s) URL (checked before any request)
            DuplicateIdError: every generated id collided
            ShortLinkClientError: the API failed
        """
        valid, message = is_valid_url(url)
        if not valid:
            raise InvalidInputError(message)

        url_id = None
        for attempt in range(1, self.max_attempts + 1):
            url_id = self.generator.generate()
            response = self._request("post", "/api/urls", json={"id": url_id, "url": url})

            if response.status_code == 200:
                return ShortenedUrl(id=url_id, original_url=url, short_url=self.short_url(url_id))

            if response.status_code == 409:
                logger.info(
                    "Short id collision on attempt %d/%d: %s",
                    attempt, self.max_attempts, url_id,
                )
                continue

            if response.status_code == 400:
                raise InvalidInputError(self._error_message(response))

            raise ShortLinkClientError(
                f"Failed to create short URL: {self._error_message(response)}",
                status_code=response.status_code,
            )

        raise DuplicateIdError(url_id)

    def resolve(self, url_id: str) -> str:
        """
        Look up the destination for url_id (counts a visit on the server).

        Raises:
            MappingNotFoundError: unknown id
            InvalidInputError: the stored destination is not http(s)
            ShortLinkClientError: the API failed
        """
        response = self._request("get", f"/api/urls/{url_id}")

        if response.status_code == 404:
            raise MappingNotFoundError(url_id)
        if response.status_code != 200:
            raise ShortLinkClientError(
                f"Failed to resolve short URL: {self._error_message(response)}",
                status_code=response.status_code,
            )

        try:
            original_url = response.json().get("original_url")
        except ValueError as e:
            raise ShortLinkClientError("Malformed response body", status_code=200) from e

        if not original_url:
            raise MappingNotFoundError(url_id)

        # Never navigate anywhere but http(s), whatever the server says
        if not is_safe_redirect(original_url):
            raise InvalidInputError("The destination URL is invalid or malformed")

        return original_url

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        try:
            return self.session.request(
                method.upper(), f"{self.base_url}{path}", timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            raise ShortLinkClientError(f"Request to {path} failed: {e}") from e

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            return response.json().get("error") or f"HTTP {response.status_code}"
        except ValueError:
            return f"HTTP {response.status_code}"
