import asyncio
import logging
from typing import Optional

from fastapi.concurrency import run_in_threadpool

from shortlink_app.cache.strategies import CacheStrategy, cache_key
from shortlink_app.config import Settings
from shortlink_app.errors import MappingNotFoundError, StoreUnavailableError
from shortlink_app.store.mapping_store import MappingStore
from shortlink_app.validators import is_valid_short_code, validate_mapping_input

logger = logging.getLogger(__name__)


class URLService:
    """
    Resolution service: turns the two API operations into store calls.

    Dependencies are injected (not created internally):
    - store: the mapping store, the single source of truth
    - cache: optional read-through cache for id -> original_url

    Store calls are blocking database I/O, so they run in the worker
    thread pool and never stall the event loop for other requests.
    """

    def __init__(
        self,
        store: MappingStore,
        settings: Settings,
        cache: Optional[CacheStrategy] = None,
    ):
        self.store = store
        self.cache = cache
        self.settings = settings

    async def create_mapping(
        self,
        url_id: str,
        original_url: str,
        creator_origin: Optional[str] = None,
    ) -> None:
        """Create a mapping.

        Input is validated here first so malformed requests never reach
        the store.

        Raises:
            InvalidInputError, DuplicateIdError, StoreUnavailableError
        """
        validate_mapping_input(
            url_id,
            original_url,
            strict_ids=self.settings.strict_id_format,
            id_max_length=self.settings.id_max_length,
            url_max_length=self.settings.max_url_length,
        )

        await self._call_store(
            "create", url_id, self.store.create, url_id, original_url, creator_origin
        )
        logger.info("Created short URL id=%s", url_id)

        if self.cache:
            await self.cache.set(cache_key(url_id), original_url, ttl=self.settings.cache_ttl)

    async def resolve_mapping(self, url_id: str) -> str:
        """Resolve an id to its original URL and count the visit.

        Cache-aside: a cache hit skips the read but the visit is still
        counted by the store, which also confirms the mapping exists.

        Raises:
            MappingNotFoundError, StoreUnavailableError
        """
        valid, _ = is_valid_short_code(
            url_id,
            max_length=self.settings.id_max_length,
            strict=self.settings.strict_id_format,
        )
        if not valid:
            # Could never have been stored
            raise MappingNotFoundError(url_id)

        key = cache_key(url_id)

        if self.cache:
            cached_url = await self.cache.get(key)
            if cached_url:
                try:
                    await self._call_store(
                        "increment_visits", url_id, self.store.increment_visits, url_id
                    )
                except MappingNotFoundError:
                    await self.cache.delete(key)
                    raise
                return cached_url

        mapping = await self._call_store(
            "resolve", url_id, self.store.resolve_and_touch, url_id
        )

        if self.cache:
            await self.cache.set(key, mapping.original_url, ttl=self.settings.cache_ttl)

        return mapping.original_url

    async def _call_store(self, operation: str, url_id: str, func, *args):
        """
        Run a store call in the thread pool.

        Only retryable StoreUnavailableError is retried, with exponential
        backoff. Duplicate and not-found outcomes are final.
        """
        attempts = self.settings.store_retry_attempts
        attempt = 1
        while True:
            try:
                return await run_in_threadpool(func, *args)
            except StoreUnavailableError as e:
                if not e.retryable or attempt >= attempts:
                    logger.error(
                        "Store %s failed: id=%s attempts=%d error=%s",
                        operation, url_id, attempt, e,
                    )
                    raise
                delay = self.settings.store_retry_backoff * (2 ** (attempt - 1))
                logger.warning(
                    "Store %s unavailable (attempt %d/%d), retrying in %.2fs: id=%s",
                    operation, attempt, attempts, delay, url_id,
                )
                await asyncio.sleep(delay)
                attempt += 1
