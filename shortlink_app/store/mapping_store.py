"""
Mapping store: durable id -> URL mappings with atomic visit counting.

The store is the single source of truth. Every operation borrows exactly one
session from the shared ConnectionPool and gives it back on every path.
Visit counting is a single `UPDATE ... SET visit_count = visit_count + 1`
statement, so concurrent resolutions of the same id never lose updates and
resolutions of different ids never wait on each other.
"""

import logging
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from shortlink_app.database.connection import ConnectionPool
from shortlink_app.errors import (
    DuplicateIdError,
    MappingNotFoundError,
    StoreUnavailableError,
)
from shortlink_app.models.url import UrlMapping
from shortlink_app.validators import validate_mapping_input

logger = logging.getLogger(__name__)

CREATOR_ORIGIN_MAX_LENGTH = 255


class MappingStore:
    """
    Create and resolve URL mappings.

    Args:
        pool: Shared connection pool (created once at startup)
        strict_ids: Only accept opaque tokens ([A-Za-z0-9_-]) as ids
        id_max_length: Maximum id length
        url_max_length: Maximum destination URL length
    """

    def __init__(
        self,
        pool: ConnectionPool,
        strict_ids: bool = True,
        id_max_length: int = 64,
        url_max_length: int = 2048,
    ):
        self.pool = pool
        self.strict_ids = strict_ids
        self.id_max_length = id_max_length
        self.url_max_length = url_max_length

    def create(
        self,
        url_id: str,
        original_url: str,
        creator_origin: Optional[str] = None,
    ) -> UrlMapping:
        """
        Insert a new mapping with visit_count = 0.

        The write is committed before this returns, so the mapping is
        visible to the very next resolve.

        Raises:
            InvalidInputError: malformed id or URL (nothing is written)
            DuplicateIdError: the id is already taken (existing row untouched)
            StoreUnavailableError: the database could not be reached
        """
        validate_mapping_input(
            url_id,
            original_url,
            strict_ids=self.strict_ids,
            id_max_length=self.id_max_length,
            url_max_length=self.url_max_length,
        )

        mapping = UrlMapping(
            id=url_id,
            original_url=original_url,
            visit_count=0,
            creator_origin=creator_origin[:CREATOR_ORIGIN_MAX_LENGTH] if creator_origin else None,
        )

        try:
            with self.pool.session() as db:
                db.add(mapping)
                db.flush()
        except IntegrityError as e:
            logger.info("Create rejected, id already exists: id=%s", url_id)
            raise DuplicateIdError(url_id) from e
        except SQLAlchemyError as e:
            logger.error("Create failed: id=%s error=%s", url_id, e)
            raise StoreUnavailableError("Failed to store URL mapping") from e

        logger.debug("Created mapping id=%s", url_id)
        return mapping

    def resolve_and_touch(self, url_id: str) -> UrlMapping:
        """
        Look up a mapping and count one visit, in a single transaction.

        The increment runs first as one atomic statement; its row count
        doubles as the existence check. The returned visit_count already
        includes this visit, but callers should only rely on original_url.

        Raises:
            MappingNotFoundError: unknown id (nothing is written)
            StoreUnavailableError: the database could not be reached
        """
        try:
            with self.pool.session() as db:
                self._increment(db, url_id)
                return db.execute(
                    select(UrlMapping).where(UrlMapping.id == url_id)
                ).scalar_one()
        except SQLAlchemyError as e:
            logger.error("Resolve failed: id=%s error=%s", url_id, e)
            raise StoreUnavailableError("Failed to resolve URL mapping") from e

    def increment_visits(self, url_id: str) -> None:
        """
        Count one visit without reading the row back.

        Used when the destination is already known from the cache.

        Raises:
            MappingNotFoundError: unknown id
            StoreUnavailableError: the database could not be reached
        """
        try:
            with self.pool.session() as db:
                self._increment(db, url_id)
        except SQLAlchemyError as e:
            logger.error("Visit increment failed: id=%s error=%s", url_id, e)
            raise StoreUnavailableError("Failed to record visit") from e

    def get_mapping(self, url_id: str) -> Optional[UrlMapping]:
        """Read a mapping without side effects. Returns None if absent."""
        try:
            with self.pool.session() as db:
                return db.get(UrlMapping, url_id)
        except SQLAlchemyError as e:
            logger.error("Lookup failed: id=%s error=%s", url_id, e)
            raise StoreUnavailableError("Failed to read URL mapping") from e

    @staticmethod
    def _increment(db, url_id: str) -> None:
        statement = (
            update(UrlMapping)
            .where(UrlMapping.id == url_id)
            .values(visit_count=UrlMapping.visit_count + 1)
            .execution_options(synchronize_session=False)
        )
        result = db.execute(statement)
        if result.rowcount == 0:
            # Raising inside the session block rolls the transaction back
            raise MappingNotFoundError(url_id)
