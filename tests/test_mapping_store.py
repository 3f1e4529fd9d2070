"""
Tests for the mapping store: uniqueness, atomic visit counting and the
no-side-effect guarantees of failed operations.
"""
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import func, select

from shortlink_app.errors import (
    DuplicateIdError,
    InvalidInputError,
    MappingNotFoundError,
)
from shortlink_app.models.url import UrlMapping
from shortlink_app.store.mapping_store import MappingStore


def count_rows(pool) -> int:
    with pool.session() as db:
        return db.execute(select(func.count()).select_from(UrlMapping)).scalar_one()


class TestCreate:

    def test_create_then_resolve_round_trip(self, store):
        store.create("k1", "https://example.com/a?b=c", "10.0.0.1")

        mapping = store.resolve_and_touch("k1")
        assert mapping.original_url == "https://example.com/a?b=c"

    def test_new_mapping_starts_at_zero(self, store):
        created = store.create("fresh", "https://example.com/")
        assert created.visit_count == 0

        stored = store.get_mapping("fresh")
        assert stored.visit_count == 0
        assert stored.created_at is not None

    def test_duplicate_id_rejected(self, store, pool):
        store.create("dup", "https://example.com/original", "10.0.0.1")

        with pytest.raises(DuplicateIdError) as exc_info:
            store.create("dup", "https://example.com/other", "10.0.0.2")
        assert exc_info.value.url_id == "dup"

        mapping = store.get_mapping("dup")
        assert mapping.original_url == "https://example.com/original"
        assert mapping.creator_origin == "10.0.0.1"
        assert count_rows(pool) == 1

    def test_duplicate_does_not_reset_counter(self, store):
        store.create("busy", "https://example.com/")
        store.resolve_and_touch("busy")

        with pytest.raises(DuplicateIdError):
            store.create("busy", "https://example.com/")

        assert store.get_mapping("busy").visit_count == 1

    @pytest.mark.parametrize("url_id, url", [
        ("", "https://example.com/"),
        ("ok", "not-a-url"),
        ("ok", ""),
        ("ok", "mailto:someone@example.com"),
        ("has space", "https://example.com/"),
        ("abc\n", "https://example.com/"),
        ("x" * 65, "https://example.com/"),
    ])
    def test_invalid_input_writes_nothing(self, store, pool, url_id, url):
        with pytest.raises(InvalidInputError):
            store.create(url_id, url)
        assert count_rows(pool) == 0

    def test_max_length_id_accepted(self, store):
        url_id = "x" * 64
        store.create(url_id, "https://example.com/")
        assert store.get_mapping(url_id) is not None

    def test_permissive_ids(self, pool):
        store = MappingStore(pool, strict_ids=False)
        store.create("my.slug~1", "https://example.com/")
        assert store.resolve_and_touch("my.slug~1").original_url == "https://example.com/"

        with pytest.raises(InvalidInputError):
            store.create("a/b", "https://example.com/")

    def test_long_creator_origin_truncated(self, store):
        store.create("origin", "https://example.com/", "o" * 300)
        assert len(store.get_mapping("origin").creator_origin) == 255


class TestResolveAndTouch:

    def test_increments_by_one(self, store):
        store.create("one", "https://example.com/")

        store.resolve_and_touch("one")
        store.resolve_and_touch("one")

        assert store.get_mapping("one").visit_count == 2

    def test_not_found(self, store, pool):
        with pytest.raises(MappingNotFoundError):
            store.resolve_and_touch("never")

        assert store.get_mapping("never") is None
        assert count_rows(pool) == 0

    def test_not_found_is_stable(self, store):
        for _ in range(3):
            with pytest.raises(MappingNotFoundError):
                store.resolve_and_touch("never")

    def test_increment_visits_alone(self, store):
        store.create("cached", "https://example.com/")

        store.increment_visits("cached")
        assert store.get_mapping("cached").visit_count == 1

        with pytest.raises(MappingNotFoundError):
            store.increment_visits("unknown")

    def test_other_ids_untouched(self, store):
        store.create("a", "https://example.com/a")
        store.create("b", "https://example.com/b")

        store.resolve_and_touch("a")

        assert store.get_mapping("a").visit_count == 1
        assert store.get_mapping("b").visit_count == 0


class TestConcurrency:

    def test_parallel_resolves_lose_no_updates(self, store):
        """100 concurrent resolves of one id add exactly 100 visits"""
        store.create("hot", "https://example.com/popular")
        store.resolve_and_touch("hot")
        before = store.get_mapping("hot").visit_count

        with ThreadPoolExecutor(max_workers=20) as executor:
            results = list(executor.map(lambda _: store.resolve_and_touch("hot"), range(100)))

        assert all(m.original_url == "https://example.com/popular" for m in results)
        assert store.get_mapping("hot").visit_count == before + 100

    def test_parallel_creates_same_id_succeed_once(self, store):
        def attempt(i):
            try:
                store.create("race", f"https://example.com/{i}")
                return True
            except DuplicateIdError:
                return False

        with ThreadPoolExecutor(max_workers=10) as executor:
            outcomes = list(executor.map(attempt, range(20)))

        assert outcomes.count(True) == 1
        assert store.get_mapping("race").visit_count == 0

    def test_pool_released_after_failures(self, store, pool):
        """Errors on every path still hand the connection back"""
        store.create("exists", "https://example.com/")

        for _ in range(pool.size * 3):
            with pytest.raises(MappingNotFoundError):
                store.resolve_and_touch("missing")
            with pytest.raises(DuplicateIdError):
                store.create("exists", "https://example.com/")

        assert pool.in_use == 0
        assert store.resolve_and_touch("exists").original_url == "https://example.com/"
