"""
FastAPI dependencies for dependency injection.

The connection pool, store and cache are created once by the application
lifespan and kept on app.state; these functions hand them to routes.

Pattern: Dependency Injection
- Loose coupling between components
- Easy to test (override with fakes)
"""

from typing import Optional

from fastapi import Depends, Request

from shortlink_app.cache.strategies import CacheStrategy
from shortlink_app.config import Settings
from shortlink_app.services.url_service import URLService
from shortlink_app.store.mapping_store import MappingStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_cache(request: Request) -> CacheStrategy:
    return request.app.state.cache


def get_mapping_store(request: Request) -> MappingStore:
    return request.app.state.store


def get_url_service(
    store: MappingStore = Depends(get_mapping_store),
    cache: CacheStrategy = Depends(get_cache),
    settings: Settings = Depends(get_settings),
) -> URLService:
    """
    Get URLService with all dependencies injected.

    Controllers depend on the service; the service depends on the
    infrastructure (store, cache).
    """
    return URLService(store=store, settings=settings, cache=cache)


def get_creator_origin(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> Optional[str]:
    """
    Network address of the client creating a mapping.

    X-Forwarded-For is only honoured behind a trusted proxy, otherwise any
    client could forge its recorded origin.
    """
    if settings.trust_proxy_headers:
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            first_hop = forwarded_for.split(",")[0].strip()
            if first_hop:
                return first_hop
    return request.client.host if request.client else None
