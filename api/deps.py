"""
api.deps
========

FastAPI dependency providers.

The portfolio and the mutation coordinator are process-wide singletons:
the busy set only protects against duplicate clicks if every request
sees the same coordinator.
"""

from functools import lru_cache

from accord.coordinator import MutationCoordinator
from accord.portfolio import Portfolio
from accord.remote import HttpStatusService
from accord.settings import settings


@lru_cache
def get_settings():
    """Return application settings."""
    return settings


@lru_cache
def get_portfolio() -> Portfolio:
    """Singleton in-memory organization store (persists across requests)."""
    return Portfolio()


@lru_cache
def get_status_service() -> HttpStatusService:
    """Return an httpx-backed client for the backend status endpoint."""
    return HttpStatusService.from_settings(get_settings())


@lru_cache
def get_coordinator() -> MutationCoordinator:
    """Singleton coordinator bound to the shared portfolio."""
    return MutationCoordinator(get_portfolio(), get_status_service())
