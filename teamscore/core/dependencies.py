"""
FastAPI dependency injection module for the scorecard backend.

Provides the record store and settings to route handlers. The store is
constructed once in the application lifespan and kept on ``app.state``; route
handlers receive it through ``StoreDep`` so tests can swap in an
``InMemoryRecordStore`` with ``app.dependency_overrides``.

Usage Examples:
    @router.get("/reports/teams")
    async def team_report(store: StoreDep, settings: SettingsDep):
        return await get_team_report(store, months, year)

    # In tests
    app.dependency_overrides[get_store] = lambda: InMemoryRecordStore()
"""

from typing import Annotated

from fastapi import Depends, Request

from teamscore.core.config import Settings, get_settings
from teamscore.core.store import RecordStore


# =============================================================================
# Record Store Dependency
# =============================================================================

def get_store(request: Request) -> RecordStore:
    """
    Return the record store created at application startup.

    Raises:
        RuntimeError: If the application lifespan did not set up a store.
    """
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise RuntimeError("Record store is not initialized")
    return store


# =============================================================================
# Settings Dependency
# =============================================================================

def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    Thin wrapper around get_settings() so tests can override it:

        app.dependency_overrides[get_settings_dependency] = lambda: mock_settings
    """
    return get_settings()


# =============================================================================
# Type Aliases for Dependency Injection
# =============================================================================

# Usage: async def endpoint(store: StoreDep)
StoreDep = Annotated[RecordStore, Depends(get_store)]

# Usage: async def endpoint(settings: SettingsDep)
SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]
