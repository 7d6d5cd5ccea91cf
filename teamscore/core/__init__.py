"""
Core infrastructure package for the scorecard backend.

Provides:
- Configuration management via pydantic-settings
- Async PostgreSQL connectivity via asyncpg
- The record store abstraction and its implementations
- FastAPI dependency injection utilities

Re-exports key components so other modules can write:

    from teamscore.core import get_settings, InMemoryRecordStore, StoreDep
"""

# =============================================================================
# Re-exports from teamscore.core.config
# =============================================================================
from teamscore.core.config import Settings, get_settings

# =============================================================================
# Re-exports from teamscore.core.database
# =============================================================================
from teamscore.core.database import init_db, close_db

# =============================================================================
# Re-exports from teamscore.core.store / repository
# =============================================================================
from teamscore.core.store import RecordStore, InMemoryRecordStore, RecordNotFoundError
from teamscore.core.repository import PostgresRecordStore

# =============================================================================
# Re-exports from teamscore.core.dependencies
# =============================================================================
from teamscore.core.dependencies import (
    get_store,
    get_settings_dependency,
    StoreDep,
    SettingsDep,
)


__all__ = [
    # Configuration management (from config.py)
    'Settings',
    'get_settings',
    # Database pool lifecycle (from database.py)
    'init_db',
    'close_db',
    # Record stores
    'RecordStore',
    'InMemoryRecordStore',
    'RecordNotFoundError',
    'PostgresRecordStore',
    # FastAPI dependency injection (from dependencies.py)
    'get_store',
    'get_settings_dependency',
    'StoreDep',
    'SettingsDep',
]
