"""
Student State Stores.

Backends selected by `state_backend` in config:
- memory: process-local dictionaries
- sql: async SQLAlchemy (SQLite or PostgreSQL)
"""
from pathfinder.store.base import ProfileStore, StateStore
from pathfinder.store.factory import Stores, create_stores
from pathfinder.store.memory_store import InMemoryProfileStore, InMemoryStateStore
from pathfinder.store.sql_store import Database, SqlProfileStore, SqlStateStore

__all__ = [
    "StateStore",
    "ProfileStore",
    "InMemoryStateStore",
    "InMemoryProfileStore",
    "Database",
    "SqlStateStore",
    "SqlProfileStore",
    "Stores",
    "create_stores",
]
