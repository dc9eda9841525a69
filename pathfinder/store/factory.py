"""Store selection by configuration."""
from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from config import Settings
from pathfinder.store.base import ProfileStore, StateStore
from pathfinder.store.memory_store import InMemoryProfileStore, InMemoryStateStore
from pathfinder.store.sql_store import Database, SqlProfileStore, SqlStateStore


@dataclass
class Stores:
    state_store: StateStore
    profile_store: ProfileStore
    database: Database | None = None

    async def init(self) -> None:
        """Create tables for the SQL backend; no-op in memory."""
        if self.database is not None:
            await self.database.init_db()

    async def close(self) -> None:
        if self.database is not None:
            await self.database.dispose()


def create_stores(settings: Settings) -> Stores:
    """Build the state and profile stores for `settings.state_backend`."""
    if settings.is_sql_backend():
        database = Database(settings.database_url, echo=settings.log_level == "DEBUG")
        logger.debug(f"Using SQL state store at {database.url}")
        return Stores(
            state_store=SqlStateStore(database, settings.bootstrap_new_students),
            profile_store=SqlProfileStore(database, settings.default_daily_xp_goal),
            database=database,
        )

    logger.debug("Using in-memory state store")
    return Stores(
        state_store=InMemoryStateStore(settings.bootstrap_new_students),
        profile_store=InMemoryProfileStore(settings.default_daily_xp_goal),
    )
