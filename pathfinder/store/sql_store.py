"""
SQL-backed stores.

Async SQLAlchemy over any async driver (aiosqlite by default, asyncpg for
PostgreSQL). Each persist runs in its own transaction and rolls back on
error before re-raising.
"""
from __future__ import annotations

from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from pathfinder.engine.models import StudentProfile, StudentSkillState, StudentStats
from pathfinder.store.base import ProfileStore, StateStore
from pathfinder.store.records import (
    Base,
    SkillStateRecord,
    StudentProfileRecord,
    StudentStatsRecord,
)


def get_async_url(url: str) -> str:
    """Map sync driver URLs to their async counterparts."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return url


class Database:
    """Async engine and session factory for one database URL."""

    def __init__(self, url: str, echo: bool = False):
        self.url = get_async_url(url)
        self._engine: AsyncEngine = create_async_engine(self.url, echo=echo, pool_pre_ping=True)
        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            autoflush=False,
            expire_on_commit=False,
        )

    async def init_db(self) -> None:
        """Create tables that do not exist yet."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables initialized")

    @asynccontextmanager
    async def session_scope(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide an async transactional scope around a series of operations."""
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:  # Intentionally broad - rollback on any error before re-raising
                await session.rollback()
                raise

    async def dispose(self) -> None:
        await self._engine.dispose()


class SqlStateStore(StateStore):
    """Skill states in the `student_skill_state` table."""

    def __init__(self, database: Database, bootstrap_new_students: bool = True):
        super().__init__(bootstrap_new_students=bootstrap_new_students)
        self.database = database

    async def fetch_states(self, student_id: str) -> list[StudentSkillState]:
        async with self.database.session_scope() as session:
            result = await session.execute(
                select(SkillStateRecord)
                .where(SkillStateRecord.student_id == student_id)
                .order_by(SkillStateRecord.due_at, SkillStateRecord.skill_id)
            )
            return [record.to_state() for record in result.scalars()]

    async def persist_states(
        self, student_id: str, states: Sequence[StudentSkillState]
    ) -> None:
        async with self.database.session_scope() as session:
            for state in states:
                record = SkillStateRecord.from_state(state)
                record.student_id = student_id
                await session.merge(record)
        logger.debug(f"Persisted {len(states)} skill states for student {student_id}")


class SqlProfileStore(ProfileStore):
    """Profiles and stats in `student_profile` / `student_stats`."""

    def __init__(self, database: Database, default_daily_xp_goal: int = 80):
        super().__init__(default_daily_xp_goal=default_daily_xp_goal)
        self.database = database

    async def load_profile(self, student_id: str) -> StudentProfile:
        async with self.database.session_scope() as session:
            record = await session.get(StudentProfileRecord, student_id)
            if record is None:
                record = StudentProfileRecord(
                    id=student_id,
                    name="Pathfinder",
                    grade="K",
                    daily_xp_goal=self.default_daily_xp_goal,
                    sound_enabled=True,
                    music_enabled=True,
                )
                session.add(record)
            return record.to_profile()

    async def save_profile(self, profile: StudentProfile) -> None:
        async with self.database.session_scope() as session:
            await session.merge(
                StudentProfileRecord(
                    id=profile.id,
                    name=profile.name,
                    grade=profile.grade,
                    gender=profile.gender,
                    daily_xp_goal=profile.settings.daily_xp_goal,
                    sound_enabled=profile.settings.sound_enabled,
                    music_enabled=profile.settings.music_enabled,
                )
            )

    async def load_stats(self, student_id: str) -> StudentStats:
        async with self.database.session_scope() as session:
            record = await session.get(StudentStatsRecord, student_id)
            if record is None:
                return StudentStats(student_id=student_id)
            return record.to_stats()

    async def save_stats(self, stats: StudentStats) -> None:
        async with self.database.session_scope() as session:
            await session.merge(StudentStatsRecord.from_stats(stats))
