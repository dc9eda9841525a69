"""
State Store Interfaces.

Abstract async stores the engine reads and writes through:
- StateStore: per-student skill memory states
- ProfileStore: learner profile and engagement stats

Concrete backends implement the raw fetch/persist primitives; bootstrap
of new students and merge-then-persist live here so every backend behaves
the same way.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import date, datetime, timezone

from loguru import logger

from pathfinder.engine.models import (
    DailyXp,
    Skill,
    StudentProfile,
    StudentSkillState,
    StudentStats,
)
from pathfinder.store.bootstrap import create_bootstrap_states

DAILY_XP_HISTORY_DAYS = 14


# =============================================================================
# Skill States
# =============================================================================


class StateStore(ABC):
    """
    Per-student skill state storage.

    Subclasses implement `fetch_states` and `persist_states`.
    """

    def __init__(self, bootstrap_new_students: bool = True):
        self.bootstrap_new_students = bootstrap_new_students

    @abstractmethod
    async def fetch_states(self, student_id: str) -> list[StudentSkillState]:
        """Stored states for a student, empty when none exist."""
        ...

    @abstractmethod
    async def persist_states(
        self, student_id: str, states: Sequence[StudentSkillState]
    ) -> None:
        """Upsert states by skill id. Skills not in `states` are left untouched."""
        ...

    async def load_states(
        self,
        student_id: str,
        skills: Sequence[Skill],
        now: datetime | None = None,
    ) -> list[StudentSkillState]:
        """
        Load a student's states, bootstrapping a brand-new student.

        Args:
            student_id: Learner identifier
            skills: Current catalog, used to pick bootstrap skills
            now: Reference time for bootstrap due dates

        Returns:
            The student's states (possibly empty when bootstrap is disabled)
        """
        states = await self.fetch_states(student_id)
        if states or not self.bootstrap_new_students:
            return states

        now = now or datetime.now(timezone.utc)
        states = create_bootstrap_states(student_id, skills, now)
        if states:
            await self.persist_states(student_id, states)
            logger.info(f"Bootstrapped {len(states)} skill states for student {student_id}")
        return states

    async def apply_updates(
        self,
        student_id: str,
        updates: Sequence[StudentSkillState],
        skills: Sequence[Skill],
        now: datetime | None = None,
    ) -> list[StudentSkillState]:
        """
        Merge updated states into the current set and persist the whole set.

        Updated skills replace their prior state; every other skill keeps
        its prior state.

        Returns:
            The merged state set
        """
        current = await self.load_states(student_id, skills, now=now)
        merged = {state.skill_id: state for state in current}
        for update in updates:
            update.student_id = student_id
            merged[update.skill_id] = update

        result = list(merged.values())
        await self.persist_states(student_id, result)
        return result


# =============================================================================
# Profiles & Stats
# =============================================================================


class ProfileStore(ABC):
    """Learner profile and engagement counters."""

    def __init__(self, default_daily_xp_goal: int = 80):
        self.default_daily_xp_goal = default_daily_xp_goal

    @abstractmethod
    async def load_profile(self, student_id: str) -> StudentProfile:
        """Profile for a student, created with defaults on first access."""
        ...

    @abstractmethod
    async def load_stats(self, student_id: str) -> StudentStats:
        ...

    @abstractmethod
    async def save_stats(self, stats: StudentStats) -> None:
        ...

    async def record_activity(
        self,
        student_id: str,
        xp_earned: int,
        minutes_spent: int,
        timestamp: datetime,
    ) -> StudentStats:
        """
        Add one session's XP and minutes to the student's counters.

        Args:
            student_id: Learner identifier
            xp_earned: XP from the evidence batch
            minutes_spent: Whole minutes spent on the batch
            timestamp: Activity time; its UTC date keys the daily XP series

        Returns:
            Updated stats
        """
        stats = (await self.load_stats(student_id)).clone()
        apply_activity(stats, xp_earned, minutes_spent, timestamp)
        await self.save_stats(stats)
        return stats


def apply_activity(
    stats: StudentStats,
    xp_earned: int,
    minutes_spent: int,
    timestamp: datetime,
) -> StudentStats:
    """
    Update totals, daily XP series and day streak in place.

    Same-day activity keeps the streak; the next calendar day extends it;
    a longer gap resets it to 1.
    """
    previous_day = _utc_date(stats.last_active_at) if stats.last_active_at else None
    today = _utc_date(timestamp)

    stats.total_xp += xp_earned
    stats.total_minutes += minutes_spent
    stats.last_active_at = timestamp

    day_key = today.isoformat()
    entry = next((e for e in stats.daily_xp if e.date == day_key), None)
    if entry is not None:
        entry.xp += xp_earned
    else:
        stats.daily_xp.append(DailyXp(date=day_key, xp=xp_earned))
    stats.daily_xp = stats.daily_xp[-DAILY_XP_HISTORY_DAYS:]

    if previous_day is None:
        stats.current_streak = 1
    elif previous_day != today:
        gap = (today - previous_day).days
        if gap == 1:
            stats.current_streak += 1
        elif gap > 1:
            stats.current_streak = 1
    stats.longest_streak = max(stats.longest_streak, stats.current_streak)
    return stats


def _utc_date(value: datetime) -> date:
    if value.tzinfo is None:
        return value.date()
    return value.astimezone(timezone.utc).date()
