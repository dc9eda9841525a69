"""
Process-local stores.

Dictionaries keyed by student id. Values are deep-copied on the way in and
out so callers can never mutate stored state by accident.
"""
from __future__ import annotations

from collections.abc import Sequence

from pathfinder.engine.models import (
    StudentProfile,
    StudentSettings,
    StudentSkillState,
    StudentStats,
)
from pathfinder.store.base import ProfileStore, StateStore


class InMemoryStateStore(StateStore):
    """Skill states held in a dict of student id -> {skill id: state}."""

    def __init__(self, bootstrap_new_students: bool = True):
        super().__init__(bootstrap_new_students=bootstrap_new_students)
        self._states: dict[str, dict[str, StudentSkillState]] = {}

    async def fetch_states(self, student_id: str) -> list[StudentSkillState]:
        return [state.clone() for state in self._states.get(student_id, {}).values()]

    async def persist_states(
        self, student_id: str, states: Sequence[StudentSkillState]
    ) -> None:
        stored = self._states.setdefault(student_id, {})
        for state in states:
            stored[state.skill_id] = state.clone()


class InMemoryProfileStore(ProfileStore):
    """Profiles and stats created on first access."""

    def __init__(self, default_daily_xp_goal: int = 80):
        super().__init__(default_daily_xp_goal=default_daily_xp_goal)
        self._profiles: dict[str, StudentProfile] = {}
        self._stats: dict[str, StudentStats] = {}

    async def load_profile(self, student_id: str) -> StudentProfile:
        if student_id not in self._profiles:
            self._profiles[student_id] = StudentProfile(
                id=student_id,
                settings=StudentSettings(daily_xp_goal=self.default_daily_xp_goal),
            )
        return self._profiles[student_id]

    async def save_profile(self, profile: StudentProfile) -> None:
        self._profiles[profile.id] = profile

    async def load_stats(self, student_id: str) -> StudentStats:
        stats = self._stats.get(student_id)
        if stats is None:
            return StudentStats(student_id=student_id)
        return stats.clone()

    async def save_stats(self, stats: StudentStats) -> None:
        self._stats[stats.student_id] = stats.clone()
