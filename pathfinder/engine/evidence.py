"""
Evidence Ingestion.

Applies a batch of learner results for one student:
- Updates the practiced skill at full weight
- Propagates partial credit to encompassing ancestors at the edge weight
- Merges touched states into the stored set and persists once per batch
- Derives XP, achievements, activity totals and skill metric samples

Batches for the same student are serialized; different students run
concurrently.
"""
from __future__ import annotations

import asyncio
from collections.abc import Sequence
from datetime import datetime, timezone

from loguru import logger

from pathfinder.catalog.graph import SkillGraph, SkillGraphCache
from pathfinder.catalog.provider import CatalogProvider
from pathfinder.engine.memory import compute_success_score, round_half_up, update_memory_state
from pathfinder.engine.metrics import SkillMetricsRecorder
from pathfinder.engine.models import (
    Achievement,
    EvidenceEvent,
    EvidenceOutcome,
    EvidenceResult,
    StudentSkillState,
    as_utc,
)
from pathfinder.store.base import ProfileStore, StateStore

BASE_EVENT_XP = 8
SUCCESS_EVENT_XP = 12
SPARK_COLLECTOR_XP = 100
MIN_EVENT_MINUTES = 0.05

PERFECT_PASS = Achievement(
    type="streak",
    title="Perfect Pass",
    description="You nailed every item in this set!",
)
SPARK_COLLECTOR = Achievement(
    type="xp",
    title="Spark Collector",
    description="Earned 100+ XP in one go.",
)


def event_xp(result: EvidenceResult, hints_used: int) -> int:
    return round_half_up(BASE_EVENT_XP + compute_success_score(result, hints_used) * SUCCESS_EVENT_XP)


def build_achievements(
    events: Sequence[EvidenceEvent], xp_earned: int
) -> list[Achievement]:
    achievements = []
    if events and all(EvidenceResult(e.result) == EvidenceResult.CORRECT for e in events):
        achievements.append(PERFECT_PASS)
    if xp_earned >= SPARK_COLLECTOR_XP:
        achievements.append(SPARK_COLLECTOR)
    return achievements


class EvidenceProcessor:
    """
    Evidence batch processor over async collaborators.

    Profile store and metrics recorder are optional; without them the
    processor only updates skill states.
    """

    def __init__(
        self,
        catalog: CatalogProvider,
        state_store: StateStore,
        profile_store: ProfileStore | None = None,
        metrics: SkillMetricsRecorder | None = None,
        graph_cache: SkillGraphCache | None = None,
    ):
        self.catalog = catalog
        self.state_store = state_store
        self.profile_store = profile_store
        self.metrics = metrics
        self.graph_cache = graph_cache or SkillGraphCache()
        # Per-student locks, dropped once no batch holds or awaits them
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    async def apply_evidence(
        self,
        student_id: str,
        events: Sequence[EvidenceEvent],
        now: datetime | None = None,
    ) -> EvidenceOutcome:
        """
        Apply one evidence batch.

        Args:
            student_id: Learner identifier
            events: Interactions in the order they happened
            now: Fallback time for events without their own timestamp

        Returns:
            EvidenceOutcome with every touched state, XP earned and achievements
        """
        now = as_utc(now) if now is not None else datetime.now(timezone.utc)
        lock = self._locks.setdefault(student_id, asyncio.Lock())
        self._lock_users[student_id] = self._lock_users.get(student_id, 0) + 1
        try:
            async with lock:
                return await self._apply(student_id, events, now)
        finally:
            self._lock_users[student_id] -= 1
            if not self._lock_users[student_id]:
                del self._lock_users[student_id]
                del self._locks[student_id]

    async def _apply(
        self,
        student_id: str,
        events: Sequence[EvidenceEvent],
        now: datetime,
    ) -> EvidenceOutcome:
        graph = self.graph_cache.for_skills(await self.catalog.get_all_skills())
        states = await self.state_store.load_states(student_id, graph.skills, now=now)
        state_map = {state.skill_id: state for state in states}
        profile = (
            await self.profile_store.load_profile(student_id) if self.profile_store else None
        )

        updates: dict[str, StudentSkillState] = {}
        xp_earned = 0
        minutes_spent = 0.0
        processed = 0

        for event in events:
            skill = graph.get(event.skill_id)
            if skill is None:
                logger.debug(f"Skipping evidence for unknown skill {event.skill_id}")
                continue

            event_time = as_utc(event.timestamp) if event.timestamp else now
            self._update(
                student_id, graph, event, skill.id, 1.0, event.task_template_id,
                event_time, updates, state_map,
            )
            for edge in skill.encompassing:
                if edge.skill_id not in graph:
                    continue
                self._update(
                    student_id, graph, event, edge.skill_id, edge.weight, None,
                    event_time, updates, state_map,
                )

            success = compute_success_score(event.result, event.hints_used)
            if self.metrics is not None:
                self.metrics.record(skill.id, success, event.latency_ms, profile)
            xp_earned += event_xp(event.result, event.hints_used)
            minutes_spent += max(MIN_EVENT_MINUTES, event.latency_ms / 60000)
            processed += 1

        updated_states = list(updates.values())
        await self.state_store.apply_updates(student_id, updated_states, graph.skills, now=now)

        if self.profile_store is not None and processed:
            await self.profile_store.record_activity(
                student_id, xp_earned, max(1, round_half_up(minutes_spent)), now
            )

        achievements = build_achievements(events, xp_earned)
        logger.info(
            f"Applied {processed}/{len(events)} evidence events for {student_id}: "
            f"{len(updated_states)} states updated, {xp_earned} XP"
        )
        return EvidenceOutcome(
            updated_states=updated_states,
            xp_earned=xp_earned,
            achievements=achievements,
        )

    @staticmethod
    def _update(
        student_id: str,
        graph: SkillGraph,
        event: EvidenceEvent,
        skill_id: str,
        weight: float,
        task_template_id: str | None,
        now: datetime,
        updates: dict[str, StudentSkillState],
        state_map: dict[str, StudentSkillState],
    ) -> None:
        """Update one skill, starting from any state already produced in this batch."""
        prior = updates.get(skill_id) or state_map.get(skill_id)
        result = update_memory_state(
            student_id=student_id,
            skill=graph.get(skill_id),
            result=event.result,
            latency_ms=event.latency_ms,
            hints_used=event.hints_used,
            now=now,
            state=prior,
            weight=weight,
            task_template_id=task_template_id,
        )
        updates[skill_id] = result.state
        state_map[skill_id] = result.state
