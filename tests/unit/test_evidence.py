"""
Unit tests for evidence ingestion.

Covers partial-credit propagation, batch compounding, XP/achievements and
activity recording against in-memory stores.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from conftest import NOW, make_state
from pathfinder.engine.evidence import (
    PERFECT_PASS,
    SPARK_COLLECTOR,
    EvidenceProcessor,
    build_achievements,
    event_xp,
)
from pathfinder.engine.metrics import SkillMetricsRecorder
from pathfinder.engine.models import EvidenceEvent, EvidenceResult
from pathfinder.engine.planner import Planner
from pathfinder.engine.schemas import EvidenceBatch

STUDENT = "student-1"


def _event(skill_id, result=EvidenceResult.CORRECT, latency_ms=3000, **kwargs):
    return EvidenceEvent(skill_id=skill_id, result=result, latency_ms=latency_ms, **kwargs)


@pytest.fixture
def metrics():
    return SkillMetricsRecorder()


@pytest.fixture
def processor(small_catalog, state_store, profile_store, metrics):
    return EvidenceProcessor(small_catalog, state_store, profile_store, metrics)


class TestPropagation:
    @pytest.mark.asyncio
    async def test_encompassed_ancestor_gets_partial_credit(self, processor):
        outcome = await processor.apply_evidence(STUDENT, [_event("m2")], now=NOW)

        by_skill = {state.skill_id: state for state in outcome.updated_states}
        assert [state.skill_id for state in outcome.updated_states] == ["m2", "m1"]
        assert by_skill["m2"].strength == pytest.approx(0.825)
        assert by_skill["m1"].strength == pytest.approx(0.43)
        assert by_skill["m2"].strength - 0.3 > by_skill["m1"].strength - 0.3 > 0

    @pytest.mark.asyncio
    async def test_template_tally_only_on_primary_skill(self, processor):
        outcome = await processor.apply_evidence(
            STUDENT, [_event("m2", task_template_id="tpl")], now=NOW
        )
        by_skill = {state.skill_id: state for state in outcome.updated_states}
        assert by_skill["m2"].task_template_tallies == {"tpl": 1}
        assert by_skill["m1"].task_template_tallies == {}

    @pytest.mark.asyncio
    async def test_states_are_persisted(self, processor, state_store):
        await processor.apply_evidence(STUDENT, [_event("m2")], now=NOW)
        stored = {state.skill_id: state for state in await state_store.fetch_states(STUDENT)}

        assert set(stored) == {"m1", "m2"}
        assert stored["m2"].rep_num == 1

    @pytest.mark.asyncio
    async def test_untouched_states_survive(self, processor, state_store):
        await state_store.persist_states(STUDENT, [make_state("r1", strength=0.66)])
        await processor.apply_evidence(STUDENT, [_event("m1")], now=NOW)

        stored = {state.skill_id: state for state in await state_store.fetch_states(STUDENT)}
        assert stored["r1"].strength == 0.66
        assert "m1" in stored


class TestBatches:
    @pytest.mark.asyncio
    async def test_events_compound_within_batch(self, processor):
        outcome = await processor.apply_evidence(
            STUDENT, [_event("m1"), _event("m1")], now=NOW
        )
        state = outcome.updated_states[0]

        assert len(outcome.updated_states) == 1
        assert state.rep_num == 2
        assert state.strength == pytest.approx(0.956)

    @pytest.mark.asyncio
    async def test_unknown_skill_is_skipped(self, processor, profile_store):
        outcome = await processor.apply_evidence(
            STUDENT, [_event("ghost"), _event("r1", EvidenceResult.INCORRECT)], now=NOW
        )

        assert [state.skill_id for state in outcome.updated_states] == ["r1"]
        assert outcome.xp_earned == 8
        stats = await profile_store.load_stats(STUDENT)
        assert stats.total_xp == 8

    @pytest.mark.asyncio
    async def test_only_unknown_skills_records_nothing(self, processor, profile_store, state_store):
        outcome = await processor.apply_evidence(STUDENT, [_event("ghost")], now=NOW)

        assert outcome.updated_states == []
        assert outcome.xp_earned == 0
        assert (await profile_store.load_stats(STUDENT)).total_xp == 0
        assert await state_store.fetch_states(STUDENT) == []

    @pytest.mark.asyncio
    async def test_event_timestamp_wins_over_now(self, processor):
        earlier = NOW - timedelta(hours=3)
        outcome = await processor.apply_evidence(
            STUDENT, [_event("r1", timestamp=earlier)], now=NOW
        )
        assert outcome.updated_states[0].last_seen_at == earlier

    @pytest.mark.asyncio
    async def test_concurrent_batches_for_one_student_do_not_lose_updates(self, processor):
        await asyncio.gather(
            processor.apply_evidence(STUDENT, [_event("r1")], now=NOW),
            processor.apply_evidence(STUDENT, [_event("r1")], now=NOW),
        )
        outcome = await processor.apply_evidence(STUDENT, [_event("r1")], now=NOW)
        assert outcome.updated_states[0].rep_num == 3

    @pytest.mark.asyncio
    async def test_student_locks_released_after_batches(self, processor):
        await asyncio.gather(
            processor.apply_evidence(STUDENT, [_event("r1")], now=NOW),
            processor.apply_evidence(STUDENT, [_event("r1")], now=NOW),
            processor.apply_evidence("student-2", [_event("m1")], now=NOW),
        )
        assert processor._locks == {}
        assert processor._lock_users == {}


class TestTimestamps:
    @pytest.mark.asyncio
    async def test_offset_less_timestamp_is_read_as_utc(
        self, processor, small_catalog, state_store, profile_store
    ):
        batch = EvidenceBatch.model_validate(
            {
                "student_id": STUDENT,
                "events": [
                    {
                        "skill_id": "r1",
                        "result": "correct",
                        "latency_ms": 3000,
                        "timestamp": "2024-03-04T14:00:00",
                    }
                ],
            }
        )
        outcome = await processor.apply_evidence(STUDENT, batch.to_events(), now=NOW)
        state = outcome.updated_states[0]

        assert state.last_seen_at == datetime(2024, 3, 4, 14, tzinfo=timezone.utc)
        assert state.due_at.tzinfo is not None

        plan = await Planner(small_catalog, state_store, profile_store).compute_plan(
            STUDENT, now=NOW
        )
        assert plan.tasks

    @pytest.mark.asyncio
    async def test_naive_event_and_now_are_normalised(self, processor, state_store):
        await processor.apply_evidence(
            STUDENT,
            [_event("r1", timestamp=datetime(2024, 3, 4, 14)), _event("m1")],
            now=datetime(2024, 3, 4, 15),
        )
        stored = {state.skill_id: state for state in await state_store.fetch_states(STUDENT)}

        assert stored["r1"].last_seen_at == NOW - timedelta(hours=1)
        assert stored["m1"].last_seen_at == NOW
        assert all(state.is_due(NOW + timedelta(days=400)) for state in stored.values())


class TestRewards:
    def test_event_xp(self):
        assert event_xp(EvidenceResult.CORRECT, 0) == 20
        assert event_xp(EvidenceResult.PARTIAL, 1) == 14
        assert event_xp(EvidenceResult.INCORRECT, 0) == 8

    def test_achievements(self):
        assert build_achievements([_event("a"), _event("b")], 40) == [PERFECT_PASS]
        assert build_achievements([_event("a", EvidenceResult.PARTIAL)], 120) == [SPARK_COLLECTOR]
        assert build_achievements([], 0) == []

    @pytest.mark.asyncio
    async def test_five_correct_earns_both_achievements(self, processor):
        outcome = await processor.apply_evidence(STUDENT, [_event("r1")] * 5, now=NOW)

        assert outcome.xp_earned == 100
        assert outcome.achievements == [PERFECT_PASS, SPARK_COLLECTOR]


class TestActivity:
    @pytest.mark.asyncio
    async def test_stats_updated(self, processor, profile_store):
        await processor.apply_evidence(
            STUDENT, [_event("r1", latency_ms=90000), _event("r1", latency_ms=60000)], now=NOW
        )
        stats = await profile_store.load_stats(STUDENT)

        assert stats.total_xp == 40
        assert stats.total_minutes == 3
        assert stats.current_streak == 1
        assert stats.daily_xp[0].date == "2024-03-04"

    @pytest.mark.asyncio
    async def test_short_batch_counts_one_minute(self, processor, profile_store):
        await processor.apply_evidence(STUDENT, [_event("r1", latency_ms=1000)], now=NOW)
        assert (await profile_store.load_stats(STUDENT)).total_minutes == 1

    @pytest.mark.asyncio
    async def test_metrics_sampled(self, processor, metrics):
        await processor.apply_evidence(
            STUDENT, [_event("m2"), _event("m2", EvidenceResult.INCORRECT, latency_ms=5000)], now=NOW
        )
        report = metrics.snapshot("m2")

        assert report.overall.count == 2
        assert report.overall.mean_accuracy == 0.5
        assert report.overall.mean_latency == 4000
        assert report.by_grade["K"].count == 2
        assert metrics.snapshot("m1") is None
