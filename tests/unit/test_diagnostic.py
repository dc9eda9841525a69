"""
Unit tests for diagnostic placement sessions.
"""

import pytest

from conftest import NOW, make_skill
from pathfinder.catalog.provider import SeedCatalogProvider
from pathfinder.catalog.seed import SEED_DIAGNOSTIC_PROBES, SKILL_IDS
from pathfinder.engine.diagnostic import (
    DiagnosticSessionManager,
    Recommendation,
    SessionStatus,
    make_retry_probe,
)
from pathfinder.engine.models import DiagnosticProbe, EvidenceResult
from pathfinder.exceptions import DiagnosticSessionError, PathfinderError

STUDENT = "student-1"


@pytest.fixture
def manager(seed_catalog):
    return DiagnosticSessionManager(seed_catalog)


@pytest.fixture
def two_probe_manager():
    probes = [
        DiagnosticProbe(id="p-hard", skill_id="a", difficulty=0.7, expected_latency_ms=5000),
        DiagnosticProbe(id="p-easy", skill_id="a", difficulty=0.3, expected_latency_ms=3000),
    ]
    catalog = SeedCatalogProvider(skills=[make_skill("a")], templates={}, probes=probes)
    return DiagnosticSessionManager(catalog)


class TestSessionLifecycle:
    @pytest.mark.asyncio
    async def test_easiest_probe_first(self, manager):
        step = await manager.next_probe(STUDENT, now=NOW)

        assert step.probe.id == SEED_DIAGNOSTIC_PROBES[0].id
        assert step.completed is False
        assert step.session.status == SessionStatus.IN_PROGRESS
        assert step.session.active_skill_ids == [
            SKILL_IDS["MATH_PK_SUBITIZE_1_4"],
            SKILL_IDS["MATH_K_COUNT_TO_20"],
            SKILL_IDS["MATH_K_ADD_WITHIN_5"],
            SKILL_IDS["MATH_1_TIME_TO_HOUR"],
        ]

    @pytest.mark.asyncio
    async def test_resume_returns_same_probe(self, manager):
        first = await manager.next_probe(STUDENT, now=NOW)
        second = await manager.next_probe(STUDENT, now=NOW)
        assert first.probe.id == second.probe.id

    @pytest.mark.asyncio
    async def test_restricted_to_one_skill(self, manager):
        step = await manager.next_probe(STUDENT, skill_id=SKILL_IDS["MATH_1_TIME_TO_HOUR"], now=NOW)
        assert step.probe.stem == "What time does the clock show?"
        assert step.session.active_skill_ids == [SKILL_IDS["MATH_1_TIME_TO_HOUR"]]

    @pytest.mark.asyncio
    async def test_skill_without_probes_completes_immediately(self, manager):
        step = await manager.next_probe(STUDENT, skill_id=SKILL_IDS["RD_PA_WORD"], now=NOW)

        assert step.probe is None
        assert step.completed is True
        assert step.session.completed_at == NOW

    @pytest.mark.asyncio
    async def test_full_session(self, two_probe_manager):
        step = await two_probe_manager.next_probe(STUDENT, now=NOW)
        assert step.probe.id == "p-easy"

        step = await two_probe_manager.submit_answer(STUDENT, "p-easy", EvidenceResult.CORRECT, now=NOW)
        assert step.probe.id == "p-hard"

        step = await two_probe_manager.submit_answer(STUDENT, "p-hard", "correct", now=NOW)
        assert step.probe is None
        assert step.completed is True
        assert step.session.completed_at == NOW

        placement = step.session.placements[0]
        assert placement.skill_id == "a"
        assert placement.strength == 0.86
        assert placement.stability == 0.7
        assert placement.recommendation == Recommendation.ADVANCE

    @pytest.mark.asyncio
    async def test_completed_session_is_replaced(self, two_probe_manager):
        await two_probe_manager.next_probe(STUDENT, now=NOW)
        await two_probe_manager.submit_answer(STUDENT, "p-easy", EvidenceResult.CORRECT, now=NOW)
        await two_probe_manager.submit_answer(STUDENT, "p-hard", EvidenceResult.CORRECT, now=NOW)

        step = await two_probe_manager.next_probe(STUDENT, now=NOW)
        assert step.completed is False
        assert step.session.placements == []


class TestRetries:
    @pytest.mark.asyncio
    async def test_missed_probe_returns_easier(self, two_probe_manager):
        await two_probe_manager.next_probe(STUDENT, now=NOW)
        step = await two_probe_manager.submit_answer(
            STUDENT, "p-easy", EvidenceResult.INCORRECT, now=NOW
        )

        assert step.probe.id == "p-hard"
        assert step.completed is False

        step = await two_probe_manager.submit_answer(STUDENT, "p-hard", EvidenceResult.SKIPPED, now=NOW)
        retry = step.probe
        assert retry.id == make_retry_probe(
            DiagnosticProbe(id="p-easy", skill_id="a", difficulty=0.3, expected_latency_ms=3000), 1
        ).id
        assert retry.difficulty == pytest.approx(0.24)

        placement = step.session.placements[0]
        assert placement.strength == 0.33
        assert placement.recommendation == Recommendation.RETEACH

    def test_retry_difficulty_floor(self):
        probe = DiagnosticProbe(id="p", skill_id="a", difficulty=0.05, expected_latency_ms=1000)
        retry = make_retry_probe(probe, 1)

        assert retry.difficulty == 0.1
        assert retry.id != probe.id
        assert retry.id != make_retry_probe(probe, 2).id
        assert retry.skill_id == "a"


class TestErrors:
    @pytest.mark.asyncio
    async def test_answer_without_session(self, manager):
        with pytest.raises(DiagnosticSessionError):
            await manager.submit_answer(STUDENT, "p", EvidenceResult.CORRECT)

    @pytest.mark.asyncio
    async def test_answer_for_unknown_probe(self, manager):
        await manager.next_probe(STUDENT, now=NOW)
        with pytest.raises(PathfinderError, match="not part of the active session"):
            await manager.submit_answer(STUDENT, "nope", EvidenceResult.CORRECT)

    def test_summary_without_session(self, manager):
        with pytest.raises(DiagnosticSessionError):
            manager.get_summary(STUDENT)


class TestRecommendation:
    @pytest.mark.parametrize(
        "strength,expected",
        [
            (0.75, Recommendation.ADVANCE),
            (0.74, Recommendation.REVIEW),
            (0.5, Recommendation.REVIEW),
            (0.49, Recommendation.RETEACH),
        ],
    )
    def test_bands(self, strength, expected):
        assert Recommendation.from_strength(strength) == expected
