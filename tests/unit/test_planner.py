"""
Unit tests for the daily planner.

Runs the full compute_plan pipeline against in-memory stores with a fixed
evaluation time.
"""

import pytest

from conftest import NOW, make_skill, make_state
from pathfinder.catalog.graph import SkillGraph
from pathfinder.catalog.provider import SeedCatalogProvider
from pathfinder.catalog.seed import SKILL_IDS
from pathfinder.catalog.templates import template_id
from pathfinder.engine.models import Domain, TaskIntent, TaskReason, TaskType
from pathfinder.engine.planner import PlanOptions, Planner, compute_frontier_skills
from pathfinder.store.memory_store import InMemoryProfileStore

STUDENT = "student-1"


async def _seed_states(store, *states):
    await store.persist_states(STUDENT, list(states))


class TestReviewCapping:
    @pytest.mark.asyncio
    async def test_ten_due_reviews_capped_at_three(self, state_store, profile_store):
        skills = [make_skill(f"m{i}") for i in range(10)]
        catalog = SeedCatalogProvider(skills=skills, templates={}, probes=[])
        await _seed_states(
            state_store, *(make_state(f"m{i}", due_in_hours=-(i + 1)) for i in range(10))
        )

        planner = Planner(catalog, state_store, profile_store)
        result = await planner.compute_plan(STUDENT, PlanOptions(max_tasks=3), now=NOW)

        assert len(result.tasks) == 3
        assert all(task.type == TaskType.REVIEW for task in result.tasks)
        assert [task.primary_skill_id for task in result.tasks] == ["m9", "m8", "m7"]
        assert result.stats.due_skills == 10
        assert result.stats.overdue_skills == 10
        assert result.stats.compression_ratio == 1.0

    @pytest.mark.asyncio
    async def test_review_fields(self, state_store, profile_store):
        catalog = SeedCatalogProvider(
            skills=[make_skill("m1", expected_time_seconds=240)], templates={}, probes=[]
        )
        await _seed_states(state_store, make_state("m1", due_in_hours=-1, overdue_days=3))

        result = await Planner(catalog, state_store, profile_store).compute_plan(
            STUDENT, now=NOW
        )
        task = result.tasks[0]

        assert task.reason == TaskReason.COMPRESSED_REVIEW
        assert task.priority == 5
        assert task.estimated_minutes == 4
        assert task.xp_value == 44
        assert task.xp_bonus == 0
        assert task.modalities == ["tap", "drag"]
        assert task.task_template_ids == []
        assert task.due_at == NOW.replace(hour=14)
        assert task.scheduled_at == NOW

    @pytest.mark.asyncio
    async def test_struggling_review(self, state_store, profile_store):
        catalog = SeedCatalogProvider(
            skills=[make_skill("m1", expected_time_seconds=240)], templates={}, probes=[]
        )
        await _seed_states(state_store, make_state("m1", strength=0.3, due_in_hours=-1))

        result = await Planner(catalog, state_store, profile_store).compute_plan(
            STUDENT, now=NOW
        )
        review = result.tasks[0]

        assert review.reason == TaskReason.STRUGGLING_SUPPORT
        assert review.xp_value == 52
        assert review.xp_bonus == 10
        assert review.priority == 3
        # A struggling skill is also on the frontier but is already scheduled
        assert [task.primary_skill_id for task in result.tasks] == ["m1"]


class TestEmptyStudent:
    @pytest.mark.asyncio
    async def test_plan_from_seed_catalog(self, state_store, profile_store, seed_catalog):
        result = await Planner(seed_catalog, state_store, profile_store).compute_plan(
            STUDENT, now=NOW
        )

        assert [task.type for task in result.tasks] == [TaskType.LESSON, TaskType.LESSON]
        assert [task.primary_skill_id for task in result.tasks] == [
            SKILL_IDS["MATH_PK_SUBITIZE_1_4"],
            SKILL_IDS["RD_PRINT_HANDLE"],
        ]
        assert all(task.reason == TaskReason.FRONTIER for task in result.tasks)
        assert result.stats.due_skills == 0
        assert result.student_states == []

        lesson = result.tasks[0]
        assert lesson.task_template_ids == [
            template_id(SKILL_IDS["MATH_PK_SUBITIZE_1_4"], TaskIntent.LEARN)
        ]
        assert lesson.estimated_minutes == 3
        assert lesson.xp_value == 25
        assert lesson.xp_bonus == 6
        assert lesson.modalities == ["voice", "tap"]
        assert lesson.metadata["sensory_tags"] == ["auditory", "visual"]

    @pytest.mark.asyncio
    async def test_diagnostic_slot(self, state_store, profile_store, seed_catalog):
        options = PlanOptions(include_diagnostic=True)
        result = await Planner(seed_catalog, state_store, profile_store).compute_plan(
            STUDENT, options, now=NOW
        )

        diagnostic = result.tasks[-1]
        count_to_20 = SKILL_IDS["MATH_K_COUNT_TO_20"]

        assert len(result.tasks) == 3
        assert diagnostic.type == TaskType.DIAGNOSTIC
        assert diagnostic.skill_ids == [count_to_20]
        assert diagnostic.estimated_minutes == 4
        assert diagnostic.xp_value == 15
        assert diagnostic.modalities == ["tap"]
        assert diagnostic.task_template_ids == [template_id(count_to_20, TaskIntent.QUICK_CHECK)]
        assert [p["difficulty"] for p in diagnostic.metadata["probes"]] == [0.35]
        assert diagnostic.metadata["unlocks"] == [
            SKILL_IDS["MATH_1_ADD_WITHIN_20"],
            SKILL_IDS["MATH_1_TIME_TO_HOUR"],
        ]

    @pytest.mark.asyncio
    async def test_empty_catalog(self, state_store, profile_store):
        catalog = SeedCatalogProvider(skills=[], templates={}, probes=[])
        result = await Planner(catalog, state_store, profile_store).compute_plan(
            STUDENT, now=NOW
        )

        assert result.tasks == []
        assert result.stats.compression_ratio is None
        assert result.stats.planned_minutes == 0
        assert result.motivation.projected_xp == 0


class TestSpeedDrill:
    @pytest.mark.asyncio
    async def test_slow_mastered_skill_gets_drill(self, state_store, profile_store):
        catalog = SeedCatalogProvider(
            skills=[make_skill("fast", expected_time_seconds=180)], templates={}, probes=[]
        )
        await _seed_states(
            state_store, make_state("fast", strength=0.9, avg_latency_ms=5000, due_in_hours=48)
        )

        result = await Planner(catalog, state_store, profile_store).compute_plan(
            STUDENT, now=NOW
        )

        assert len(result.tasks) == 1
        drill = result.tasks[0]
        assert drill.type == TaskType.SPEED_DRILL
        assert drill.reason == TaskReason.SPEED_DRILL
        assert drill.priority == 4
        assert drill.estimated_minutes == 2
        assert drill.xp_value == 18
        assert drill.xp_bonus == 5
        assert drill.metadata["avg_latency_ms"] == 5000
        assert result.stats.speed_drill_opportunities == 1

    @pytest.mark.asyncio
    async def test_drill_uses_fluency_template(self, state_store, profile_store):
        catalog = SeedCatalogProvider(skills=[make_skill("fast", grade_band="1")], probes=[])
        await _seed_states(
            state_store, make_state("fast", strength=0.9, avg_latency_ms=5000, due_in_hours=48)
        )

        result = await Planner(catalog, state_store, profile_store).compute_plan(
            STUDENT, now=NOW
        )
        drill = result.tasks[0]

        assert drill.task_template_ids == [template_id("fast", TaskIntent.FLUENCY)]
        assert drill.estimated_minutes == 1
        assert drill.xp_value == 10

    @pytest.mark.asyncio
    async def test_drills_can_be_disabled(self, state_store, profile_store):
        catalog = SeedCatalogProvider(skills=[make_skill("fast")], templates={}, probes=[])
        await _seed_states(
            state_store, make_state("fast", strength=0.9, avg_latency_ms=5000, due_in_hours=48)
        )

        result = await Planner(catalog, state_store, profile_store).compute_plan(
            STUDENT, PlanOptions(include_speed_drills=False), now=NOW
        )
        assert result.tasks == []

    @pytest.mark.asyncio
    async def test_slowest_candidate_first(self, state_store, profile_store):
        catalog = SeedCatalogProvider(
            skills=[make_skill("a"), make_skill("b")], templates={}, probes=[]
        )
        await _seed_states(
            state_store,
            make_state("a", strength=0.9, avg_latency_ms=4000, due_in_hours=48),
            make_state("b", strength=0.9, avg_latency_ms=6000, due_in_hours=48),
        )

        result = await Planner(catalog, state_store, profile_store).compute_plan(
            STUDENT, now=NOW
        )
        assert [task.primary_skill_id for task in result.tasks] == ["b"]


class TestPlanComposition:
    @pytest.mark.asyncio
    async def test_encompassed_skill_not_rescheduled(self, state_store, profile_store, small_catalog):
        await _seed_states(
            state_store,
            make_state("m1", due_in_hours=-5),
            make_state("m2", due_in_hours=-1),
        )

        result = await Planner(small_catalog, state_store, profile_store).compute_plan(
            STUDENT, now=NOW
        )
        tasks = result.tasks

        assert [(t.type, t.skill_ids) for t in tasks] == [
            (TaskType.REVIEW, ["m1"]),
            (TaskType.REVIEW, ["m2", "m1"]),
            (TaskType.LESSON, ["r1"]),
        ]
        assert result.stats.compression_ratio == 0.75

        primaries = [t.primary_skill_id for t in tasks]
        assert len(primaries) == len(set(primaries))

    @pytest.mark.asyncio
    async def test_plan_is_idempotent(self, state_store, profile_store, small_catalog):
        await _seed_states(state_store, make_state("m1", due_in_hours=-2))
        planner = Planner(small_catalog, state_store, profile_store)

        first = await planner.compute_plan(STUDENT, now=NOW)
        second = await planner.compute_plan(STUDENT, now=NOW)

        assert [t.id for t in first.tasks] == [t.id for t in second.tasks]
        assert first.stats == second.stats

    @pytest.mark.asyncio
    async def test_lessons_rotate_domains(self, state_store, profile_store):
        skills = [
            make_skill("m1", Domain.MATH, "K"),
            make_skill("m0", Domain.MATH, "PreK"),
            make_skill("r1", Domain.READING, "PreK"),
            make_skill("r2", Domain.READING, "PreK", expected_time_seconds=120),
        ]
        catalog = SeedCatalogProvider(skills=skills, templates={}, probes=[])

        result = await Planner(catalog, state_store, profile_store).compute_plan(
            STUDENT, now=NOW
        )
        assert [t.primary_skill_id for t in result.tasks] == ["m0", "r2", "m1", "r1"]

    @pytest.mark.asyncio
    async def test_motivation_projection(self, state_store, small_catalog):
        profiles = InMemoryProfileStore(default_daily_xp_goal=120)
        result = await Planner(small_catalog, state_store, profiles).compute_plan(
            STUDENT, now=NOW
        )

        # m1 and r1 lessons: 3 min * 11 XP + 6 bonus each
        assert result.motivation.xp_target == 120
        assert result.motivation.projected_xp == 78
        assert result.motivation.time_back_minutes == 8

    @pytest.mark.asyncio
    async def test_default_target_without_profile_store(self, state_store, small_catalog):
        result = await Planner(small_catalog, state_store).compute_plan(STUDENT, now=NOW)
        assert result.motivation.xp_target == 80


class TestFrontier:
    def test_unlocked_unseen_and_remediating(self):
        graph = SkillGraph(
            [
                make_skill("b", prerequisites=("a",)),
                make_skill("a"),
                make_skill("c"),
                make_skill("r", Domain.READING, "PreK"),
            ]
        )
        states = {
            "a": make_state("a", strength=0.9),
            "c": make_state("c", strength=0.3),
        }
        frontier = compute_frontier_skills(graph, states)
        assert [s.id for s in frontier] == ["b", "c", "r"]
