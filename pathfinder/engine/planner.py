"""
Daily Task Planner.

Builds a capped, ordered task list for one sitting:
1. Due reviews (math and most-overdue/struggling first)
2. Frontier lessons, rotating math -> reading
3. One speed drill for a mastered but slow skill (optional)
4. One diagnostic slot on the math frontier (optional)

Each stage stops at the cap. A skill targeted by any task (primary or
encompassed) is never scheduled again in the same plan.
"""
from __future__ import annotations

import uuid
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone

from loguru import logger

from pathfinder.catalog.graph import SkillGraph, SkillGraphCache
from pathfinder.catalog.provider import CatalogProvider
from pathfinder.engine.memory import (
    MASTERED_STRENGTH_THRESHOLD,
    STRUGGLE_STRENGTH_THRESHOLD,
    is_mastered,
    round_half_up,
)
from pathfinder.engine.models import (
    Domain,
    MotivationProjection,
    PlanResult,
    PlanStats,
    Skill,
    StudentSkillState,
    Task,
    TaskReason,
    TaskType,
)
from pathfinder.engine.templates import (
    TemplateContext,
    default_modalities,
    estimate_minutes,
    resolve_template_context,
)
from pathfinder.store.base import ProfileStore, StateStore

TASK_NAMESPACE = uuid.UUID("9a7d3c52-1e4b-4f0a-8c2d-6b5e1f3a7d90")

SPEED_LATENCY_THRESHOLD_MS = 3200
SPEED_FACTOR_THRESHOLD = 1.1

DEFAULT_XP_TARGET = 80

STRUGGLING_REVIEW_BONUS = 10
FRONTIER_LESSON_BONUS = 6
STRUGGLING_LESSON_BONUS = 8
SPEED_DRILL_BONUS = 5

DIAGNOSTIC_MINUTES = 4
DIAGNOSTIC_XP = 15

DOMAIN_ROTATION = (Domain.MATH, Domain.READING)
GRADE_BAND_ORDER = {"PreK": 0, "K": 1, "1": 2, "2": 3}


@dataclass
class PlanOptions:
    """Per-call planner options; range checks happen at the schema layer."""

    max_tasks: int = 5
    include_speed_drills: bool = True
    include_diagnostic: bool = False


# =============================================================================
# Scoring
# =============================================================================


def domain_priority(domain: Domain | None) -> int:
    """Math before reading; unknown skills after both."""
    if domain is None:
        return 2
    return 0 if domain == Domain.MATH else 1


def grade_band_priority(grade_band: str) -> int:
    return GRADE_BAND_ORDER.get(grade_band, 99)


def priority_score(
    skill_map: Mapping[str, Skill] | SkillGraph,
    state: StudentSkillState,
    now: datetime,
) -> float:
    """
    Review ordering score; lower is scheduled first.

    domain_priority * 100 - hours_overdue * 5 - 15 (struggling)
    """
    skill = skill_map.get(state.skill_id)
    domain_score = domain_priority(skill.domain if skill else None)
    due_delta_hours = max(0.0, (now - state.due_at).total_seconds() / 3600)
    struggling_boost = -15 if state.struggling_flag else 0
    return domain_score * 100 - due_delta_hours * 5 + struggling_boost


def compute_task_priority(state: StudentSkillState) -> int:
    if state.overdue_days >= 3:
        return 5
    if state.overdue_days >= 1 or state.struggling_flag:
        return 4
    return 3


def is_speed_drill_candidate(state: StudentSkillState) -> bool:
    """Mastered but answering slowly."""
    avg_latency = state.avg_latency_ms if state.avg_latency_ms is not None else 0
    speed_factor = state.speed_factor if state.speed_factor is not None else 1.0
    return is_mastered(state) and (
        avg_latency > SPEED_LATENCY_THRESHOLD_MS or speed_factor > SPEED_FACTOR_THRESHOLD
    )


def make_task_id(student_id: str, task_type: TaskType, skill_id: str) -> str:
    return str(uuid.uuid5(TASK_NAMESPACE, f"{student_id}:{TaskType(task_type).value}:{skill_id}"))


# =============================================================================
# Frontier
# =============================================================================


def compute_frontier_skills(
    graph: SkillGraph,
    state_map: Mapping[str, StudentSkillState],
) -> list[Skill]:
    """
    Unlocked skills the learner has never seen or is remediating.

    Sorted by (domain, grade band, expected time).
    """
    candidates = []
    for skill in graph.skills:
        if not graph.prerequisites_met(skill, state_map):
            continue
        state = state_map.get(skill.id)
        if state is None or state.strength < STRUGGLE_STRENGTH_THRESHOLD:
            candidates.append(skill)

    candidates.sort(
        key=lambda s: (
            domain_priority(s.domain),
            grade_band_priority(s.grade_band),
            s.expected_time_seconds,
        )
    )
    return candidates


class DomainRotation:
    """Round-robin over per-domain queues, skipping empty ones."""

    def __init__(self, skills: Sequence[Skill]):
        self._buckets: dict[Domain, list[Skill]] = {domain: [] for domain in DOMAIN_ROTATION}
        for skill in skills:
            self._buckets.setdefault(skill.domain, []).append(skill)
        self._order = list(self._buckets)
        self._pointer = 0

    def has_next(self) -> bool:
        return any(self._buckets.values())

    def next(self) -> Skill | None:
        for offset in range(len(self._order)):
            domain = self._order[(self._pointer + offset) % len(self._order)]
            bucket = self._buckets[domain]
            if bucket:
                self._pointer = (self._pointer + offset + 1) % len(self._order)
                return bucket.pop(0)
        return None

    def __iter__(self):
        while self.has_next():
            skill = self.next()
            if skill is None:
                return
            yield skill


# =============================================================================
# Planner
# =============================================================================


@dataclass
class _PlanDraft:
    """Mutable accumulator for one planning pass."""

    max_tasks: int
    tasks: list[Task] = field(default_factory=list)
    scheduled: set[str] = field(default_factory=set)

    @property
    def full(self) -> bool:
        return len(self.tasks) >= self.max_tasks

    def add(self, task: Task) -> None:
        self.tasks.append(task)
        self.scheduled.update(task.skill_ids)


class Planner:
    """
    Plan builder over async collaborators.

    The skill graph is rebuilt only when the catalog hands back a different
    skill list, so a cached catalog is indexed once per cache window.
    """

    def __init__(
        self,
        catalog: CatalogProvider,
        state_store: StateStore,
        profile_store: ProfileStore | None = None,
        graph_cache: SkillGraphCache | None = None,
    ):
        self.catalog = catalog
        self.state_store = state_store
        self.profile_store = profile_store
        self.graph_cache = graph_cache or SkillGraphCache()

    async def load_graph(self) -> SkillGraph:
        return self.graph_cache.for_skills(await self.catalog.get_all_skills())

    async def compute_plan(
        self,
        student_id: str,
        options: PlanOptions | None = None,
        now: datetime | None = None,
    ) -> PlanResult:
        """
        Compute today's plan for a student.

        Args:
            student_id: Learner identifier
            options: Task cap and optional stages
            now: Evaluation time (defaults to current UTC time)

        Returns:
            PlanResult with tasks, stats, motivation projection and the
            states the plan was computed from
        """
        options = options or PlanOptions()
        now = now or datetime.now(timezone.utc)

        graph = await self.load_graph()
        states = await self.state_store.load_states(student_id, graph.skills, now=now)
        state_map = {state.skill_id: state for state in states}

        due_states = sorted(
            (state for state in states if state.is_due(now)),
            key=lambda state: priority_score(graph, state, now),
        )
        overdue_states = [
            state for state in due_states if state.overdue_days > 0 or state.due_at < now
        ]

        draft = _PlanDraft(max_tasks=options.max_tasks)

        # Stage 1: due reviews
        for state in due_states:
            if draft.full:
                break
            if state.skill_id in draft.scheduled:
                continue
            skill = graph.get(state.skill_id)
            if skill is None:
                logger.debug(f"Skipping review for unknown skill {state.skill_id}")
                continue
            draft.add(await self.build_review_task(student_id, skill, state, graph, now))

        # Stage 2: frontier lessons
        if not draft.full:
            rotation = DomainRotation(compute_frontier_skills(graph, state_map))
            for skill in rotation:
                if draft.full:
                    break
                if skill.id in draft.scheduled:
                    continue
                draft.add(
                    await self.build_lesson_task(
                        student_id, skill, state_map.get(skill.id), graph, now
                    )
                )

        # Stage 3: speed drill
        if options.include_speed_drills and not draft.full:
            task = await self.build_speed_drill_task(
                student_id, states, graph, draft.scheduled, now
            )
            if task:
                draft.add(task)

        # Stage 4: diagnostic slot
        if options.include_diagnostic and not draft.full:
            task = await self.build_diagnostic_task(
                student_id, graph, state_map, draft.scheduled, now
            )
            if task:
                draft.add(task)

        stats = build_plan_stats(due_states, overdue_states, states, draft.tasks)
        motivation = await self._project_motivation(student_id, draft.tasks)

        logger.debug(
            f"Plan for {student_id}: {len(draft.tasks)} tasks, "
            f"{stats.due_skills} due, {stats.planned_minutes} min"
        )
        return PlanResult(
            tasks=draft.tasks,
            stats=stats,
            motivation=motivation,
            student_states=states,
        )

    # -------------------------------------------------------------------------
    # Task builders
    # -------------------------------------------------------------------------

    async def _resolve(
        self,
        skill: Skill,
        reason: TaskReason,
        state: StudentSkillState | None,
        task_type: TaskType,
    ) -> TemplateContext:
        templates = await self.catalog.get_task_templates_by_skill(skill.id)
        return resolve_template_context(
            templates,
            reason,
            state.task_template_tallies if state else None,
            default_modalities(skill.domain, task_type),
        )

    @staticmethod
    def _size(context: TemplateContext, skill: Skill, struggling: bool) -> tuple[int, int]:
        """Minutes and XP from the first template, else from the skill's expected time."""
        if context.primary is not None:
            return context.primary.estimated_minutes, context.primary.xp_award
        minutes = estimate_minutes(skill.expected_time_seconds)
        return minutes, minutes * (13 if struggling else 11)

    async def build_review_task(
        self,
        student_id: str,
        skill: Skill,
        state: StudentSkillState,
        graph: SkillGraph,
        now: datetime,
    ) -> Task:
        struggling = state.struggling_flag or state.strength < STRUGGLE_STRENGTH_THRESHOLD
        reason = TaskReason.STRUGGLING_SUPPORT if struggling else TaskReason.COMPRESSED_REVIEW
        context = await self._resolve(skill, reason, state, TaskType.REVIEW)
        minutes, xp = self._size(context, skill, struggling)

        return Task(
            id=make_task_id(student_id, TaskType.REVIEW, skill.id),
            type=TaskType.REVIEW,
            skill_ids=[skill.id, *graph.encompassed_ids(skill)],
            task_template_ids=context.template_ids,
            estimated_minutes=minutes,
            xp_value=xp,
            modalities=context.modalities,
            reason=reason,
            priority=compute_task_priority(state),
            scheduled_at=now,
            due_at=state.due_at,
            tags=[skill.domain.value, "review"],
            xp_bonus=STRUGGLING_REVIEW_BONUS if struggling else 0,
            metadata={
                "skill_title": skill.title,
                "stability": state.stability,
                "strength": state.strength,
                "overdue_days": state.overdue_days,
                "sensory_tags": context.sensory_tags,
            },
        )

    async def build_lesson_task(
        self,
        student_id: str,
        skill: Skill,
        state: StudentSkillState | None,
        graph: SkillGraph,
        now: datetime,
    ) -> Task:
        struggling = state is not None and state.strength < STRUGGLE_STRENGTH_THRESHOLD
        reason = TaskReason.STRUGGLING_SUPPORT if struggling else TaskReason.FRONTIER
        context = await self._resolve(skill, reason, state, TaskType.LESSON)
        minutes, xp = self._size(context, skill, struggling)

        return Task(
            id=make_task_id(student_id, TaskType.LESSON, skill.id),
            type=TaskType.LESSON,
            skill_ids=[skill.id, *graph.encompassed_ids(skill)],
            task_template_ids=context.template_ids,
            estimated_minutes=minutes,
            xp_value=xp,
            modalities=context.modalities,
            reason=reason,
            priority=compute_task_priority(state) if state else 3,
            scheduled_at=now,
            tags=[skill.domain.value, "frontier"],
            xp_bonus=STRUGGLING_LESSON_BONUS if struggling else FRONTIER_LESSON_BONUS,
            metadata={
                "skill_title": skill.title,
                "expected_time_seconds": skill.expected_time_seconds,
                "sensory_tags": context.sensory_tags,
            },
        )

    async def build_speed_drill_task(
        self,
        student_id: str,
        states: Sequence[StudentSkillState],
        graph: SkillGraph,
        scheduled: set[str],
        now: datetime,
    ) -> Task | None:
        candidates = sorted(
            (
                state
                for state in states
                if state.skill_id not in scheduled and is_speed_drill_candidate(state)
            ),
            key=lambda state: state.avg_latency_ms or 0,
            reverse=True,
        )

        for candidate in candidates:
            skill = graph.get(candidate.skill_id)
            if skill is None:
                continue

            context = await self._resolve(skill, TaskReason.SPEED_DRILL, candidate, TaskType.SPEED_DRILL)
            if context.primary is not None:
                minutes, xp = context.primary.estimated_minutes, context.primary.xp_award
            else:
                minutes = min(5, max(2, round_half_up(skill.expected_time_seconds / 120)))
                xp = minutes * 9

            return Task(
                id=make_task_id(student_id, TaskType.SPEED_DRILL, skill.id),
                type=TaskType.SPEED_DRILL,
                skill_ids=[skill.id],
                task_template_ids=context.template_ids,
                estimated_minutes=minutes,
                xp_value=xp,
                modalities=context.modalities,
                reason=TaskReason.SPEED_DRILL,
                priority=4,
                scheduled_at=now,
                tags=[skill.domain.value, "speed"],
                xp_bonus=SPEED_DRILL_BONUS,
                metadata={
                    "skill_title": skill.title,
                    "target_latency_ms": SPEED_LATENCY_THRESHOLD_MS,
                    "avg_latency_ms": candidate.avg_latency_ms,
                    "sensory_tags": context.sensory_tags,
                },
            )

        return None

    async def build_diagnostic_task(
        self,
        student_id: str,
        graph: SkillGraph,
        state_map: Mapping[str, StudentSkillState],
        scheduled: set[str],
        now: datetime,
    ) -> Task | None:
        for skill in graph.skills:
            if skill.domain != Domain.MATH or skill.id in scheduled:
                continue
            state = state_map.get(skill.id)
            if state is not None and state.strength >= MASTERED_STRENGTH_THRESHOLD:
                continue

            probes = await self.catalog.get_diagnostic_probes_by_skill(skill.id)
            if not probes:
                continue

            context = await self._resolve(skill, TaskReason.DIAGNOSTIC, state, TaskType.DIAGNOSTIC)
            return Task(
                id=make_task_id(student_id, TaskType.DIAGNOSTIC, skill.id),
                type=TaskType.DIAGNOSTIC,
                skill_ids=[skill.id],
                task_template_ids=context.template_ids,
                estimated_minutes=DIAGNOSTIC_MINUTES,
                xp_value=DIAGNOSTIC_XP,
                modalities=default_modalities(skill.domain, TaskType.DIAGNOSTIC),
                reason=TaskReason.DIAGNOSTIC,
                priority=3,
                scheduled_at=now,
                tags=["math", "diagnostic"],
                metadata={
                    "skill_title": skill.title,
                    "unlocks": graph.dependents_of(skill.id),
                    "probes": [
                        {"probe_id": probe.id, "difficulty": probe.difficulty}
                        for probe in probes
                    ],
                },
            )

        return None

    async def _project_motivation(
        self, student_id: str, tasks: Sequence[Task]
    ) -> MotivationProjection:
        xp_target = DEFAULT_XP_TARGET
        if self.profile_store is not None:
            profile = await self.profile_store.load_profile(student_id)
            xp_target = profile.settings.daily_xp_goal

        projected_xp = sum(task.xp_value + task.xp_bonus for task in tasks)
        return MotivationProjection(
            xp_target=xp_target,
            projected_xp=projected_xp,
            time_back_minutes=max(0, round_half_up(projected_xp / 10)),
        )


def build_plan_stats(
    due_states: Sequence[StudentSkillState],
    overdue_states: Sequence[StudentSkillState],
    states: Sequence[StudentSkillState],
    tasks: Sequence[Task],
) -> PlanStats:
    struggling = sum(
        1
        for state in states
        if state.struggling_flag or state.strength < STRUGGLE_STRENGTH_THRESHOLD
    )
    speed_opportunities = sum(1 for state in states if is_speed_drill_candidate(state))

    total_slots = sum(len(task.skill_ids) for task in tasks)
    unique_slots = len({skill_id for task in tasks for skill_id in task.skill_ids})
    compression_ratio = round(unique_slots / total_slots, 2) if total_slots else None

    return PlanStats(
        due_skills=len(due_states),
        overdue_skills=len(overdue_states),
        struggling_skills=struggling,
        speed_drill_opportunities=speed_opportunities,
        compression_ratio=compression_ratio,
        planned_minutes=sum(task.estimated_minutes for task in tasks),
    )
