"""
Task Template Factory.

Generates the standard template ladder for each skill:
learn -> guided practice -> independent practice -> review prompt -> quick check,
plus a timed fluency round for grade 1 and 2 skills.
"""
from __future__ import annotations

import uuid
from collections.abc import Iterable

from pathfinder.engine.models import Skill, TaskIntent, TaskTemplate

TEMPLATE_NAMESPACE = uuid.UUID("5f0c1d2e-7a43-4b8e-9c61-2d4e8f7a9b10")

LEARN_XP = 25
GUIDED_XP = 18
INDEPENDENT_XP = 18
REVIEW_XP = 12
QUICK_CHECK_XP = 10

FLUENCY_TIMER_SECONDS = 60
FLUENCY_GRADE_BANDS = {"1", "2"}


def template_id(skill_id: str, intent: TaskIntent) -> str:
    """Stable template id for a (skill, intent) pair."""
    return str(uuid.uuid5(TEMPLATE_NAMESPACE, f"{skill_id}:{TaskIntent(intent).value}"))


def build_templates_for_skill(skill: Skill) -> list[TaskTemplate]:
    """Build the template ladder for one skill, in intent order."""

    def make(
        intent: TaskIntent,
        title: str,
        xp: int,
        minutes: int,
        modalities: tuple[str, ...],
        sensory: tuple[str, ...],
        **metadata,
    ) -> TaskTemplate:
        return TaskTemplate(
            id=template_id(skill.id, intent),
            skill_id=skill.id,
            intent=intent,
            title=f"{title}: {skill.title}",
            xp_award=xp,
            estimated_minutes=minutes,
            modalities=modalities,
            sensory_tags=sensory,
            metadata=metadata,
        )

    templates = [
        make(
            TaskIntent.LEARN, "Learn", LEARN_XP, 3, ("voice", "tap"), ("auditory", "visual"),
            recommended_adult_support=True,
        ),
        make(
            TaskIntent.GUIDED_PRACTICE, "We Do", GUIDED_XP, 3, ("voice", "tap"), ("auditory",),
            support_level="high",
        ),
        make(
            TaskIntent.INDEPENDENT_PRACTICE, "Your Turn", INDEPENDENT_XP, 2, ("tap",), ("auditory",),
            mastery_rule="2_consecutive_correct",
        ),
        make(
            TaskIntent.REVIEW_PROMPT, "Remember", REVIEW_XP, 1, ("voice",), ("auditory",),
            recommended_interval_days=3,
        ),
        make(
            TaskIntent.QUICK_CHECK, "Check", QUICK_CHECK_XP, 1, ("tap",), ("auditory",),
            lock_on_failure=True,
        ),
    ]

    if skill.grade_band in FLUENCY_GRADE_BANDS:
        templates.append(
            make(
                TaskIntent.FLUENCY, "Speedy", QUICK_CHECK_XP, 1, ("tap",), ("auditory",),
                timer_seconds=FLUENCY_TIMER_SECONDS,
            )
        )

    return templates


def build_task_templates(skills: Iterable[Skill]) -> dict[str, list[TaskTemplate]]:
    """Templates for every skill, keyed by skill id."""
    return {skill.id: build_templates_for_skill(skill) for skill in skills}
