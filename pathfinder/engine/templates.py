"""
Task Template Resolution.

Maps a task's reason to the template intents that serve it, then picks the
learner's least-used matching templates so repeated plans rotate through
the available activities.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from pathfinder.engine.memory import round_half_up
from pathfinder.engine.models import Domain, TaskIntent, TaskReason, TaskTemplate, TaskType

MAX_SELECTED_TEMPLATES = 2

REASON_INTENTS: dict[TaskReason, frozenset[TaskIntent]] = {
    TaskReason.FRONTIER: frozenset({TaskIntent.LEARN}),
    TaskReason.COMPRESSED_REVIEW: frozenset(
        {TaskIntent.REVIEW_PROMPT, TaskIntent.INDEPENDENT_PRACTICE, TaskIntent.QUICK_CHECK}
    ),
    TaskReason.STRUGGLING_SUPPORT: frozenset(
        {TaskIntent.GUIDED_PRACTICE, TaskIntent.INDEPENDENT_PRACTICE}
    ),
    TaskReason.SPEED_DRILL: frozenset({TaskIntent.FLUENCY}),
    TaskReason.DIAGNOSTIC: frozenset({TaskIntent.QUICK_CHECK}),
}


@dataclass
class TemplateContext:
    """Templates chosen for one task and the presentation they imply."""

    templates: list[TaskTemplate] = field(default_factory=list)
    modalities: list[str] = field(default_factory=list)
    sensory_tags: list[str] = field(default_factory=list)

    @property
    def template_ids(self) -> list[str]:
        return [template.id for template in self.templates]

    @property
    def primary(self) -> TaskTemplate | None:
        return self.templates[0] if self.templates else None


def resolve_template_context(
    templates: Sequence[TaskTemplate],
    reason: TaskReason,
    tallies: Mapping[str, int] | None,
    fallback_modalities: Sequence[str],
) -> TemplateContext:
    """
    Select templates for a task.

    Args:
        templates: Every template available for the task's primary skill
        reason: Why the task was planned; drives the intent filter
        tallies: Learner's per-template usage counts (None for a new skill)
        fallback_modalities: Used when no template is selected or none declares modalities

    Returns:
        TemplateContext with at most two templates from the least-used group
    """
    if not templates:
        return TemplateContext(modalities=list(fallback_modalities))

    pool = filter_by_intent(templates, REASON_INTENTS.get(TaskReason(reason), frozenset()))
    selected = select_least_used(pool, tallies or {})
    if not selected:
        return TemplateContext(modalities=list(fallback_modalities))

    modalities = _unique(m for template in selected for m in template.modalities if m)
    sensory_tags = _unique(tag for template in selected for tag in template.sensory_tags)

    return TemplateContext(
        templates=selected,
        modalities=modalities or list(fallback_modalities),
        sensory_tags=sensory_tags,
    )


def filter_by_intent(
    templates: Sequence[TaskTemplate],
    intents: frozenset[TaskIntent],
) -> list[TaskTemplate]:
    """Templates matching any intent; the full list when nothing matches."""
    if not intents:
        return list(templates)
    filtered = [template for template in templates if template.intent in intents]
    return filtered or list(templates)


def select_least_used(
    templates: Sequence[TaskTemplate],
    tallies: Mapping[str, int],
) -> list[TaskTemplate]:
    if not templates:
        return []

    ordered = sorted(templates, key=lambda t: (tallies.get(t.id, 0), t.id))
    min_count = tallies.get(ordered[0].id, 0)
    least_used = [t for t in ordered if tallies.get(t.id, 0) == min_count]
    return least_used[:MAX_SELECTED_TEMPLATES]


def default_modalities(domain: Domain, task_type: TaskType) -> list[str]:
    if task_type == TaskType.DIAGNOSTIC:
        return ["tap"]
    if domain == Domain.READING:
        return ["voice", "tap"]
    if task_type == TaskType.REVIEW:
        return ["tap", "drag"]
    return ["tap"]


def estimate_minutes(expected_time_seconds: int) -> int:
    """Lesson/review length from the skill's expected time, 2-40 minutes."""
    return min(40, max(2, round_half_up(expected_time_seconds / 60)))


def _unique(values) -> list[str]:
    return list(dict.fromkeys(values))
