"""
Starter skill states for students with no history.

A fixed ladder over the first eight catalog skills: the earliest skill is
near mastery, later ones progressively weaker and more overdue, so a new
learner's first plan mixes reviews, remediation and frontier lessons.
"""
from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta

from pathfinder.engine.models import Domain, Skill, StudentSkillState

BOOTSTRAP_SKILL_COUNT = 8

STRENGTH_LADDER = (0.82, 0.7, 0.58, 0.42, 0.35, 0.3, 0.25, 0.2)
STABILITY_LADDER = (1.4, 1.2, 1.0, 0.8, 0.7, 0.6, 0.5, 0.4)

BOOTSTRAP_EASINESS = 2.4
BOOTSTRAP_RETENTION = 0.45


def create_bootstrap_states(
    student_id: str,
    skills: Sequence[Skill],
    now: datetime,
) -> list[StudentSkillState]:
    """
    Deterministic starter states relative to `now`.

    Args:
        student_id: Learner identifier
        skills: Catalog in order; only math and reading skills are used
        now: Reference time; skill i is due i+1 hours before it

    Returns:
        Up to eight states, one per leading math/reading skill
    """
    eligible = [s for s in skills if s.domain in (Domain.MATH, Domain.READING)]

    states = []
    for index, skill in enumerate(eligible[:BOOTSTRAP_SKILL_COUNT]):
        due_offset_hours = index + 1
        states.append(
            StudentSkillState(
                student_id=student_id,
                skill_id=skill.id,
                stability=STABILITY_LADDER[index],
                strength=STRENGTH_LADDER[index],
                rep_num=max(1, 3 - index),
                due_at=now - timedelta(hours=due_offset_hours),
                last_seen_at=now - timedelta(hours=due_offset_hours + 1),
                avg_latency_ms=3200 + index * 400,
                speed_factor=round(1 + index * 0.08, 2),
                struggling_flag=index >= 3,
                overdue_days=max(0, index - 2),
                easiness=BOOTSTRAP_EASINESS,
                task_template_tallies={},
                retention_probability_365=BOOTSTRAP_RETENTION,
            )
        )
    return states
