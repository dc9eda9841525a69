"""
Learner Mastery Summary.

Read-only rollup of a student's skill states for reports and the CLI.
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime

from pathfinder.engine.memory import STRUGGLE_STRENGTH_THRESHOLD, is_mastered
from pathfinder.engine.models import Domain, Skill, StudentSkillState
from pathfinder.engine.planner import SPEED_FACTOR_THRESHOLD, SPEED_LATENCY_THRESHOLD_MS


@dataclass
class DomainMastery:
    domain: Domain
    average_strength: float = 0.0
    skill_count: int = 0
    mastered_count: int = 0
    due_count: int = 0
    struggling_count: int = 0


@dataclass
class DueSkill:
    skill_id: str
    title: str
    due_at: datetime
    strength: float
    overdue_days: int
    reason: str  # "reteach" or "review"


@dataclass
class SpeedFlag:
    skill_id: str
    title: str
    avg_latency_ms: int
    target_latency_ms: int
    speed_factor: float


@dataclass
class MasterySummary:
    domains: list[DomainMastery] = field(default_factory=list)
    due_skills: list[DueSkill] = field(default_factory=list)
    speed_flags: list[SpeedFlag] = field(default_factory=list)


def summarize_mastery(
    skills: Sequence[Skill],
    states: Sequence[StudentSkillState],
    now: datetime,
) -> MasterySummary:
    """
    Summarize mastery per domain plus due and slow skills.

    States for skills missing from the catalog are left out of the domain
    rollup but still listed as due or slow.
    """
    titles = {skill.id: skill.title for skill in skills}
    state_map = {state.skill_id: state for state in states}

    domains = []
    for domain in Domain:
        bucket = DomainMastery(domain=domain)
        strengths = []
        for skill in skills:
            state = state_map.get(skill.id)
            if skill.domain != domain or state is None:
                continue
            strengths.append(state.strength)
            bucket.mastered_count += is_mastered(state)
            bucket.due_count += state.is_due(now)
            bucket.struggling_count += (
                state.struggling_flag or state.strength < STRUGGLE_STRENGTH_THRESHOLD
            )
        bucket.skill_count = len(strengths)
        bucket.average_strength = round(sum(strengths) / len(strengths), 2) if strengths else 0.0
        domains.append(bucket)

    due_skills = [
        DueSkill(
            skill_id=state.skill_id,
            title=titles.get(state.skill_id, ""),
            due_at=state.due_at,
            strength=state.strength,
            overdue_days=state.overdue_days,
            reason="reteach" if state.struggling_flag else "review",
        )
        for state in states
        if state.is_due(now)
    ]

    speed_flags = [
        SpeedFlag(
            skill_id=state.skill_id,
            title=titles.get(state.skill_id, ""),
            avg_latency_ms=state.avg_latency_ms or 0,
            target_latency_ms=SPEED_LATENCY_THRESHOLD_MS,
            speed_factor=state.speed_factor if state.speed_factor is not None else 1.0,
        )
        for state in states
        if (state.avg_latency_ms or 0) > SPEED_LATENCY_THRESHOLD_MS
        or (state.speed_factor if state.speed_factor is not None else 1.0) > SPEED_FACTOR_THRESHOLD
    ]

    return MasterySummary(domains=domains, due_skills=due_skills, speed_flags=speed_flags)
