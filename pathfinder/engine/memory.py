"""
Skill Memory Model.

Continuous-state update rule with forgetting-curve semantics:
- Strength moves toward the observed outcome (EMA), slowed by partial credit
- Stability grows on success and decays on failure (half-life proxy)
- Next review interval scales with stability, strength and the outcome
- Latency history feeds speed-drill eligibility

Pure and deterministic: callers validate inputs and own persistence.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from pathfinder.engine.models import EvidenceResult, Skill, StudentSkillState

# =============================================================================
# Thresholds
# =============================================================================

STRUGGLE_STRENGTH_THRESHOLD = 0.45
MASTERED_STRENGTH_THRESHOLD = 0.82

DEFAULT_STRENGTH = 0.3
DEFAULT_STABILITY = 0.6
MIN_STABILITY = 0.25

MIN_EXPECTED_LATENCY_MS = 1800
MIN_EXPECTED_TIME_SECONDS = 180

MAX_INTERVAL_HOURS = 24 * 21

RESULT_BASE_SCORES = {
    EvidenceResult.CORRECT: 1.0,
    EvidenceResult.PARTIAL: 0.6,
    EvidenceResult.SKIPPED: 0.2,
    EvidenceResult.INCORRECT: 0.0,
}


@dataclass
class MemoryUpdate:
    """Result of one memory update."""

    state: StudentSkillState
    delta_strength: float
    delta_stability: float
    success_score: float  # weighted


def update_memory_state(
    student_id: str,
    skill: Skill,
    result: EvidenceResult,
    latency_ms: int,
    hints_used: int,
    now: datetime,
    state: StudentSkillState | None = None,
    weight: float = 1.0,
    task_template_id: str | None = None,
) -> MemoryUpdate:
    """
    Apply one evidence observation to a skill's memory state.

    Args:
        student_id: Learner identifier
        skill: Skill being practiced (provides expected-time calibration)
        result: Observed outcome
        latency_ms: Response time
        hints_used: Hints consumed before answering
        now: Evaluation time; due_at is scheduled relative to it
        state: Prior state, None on first exposure
        weight: Credit multiplier, < 1 for propagated partial credit
        task_template_id: Template that produced the evidence, tallied if given

    Returns:
        MemoryUpdate with the new state and strength/stability deltas
    """
    prev_strength = state.strength if state else DEFAULT_STRENGTH
    prev_stability = state.stability if state else DEFAULT_STABILITY
    prev_avg_latency = (
        state.avg_latency_ms if state and state.avg_latency_ms is not None else latency_ms
    )

    expected_latency = expected_latency_ms(skill)
    success_score = compute_success_score(result, hints_used)
    latency_penalty = max(0.0, latency_ms / expected_latency - 1) * 0.2
    weighted_success = success_score * weight

    new_strength = clamp01(
        prev_strength
        + (weighted_success - prev_strength) * (0.55 + 0.2 * weight)
        - latency_penalty
    )

    if weighted_success >= 0.7:
        stability_delta = 0.25
    elif weighted_success >= 0.5:
        stability_delta = 0.08
    else:
        stability_delta = -0.18
    new_stability = max(MIN_STABILITY, prev_stability + stability_delta * weight)

    interval_hours = compute_interval_hours(new_stability, new_strength, weighted_success)

    avg_latency = round_half_up(prev_avg_latency * 0.6 + latency_ms * 0.4)
    speed_factor = round(avg_latency / expected_latency, 2)

    tallies = dict(state.task_template_tallies) if state else {}
    if task_template_id:
        tallies[task_template_id] = tallies.get(task_template_id, 0) + 1

    updated = StudentSkillState(
        student_id=student_id,
        skill_id=state.skill_id if state else skill.id,
        stability=round(new_stability, 3),
        strength=round(new_strength, 3),
        rep_num=(state.rep_num if state else 0) + 1,
        due_at=now + timedelta(hours=interval_hours),
        last_seen_at=now,
        avg_latency_ms=avg_latency,
        speed_factor=speed_factor,
        struggling_flag=new_strength < STRUGGLE_STRENGTH_THRESHOLD or weighted_success < 0.4,
        overdue_days=0,
        easiness=determine_easiness(new_strength),
        task_template_tallies=tallies,
        retention_probability_365=round(estimate_retention_probability(new_stability, 365), 3),
    )

    return MemoryUpdate(
        state=updated,
        delta_strength=new_strength - prev_strength,
        delta_stability=new_stability - prev_stability,
        success_score=weighted_success,
    )


def compute_success_score(result: EvidenceResult, hints_used: int) -> float:
    """Base score for the result minus a capped hint penalty, floored at 0."""
    base = RESULT_BASE_SCORES.get(EvidenceResult(result), 0.0)
    hint_penalty = min(0.4, hints_used * 0.1)
    return max(0.0, base - hint_penalty)


def expected_latency_ms(skill: Skill) -> int:
    """Expected response latency, about a sixth of the skill's expected time."""
    base_seconds = max(MIN_EXPECTED_TIME_SECONDS, skill.expected_time_seconds)
    return max(MIN_EXPECTED_LATENCY_MS, round_half_up(base_seconds * 1000 / 6))


def compute_interval_hours(stability: float, strength: float, success: float) -> float:
    """
    Hours until the next review.

    Poor outcomes shrink the interval (floor 2h), middling ones trim it
    (floor 6h) and strong ones stretch it (cap 21 days).
    """
    base_hours = max(6.0, stability * 18 + strength * 12)
    if success < 0.4:
        return max(2.0, base_hours * 0.35)
    if success < 0.7:
        return max(6.0, base_hours * 0.65)
    return min(MAX_INTERVAL_HOURS, base_hours * 1.35)


def estimate_retention_probability(stability: float, days: float) -> float:
    """Exponential forgetting with stability read as a half-life (26 days per unit)."""
    half_life_days = max(1.0, stability * 26)
    decay = math.log(2) / half_life_days
    return math.exp(-decay * days)


def determine_easiness(strength: float) -> float:
    if strength >= 0.9:
        return 2.8
    if strength >= 0.8:
        return 2.5
    if strength >= 0.6:
        return 2.3
    return 2.1


def is_mastered(state: StudentSkillState | None) -> bool:
    return state is not None and state.strength >= MASTERED_STRENGTH_THRESHOLD


def is_struggling(state: StudentSkillState) -> bool:
    return state.struggling_flag or state.strength < STRUGGLE_STRENGTH_THRESHOLD


def clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive inputs."""
    return math.floor(value + 0.5)
