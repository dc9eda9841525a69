"""
Weekly Progress Report.

Digest for parents and coaches built from the engagement counters the
profile store keeps and the student's current skill states:
- Seven daily entries for the Monday-start week containing `now`
- Weekly XP and minute totals with the streak
- Highlights and up to three reteach actions
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from pathfinder.engine.memory import MASTERED_STRENGTH_THRESHOLD, is_struggling, round_half_up
from pathfinder.engine.models import StudentSkillState, StudentStats, as_utc

XP_PER_MINUTE = 8
XP_PER_TASK = 18
XP_SUPERSTAR_THRESHOLD = 200
MAX_COACH_ACTIONS = 3


@dataclass
class DailyProgress:
    date: str  # YYYY-MM-DD
    xp: int
    minutes: int
    tasks_completed: int


@dataclass
class StreakStatus:
    current: int
    longest: int
    is_active: bool
    last_active_at: datetime | None = None


@dataclass
class ReportHighlight:
    type: str  # "celebration", "growth" or "alert"
    title: str
    description: str


@dataclass
class CoachAction:
    action_id: str
    title: str
    description: str
    skill_id: str | None = None


@dataclass
class WeeklyReport:
    student_id: str
    week_of: str  # Monday of the reported week
    xp_total: int
    minutes_total: int
    streak: StreakStatus
    daily: list[DailyProgress] = field(default_factory=list)
    highlights: list[ReportHighlight] = field(default_factory=list)
    coach_actions: list[CoachAction] = field(default_factory=list)


def start_of_week(now: datetime) -> date:
    """Monday of the UTC week containing `now`."""
    today = as_utc(now).date()
    return today - timedelta(days=today.weekday())


def build_weekly_report(
    student_id: str,
    stats: StudentStats,
    states: Sequence[StudentSkillState],
    now: datetime,
) -> WeeklyReport:
    """
    Build the weekly digest.

    Minutes and task counts are estimated from each day's XP; days without
    activity report zero.

    Args:
        student_id: Learner identifier
        stats: Stored engagement counters with the daily XP series
        states: Current skill states
        now: Reference time picking the week

    Returns:
        WeeklyReport for the week containing `now`
    """
    week_start = start_of_week(now)
    xp_by_date = {entry.date: entry.xp for entry in stats.daily_xp}

    daily = []
    for offset in range(7):
        key = (week_start + timedelta(days=offset)).isoformat()
        xp = xp_by_date.get(key, 0)
        daily.append(
            DailyProgress(
                date=key,
                xp=xp,
                minutes=round_half_up(xp / XP_PER_MINUTE),
                tasks_completed=max(0, round_half_up(xp / XP_PER_TASK)),
            )
        )

    xp_total = sum(day.xp for day in daily)
    return WeeklyReport(
        student_id=student_id,
        week_of=week_start.isoformat(),
        xp_total=xp_total,
        minutes_total=sum(day.minutes for day in daily),
        streak=StreakStatus(
            current=stats.current_streak,
            longest=stats.longest_streak,
            is_active=stats.current_streak > 0,
            last_active_at=stats.last_active_at,
        ),
        daily=daily,
        highlights=build_highlights(states, xp_total),
        coach_actions=build_coach_actions(states),
    )


def build_highlights(
    states: Sequence[StudentSkillState], xp_total: int
) -> list[ReportHighlight]:
    highlights = []
    if xp_total >= XP_SUPERSTAR_THRESHOLD:
        highlights.append(
            ReportHighlight(
                type="celebration",
                title="XP Superstar",
                description=f"Earned {XP_SUPERSTAR_THRESHOLD}+ XP this week!",
            )
        )

    mastered = [
        s for s in states if s.strength >= MASTERED_STRENGTH_THRESHOLD and s.overdue_days == 0
    ]
    if mastered:
        highlights.append(
            ReportHighlight(
                type="growth",
                title="New Masteries",
                description=f"{len(mastered)} skills reached mastery levels.",
            )
        )

    struggling = [s for s in states if is_struggling(s)]
    if struggling:
        highlights.append(
            ReportHighlight(
                type="alert",
                title="Reteach Opportunities",
                description=f"{len(struggling)} skills need extra support.",
            )
        )
    return highlights


def build_coach_actions(states: Sequence[StudentSkillState]) -> list[CoachAction]:
    """One reteach suggestion per struggling skill, in state order."""
    return [
        CoachAction(
            action_id=f"reteach-{state.skill_id}",
            title="Plan a reteach",
            description="Review this skill together with manipulatives.",
            skill_id=state.skill_id,
        )
        for state in states
        if is_struggling(state)
    ][:MAX_COACH_ACTIONS]
