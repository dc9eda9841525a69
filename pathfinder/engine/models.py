"""
Engine Data Models.

Plain dataclasses for everything that flows through the engine:
- Skill catalog entries (skills, edges, task templates, diagnostic probes)
- Per-student skill memory state
- Planner output (tasks, stats, motivation projection)
- Evidence ingestion output
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


def as_utc(value: datetime) -> datetime:
    """Aware UTC datetime; naive values are taken to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# =============================================================================
# Enums
# =============================================================================


class Domain(str, Enum):
    """Subject area a skill belongs to."""

    MATH = "math"
    READING = "reading"


class GateType(str, Enum):
    """How a prerequisite combines with its siblings."""

    AND = "AND"  # Every AND prerequisite must be mastered
    OR = "OR"  # At least one OR prerequisite must be mastered


class EvidenceResult(str, Enum):
    """Observed outcome of a single learner interaction."""

    CORRECT = "correct"
    PARTIAL = "partial"
    INCORRECT = "incorrect"
    SKIPPED = "skipped"


class TaskType(str, Enum):
    LESSON = "lesson"
    REVIEW = "review"
    SPEED_DRILL = "speed_drill"
    DIAGNOSTIC = "diagnostic"


class TaskReason(str, Enum):
    """Why the planner picked a task."""

    FRONTIER = "frontier"
    COMPRESSED_REVIEW = "compressed_review"
    STRUGGLING_SUPPORT = "struggling_support"
    SPEED_DRILL = "speed_drill"
    DIAGNOSTIC = "diagnostic"


class TaskIntent(str, Enum):
    """Pedagogical purpose of a task template."""

    LEARN = "learn"
    GUIDED_PRACTICE = "guided_practice"
    INDEPENDENT_PRACTICE = "independent_practice"
    REVIEW_PROMPT = "review_prompt"
    QUICK_CHECK = "quick_check"
    FLUENCY = "fluency"


# =============================================================================
# Catalog
# =============================================================================


@dataclass(frozen=True)
class PrerequisiteEdge:
    """Skill that must be mastered before the owning skill unlocks."""

    skill_id: str
    gate: GateType = GateType.AND


@dataclass(frozen=True)
class EncompassingEdge:
    """Broader ancestor skill that receives partial credit when the owner is practiced."""

    skill_id: str
    weight: float  # 0-1 credit multiplier


@dataclass(frozen=True)
class Skill:
    """An atomic learning objective."""

    id: str
    title: str
    domain: Domain
    strand: str
    grade_band: str  # PreK, K, 1, 2
    expected_time_seconds: int
    prerequisites: tuple[PrerequisiteEdge, ...] = ()
    encompassing: tuple[EncompassingEdge, ...] = ()
    stage_code: str | None = None
    description: str = ""


@dataclass(frozen=True)
class TaskTemplate:
    """Per-skill pedagogical template consumed read-only by the planner."""

    id: str
    skill_id: str
    intent: TaskIntent
    title: str
    xp_award: int
    estimated_minutes: int
    modalities: tuple[str, ...] = ("tap",)
    sensory_tags: tuple[str, ...] = ()
    metadata: dict[str, Any] = field(default_factory=dict, hash=False, compare=False)


@dataclass(frozen=True)
class DiagnosticProbe:
    """Short placement item used by diagnostic tasks and sessions."""

    id: str
    skill_id: str
    difficulty: float  # 0 (easy) - 1 (hard)
    expected_latency_ms: int
    stem: str = ""
    tags: tuple[str, ...] = ()


# =============================================================================
# Student State
# =============================================================================


@dataclass
class StudentSkillState:
    """Memory state for one (student, skill) pair."""

    student_id: str
    skill_id: str
    stability: float  # Half-life proxy, >= 0.25 after any update
    strength: float  # 0-1 mastery estimate
    rep_num: int
    due_at: datetime
    last_seen_at: datetime | None = None
    avg_latency_ms: int | None = None
    speed_factor: float | None = None  # observed / expected latency
    struggling_flag: bool = False
    overdue_days: int = 0
    easiness: float = 2.5  # Coarse 1-5 scale
    task_template_tallies: dict[str, int] = field(default_factory=dict)
    retention_probability_365: float | None = None

    def clone(self) -> StudentSkillState:
        """Independent copy (tallies included) for store isolation."""
        return copy.deepcopy(self)

    def is_due(self, now: datetime) -> bool:
        return self.due_at <= now


@dataclass
class StudentSettings:
    daily_xp_goal: int = 80
    sound_enabled: bool = True
    music_enabled: bool = True


@dataclass
class StudentProfile:
    """Learner profile; the engine only reads settings and segment fields."""

    id: str
    name: str = "Pathfinder"
    grade: str | None = "K"
    gender: str | None = None
    settings: StudentSettings = field(default_factory=StudentSettings)


@dataclass
class DailyXp:
    date: str  # YYYY-MM-DD
    xp: int


@dataclass
class StudentStats:
    """Engagement counters updated after every evidence batch."""

    student_id: str
    total_xp: int = 0
    total_minutes: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    last_active_at: datetime | None = None
    daily_xp: list[DailyXp] = field(default_factory=list)

    def clone(self) -> StudentStats:
        return copy.deepcopy(self)


# =============================================================================
# Planner Output
# =============================================================================


@dataclass
class Task:
    """A planned learning task. Recomputed on every planning call, never persisted."""

    id: str
    type: TaskType
    skill_ids: list[str]  # primary first, then encompassed ancestors
    task_template_ids: list[str]
    estimated_minutes: int
    xp_value: int
    modalities: list[str]
    reason: TaskReason
    priority: int  # 1-5
    scheduled_at: datetime
    due_at: datetime | None = None
    tags: list[str] = field(default_factory=list)
    xp_bonus: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def primary_skill_id(self) -> str:
        return self.skill_ids[0]


@dataclass
class PlanStats:
    due_skills: int
    overdue_skills: int
    struggling_skills: int
    speed_drill_opportunities: int
    compression_ratio: float | None  # None when the plan is empty
    planned_minutes: int


@dataclass
class MotivationProjection:
    xp_target: int
    projected_xp: int
    time_back_minutes: int


@dataclass
class PlanResult:
    tasks: list[Task]
    stats: PlanStats
    motivation: MotivationProjection
    student_states: list[StudentSkillState] = field(default_factory=list)


# =============================================================================
# Evidence
# =============================================================================


@dataclass
class EvidenceEvent:
    """One learner interaction with a skill."""

    skill_id: str
    result: EvidenceResult
    latency_ms: int
    hints_used: int = 0
    timestamp: datetime | None = None
    task_template_id: str | None = None
    item_id: str | None = None


@dataclass
class Achievement:
    type: str
    title: str
    description: str


@dataclass
class EvidenceOutcome:
    updated_states: list[StudentSkillState]
    xp_earned: int
    achievements: list[Achievement] = field(default_factory=list)
