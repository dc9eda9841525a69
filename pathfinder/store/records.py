"""
Persistence Models.

SQLAlchemy models for the durable store:
- Per-student skill memory state
- Learner profile (daily XP goal, segment fields)
- Engagement stats (totals, streak, daily XP series)
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Float, Index, Integer, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from pathfinder.engine.models import (
    DailyXp,
    StudentProfile,
    StudentSettings,
    StudentSkillState,
    StudentStats,
    as_utc,
)


class Base(DeclarativeBase):
    pass


class SkillStateRecord(Base):
    """Memory state for one (student, skill) pair. Never deleted."""

    __tablename__ = "student_skill_state"

    student_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    skill_id: Mapped[str] = mapped_column(String(64), primary_key=True)

    # Memory model (0-1 strength, >= 0.25 stability after any update)
    stability: Mapped[float] = mapped_column(Float, nullable=False)
    strength: Mapped[float] = mapped_column(Float, nullable=False)
    rep_num: Mapped[int] = mapped_column(Integer, default=0)
    easiness: Mapped[float] = mapped_column(Float, default=2.5)
    retention_probability_365: Mapped[float | None] = mapped_column(Float)

    # Scheduling
    due_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    last_seen_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    overdue_days: Mapped[int] = mapped_column(Integer, default=0)

    # Speed tracking
    avg_latency_ms: Mapped[int | None] = mapped_column(Integer)
    speed_factor: Mapped[float | None] = mapped_column(Float)

    struggling_flag: Mapped[bool] = mapped_column(Boolean, default=False)
    task_template_tallies: Mapped[dict] = mapped_column(JSON, default=dict)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=func.now(), onupdate=func.now()
    )

    __table_args__ = (Index("idx_skill_state_due", "student_id", "due_at"),)

    def __repr__(self) -> str:
        return f"<SkillStateRecord student={self.student_id} skill={self.skill_id} strength={self.strength}>"

    @classmethod
    def from_state(cls, state: StudentSkillState) -> SkillStateRecord:
        return cls(
            student_id=state.student_id,
            skill_id=state.skill_id,
            stability=state.stability,
            strength=state.strength,
            rep_num=state.rep_num,
            easiness=state.easiness,
            retention_probability_365=state.retention_probability_365,
            due_at=as_utc(state.due_at),
            last_seen_at=as_utc(state.last_seen_at) if state.last_seen_at else None,
            overdue_days=state.overdue_days,
            avg_latency_ms=state.avg_latency_ms,
            speed_factor=state.speed_factor,
            struggling_flag=state.struggling_flag,
            task_template_tallies=dict(state.task_template_tallies),
        )

    def to_state(self) -> StudentSkillState:
        return StudentSkillState(
            student_id=self.student_id,
            skill_id=self.skill_id,
            stability=self.stability,
            strength=self.strength,
            rep_num=self.rep_num,
            due_at=as_utc(self.due_at),
            last_seen_at=as_utc(self.last_seen_at) if self.last_seen_at else None,
            avg_latency_ms=self.avg_latency_ms,
            speed_factor=self.speed_factor,
            struggling_flag=self.struggling_flag,
            overdue_days=self.overdue_days,
            easiness=self.easiness,
            task_template_tallies=dict(self.task_template_tallies or {}),
            retention_probability_365=self.retention_probability_365,
        )


class StudentProfileRecord(Base):
    __tablename__ = "student_profile"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(120), default="Pathfinder")
    grade: Mapped[str | None] = mapped_column(String(8))
    gender: Mapped[str | None] = mapped_column(String(32))
    daily_xp_goal: Mapped[int] = mapped_column(Integer, default=80)
    sound_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    music_enabled: Mapped[bool] = mapped_column(Boolean, default=True)

    def to_profile(self) -> StudentProfile:
        return StudentProfile(
            id=self.id,
            name=self.name,
            grade=self.grade,
            gender=self.gender,
            settings=StudentSettings(
                daily_xp_goal=self.daily_xp_goal,
                sound_enabled=self.sound_enabled,
                music_enabled=self.music_enabled,
            ),
        )


class StudentStatsRecord(Base):
    __tablename__ = "student_stats"

    student_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    total_xp: Mapped[int] = mapped_column(Integer, default=0)
    total_minutes: Mapped[int] = mapped_column(Integer, default=0)
    current_streak: Mapped[int] = mapped_column(Integer, default=0)
    longest_streak: Mapped[int] = mapped_column(Integer, default=0)
    last_active_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    daily_xp: Mapped[list] = mapped_column(JSON, default=list)  # [{"date": ..., "xp": ...}]

    @classmethod
    def from_stats(cls, stats: StudentStats) -> StudentStatsRecord:
        return cls(
            student_id=stats.student_id,
            total_xp=stats.total_xp,
            total_minutes=stats.total_minutes,
            current_streak=stats.current_streak,
            longest_streak=stats.longest_streak,
            last_active_at=as_utc(stats.last_active_at) if stats.last_active_at else None,
            daily_xp=[{"date": entry.date, "xp": entry.xp} for entry in stats.daily_xp],
        )

    def to_stats(self) -> StudentStats:
        return StudentStats(
            student_id=self.student_id,
            total_xp=self.total_xp,
            total_minutes=self.total_minutes,
            current_streak=self.current_streak,
            longest_streak=self.longest_streak,
            last_active_at=as_utc(self.last_active_at) if self.last_active_at else None,
            daily_xp=[DailyXp(date=e["date"], xp=e["xp"]) for e in (self.daily_xp or [])],
        )
