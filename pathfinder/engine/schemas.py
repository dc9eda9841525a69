"""
Boundary Validation Schemas.

Pydantic models that range-check raw plan and evidence input before it
reaches the engine. The memory model itself never validates.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from pathfinder.engine.models import EvidenceEvent, EvidenceResult, as_utc
from pathfinder.engine.planner import PlanOptions


class PlanRequest(BaseModel):
    """Request model for computing a plan."""

    student_id: str = Field(..., min_length=1, description="Learner identifier")
    max: int = Field(5, ge=1, le=10, description="Maximum number of tasks")
    include_speed_drills: bool = Field(True, description="Allow one speed drill for a slow mastered skill")
    include_diagnostic: bool = Field(False, description="Add a diagnostic slot on the math frontier")

    def to_options(self) -> PlanOptions:
        return PlanOptions(
            max_tasks=self.max,
            include_speed_drills=self.include_speed_drills,
            include_diagnostic=self.include_diagnostic,
        )


class EvidenceEventIn(BaseModel):
    """One learner interaction as submitted by a client."""

    skill_id: str = Field(..., min_length=1, description="Skill practiced")
    result: EvidenceResult = Field(..., description="correct, partial, incorrect or skipped")
    latency_ms: int = Field(..., ge=0, description="Response time in milliseconds")
    hints_used: int = Field(0, ge=0, description="Hints consumed before answering")
    timestamp: datetime | None = Field(None, description="When the interaction happened")
    task_template_id: str | None = Field(None, description="Template that produced the item")
    item_id: str | None = Field(None, description="Content item identifier")

    @field_validator("timestamp")
    @classmethod
    def _timestamp_utc(cls, value: datetime | None) -> datetime | None:
        # Offset-less timestamps are read as UTC
        return as_utc(value) if value is not None else None

    def to_event(self) -> EvidenceEvent:
        return EvidenceEvent(
            skill_id=self.skill_id,
            result=self.result,
            latency_ms=self.latency_ms,
            hints_used=self.hints_used,
            timestamp=self.timestamp,
            task_template_id=self.task_template_id,
            item_id=self.item_id,
        )


class EvidenceBatch(BaseModel):
    """Request model for submitting evidence."""

    student_id: str = Field(..., min_length=1, description="Learner identifier")
    events: list[EvidenceEventIn] = Field(default_factory=list, description="Interactions in order")

    def to_events(self) -> list[EvidenceEvent]:
        return [event.to_event() for event in self.events]
