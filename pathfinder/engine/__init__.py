"""
Planning Engine.

Components:
- memory: skill memory update rule
- planner: daily task plan
- evidence: evidence batch ingestion
- diagnostic: placement sessions
- summary, report: read-only mastery rollup and weekly digest
- learning_engine: facade over all of the above
"""
from pathfinder.engine.models import (
    Achievement,
    DiagnosticProbe,
    Domain,
    EncompassingEdge,
    EvidenceEvent,
    EvidenceOutcome,
    EvidenceResult,
    GateType,
    MotivationProjection,
    PlanResult,
    PlanStats,
    PrerequisiteEdge,
    Skill,
    StudentProfile,
    StudentSkillState,
    StudentStats,
    Task,
    TaskIntent,
    TaskReason,
    TaskTemplate,
    TaskType,
)

__all__ = [
    "Achievement",
    "DiagnosticProbe",
    "Domain",
    "EncompassingEdge",
    "EvidenceEvent",
    "EvidenceOutcome",
    "EvidenceResult",
    "GateType",
    "MotivationProjection",
    "PlanResult",
    "PlanStats",
    "PrerequisiteEdge",
    "Skill",
    "StudentProfile",
    "StudentSkillState",
    "StudentStats",
    "Task",
    "TaskIntent",
    "TaskReason",
    "TaskTemplate",
    "TaskType",
]
