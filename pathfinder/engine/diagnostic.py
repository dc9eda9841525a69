"""
Diagnostic Placement Sessions.

Short adaptive placement check run before regular planning:
- Probes are served easiest first
- Each answer nudges a provisional mastery estimate for the probe's skill
- Missed or skipped probes come back later as an easier retry
- The session completes when the queue is empty

Provisional mastery is session-local; it never touches stored skill states.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum

from loguru import logger

from pathfinder.catalog.provider import CatalogProvider
from pathfinder.engine.memory import clamp01
from pathfinder.engine.models import DiagnosticProbe, EvidenceResult
from pathfinder.exceptions import DiagnosticSessionError

PROVISIONAL_START = 0.5
RETRY_DIFFICULTY_FACTOR = 0.8
RETRY_MIN_DIFFICULTY = 0.1

ADVANCE_THRESHOLD = 0.75
REVIEW_THRESHOLD = 0.5

STRENGTH_DELTAS = {
    EvidenceResult.CORRECT: 0.18,
    EvidenceResult.PARTIAL: 0.08,
    EvidenceResult.SKIPPED: -0.05,
    EvidenceResult.INCORRECT: -0.12,
}


class SessionStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Recommendation(str, Enum):
    ADVANCE = "advance"
    REVIEW = "review"
    RETEACH = "reteach"

    @classmethod
    def from_strength(cls, strength: float) -> Recommendation:
        if strength >= ADVANCE_THRESHOLD:
            return cls.ADVANCE
        if strength >= REVIEW_THRESHOLD:
            return cls.REVIEW
        return cls.RETEACH


@dataclass
class ProvisionalMastery:
    strength: float = PROVISIONAL_START
    stability: float = PROVISIONAL_START


@dataclass
class SkillPlacement:
    skill_id: str
    strength: float
    stability: float
    recommendation: Recommendation


@dataclass
class SessionSummary:
    student_id: str
    status: SessionStatus
    active_skill_ids: list[str]
    placements: list[SkillPlacement]
    completed_at: datetime | None = None


@dataclass
class DiagnosticSession:
    student_id: str
    queue: list[DiagnosticProbe]
    mastery: dict[str, ProvisionalMastery] = field(default_factory=dict)
    status: SessionStatus = SessionStatus.IN_PROGRESS
    completed_at: datetime | None = None
    retries: int = 0

    def summary(self) -> SessionSummary:
        return SessionSummary(
            student_id=self.student_id,
            status=self.status,
            active_skill_ids=list(dict.fromkeys(probe.skill_id for probe in self.queue)),
            placements=[
                SkillPlacement(
                    skill_id=skill_id,
                    strength=round(entry.strength, 2),
                    stability=round(entry.stability, 2),
                    recommendation=Recommendation.from_strength(entry.strength),
                )
                for skill_id, entry in self.mastery.items()
            ],
            completed_at=self.completed_at,
        )


@dataclass
class ProbeStep:
    """Probe to present next (None once complete) with the session summary."""

    probe: DiagnosticProbe | None
    session: SessionSummary

    @property
    def completed(self) -> bool:
        return self.session.status == SessionStatus.COMPLETED


class DiagnosticSessionManager:
    """One active diagnostic session per student, held in process memory."""

    def __init__(self, catalog: CatalogProvider):
        self.catalog = catalog
        self._sessions: dict[str, DiagnosticSession] = {}

    async def next_probe(
        self,
        student_id: str,
        skill_id: str | None = None,
        now: datetime | None = None,
    ) -> ProbeStep:
        """
        Start or resume a session and return its next probe.

        A completed session is replaced by a fresh one.

        Args:
            student_id: Learner identifier
            skill_id: Restrict a new session to one skill's probes
            now: Completion time recorded when the new queue is empty
        """
        session = self._sessions.get(student_id)
        if session is None or session.status == SessionStatus.COMPLETED:
            queue = await self._initial_queue(skill_id)
            session = DiagnosticSession(student_id=student_id, queue=queue)
            if not queue:
                session.status = SessionStatus.COMPLETED
                session.completed_at = now or datetime.now(timezone.utc)
            self._sessions[student_id] = session
            logger.debug(f"Diagnostic session started for {student_id} with {len(queue)} probes")

        return ProbeStep(probe=session.queue[0] if session.queue else None, session=session.summary())

    async def submit_answer(
        self,
        student_id: str,
        probe_id: str,
        result: EvidenceResult,
        now: datetime | None = None,
    ) -> ProbeStep:
        """
        Record an answer to a queued probe.

        Raises:
            DiagnosticSessionError: No session for the student, or the probe
                is not in the session's queue
        """
        session = self._sessions.get(student_id)
        if session is None:
            raise DiagnosticSessionError(f"Diagnostic session not found for {student_id}")

        index = next((i for i, p in enumerate(session.queue) if p.id == probe_id), None)
        if index is None:
            raise DiagnosticSessionError(f"Probe {probe_id} is not part of the active session")

        probe = session.queue.pop(index)
        result = EvidenceResult(result)
        self._update_mastery(session, probe.skill_id, result)

        if result in (EvidenceResult.INCORRECT, EvidenceResult.SKIPPED):
            session.retries += 1
            session.queue.append(make_retry_probe(probe, session.retries))

        if not session.queue:
            session.status = SessionStatus.COMPLETED
            session.completed_at = now or datetime.now(timezone.utc)
            logger.info(f"Diagnostic session completed for {student_id}")

        return ProbeStep(probe=session.queue[0] if session.queue else None, session=session.summary())

    def get_summary(self, student_id: str) -> SessionSummary:
        session = self._sessions.get(student_id)
        if session is None:
            raise DiagnosticSessionError(f"Diagnostic session not found for {student_id}")
        return session.summary()

    async def _initial_queue(self, skill_id: str | None) -> list[DiagnosticProbe]:
        if skill_id is not None:
            probes = await self.catalog.get_diagnostic_probes_by_skill(skill_id)
        else:
            probes = []
            for skill in await self.catalog.get_all_skills():
                probes.extend(await self.catalog.get_diagnostic_probes_by_skill(skill.id))
        return sorted(probes, key=lambda probe: probe.difficulty)

    @staticmethod
    def _update_mastery(session: DiagnosticSession, skill_id: str, result: EvidenceResult) -> None:
        entry = session.mastery.setdefault(skill_id, ProvisionalMastery())
        delta = STRENGTH_DELTAS[result]
        entry.strength = clamp01(entry.strength + delta)
        entry.stability = clamp01(entry.stability + (0.1 if delta >= 0 else -0.08))


def make_retry_probe(probe: DiagnosticProbe, attempt: int) -> DiagnosticProbe:
    """Easier copy of a probe under a fresh id."""
    return replace(
        probe,
        id=str(uuid.uuid5(uuid.NAMESPACE_URL, f"retry:{probe.id}:{attempt}")),
        difficulty=max(RETRY_MIN_DIFFICULTY, probe.difficulty * RETRY_DIFFICULTY_FACTOR),
    )
