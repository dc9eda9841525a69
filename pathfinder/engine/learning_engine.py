"""
Learning Engine.

Single entry point for callers (CLI, HTTP layer, jobs). Wires one catalog,
one set of stores and a shared skill-graph cache into the planner,
evidence processor and diagnostic session manager, and serves the
read-only mastery summary and weekly report.
"""
from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone

from loguru import logger

from config import Settings, get_settings
from pathfinder.catalog.graph import SkillGraphCache
from pathfinder.catalog.provider import CachedCatalogProvider, CatalogProvider, SeedCatalogProvider
from pathfinder.engine.diagnostic import DiagnosticSessionManager
from pathfinder.engine.evidence import EvidenceProcessor
from pathfinder.engine.metrics import SkillMetricsRecorder
from pathfinder.engine.models import EvidenceEvent, EvidenceOutcome, PlanResult, StudentSkillState
from pathfinder.engine.planner import PlanOptions, Planner
from pathfinder.engine.report import WeeklyReport, build_weekly_report
from pathfinder.engine.summary import MasterySummary, summarize_mastery
from pathfinder.store.base import ProfileStore, StateStore
from pathfinder.store.factory import Stores, create_stores
from pathfinder.store.memory_store import InMemoryProfileStore


class LearningEngine:
    """
    Adaptive planning engine.

    Example:
        engine = LearningEngine.from_settings()
        await engine.start()
        plan = await engine.compute_plan("student-1", max=3)
    """

    def __init__(
        self,
        catalog: CatalogProvider,
        state_store: StateStore,
        profile_store: ProfileStore | None = None,
        stores: Stores | None = None,
    ):
        self.catalog = catalog
        self.state_store = state_store
        self.profile_store = profile_store or InMemoryProfileStore()
        self.metrics = SkillMetricsRecorder()
        self._stores = stores

        graph_cache = SkillGraphCache()
        self.planner = Planner(catalog, state_store, self.profile_store, graph_cache)
        self.evidence = EvidenceProcessor(
            catalog, state_store, self.profile_store, self.metrics, graph_cache
        )
        self.diagnostics = DiagnosticSessionManager(catalog)

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        catalog: CatalogProvider | None = None,
    ) -> LearningEngine:
        """Build an engine from configuration with the seed catalog behind a TTL cache."""
        settings = settings or get_settings()
        stores = create_stores(settings)
        catalog = catalog or CachedCatalogProvider(
            SeedCatalogProvider(), ttl_seconds=settings.catalog_cache_ttl_seconds
        )
        return cls(catalog, stores.state_store, stores.profile_store, stores=stores)

    async def start(self) -> None:
        """Prepare backing storage (creates SQL tables when configured)."""
        if self._stores is not None:
            await self._stores.init()

    async def close(self) -> None:
        if self._stores is not None:
            await self._stores.close()

    async def compute_plan(
        self,
        student_id: str,
        max: int = 5,
        include_speed_drills: bool = True,
        include_diagnostic: bool = False,
        now: datetime | None = None,
    ) -> PlanResult:
        """Plan the next sitting; see Planner.compute_plan."""
        options = PlanOptions(
            max_tasks=max,
            include_speed_drills=include_speed_drills,
            include_diagnostic=include_diagnostic,
        )
        return await self.planner.compute_plan(student_id, options, now=now)

    async def apply_evidence(
        self,
        student_id: str,
        events: Sequence[EvidenceEvent],
        now: datetime | None = None,
    ) -> EvidenceOutcome:
        """Apply an evidence batch; see EvidenceProcessor.apply_evidence."""
        return await self.evidence.apply_evidence(student_id, events, now=now)

    async def load_states(
        self, student_id: str, now: datetime | None = None
    ) -> list[StudentSkillState]:
        skills = await self.catalog.get_all_skills()
        return await self.state_store.load_states(student_id, skills, now=now)

    async def summarize(self, student_id: str, now: datetime | None = None) -> MasterySummary:
        now = now or datetime.now(timezone.utc)
        skills = await self.catalog.get_all_skills()
        states = await self.state_store.load_states(student_id, skills, now=now)
        summary = summarize_mastery(skills, states, now)
        logger.debug(f"Summarized {len(states)} states for {student_id}")
        return summary

    async def weekly_report(self, student_id: str, now: datetime | None = None) -> WeeklyReport:
        """Weekly digest of XP, minutes, streak, highlights and reteach actions."""
        now = now or datetime.now(timezone.utc)
        skills = await self.catalog.get_all_skills()
        states = await self.state_store.load_states(student_id, skills, now=now)
        stats = await self.profile_store.load_stats(student_id)
        report = build_weekly_report(student_id, stats, states, now)
        logger.debug(f"Weekly report for {student_id}: week of {report.week_of}, {report.xp_total} XP")
        return report
