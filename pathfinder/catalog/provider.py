"""
Skill Catalog Providers.

The engine reads the catalog through an async provider so the source can be
swapped (seed data, database, remote CMS) without touching planning code.
Freshness is the provider's concern: CachedCatalogProvider wraps any provider
with a time-to-live cache.
"""
from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from typing import Protocol

from loguru import logger

from pathfinder.catalog.seed import SEED_DIAGNOSTIC_PROBES, SEED_SKILLS
from pathfinder.catalog.templates import build_task_templates
from pathfinder.engine.models import DiagnosticProbe, Skill, TaskTemplate

DEFAULT_CACHE_TTL_SECONDS = 300.0


class CatalogProvider(Protocol):
    """Interface for skill catalog sources."""

    async def get_all_skills(self) -> list[Skill]:
        """All skills in catalog order."""
        ...

    async def get_task_templates_by_skill(self, skill_id: str) -> list[TaskTemplate]:
        ...

    async def get_diagnostic_probes_by_skill(self, skill_id: str) -> list[DiagnosticProbe]:
        ...


class SeedCatalogProvider:
    """
    Catalog backed by in-process data.

    Defaults to the built-in curriculum; tests pass their own skills,
    templates and probes.
    """

    def __init__(
        self,
        skills: Sequence[Skill] | None = None,
        templates: dict[str, list[TaskTemplate]] | None = None,
        probes: Sequence[DiagnosticProbe] | None = None,
    ):
        self._skills = list(SEED_SKILLS if skills is None else skills)
        self._templates = (
            build_task_templates(self._skills) if templates is None else dict(templates)
        )
        probe_list = SEED_DIAGNOSTIC_PROBES if probes is None else probes
        self._probes: dict[str, list[DiagnosticProbe]] = {}
        for probe in probe_list:
            self._probes.setdefault(probe.skill_id, []).append(probe)

    async def get_all_skills(self) -> list[Skill]:
        return list(self._skills)

    async def get_task_templates_by_skill(self, skill_id: str) -> list[TaskTemplate]:
        return list(self._templates.get(skill_id, []))

    async def get_diagnostic_probes_by_skill(self, skill_id: str) -> list[DiagnosticProbe]:
        return list(self._probes.get(skill_id, []))

    async def get_all_probes(self) -> list[DiagnosticProbe]:
        """Every probe, grouped by skill in insertion order."""
        return [probe for probes in self._probes.values() for probe in probes]


class CachedCatalogProvider:
    """
    Time-to-live cache over another provider.

    The skill list is returned as the same list object while the entry is
    fresh, which lets callers key derived structures (such as the skill
    graph) on its identity.
    """

    def __init__(
        self,
        inner: CatalogProvider,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._inner = inner
        self._ttl = ttl_seconds
        self._clock = clock
        self._skills: list[Skill] | None = None
        self._skills_loaded_at = 0.0
        self._templates: dict[str, tuple[float, list[TaskTemplate]]] = {}
        self._probes: dict[str, tuple[float, list[DiagnosticProbe]]] = {}

    def _fresh(self, loaded_at: float) -> bool:
        return self._ttl > 0 and self._clock() - loaded_at < self._ttl

    def invalidate(self) -> None:
        """Drop every cached entry; the next read reloads from the inner provider."""
        self._skills = None
        self._templates.clear()
        self._probes.clear()
        logger.debug("Catalog cache invalidated")

    async def get_all_skills(self) -> list[Skill]:
        if self._skills is not None and self._fresh(self._skills_loaded_at):
            return self._skills

        self._skills = await self._inner.get_all_skills()
        self._skills_loaded_at = self._clock()
        logger.debug(f"Catalog reloaded: {len(self._skills)} skills")
        return self._skills

    async def get_task_templates_by_skill(self, skill_id: str) -> list[TaskTemplate]:
        cached = self._templates.get(skill_id)
        if cached is not None and self._fresh(cached[0]):
            return list(cached[1])

        templates = await self._inner.get_task_templates_by_skill(skill_id)
        self._templates[skill_id] = (self._clock(), list(templates))
        return list(templates)

    async def get_diagnostic_probes_by_skill(self, skill_id: str) -> list[DiagnosticProbe]:
        cached = self._probes.get(skill_id)
        if cached is not None and self._fresh(cached[0]):
            return list(cached[1])

        probes = await self._inner.get_diagnostic_probes_by_skill(skill_id)
        self._probes[skill_id] = (self._clock(), list(probes))
        return list(probes)
