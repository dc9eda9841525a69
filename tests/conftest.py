"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from pathfinder.catalog.provider import SeedCatalogProvider  # noqa: E402
from pathfinder.engine.models import (  # noqa: E402
    Domain,
    EncompassingEdge,
    GateType,
    PrerequisiteEdge,
    Skill,
    StudentSkillState,
)
from pathfinder.store.memory_store import InMemoryProfileStore, InMemoryStateStore  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (engine + stores)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


# =============================================================================
# Builders
# =============================================================================

NOW = datetime(2024, 3, 4, 15, 0, tzinfo=timezone.utc)


def make_skill(
    skill_id: str,
    domain: Domain = Domain.MATH,
    grade_band: str = "K",
    expected_time_seconds: int = 180,
    prerequisites: tuple = (),
    encompassing: tuple = (),
    title: str | None = None,
) -> Skill:
    """Build a skill; prerequisites/encompassing accept (id, gate) / (id, weight) tuples."""
    return Skill(
        id=skill_id,
        title=title or f"Skill {skill_id}",
        domain=domain,
        strand="Test Strand",
        grade_band=grade_band,
        expected_time_seconds=expected_time_seconds,
        prerequisites=tuple(
            PrerequisiteEdge(p, GateType.AND) if isinstance(p, str) else PrerequisiteEdge(p[0], p[1])
            for p in prerequisites
        ),
        encompassing=tuple(EncompassingEdge(e[0], e[1]) for e in encompassing),
    )


def make_state(
    skill_id: str,
    student_id: str = "student-1",
    strength: float = 0.7,
    stability: float = 1.0,
    due_in_hours: float = 24,
    now: datetime = NOW,
    **overrides,
) -> StudentSkillState:
    """Build a state due `due_in_hours` after `now` (negative = overdue)."""
    fields = dict(
        student_id=student_id,
        skill_id=skill_id,
        stability=stability,
        strength=strength,
        rep_num=2,
        due_at=now + timedelta(hours=due_in_hours),
        last_seen_at=now - timedelta(days=1),
        avg_latency_ms=2000,
        speed_factor=1.0,
        struggling_flag=False,
        overdue_days=0,
        easiness=2.3,
        task_template_tallies={},
        retention_probability_365=0.5,
    )
    fields.update(overrides)
    return StudentSkillState(**fields)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def now():
    """Fixed evaluation time shared by a test."""
    return NOW


@pytest.fixture
def state_store():
    """In-memory state store without bootstrap, so tests control every state."""
    return InMemoryStateStore(bootstrap_new_students=False)


@pytest.fixture
def profile_store():
    return InMemoryProfileStore(default_daily_xp_goal=80)


@pytest.fixture
def seed_catalog():
    """The built-in curriculum with generated templates and probes."""
    return SeedCatalogProvider()


@pytest.fixture
def small_catalog():
    """
    Two-domain catalog with one encompassing edge.

    m1 (PreK) -> m2 (K, encompasses m1 at 0.5) ; r1 (PreK) -> r2 (K)
    """
    skills = [
        make_skill("m1", Domain.MATH, "PreK", 150),
        make_skill("m2", Domain.MATH, "K", 240, prerequisites=("m1",), encompassing=(("m1", 0.5),)),
        make_skill("r1", Domain.READING, "PreK", 150),
        make_skill("r2", Domain.READING, "K", 200, prerequisites=("r1",)),
    ]
    return SeedCatalogProvider(skills=skills, templates={}, probes=[])
