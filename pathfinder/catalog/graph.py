"""
Skill Graph.

Adjacency maps over the skill DAG, built once per catalog load.
Only one-hop lookups are needed by the engine:
- prerequisite gating (AND / OR)
- encompassing ancestors for partial credit and task targets
- reverse prerequisite lookup (which skills a skill unlocks)

Edges may point at skills outside the loaded catalog; those are tolerated
and treated as absent.
"""
from __future__ import annotations

from collections import defaultdict
from collections.abc import Mapping, Sequence

from pathfinder.engine.models import GateType, Skill, StudentSkillState

PREREQUISITE_STRENGTH_THRESHOLD = 0.6


class SkillGraph:
    """Read-only view of the skill catalog keyed by skill id."""

    def __init__(self, skills: Sequence[Skill]):
        self._skills: list[Skill] = list(skills)
        self._by_id: dict[str, Skill] = {skill.id: skill for skill in self._skills}
        self._dependents: dict[str, list[str]] = defaultdict(list)
        for skill in self._skills:
            for prereq in skill.prerequisites:
                self._dependents[prereq.skill_id].append(skill.id)

    def __len__(self) -> int:
        return len(self._skills)

    def __contains__(self, skill_id: object) -> bool:
        return skill_id in self._by_id

    @property
    def skills(self) -> list[Skill]:
        """Skills in catalog order."""
        return list(self._skills)

    def get(self, skill_id: str) -> Skill | None:
        return self._by_id.get(skill_id)

    def encompassed_ids(self, skill: Skill) -> list[str]:
        """Ancestor skill ids credited by practicing `skill`, restricted to the catalog."""
        return [edge.skill_id for edge in skill.encompassing if edge.skill_id in self._by_id]

    def dependents_of(self, skill_id: str) -> list[str]:
        """Skills that list `skill_id` as a prerequisite."""
        return list(self._dependents.get(skill_id, []))

    def prerequisites_met(
        self,
        skill: Skill,
        state_map: Mapping[str, StudentSkillState],
    ) -> bool:
        """
        Check prerequisite gating for a skill.

        All AND prerequisites must be mastered and, when OR prerequisites
        exist, at least one of them. A prerequisite without a state (never
        seen, or missing from the catalog) counts as not mastered.
        """
        if not skill.prerequisites:
            return True

        and_prereqs = [p for p in skill.prerequisites if p.gate == GateType.AND]
        or_prereqs = [p for p in skill.prerequisites if p.gate == GateType.OR]

        meets_and = all(
            is_prerequisite_mastered(state_map.get(p.skill_id)) for p in and_prereqs
        )
        meets_or = not or_prereqs or any(
            is_prerequisite_mastered(state_map.get(p.skill_id)) for p in or_prereqs
        )
        return meets_and and meets_or


def is_prerequisite_mastered(state: StudentSkillState | None) -> bool:
    if state is None:
        return False
    return state.strength >= PREREQUISITE_STRENGTH_THRESHOLD


class SkillGraphCache:
    """Reuses one SkillGraph while the catalog returns the same skill list object."""

    def __init__(self):
        self._graph: SkillGraph | None = None
        self._source: Sequence[Skill] | None = None

    def for_skills(self, skills: Sequence[Skill]) -> SkillGraph:
        if self._graph is None or skills is not self._source:
            self._graph = SkillGraph(skills)
            self._source = skills
        return self._graph
