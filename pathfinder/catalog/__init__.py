"""
Skill Catalog.

- graph: one-hop adjacency over the skill DAG
- provider: async catalog sources and the TTL cache
- seed: built-in curriculum
- templates: per-skill task template ladder
"""
from pathfinder.catalog.graph import SkillGraph, SkillGraphCache
from pathfinder.catalog.provider import CachedCatalogProvider, CatalogProvider, SeedCatalogProvider

__all__ = [
    "SkillGraph",
    "SkillGraphCache",
    "CatalogProvider",
    "SeedCatalogProvider",
    "CachedCatalogProvider",
]
