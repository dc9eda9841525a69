"""
Pathfinder: adaptive task planning for early learners.

Components:
- LearningEngine: compute_plan / apply_evidence entry point
- Planner: due reviews, frontier lessons, speed drills, diagnostics
- EvidenceProcessor: memory updates with partial credit up the skill graph
- State stores: in-memory and SQL backends
"""
from pathfinder.engine.learning_engine import LearningEngine
from pathfinder.exceptions import DiagnosticSessionError, PathfinderError

__version__ = "1.0.0"

__all__ = [
    "LearningEngine",
    "PathfinderError",
    "DiagnosticSessionError",
]
