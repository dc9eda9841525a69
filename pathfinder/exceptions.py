"""Pathfinder exception types."""


class PathfinderError(Exception):
    """Base class for engine errors."""
    pass


class DiagnosticSessionError(PathfinderError):
    """Raised when a diagnostic session or probe cannot be found."""
    pass
