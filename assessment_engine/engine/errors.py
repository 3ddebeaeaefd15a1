"""Exceptions raised by the assessment engine."""


class AssessmentEngineError(Exception):
    """Base exception for assessment engine errors."""
    pass


class AssessmentLoadError(AssessmentEngineError):
    """Assessment definition could not be found or read."""
    pass


class RoutingError(AssessmentEngineError):
    """Answer routing failed strict validation."""
    pass
