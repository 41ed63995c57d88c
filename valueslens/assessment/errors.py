"""Typed failures raised by assessment mutations.

A mutation that raises leaves the session state untouched.
"""

from valueslens.schemas.assessment import AssessmentPhase


class AssessmentError(Exception):
    """Base class for rejected assessment mutations."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class AssessmentValidationError(AssessmentError):
    """Input to a mutation broke a named constraint."""

    def __init__(self, constraint: str, message: str) -> None:
        self.constraint = constraint
        super().__init__(message)


class PreconditionError(AssessmentError):
    """A phase was entered before its gate was satisfied.

    ``required_phase`` is where the user should be routed instead.
    """

    def __init__(self, required_phase: AssessmentPhase, message: str) -> None:
        self.required_phase = required_phase
        super().__init__(message)
