"""
Planning error taxonomy.

Only budget exhaustion, invalid input, missing IK solutions and caller
cancellation ever reach the caller; per-edge constraint failures are
ordinary rejected extensions and are never raised.
"""

from enum import Enum


class PlanningResult(Enum):
    """Planning result status codes."""
    SUCCESS = "success"
    TIMEOUT = "timeout"
    ITERATION_LIMIT = "iteration_limit"
    NO_IK_SOLUTION = "no_ik_solution"
    CANCELLED = "cancelled"
    INVALID_INPUT = "invalid_input"


class PlanningError(Exception):
    """Base class for every error raised by the planner."""
    result = None


class InvalidInputError(PlanningError, ValueError):
    """Malformed start configuration, options or kinematic model."""
    result = PlanningResult.INVALID_INPUT


class NoIKSolutionError(PlanningError):
    """Inverse kinematics produced no admissible goal configuration."""
    result = PlanningResult.NO_IK_SOLUTION


class SearchBudgetExceededError(PlanningError):
    """The search ran out of budget before the trees connected."""

    def __init__(self, message: str, iterations: int = 0, elapsed: float = 0.0):
        super().__init__(message)
        self.iterations = iterations
        self.elapsed = elapsed


class IterationExceededError(SearchBudgetExceededError):
    result = PlanningResult.ITERATION_LIMIT


class PlanningTimeoutError(SearchBudgetExceededError):
    result = PlanningResult.TIMEOUT


class PlanningCancelledError(PlanningError):
    """The caller's cancellation event was set while planning."""
    result = PlanningResult.CANCELLED
