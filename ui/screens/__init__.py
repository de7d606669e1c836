"""UI screen modules for Liftr."""

from .session import ActiveStrengthWorkoutScreen

__all__ = [
    "ActiveStrengthWorkoutScreen",
]
