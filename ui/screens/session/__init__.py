"""Screens used during an active workout session."""

from .active_strength_screen import ActiveStrengthWorkoutScreen

__all__ = [
    "ActiveStrengthWorkoutScreen",
]
