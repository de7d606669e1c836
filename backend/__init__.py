"""Shared constants and defaults for backend modules."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

# Values used for a synthesized set when an exercise has nothing planned
DEFAULT_REPS = 10
DEFAULT_WEIGHT_KG = Decimal("0")
DEFAULT_REST_SEC = 60

# Horizontal drag distance in pixels that switches exercises
DEFAULT_SWIPE_THRESHOLD = 80

# Upper bound on sets per exercise accepted from the planner
MAX_SETS_PER_EXERCISE = 99

# Path to the bundled SQLite database shipped with the application
DEFAULT_DB_PATH = (
    Path(__file__).resolve().parent.parent / "data" / "workout.db"
)

# Schema applied by :func:`backend.plans.create_database`
SCHEMA_PATH = Path(__file__).resolve().parent.parent / "data" / "workout_schema.sql"

__all__ = [
    "DEFAULT_REPS",
    "DEFAULT_WEIGHT_KG",
    "DEFAULT_REST_SEC",
    "DEFAULT_SWIPE_THRESHOLD",
    "MAX_SETS_PER_EXERCISE",
    "DEFAULT_DB_PATH",
    "SCHEMA_PATH",
]
