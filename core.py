"""Shared constants and the backend entry points used by the app."""

from __future__ import annotations

from pathlib import Path

from backend import (
    DEFAULT_DB_PATH,
    DEFAULT_REPS,
    DEFAULT_REST_SEC,
    DEFAULT_SWIPE_THRESHOLD,
    DEFAULT_WEIGHT_KG,
)
from backend.plans import create_database, fetch_plan, list_workouts, replace_sets
from backend.set_progression import SetProgressionEngine
from backend.workout_session import (
    ActiveStrengthWorkout,
    PersistenceFailure,
    PlanLoadFailure,
)


def open_database(db_path=DEFAULT_DB_PATH):
    """Return ``db_path``, creating the schema first if the file is missing."""

    db_path = Path(db_path)
    if not db_path.exists():
        create_database(db_path)
    return db_path


def latest_workout_id(db_path=DEFAULT_DB_PATH) -> int | None:
    """Return the id of the most recently created workout, if any."""

    workouts = list_workouts(db_path)
    return workouts[0]["id"] if workouts else None


__all__ = [
    "ActiveStrengthWorkout",
    "create_database",
    "DEFAULT_DB_PATH",
    "DEFAULT_REPS",
    "DEFAULT_REST_SEC",
    "DEFAULT_SWIPE_THRESHOLD",
    "DEFAULT_WEIGHT_KG",
    "PersistenceFailure",
    "PlanLoadFailure",
    "SetProgressionEngine",
    "fetch_plan",
    "list_workouts",
    "latest_workout_id",
    "open_database",
    "replace_sets",
]
