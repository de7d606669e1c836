"""Planned workout data and the SQLite store it is loaded from.

The store exposes the two operations an active workout needs: fetching the
plan when the session starts and replacing the sets of each exercise when
the workout is finished.  Sets are stored run-length encoded in both
directions; a row's ``set_number`` column holds how many identical sets it
stands for.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Iterable

from backend import DEFAULT_DB_PATH, MAX_SETS_PER_EXERCISE, SCHEMA_PATH


@dataclass
class PlannedSetConfig:
    """A run of ``count`` identical planned sets."""

    id: int
    count: int
    reps: int | None = None
    weight_kg: Decimal | None = None
    rpe: Decimal | None = None
    rest_sec: int | None = None

    def __post_init__(self) -> None:
        if self.count < 0:
            raise ValueError("Set count cannot be negative")


@dataclass
class PlannedExercise:
    id: int
    order_index: int
    name: str | None = None
    custom_name: str | None = None
    notes: str | None = None
    set_configs: list[PlannedSetConfig] = field(default_factory=list)

    @property
    def display_name(self) -> str:
        """Return the custom name if set, otherwise the catalog name."""

        if self.custom_name:
            return self.custom_name
        return self.name or "Exercise"


@dataclass(frozen=True)
class PersistenceBlock:
    """One row written back to ``exercise_sets`` for a finished exercise."""

    count: int
    reps: int | None
    weight_kg: Decimal | None
    rpe: Decimal | None
    rest_sec: int | None


def _to_decimal(value) -> Decimal | None:
    if value is None:
        return None
    return Decimal(str(value))


def _from_decimal(value: Decimal | None) -> str | None:
    if value is None:
        return None
    return str(value)


def create_database(db_path: Path = DEFAULT_DB_PATH) -> Path:
    """Create the tables from :data:`SCHEMA_PATH` in ``db_path``."""

    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with open(SCHEMA_PATH, "r", encoding="utf-8") as fh:
        script = fh.read()
    conn = sqlite3.connect(str(db_path))
    try:
        conn.executescript(script)
        conn.commit()
    finally:
        conn.close()
    return db_path


def list_workouts(db_path: Path = DEFAULT_DB_PATH) -> list[dict]:
    """Return ``{"id", "title"}`` for every workout, newest first."""

    with sqlite3.connect(str(db_path)) as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT id, title FROM workouts ORDER BY id DESC")
        return [{"id": row[0], "title": row[1]} for row in cursor.fetchall()]


def fetch_plan(workout_id: int, db_path: Path = DEFAULT_DB_PATH) -> list[PlannedExercise]:
    """Load the exercises of ``workout_id`` with their set configs.

    Exercises are ordered by ``order_index`` and each exercise's configs by
    id.  Either the whole plan is returned or an exception is raised; a
    missing workout raises :class:`ValueError`.
    """

    with sqlite3.connect(str(db_path)) as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT id FROM workouts WHERE id = ?", (workout_id,))
        if cursor.fetchone() is None:
            raise ValueError(f"Workout {workout_id} not found")

        cursor.execute(
            """
            SELECT we.id, we.order_index, e.name, we.custom_name, we.notes
              FROM workout_exercises we
              LEFT JOIN exercises e ON e.id = we.exercise_id
             WHERE we.workout_id = ?
             ORDER BY we.order_index, we.id
            """,
            (workout_id,),
        )
        exercises = [
            PlannedExercise(
                id=ex_id,
                order_index=order_index,
                name=name,
                custom_name=custom_name,
                notes=notes,
            )
            for ex_id, order_index, name, custom_name, notes in cursor.fetchall()
        ]
        by_id = {ex.id: ex for ex in exercises}
        if not by_id:
            return exercises

        placeholders = ", ".join("?" for _ in by_id)
        cursor.execute(
            f"""
            SELECT id, workout_exercise_id, set_number, reps, weight_kg, rpe, rest_sec
              FROM exercise_sets
             WHERE workout_exercise_id IN ({placeholders})
             ORDER BY id
            """,
            tuple(by_id),
        )
        for set_id, ex_id, count, reps, weight, rpe, rest in cursor.fetchall():
            by_id[ex_id].set_configs.append(
                PlannedSetConfig(
                    id=set_id,
                    count=min(max(count or 0, 0), MAX_SETS_PER_EXERCISE),
                    reps=reps,
                    weight_kg=_to_decimal(weight),
                    rpe=_to_decimal(rpe),
                    rest_sec=rest,
                )
            )
    return exercises


def replace_sets(
    workout_exercise_id: int,
    blocks: Iterable[PersistenceBlock],
    db_path: Path = DEFAULT_DB_PATH,
) -> int:
    """Replace every set row of ``workout_exercise_id`` with ``blocks``.

    Existing rows are deleted and one row per block is inserted with
    ``set_number`` holding the block's count.  Both happen in a single
    transaction so a failure leaves the previous rows in place.  Returns
    the number of rows written.
    """

    rows = [
        (
            workout_exercise_id,
            block.count,
            block.reps,
            _from_decimal(block.weight_kg),
            _from_decimal(block.rpe),
            block.rest_sec,
        )
        for block in blocks
    ]
    if any(row[1] <= 0 for row in rows):
        raise ValueError("Set blocks must have a positive count")

    with sqlite3.connect(str(db_path)) as conn:
        conn.execute(
            "DELETE FROM exercise_sets WHERE workout_exercise_id = ?",
            (workout_exercise_id,),
        )
        if rows:
            conn.executemany(
                """
                INSERT INTO exercise_sets
                    (workout_exercise_id, set_number, reps, weight_kg, rpe, rest_sec)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                rows,
            )
    logging.info(
        "Replaced sets for workout exercise %s with %d rows",
        workout_exercise_id,
        len(rows),
    )
    return len(rows)
