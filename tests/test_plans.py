import sqlite3
from decimal import Decimal

import pytest

from backend import plans
from backend.plans import PersistenceBlock, PlannedExercise


def _set_rows(db_path, workout_exercise_id):
    conn = sqlite3.connect(db_path)
    rows = conn.execute(
        """
        SELECT set_number, reps, weight_kg, rpe, rest_sec
          FROM exercise_sets
         WHERE workout_exercise_id = ?
         ORDER BY id
        """,
        (workout_exercise_id,),
    ).fetchall()
    conn.close()
    return rows


def test_fetch_plan_orders_exercises_and_configs(sample_db):
    conn = sqlite3.connect(sample_db)
    # a second bench config with a lower id than the first one
    conn.execute(
        """
        INSERT INTO exercise_sets
            (id, workout_exercise_id, set_number, reps, weight_kg, rpe, rest_sec)
        VALUES (50, 10, 1, 5, 60.5, 8.5, 120)
        """
    )
    conn.commit()
    conn.close()

    exercises = plans.fetch_plan(1, db_path=sample_db)
    assert [ex.id for ex in exercises] == [10, 20]
    assert [ex.display_name for ex in exercises] == ["Bench Press", "Deficit Push-up"]
    assert exercises[0].notes == "Pause at chest"

    bench_configs = exercises[0].set_configs
    assert [c.id for c in bench_configs] == [50, 100]
    assert bench_configs[0].weight_kg == Decimal("60.5")
    assert bench_configs[0].rpe == Decimal("8.5")
    assert bench_configs[1].count == 3
    assert bench_configs[1].weight_kg == Decimal("50")

    push_configs = exercises[1].set_configs
    assert push_configs[0].weight_kg is None
    assert push_configs[0].rest_sec == 0


def test_fetch_plan_unknown_workout(sample_db):
    with pytest.raises(ValueError):
        plans.fetch_plan(42, db_path=sample_db)


def test_fetch_plan_without_exercises(sample_db):
    conn = sqlite3.connect(sample_db)
    conn.execute("INSERT INTO workouts (id, title) VALUES (2, 'Empty')")
    conn.commit()
    conn.close()
    assert plans.fetch_plan(2, db_path=sample_db) == []


def test_display_name_fallbacks():
    assert PlannedExercise(id=1, order_index=0, name="Squat").display_name == "Squat"
    assert (
        PlannedExercise(id=1, order_index=0, name="Squat", custom_name="Box Squat").display_name
        == "Box Squat"
    )
    assert PlannedExercise(id=1, order_index=0, custom_name="").display_name == "Exercise"


def test_replace_sets_stores_count_in_set_number(sample_db):
    blocks = [
        PersistenceBlock(count=2, reps=10, weight_kg=Decimal("50"), rpe=None, rest_sec=60),
        PersistenceBlock(count=1, reps=8, weight_kg=Decimal("52.5"), rpe=Decimal("9"), rest_sec=60),
    ]
    assert plans.replace_sets(10, blocks, db_path=sample_db) == 2
    assert _set_rows(sample_db, 10) == [
        (2, 10, 50, None, 60),
        (1, 8, 52.5, 9, 60),
    ]
    # other exercises are left alone
    assert _set_rows(sample_db, 20) == [(2, 12, None, None, 0)]


def test_replace_sets_is_idempotent(sample_db):
    blocks = [PersistenceBlock(count=3, reps=10, weight_kg=Decimal("50"), rpe=None, rest_sec=60)]
    plans.replace_sets(10, blocks, db_path=sample_db)
    plans.replace_sets(10, blocks, db_path=sample_db)
    assert _set_rows(sample_db, 10) == [(3, 10, 50, None, 60)]


def test_replace_sets_round_trips_through_fetch(sample_db):
    blocks = [
        PersistenceBlock(count=2, reps=6, weight_kg=Decimal("82.5"), rpe=Decimal("8"), rest_sec=180),
        PersistenceBlock(count=1, reps=4, weight_kg=Decimal("90"), rpe=None, rest_sec=None),
    ]
    plans.replace_sets(10, blocks, db_path=sample_db)
    bench = plans.fetch_plan(1, db_path=sample_db)[0]
    assert [
        (c.count, c.reps, c.weight_kg, c.rpe, c.rest_sec) for c in bench.set_configs
    ] == [
        (2, 6, Decimal("82.5"), Decimal("8"), 180),
        (1, 4, Decimal("90"), None, None),
    ]


def test_replace_sets_rejects_empty_blocks_without_touching_rows(sample_db):
    with pytest.raises(ValueError):
        plans.replace_sets(
            10,
            [PersistenceBlock(count=0, reps=1, weight_kg=None, rpe=None, rest_sec=None)],
            db_path=sample_db,
        )
    assert _set_rows(sample_db, 10) == [(3, 10, 50, None, 60)]


def test_create_database_is_repeatable(tmp_path):
    db_path = tmp_path / "nested" / "workout.db"
    plans.create_database(db_path)
    plans.create_database(db_path)
    assert plans.list_workouts(db_path) == []


def test_list_workouts_newest_first(sample_db):
    conn = sqlite3.connect(sample_db)
    conn.execute("INSERT INTO workouts (id, title) VALUES (5, 'Pull Day')")
    conn.commit()
    conn.close()
    assert plans.list_workouts(sample_db) == [
        {"id": 5, "title": "Pull Day"},
        {"id": 1, "title": "Push Day"},
    ]
