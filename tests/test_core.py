import sqlite3

import core


def test_open_database_creates_schema_once(tmp_path):
    db_path = tmp_path / "data" / "workout.db"
    assert core.open_database(db_path) == db_path
    assert db_path.exists()

    conn = sqlite3.connect(db_path)
    conn.execute("INSERT INTO workouts (id, title) VALUES (3, 'Legs')")
    conn.commit()
    conn.close()

    # an existing file is left alone
    core.open_database(db_path)
    assert core.latest_workout_id(db_path) == 3


def test_latest_workout_id(sample_db, tmp_path):
    assert core.latest_workout_id(sample_db) == 1
    empty = core.open_database(tmp_path / "empty.db")
    assert core.latest_workout_id(empty) is None


def test_session_round_trip_through_core(sample_db):
    workout = core.ActiveStrengthWorkout(core.latest_workout_id(sample_db), db_path=sample_db)
    workout.load()
    workout.complete_and_rest()
    assert workout.finish()
    bench = core.fetch_plan(1, db_path=sample_db)[0]
    assert [(c.count, c.reps) for c in bench.set_configs] == [(1, 10)]
