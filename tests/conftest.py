import sqlite3
from pathlib import Path
import sys
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from backend import settings as app_settings
from backend.plans import create_database


@pytest.fixture
def sample_db(tmp_path: Path) -> Path:
    """Create a temporary database with a two exercise 'Push Day' workout.

    Bench Press is planned as 3 x 10 @ 50 kg with 60 s rest and a note.
    The push-ups carry a custom name and are planned as 2 x 12 with no
    weight and no rest.
    """
    db_path = create_database(tmp_path / "workout.db")

    conn = sqlite3.connect(db_path)
    conn.execute("INSERT INTO exercises (id, name) VALUES (1, 'Bench Press')")
    conn.execute("INSERT INTO exercises (id, name) VALUES (2, 'Push-up')")
    conn.execute("INSERT INTO workouts (id, title) VALUES (1, 'Push Day')")

    # ids deliberately run against order_index
    conn.execute(
        """
        INSERT INTO workout_exercises
            (id, workout_id, exercise_id, order_index, notes, custom_name)
        VALUES (20, 1, 2, 1, NULL, 'Deficit Push-up')
        """
    )
    conn.execute(
        """
        INSERT INTO workout_exercises
            (id, workout_id, exercise_id, order_index, notes, custom_name)
        VALUES (10, 1, 1, 0, 'Pause at chest', NULL)
        """
    )

    conn.execute(
        """
        INSERT INTO exercise_sets
            (id, workout_exercise_id, set_number, reps, weight_kg, rpe, rest_sec)
        VALUES (100, 10, 3, 10, 50, NULL, 60)
        """
    )
    conn.execute(
        """
        INSERT INTO exercise_sets
            (id, workout_exercise_id, set_number, reps, weight_kg, rpe, rest_sec)
        VALUES (200, 20, 2, 12, NULL, NULL, 0)
        """
    )
    conn.commit()
    conn.close()
    return db_path


@pytest.fixture
def settings_file(tmp_path: Path, monkeypatch) -> Path:
    """Point the settings module at a temporary file."""
    path = tmp_path / "settings.json"
    monkeypatch.setattr(app_settings, "SETTINGS_PATH", path)
    app_settings.reset_cache()
    yield path
    app_settings.reset_cache()
