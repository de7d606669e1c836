from kivymd.app import MDApp
from kivy.lang import Builder
from pathlib import Path
import logging
import sys

from core import (
    ActiveStrengthWorkout,
    DEFAULT_DB_PATH,
    latest_workout_id,
    open_database,
)
from ui.screens import ActiveStrengthWorkoutScreen


class LiftrApp(MDApp):
    workout: ActiveStrengthWorkout | None = None
    db_path: Path = DEFAULT_DB_PATH

    def build(self):
        return Builder.load_file(str(Path(__file__).with_name("main.kv")))

    def on_start(self):
        workout_id = self.requested_workout_id()
        if workout_id is None:
            logging.info("No workout found in %s", self.db_path)
            return
        self.start_workout(workout_id)

    def requested_workout_id(self) -> int | None:
        """Return the workout id given on the command line or the newest one."""
        open_database(self.db_path)
        args = [a for a in sys.argv[1:] if a.isdigit()]
        if args:
            return int(args[0])
        return latest_workout_id(self.db_path)

    def start_workout(self, workout_id: int):
        """Create a session for ``workout_id`` and show the active screen.

        The plan is loaded when the screen is entered so load failures can
        be retried from there.
        """

        self.workout = ActiveStrengthWorkout(workout_id, db_path=self.db_path)
        self.root.get_screen("active_strength").workout = self.workout
        self.root.current = "active_strength"


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    LiftrApp().run()
