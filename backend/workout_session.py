"""Controller for an active strength workout.

:class:`ActiveStrengthWorkout` loads a workout plan, keeps track of which
exercise is on screen and forwards the user's actions to the
:class:`~backend.set_progression.SetProgressionEngine`.  It owns the
checks the screen needs (whether navigation or set removal is allowed) and
the finish action that writes the performed sets back to the store.
"""

from __future__ import annotations

import logging
import sqlite3
from decimal import Decimal, InvalidOperation
from pathlib import Path

from backend import DEFAULT_DB_PATH, DEFAULT_SWIPE_THRESHOLD
from backend.plans import PlannedExercise, fetch_plan, replace_sets
from backend.set_progression import SetInstance, SetProgressionEngine

REMOVAL_BLOCKED = "Can't remove sets right now"
NO_SETS_TO_REMOVE = "No sets to remove"
REMOVED_ONE_SET = "Removed 1 set"
REMOVED_AND_TRIMMED = "Removed 1 set (and adjusted completed sets)"

# Errors raised by the store that are reported to the user
STORE_ERRORS = (sqlite3.Error, ValueError, OSError)


class PlanLoadFailure(RuntimeError):
    """The workout plan could not be loaded."""


class PersistenceFailure(RuntimeError):
    """Writing the sets of an exercise failed while finishing."""

    def __init__(self, workout_exercise_id, message: str) -> None:
        super().__init__(message)
        self.workout_exercise_id = workout_exercise_id


def format_weight(weight: Decimal | None) -> str:
    """Return ``weight`` with one decimal, e.g. ``"52.5 kg"``."""

    if weight is None:
        return "0.0 kg"
    return f"{float(weight):.1f} kg"


def parse_reps(text: str | None) -> int | None:
    """Return ``text`` as a whole number or ``None`` if it is not one."""

    text = (text or "").strip()
    try:
        value = int(text)
    except ValueError:
        return None
    if value < 0:
        return None
    return value


def parse_weight(text: str | None) -> Decimal | None:
    """Return ``text`` as a :class:`Decimal`, accepting ``,`` as separator."""

    text = (text or "").strip().replace(",", ".")
    if not text:
        return None
    try:
        value = Decimal(text)
    except InvalidOperation:
        return None
    if not value.is_finite() or value < 0:
        return None
    return value


class ActiveStrengthWorkout:
    """State of the active workout screen for ``workout_id``.

    The plan is read once by :meth:`load` and the performed sets are written
    once by :meth:`finish`; nothing is stored in between.
    """

    def __init__(self, workout_id: int, db_path: Path = DEFAULT_DB_PATH) -> None:
        self.workout_id = workout_id
        self.db_path = Path(db_path)
        self.engine: SetProgressionEngine | None = None
        self._exercises: list[PlannedExercise] = []
        self.current_exercise_index = 0
        self.is_saving = False
        self.edit_sheet_open = False
        self.finished = False
        self.error: str | None = None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Fetch the plan and start every exercise at its first set.

        Raises :class:`PlanLoadFailure` if the plan cannot be read; no
        partial session is kept in that case so ``load`` can be retried.
        """

        try:
            exercises = fetch_plan(self.workout_id, db_path=self.db_path)
        except STORE_ERRORS as exc:
            logging.exception("Failed to load workout %s", self.workout_id)
            self.error = f"Failed to load workout: {exc}"
            raise PlanLoadFailure(self.error) from exc

        self._exercises = sorted(exercises, key=lambda ex: ex.order_index)
        self.engine = SetProgressionEngine(self._exercises)
        for exercise in self._exercises:
            self.engine.state_for(exercise.id)
        self.current_exercise_index = 0
        self.is_saving = False
        self.edit_sheet_open = False
        self.finished = False
        self.error = None
        logging.info(
            "Loaded workout %s with %d exercises",
            self.workout_id,
            len(self._exercises),
        )

    @property
    def loaded(self) -> bool:
        return self.engine is not None

    # ------------------------------------------------------------------
    # Exercise lookup
    # ------------------------------------------------------------------

    @property
    def exercises(self) -> list[PlannedExercise]:
        return self._exercises

    def _exercise_at(self, index: int) -> PlannedExercise | None:
        if 0 <= index < len(self._exercises):
            return self._exercises[index]
        return None

    @property
    def current_exercise(self) -> PlannedExercise | None:
        return self._exercise_at(self.current_exercise_index)

    @property
    def previous_exercise(self) -> PlannedExercise | None:
        return self._exercise_at(self.current_exercise_index - 1)

    @property
    def next_exercise(self) -> PlannedExercise | None:
        return self._exercise_at(self.current_exercise_index + 1)

    def is_last_exercise(self) -> bool:
        return bool(self._exercises) and self.next_exercise is None

    def current_set(self) -> SetInstance | None:
        exercise = self.current_exercise
        if exercise is None:
            return None
        return self.engine.current_set(exercise.id)

    def is_resting(self) -> bool:
        exercise = self.current_exercise
        return exercise is not None and self.engine.state_for(exercise.id).is_resting

    def remaining_rest(self) -> int:
        exercise = self.current_exercise
        if exercise is None:
            return 0
        return self.engine.state_for(exercise.id).remaining_rest_sec

    def is_all_done(self) -> bool:
        exercise = self.current_exercise
        return exercise is not None and self.engine.is_all_done(exercise.id)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def can_navigate(self) -> bool:
        """Return ``True`` if the user may switch to another exercise.

        Switching is blocked while saving, while the edit sheet is open and
        while resting, unless every set of the exercise is already done.
        """

        exercise = self.current_exercise
        if exercise is None or self.is_saving or self.edit_sheet_open:
            return False
        if self.engine.state_for(exercise.id).is_resting:
            return self.engine.is_all_done(exercise.id)
        return True

    def go_to_next(self) -> bool:
        if not self.can_navigate() or self.next_exercise is None:
            return False
        self.current_exercise_index += 1
        return True

    def go_to_previous(self) -> bool:
        if not self.can_navigate() or self.previous_exercise is None:
            return False
        self.current_exercise_index -= 1
        return True

    def handle_swipe(self, dx: float, threshold: float = DEFAULT_SWIPE_THRESHOLD) -> bool:
        """Switch exercise for a horizontal drag of ``dx`` pixels.

        Dragging left past ``threshold`` shows the next exercise, dragging
        right shows the previous one.  Returns ``True`` if the exercise
        changed.
        """

        if dx <= -threshold:
            return self.go_to_next()
        if dx >= threshold:
            return self.go_to_previous()
        return False

    # ------------------------------------------------------------------
    # Set actions
    # ------------------------------------------------------------------

    def complete_and_rest(self) -> SetInstance | None:
        """Complete the current set and start its rest period, if any."""

        exercise = self.current_exercise
        if exercise is None or self.is_saving:
            return None
        if self.engine.state_for(exercise.id).is_resting:
            return None
        completed = self.engine.complete_current_set(exercise.id)
        if completed is not None:
            self.engine.start_rest(exercise.id, completed.rest_sec)
        return completed

    def tick(self) -> int:
        """Advance the rest countdown of the exercise on screen by a second.

        Other exercises keep their remaining rest until they are shown
        again.
        """

        exercise = self.current_exercise
        if exercise is None:
            return 0
        return self.engine.tick_rest(exercise.id)

    def skip_rest(self) -> None:
        exercise = self.current_exercise
        if exercise is not None:
            self.engine.skip_rest(exercise.id)

    def add_extra_set(self) -> bool:
        exercise = self.current_exercise
        if exercise is None or self.is_saving:
            return False
        self.engine.add_extra_set(exercise.id)
        return True

    def can_remove_set(self) -> bool:
        exercise = self.current_exercise
        if exercise is None or self.is_saving:
            return False
        if self.engine.state_for(exercise.id).is_resting:
            return False
        if self.engine.is_all_done(exercise.id):
            return False
        return self.engine.can_remove_any_set(exercise.id)

    def remove_set(self) -> str:
        """Remove one set from the exercise on screen.

        Returns the message to show the user.
        """

        exercise = self.current_exercise
        if exercise is None:
            return NO_SETS_TO_REMOVE
        state = self.engine.state_for(exercise.id)
        if self.is_saving or state.is_resting or self.engine.is_all_done(exercise.id):
            return REMOVAL_BLOCKED
        result = self.engine.remove_one_set(exercise.id)
        if not result.removed:
            return NO_SETS_TO_REMOVE
        if result.trimmed_performed:
            return REMOVED_AND_TRIMMED
        return REMOVED_ONE_SET

    # ------------------------------------------------------------------
    # Edit sheet
    # ------------------------------------------------------------------

    def open_edit_sheet(self) -> dict | None:
        """Open the reps and weight editor prefilled from the current set."""

        current = self.current_set()
        if current is None or self.is_saving:
            return None
        self.edit_sheet_open = True
        weight = current.weight_kg
        return {
            "reps": str(current.reps or 0),
            "weight": f"{float(weight):.1f}" if weight is not None else "",
        }

    def cancel_edit(self) -> None:
        self.edit_sheet_open = False

    def apply_edit(self, reps_text: str, weight_text: str) -> bool:
        """Apply the edit sheet to the first planned set and close it.

        Blank or invalid fields keep their previous value.
        """

        self.edit_sheet_open = False
        exercise = self.current_exercise
        if exercise is None:
            return False
        return self.engine.edit_first_set(
            exercise.id,
            reps=parse_reps(reps_text),
            weight_kg=parse_weight(weight_text),
        )

    # ------------------------------------------------------------------
    # Finishing
    # ------------------------------------------------------------------

    def finish(self) -> bool:
        """Write the performed sets of every exercise to the store.

        Each exercise with completed sets has its rows replaced by the
        run-length encoded ledger.  The first failure stops the finish with
        :class:`PersistenceFailure`; the session is left untouched so
        calling ``finish`` again retries every exercise.
        """

        if self.engine is None or self.is_saving:
            return False
        self.is_saving = True
        try:
            for exercise in self._exercises:
                blocks = self.engine.finalize_for_persistence(exercise.id)
                if not blocks:
                    continue
                try:
                    replace_sets(exercise.id, blocks, db_path=self.db_path)
                except STORE_ERRORS as exc:
                    logging.exception(
                        "Failed to save sets for workout exercise %s", exercise.id
                    )
                    self.error = str(exc)
                    raise PersistenceFailure(exercise.id, str(exc)) from exc
        finally:
            self.is_saving = False
        self.finished = True
        self.error = None
        logging.info("Finished workout %s", self.workout_id)
        return True

    # ------------------------------------------------------------------
    # Display helpers
    # ------------------------------------------------------------------

    def set_label(self) -> str:
        """Return ``"Set 2 of 4"`` for the set on screen."""

        exercise = self.current_exercise
        current = self.current_set()
        if exercise is None or current is None:
            return ""
        total = self.engine.total_sets(exercise.id)
        return f"Set {current.set_number} of {total}"

    def preview_text(self, exercise: PlannedExercise | None) -> str:
        """Return the first planned set of ``exercise`` as a short line."""

        if exercise is None:
            return ""
        sets = self.engine.planned_set_sequence(exercise.id)
        if not sets:
            return ""
        first = sets[0]
        return f"{first.reps or 0} reps • {format_weight(first.weight_kg)}"

    def summary(self) -> str:
        """Return a text summary of the sets performed so far."""

        lines = [f"Workout: {self.workout_id}"]
        for exercise in self._exercises:
            lines.append(f"\n{exercise.display_name}")
            blocks = self.engine.finalize_for_persistence(exercise.id) if self.engine else []
            if not blocks:
                lines.append("  No sets completed")
            for block in blocks:
                text = f"  {block.count} x {block.reps or 0} reps @ {format_weight(block.weight_kg)}"
                if block.rpe is not None:
                    text += f", RPE {float(block.rpe):.1f}"
                if block.rest_sec:
                    text += f", rest {block.rest_sec}s"
                lines.append(text)
        return "\n".join(lines)
