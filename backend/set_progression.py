"""Set and rest progression for an active strength workout.

Each exercise keeps its own :class:`ExerciseSessionState` so switching
between exercises never loses progress.  The planned sets come from the
exercise's :class:`~backend.plans.PlannedSetConfig` rows; extra sets added
during the workout are clones of the last planned set.  Everything here is
in memory and synchronous; loading and saving belong to
:mod:`backend.workout_session`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Union

from backend import DEFAULT_REPS, DEFAULT_REST_SEC, DEFAULT_WEIGHT_KG
from backend.plans import PersistenceBlock, PlannedExercise, PlannedSetConfig
from backend.runs import decode_runs, encode_runs


@dataclass(frozen=True)
class SetInstance:
    """A single set the user is asked to perform."""

    set_number: int
    reps: int | None
    weight_kg: Decimal | None
    rpe: Decimal | None
    rest_sec: int | None


@dataclass(frozen=True)
class PerformedSet:
    """Values in effect when a set was completed."""

    reps: int | None
    weight_kg: Decimal | None
    rpe: Decimal | None
    rest_sec: int | None


@dataclass(frozen=True)
class AtSet:
    index: int


@dataclass(frozen=True)
class AllDone:
    pass


ALL_DONE = AllDone()

CursorState = Union[AtSet, AllDone]

# Template used when an exercise has no planned set to copy from
DEFAULT_SET = SetInstance(
    set_number=1,
    reps=DEFAULT_REPS,
    weight_kg=DEFAULT_WEIGHT_KG,
    rpe=None,
    rest_sec=DEFAULT_REST_SEC,
)


@dataclass
class ExerciseSessionState:
    """Cursor, rest countdown, extra sets and ledger of one exercise."""

    set_index: int = 0
    is_resting: bool = False
    remaining_rest_sec: int = 0
    extra_sets: int = 0
    performed: list[PerformedSet] = field(default_factory=list)

    def clear_rest(self) -> None:
        self.is_resting = False
        self.remaining_rest_sec = 0


@dataclass(frozen=True)
class RemovalResult:
    removed: bool
    trimmed_performed: bool = False


class SetProgressionEngine:
    """Track progress through the planned sets of every exercise.

    ``exercises`` are the planned exercises of one workout.  Their set
    configs are owned by the engine for the lifetime of the session and are
    mutated by :meth:`ensure_base_set`, :meth:`remove_one_set` and
    :meth:`edit_first_set`.
    """

    def __init__(self, exercises: Iterable[PlannedExercise]) -> None:
        self._exercises: dict[object, PlannedExercise] = {}
        for exercise in exercises:
            self._exercises[exercise.id] = exercise
        self._states: dict[object, ExerciseSessionState] = {}

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def exercise(self, exercise_id) -> PlannedExercise:
        return self._exercises[exercise_id]

    def state_for(self, exercise_id) -> ExerciseSessionState:
        """Return the session state for ``exercise_id``, creating it lazily.

        A state whose countdown already ran out is never reported as
        resting.
        """

        if exercise_id not in self._exercises:
            raise KeyError(exercise_id)
        state = self._states.get(exercise_id)
        if state is None:
            state = ExerciseSessionState()
            self._states[exercise_id] = state
        elif state.remaining_rest_sec <= 0:
            state.is_resting = False
        return state

    def _configs(self, exercise_id) -> list[PlannedSetConfig]:
        return sorted(self.exercise(exercise_id).set_configs, key=lambda c: c.id)

    def planned_set_sequence(self, exercise_id) -> list[SetInstance]:
        """Expand the planned configs of ``exercise_id`` into single sets.

        Configs are taken in ascending id order and each one contributes
        ``count`` sets.  Sets are numbered from 1 without gaps.
        """

        configs = decode_runs((c.count, c) for c in self._configs(exercise_id))
        return [
            SetInstance(
                set_number=number,
                reps=config.reps,
                weight_kg=config.weight_kg,
                rpe=config.rpe,
                rest_sec=config.rest_sec,
            )
            for number, config in enumerate(configs, 1)
        ]

    def planned_count(self, exercise_id) -> int:
        return sum(c.count for c in self.exercise(exercise_id).set_configs)

    def extra_set_count(self, exercise_id) -> int:
        return self.state_for(exercise_id).extra_sets

    def total_sets(self, exercise_id) -> int:
        return self.planned_count(exercise_id) + self.extra_set_count(exercise_id)

    def performed_sets(self, exercise_id) -> list[PerformedSet]:
        return list(self.state_for(exercise_id).performed)

    def current_set(self, exercise_id, set_index: int | None = None) -> SetInstance | None:
        """Return the set at ``set_index`` or ``None`` when out of range.

        Without ``set_index`` the exercise cursor is used.  Indices past the
        planned sets resolve to extra sets copied from the last planned set.
        """

        state = self.state_for(exercise_id)
        index = state.set_index if set_index is None else set_index
        planned = self.planned_set_sequence(exercise_id)
        total = len(planned) + state.extra_sets
        if index < 0 or index >= total:
            return None
        if index < len(planned):
            return planned[index]
        template = planned[-1] if planned else DEFAULT_SET
        return SetInstance(
            set_number=index + 1,
            reps=template.reps,
            weight_kg=template.weight_kg,
            rpe=template.rpe,
            rest_sec=template.rest_sec,
        )

    def cursor_state(self, exercise_id) -> CursorState:
        if self.is_all_done(exercise_id):
            return ALL_DONE
        return AtSet(self.state_for(exercise_id).set_index)

    def is_all_done(self, exercise_id) -> bool:
        total = self.total_sets(exercise_id)
        return total > 0 and self.state_for(exercise_id).set_index >= total

    def is_extra_set(self, exercise_id) -> bool:
        """Return ``True`` if the cursor points past the planned sets."""

        state = self.state_for(exercise_id)
        return (
            not self.is_all_done(exercise_id)
            and state.set_index >= self.planned_count(exercise_id)
            and state.extra_sets > 0
        )

    def can_remove_any_set(self, exercise_id) -> bool:
        return self.total_sets(exercise_id) > 0

    # ------------------------------------------------------------------
    # Progression
    # ------------------------------------------------------------------

    def complete_current_set(self, exercise_id) -> SetInstance | None:
        """Record the current set as performed and move the cursor on.

        Ledger entries at or after the cursor are dropped first, so the
        ledger never grows past the number of sets.  The cursor stops at
        ``total_sets`` once the last set is done.  Rest is not started
        here; callers follow up with :meth:`start_rest`.
        Returns the completed set, or ``None`` if every set was already
        done.
        """

        self.ensure_base_set(exercise_id)
        state = self.state_for(exercise_id)
        current = self.current_set(exercise_id)
        if current is None:
            return None
        # a redone set replaces its earlier entry
        del state.performed[state.set_index:]
        state.performed.append(
            PerformedSet(
                reps=current.reps,
                weight_kg=current.weight_kg,
                rpe=current.rpe,
                rest_sec=current.rest_sec,
            )
        )
        total = self.total_sets(exercise_id)
        if state.set_index < total - 1:
            state.set_index += 1
        else:
            state.set_index = total
        state.clear_rest()
        return current

    def start_rest(self, exercise_id, rest_sec: int | None) -> bool:
        """Begin a rest countdown of ``rest_sec`` seconds if it is positive."""

        if not rest_sec or rest_sec <= 0:
            return False
        state = self.state_for(exercise_id)
        state.is_resting = True
        state.remaining_rest_sec = rest_sec
        return True

    def tick_rest(self, exercise_id) -> int:
        """Count the rest of ``exercise_id`` down by one second."""

        state = self.state_for(exercise_id)
        if not state.is_resting:
            return state.remaining_rest_sec
        state.remaining_rest_sec = max(state.remaining_rest_sec - 1, 0)
        if state.remaining_rest_sec == 0:
            state.is_resting = False
        return state.remaining_rest_sec

    def skip_rest(self, exercise_id) -> None:
        self.state_for(exercise_id).clear_rest()

    # ------------------------------------------------------------------
    # Changing the number of sets
    # ------------------------------------------------------------------

    def ensure_base_set(self, exercise_id) -> bool:
        """Add one default planned set if ``exercise_id`` has none.

        Returns ``True`` if a set was created.
        """

        if self.planned_count(exercise_id) > 0:
            return False
        exercise = self.exercise(exercise_id)
        next_id = max((c.id for c in exercise.set_configs), default=0) + 1
        exercise.set_configs.append(
            PlannedSetConfig(
                id=next_id,
                count=1,
                reps=DEFAULT_SET.reps,
                weight_kg=DEFAULT_SET.weight_kg,
                rpe=DEFAULT_SET.rpe,
                rest_sec=DEFAULT_SET.rest_sec,
            )
        )
        return True

    def add_extra_set(self, exercise_id) -> None:
        """Append one set to the end of ``exercise_id``.

        If every set was already done the cursor moves to the new set and
        any rest is cleared; otherwise the cursor stays where it is.
        """

        self.ensure_base_set(exercise_id)
        state = self.state_for(exercise_id)
        old_total = self.total_sets(exercise_id)
        was_done = state.set_index >= old_total
        state.extra_sets += 1
        if was_done:
            state.set_index = old_total
            state.clear_rest()

    def remove_one_set(self, exercise_id) -> RemovalResult:
        """Remove the last set of ``exercise_id``.

        Extra sets go first, then the last planned config that still has
        sets.  Completed sets beyond the new total are dropped from the
        ledger and the cursor is pulled back onto the remaining sets.
        """

        state = self.state_for(exercise_id)
        if state.extra_sets > 0:
            state.extra_sets -= 1
        else:
            config = next(
                (c for c in reversed(self._configs(exercise_id)) if c.count > 0),
                None,
            )
            if config is None:
                return RemovalResult(removed=False)
            config.count = max(config.count - 1, 0)

        total = self.total_sets(exercise_id)
        trimmed = len(state.performed) > total
        if trimmed:
            del state.performed[total:]

        if total == 0:
            state.set_index = 0
        elif state.set_index > total:
            state.set_index = total
        elif state.set_index == total:
            state.set_index = total - 1
        state.clear_rest()
        return RemovalResult(removed=True, trimmed_performed=trimmed)

    def edit_first_set(
        self,
        exercise_id,
        reps: int | None = None,
        weight_kg: Decimal | None = None,
    ) -> bool:
        """Overwrite reps and weight of the first planned config.

        ``None`` keeps the existing value.  Sets already performed are not
        touched.  Returns ``False`` if the exercise has no configs.
        """

        configs = self._configs(exercise_id)
        if not configs:
            return False
        first = configs[0]
        if reps is not None:
            first.reps = reps
        if weight_kg is not None:
            first.weight_kg = weight_kg
        return True

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def finalize_for_persistence(self, exercise_id) -> list[PersistenceBlock]:
        """Return the performed sets of ``exercise_id`` run-length encoded."""

        return [
            PersistenceBlock(
                count=count,
                reps=performed.reps,
                weight_kg=performed.weight_kg,
                rpe=performed.rpe,
                rest_sec=performed.rest_sec,
            )
            for count, performed in encode_runs(self.state_for(exercise_id).performed)
        ]
