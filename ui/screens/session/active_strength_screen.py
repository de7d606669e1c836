from __future__ import annotations

"""Screen shown while a strength workout is in progress."""

import logging

from kivy.clock import Clock
from kivy.properties import BooleanProperty, ObjectProperty, StringProperty
from kivymd.app import MDApp
from kivymd.toast import toast
from kivymd.uix.boxlayout import MDBoxLayout
from kivymd.uix.button import MDFlatButton, MDRaisedButton
from kivymd.uix.dialog import MDDialog
from kivymd.uix.screen import MDScreen
from kivymd.uix.textfield import MDTextField

from backend import DEFAULT_SWIPE_THRESHOLD
from backend import settings as app_settings
from backend.workout_session import (
    ActiveStrengthWorkout,
    PersistenceFailure,
    PlanLoadFailure,
    format_weight,
)


class ActiveStrengthWorkoutScreen(MDScreen):
    """Walks the user through the sets of each exercise.

    A one second clock event counts down the rest of the exercise on
    screen.  Swiping left or right switches exercises when the workout
    allows it.
    """

    workout = ObjectProperty(None, allownone=True)
    exercise_name = StringProperty("")
    exercise_notes = StringProperty("")
    set_label = StringProperty("")
    reps_text = StringProperty("")
    weight_text = StringProperty("")
    rpe_text = StringProperty("")
    status_text = StringProperty("")
    rest_text = StringProperty("")
    rest_button_text = StringProperty("Complete set")
    previous_text = StringProperty("")
    next_text = StringProperty("")
    is_resting = BooleanProperty(False)
    all_done = BooleanProperty(False)
    is_last = BooleanProperty(False)
    is_extra = BooleanProperty(False)
    is_saving = BooleanProperty(False)
    can_remove = BooleanProperty(False)
    _event = None
    _dialog = None

    def on_pre_enter(self, *args):
        app = MDApp.get_running_app()
        if self.workout is None and app is not None:
            self.workout = getattr(app, "workout", None)
        if self.workout is not None and not self.workout.loaded:
            self.load_workout()
        self.refresh()
        self._ensure_clock_event()
        return super().on_pre_enter(*args)

    def on_leave(self, *args):
        if self._event:
            self._event.cancel()
            self._event = None
        return super().on_leave(*args)

    def _ensure_clock_event(self):
        """Ensure the rest countdown event is running."""
        if self._event is None:
            self._event = Clock.schedule_interval(self.update_rest, 1)

    def update_rest(self, dt):
        if self.workout is not None and self.workout.is_resting():
            self.workout.tick()
            self.refresh()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_workout(self, *args):
        self._dismiss_dialog()
        try:
            self.workout.load()
        except PlanLoadFailure as exc:
            self._show_error("Error", str(exc), retry=self.load_workout)
        self.refresh()

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def refresh(self):
        """Copy the workout state into the screen properties."""
        workout: ActiveStrengthWorkout | None = self.workout
        exercise = workout.current_exercise if workout and workout.loaded else None
        if exercise is None:
            self.exercise_name = ""
            self.exercise_notes = ""
            self.set_label = ""
            self.reps_text = ""
            self.weight_text = ""
            self.rpe_text = ""
            self.rest_text = ""
            self.previous_text = ""
            self.next_text = ""
            self.can_remove = False
            if workout is not None and not workout.loaded:
                self.status_text = workout.error or "Loading workout…"
            else:
                self.status_text = "No exercises found"
            return

        current = workout.current_set()
        self.exercise_name = exercise.display_name
        self.exercise_notes = exercise.notes or ""
        self.set_label = workout.set_label()
        self.is_extra = workout.engine.is_extra_set(exercise.id)
        self.all_done = workout.is_all_done()
        self.is_last = workout.is_last_exercise()
        self.is_resting = workout.is_resting()
        self.is_saving = workout.is_saving
        self.can_remove = workout.can_remove_set()
        if current is not None:
            self.reps_text = f"{current.reps or 0} reps"
            self.weight_text = format_weight(current.weight_kg)
            self.rpe_text = (
                f"Target RPE {float(current.rpe):.1f}" if current.rpe is not None else ""
            )
            self.rest_button_text = (
                f"Rest {current.rest_sec}s" if current.rest_sec else "Complete set"
            )
            self.status_text = ""
        else:
            self.reps_text = ""
            self.weight_text = ""
            self.rpe_text = ""
            self.status_text = (
                "All sets completed ✅" if self.all_done else "No sets configured."
            )
        self.rest_text = f"{workout.remaining_rest()}s" if self.is_resting else ""

        previous = workout.previous_exercise
        following = workout.next_exercise
        self.previous_text = (
            f"{previous.display_name}\n{workout.preview_text(previous)}" if previous else ""
        )
        self.next_text = (
            f"{following.display_name}\n{workout.preview_text(following)}" if following else ""
        )

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def complete_set(self):
        if self.workout is not None:
            self.workout.complete_and_rest()
            self.refresh()

    def skip_rest(self):
        if self.workout is not None:
            self.workout.skip_rest()
            self.refresh()

    def add_set(self):
        if self.workout is not None and self.workout.add_extra_set():
            self.refresh()

    def remove_set(self):
        if self.workout is None:
            return
        toast(self.workout.remove_set())
        self.refresh()

    def next_or_finish(self):
        if self.workout is None:
            return
        if self.workout.is_last_exercise():
            self.finish_workout()
        elif self.workout.go_to_next():
            self.refresh()

    def finish_workout(self, *args):
        self._dismiss_dialog()
        try:
            self.workout.finish()
        except PersistenceFailure as exc:
            self.refresh()
            self._show_error("Save Error", str(exc), retry=self.finish_workout)
            return
        toast("Workout saved")
        logging.info("Workout %s saved from active screen", self.workout.workout_id)
        self._dialog = MDDialog(
            title="Workout saved",
            text=self.workout.summary(),
            auto_dismiss=False,
            buttons=[MDRaisedButton(text="Done", on_release=self._go_home)],
        )
        self._dialog.open()

    def _go_home(self, *args):
        self._dismiss_dialog()
        if self.manager and self.manager.has_screen("home"):
            self.manager.current = "home"

    # ------------------------------------------------------------------
    # Edit sheet
    # ------------------------------------------------------------------

    def open_edit_sheet(self):
        if self.workout is None:
            return
        prefill = self.workout.open_edit_sheet()
        if prefill is None:
            return
        box = MDBoxLayout(
            orientation="vertical",
            spacing="12dp",
            size_hint_y=None,
            height="120dp",
        )
        reps_field = MDTextField(hint_text="Reps", text=prefill["reps"], input_filter="int")
        weight_field = MDTextField(hint_text="Weight (kg)", text=prefill["weight"])
        box.add_widget(reps_field)
        box.add_widget(weight_field)

        def cancel(*_):
            self.workout.cancel_edit()
            self._dismiss_dialog()

        def save(*_):
            self.workout.apply_edit(reps_field.text, weight_field.text)
            self._dismiss_dialog()
            self.refresh()

        self._dialog = MDDialog(
            title="Edit reps & weight",
            type="custom",
            content_cls=box,
            auto_dismiss=False,
            buttons=[
                MDFlatButton(text="Cancel", on_release=cancel),
                MDRaisedButton(text="Save", on_release=save),
            ],
        )
        self._dialog.open()

    # ------------------------------------------------------------------
    # Gestures and dialogs
    # ------------------------------------------------------------------

    def on_touch_up(self, touch):
        if self.workout is not None and self.workout.loaded:
            threshold = app_settings.get_value("swipe_threshold") or DEFAULT_SWIPE_THRESHOLD
            dx = touch.x - touch.ox
            if abs(dx) >= threshold and self.workout.handle_swipe(dx, threshold):
                self.refresh()
                return True
        return super().on_touch_up(touch)

    def _dismiss_dialog(self):
        if self._dialog:
            self._dialog.dismiss()
            self._dialog = None

    def _show_error(self, title: str, message: str, retry=None):
        self._dismiss_dialog()
        buttons = [MDFlatButton(text="Close", on_release=lambda *_: self._dismiss_dialog())]
        if retry is not None:
            buttons.append(MDRaisedButton(text="Retry", on_release=retry))
        self._dialog = MDDialog(title=title, text=message, buttons=buttons)
        self._dialog.open()
