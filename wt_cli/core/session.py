"""Workout session state machine.

A ``WorkoutSession`` drives one workout at a time: exercise progression, set
and rest timing, pause/resume, confirmation of destructive actions and the
final summary. Durations are measured on a monotonic ``clock``; wall-clock
timestamps come from ``now``. Paused time is excluded from set durations,
rest durations and the session's total duration.
"""

from __future__ import annotations

import dataclasses
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from wt_cli.core.constants import DEFAULT_TICK_INTERVAL
from wt_cli.core.models import (
    ActiveSession,
    CompletedSet,
    ExerciseAggregate,
    ExerciseDefinition,
    ExerciseKind,
    SessionSummary,
    WorkoutDay,
    utc_now,
)
from wt_cli.core.repository import PersistenceSaveFailure, Repository
from wt_cli.core.ticker import Scheduler, TaskHandle, TickKind, start_periodic
from wt_cli.utils.formatting import format_target

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    IDLE = "idle"
    EXERCISE_READY = "exercise_ready"
    EXERCISE_IN_PROGRESS = "exercise_in_progress"
    SET_COMPLETE = "set_complete"
    RESTING = "resting"
    COMPLETED = "completed"


class PendingAction(str, Enum):
    SKIP_EXERCISE = "skip_exercise"
    ABANDON_WORKOUT = "abandon_workout"


class InvalidStateTransition(RuntimeError):
    """Raised when an operation is invoked outside its valid state."""

    def __init__(self, operation: str, phase: Phase, reason: Optional[str] = None) -> None:
        self.operation = operation
        self.phase = phase
        message = reason or f"Cannot {operation} while {phase.value.replace('_', ' ')}"
        super().__init__(message)


ACTIVE_PHASES = (
    Phase.EXERCISE_READY,
    Phase.EXERCISE_IN_PROGRESS,
    Phase.SET_COMPLETE,
    Phase.RESTING,
)


@dataclass(frozen=True)
class SessionView:
    """Plain snapshot of the session for rendering."""

    phase: Phase
    paused: bool
    day_name: Optional[str]
    exercise_name: Optional[str]
    exercise_target: Optional[str]
    exercise_position: int
    exercise_count: int
    current_set: int
    elapsed: float
    rest_elapsed: float
    session_elapsed: float
    completed_sets: Tuple[CompletedSet, ...]
    pending_confirmation: Optional[PendingAction]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase.value,
            "paused": self.paused,
            "day": self.day_name,
            "exercise": self.exercise_name,
            "target": self.exercise_target,
            "exercisePosition": self.exercise_position,
            "exerciseCount": self.exercise_count,
            "currentSet": self.current_set,
            "elapsed": self.elapsed,
            "restElapsed": self.rest_elapsed,
            "sessionElapsed": self.session_elapsed,
            "completedSets": [item.to_dict() for item in self.completed_sets],
            "pendingConfirmation": (
                self.pending_confirmation.value if self.pending_confirmation else None
            ),
        }


def calculate_exercise_stats(completed_sets: Iterable[CompletedSet]) -> Dict[str, ExerciseAggregate]:
    """Group completed sets by exercise name with count and average duration."""
    stats: Dict[str, ExerciseAggregate] = {}
    for item in completed_sets:
        aggregate = stats.setdefault(item.exercise_name, ExerciseAggregate())
        aggregate.total_sets += 1
        aggregate.total_duration += item.duration

    for aggregate in stats.values():
        aggregate.average_set_duration = (
            aggregate.total_duration / aggregate.total_sets if aggregate.total_sets else 0.0
        )
    return stats


class WorkoutSession:
    """Controller for a single live workout."""

    def __init__(
        self,
        repository: Optional[Repository] = None,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = utc_now,
        tick_interval: float = DEFAULT_TICK_INTERVAL,
        scheduler: Scheduler = start_periodic,
        on_tick: Optional[Callable[[TickKind, float], None]] = None,
    ) -> None:
        self.repository = repository
        self.clock = clock
        self.now = now
        self.tick_interval = tick_interval
        self.scheduler = scheduler
        self.on_tick = on_tick

        self.days: Dict[str, WorkoutDay] = {}
        self.phase = Phase.IDLE
        self.paused = False
        self.pending_confirmation: Optional[PendingAction] = None
        self.active: Optional[ActiveSession] = None
        self.summary: Optional[SessionSummary] = None
        self.unsaved_summary: Optional[SessionSummary] = None

        self._ticks: Dict[TickKind, TaskHandle] = {}
        self._save_in_flight = False
        self._reset_progress()

    def _reset_progress(self) -> None:
        self._exercise_index = 0
        self._exercise_first_set = 0
        self._session_started_at = 0.0
        self._session_paused = 0.0
        self._paused_at: Optional[float] = None
        self._set_started_at: Optional[float] = None
        self._set_paused = 0.0
        self._rest_started_at: Optional[float] = None
        self._rest_paused = 0.0

    # Day definitions

    def load_days(self) -> Dict[str, WorkoutDay]:
        """Load day definitions once; the map is read-only afterwards."""
        if self.repository is None:
            raise ValueError("No repository configured to load workout days")
        self.days = dict(self.repository.list_workout_days())
        return self.days

    def start_workout_by_id(self, day_id: str) -> None:
        if not self.days:
            self.load_days()
        day = self.days.get(day_id)
        if day is None:
            raise ValueError(f"Unknown workout day: {day_id}")
        self.start_workout(day)

    # Guards

    def _require(self, operation: str, *phases: Phase, allow_paused: bool = False) -> None:
        if self.pending_confirmation is not None:
            raise InvalidStateTransition(
                operation,
                self.phase,
                f"Cannot {operation} while waiting for confirmation",
            )
        if self.phase not in phases:
            raise InvalidStateTransition(operation, self.phase)
        if self.paused and not allow_paused:
            raise InvalidStateTransition(operation, self.phase, f"Cannot {operation} while paused")

    # Progress helpers

    @property
    def current_exercise(self) -> Optional[ExerciseDefinition]:
        if self.active is None:
            return None
        exercises = self.active.day.exercises
        if self._exercise_index < len(exercises):
            return exercises[self._exercise_index]
        return None

    def _current_sets(self) -> List[CompletedSet]:
        if self.active is None:
            return []
        return self.active.completed_sets[self._exercise_first_set:]

    def _target_met(self) -> bool:
        exercise = self.current_exercise
        if exercise is None:
            return False
        sets = self._current_sets()
        if exercise.kind is ExerciseKind.SETS:
            return len(sets) >= int(exercise.count or 0)
        return sum(item.duration for item in sets) >= float(exercise.duration or 0)

    def _has_next_exercise(self) -> bool:
        return self.active is not None and self._exercise_index + 1 < len(self.active.day.exercises)

    def _advance_exercise(self) -> bool:
        if not self._has_next_exercise():
            return False
        assert self.active is not None
        self._exercise_index += 1
        self._exercise_first_set = len(self.active.completed_sets)
        logger.debug("Advanced to exercise %d", self._exercise_index + 1)
        return True

    def is_workout_complete(self) -> bool:
        """True once the last exercise's target is met and nothing follows."""
        if self.phase is Phase.COMPLETED:
            return True
        return self.active is not None and not self._has_next_exercise() and self._target_met()

    # Ticks

    @property
    def active_ticks(self) -> Tuple[TickKind, ...]:
        return tuple(self._ticks)

    def _start_tick(self, kind: TickKind) -> None:
        if kind in self._ticks:
            return

        def fire() -> None:
            if self.on_tick is not None:
                seconds = self.exercise_elapsed() if kind is TickKind.EXERCISE else self.rest_elapsed()
                self.on_tick(kind, seconds)

        self._ticks[kind] = self.scheduler(self.tick_interval, fire)

    def _stop_tick(self, kind: TickKind) -> None:
        handle = self._ticks.pop(kind, None)
        if handle is not None:
            handle.cancel()

    def _stop_all_ticks(self) -> None:
        for kind in list(self._ticks):
            self._stop_tick(kind)

    # Elapsed time

    def _paused_now(self) -> float:
        paused_at = self._paused_at
        if self.paused and paused_at is not None:
            return self.clock() - paused_at
        return 0.0

    # Ticks call these from the timer thread; read each timestamp once.

    def exercise_elapsed(self) -> float:
        started_at = self._set_started_at
        if started_at is None:
            return 0.0
        return max(self.clock() - started_at - self._set_paused - self._paused_now(), 0.0)

    def rest_elapsed(self) -> float:
        started_at = self._rest_started_at
        if started_at is None:
            return 0.0
        return max(self.clock() - started_at - self._rest_paused - self._paused_now(), 0.0)

    def session_elapsed(self) -> float:
        if self.active is None:
            return 0.0
        return max(
            self.clock() - self._session_started_at - self._session_paused - self._paused_now(),
            0.0,
        )

    # Transitions

    def start_workout(self, day: WorkoutDay) -> None:
        self._require("start a workout", Phase.IDLE, Phase.COMPLETED)
        if self.active is not None:
            raise InvalidStateTransition(
                "start a workout",
                self.phase,
                "Finish or abandon the current workout first",
            )
        if self._save_in_flight or self.unsaved_summary is not None:
            raise InvalidStateTransition(
                "start a workout",
                self.phase,
                "Cannot start a workout while the previous one is unsaved",
            )
        if not day.exercises:
            raise ValueError(f"Workout day '{day.name}' has no exercises")

        self._stop_all_ticks()
        self._reset_progress()
        self.paused = False
        self.summary = None
        self.active = ActiveSession(day=day, start_time=self.now())
        self._session_started_at = self.clock()
        self.phase = Phase.EXERCISE_READY
        logger.debug("Started workout '%s'", day.name)

    def start_exercise(self) -> None:
        self._require("start an exercise", Phase.EXERCISE_READY, Phase.SET_COMPLETE, Phase.RESTING)
        if self.phase is Phase.RESTING:
            self._finish_rest()
        self._set_started_at = self.clock()
        self._set_paused = 0.0
        self.phase = Phase.EXERCISE_IN_PROGRESS
        self._start_tick(TickKind.EXERCISE)

    def complete_set(self) -> CompletedSet:
        self._require("complete a set", Phase.EXERCISE_IN_PROGRESS)
        assert self.active is not None and self._set_started_at is not None
        exercise = self.current_exercise
        assert exercise is not None

        duration = max(self.clock() - self._set_started_at - self._set_paused, 0.0)
        record = CompletedSet(
            exercise_name=exercise.name,
            set_index=len(self._current_sets()) + 1,
            duration=duration,
        )
        self.active.completed_sets.append(record)
        self._set_started_at = None
        self._set_paused = 0.0
        self._stop_tick(TickKind.EXERCISE)

        if self._target_met() and not self._advance_exercise():
            self.phase = Phase.COMPLETED
            self._stop_all_ticks()
            logger.debug("All exercises done")
        else:
            self.phase = Phase.SET_COMPLETE
        return record

    def start_rest(self) -> None:
        self._require("start resting", Phase.SET_COMPLETE)
        self._rest_started_at = self.clock()
        self._rest_paused = 0.0
        self.phase = Phase.RESTING
        self._start_tick(TickKind.REST)

    def _finish_rest(self) -> None:
        if self.active is not None and self._rest_started_at is not None:
            self.active.total_rest_time += self.rest_elapsed()
        self._rest_started_at = None
        self._rest_paused = 0.0
        self._stop_tick(TickKind.REST)

    # Pause

    def pause_workout(self) -> None:
        self._require("pause", *ACTIVE_PHASES)
        self._paused_at = self.clock()
        self.paused = True
        self._stop_all_ticks()

    def resume_workout(self) -> None:
        if not self.paused:
            raise InvalidStateTransition("resume", self.phase, "Workout is not paused")
        self._fold_pause()
        if self.phase is Phase.EXERCISE_IN_PROGRESS:
            self._start_tick(TickKind.EXERCISE)
        elif self.phase is Phase.RESTING:
            self._start_tick(TickKind.REST)

    def _fold_pause(self) -> None:
        if self._paused_at is not None:
            paused_for = self.clock() - self._paused_at
            self._session_paused += paused_for
            if self._set_started_at is not None:
                self._set_paused += paused_for
            if self._rest_started_at is not None:
                self._rest_paused += paused_for
        self._paused_at = None
        self.paused = False

    def toggle_pause(self) -> bool:
        """Pause or resume; returns the new paused flag."""
        if self.paused:
            self.resume_workout()
        else:
            self.pause_workout()
        return self.paused

    # Confirmation

    def request_skip(self) -> PendingAction:
        self._require("skip the exercise", *ACTIVE_PHASES, allow_paused=True)
        self.pending_confirmation = PendingAction.SKIP_EXERCISE
        return self.pending_confirmation

    def request_abandon(self) -> PendingAction:
        self._require("abandon the workout", *ACTIVE_PHASES, Phase.COMPLETED, allow_paused=True)
        if self.active is None:
            raise InvalidStateTransition("abandon the workout", self.phase, "No workout in progress")
        self.pending_confirmation = PendingAction.ABANDON_WORKOUT
        return self.pending_confirmation

    def confirm(self) -> PendingAction:
        action = self.pending_confirmation
        if action is None:
            raise InvalidStateTransition("confirm", self.phase, "Nothing to confirm")
        self.pending_confirmation = None
        if action is PendingAction.SKIP_EXERCISE:
            self._skip_exercise()
        else:
            self._abandon()
        return action

    def decline(self) -> None:
        self.pending_confirmation = None

    def _skip_exercise(self) -> None:
        assert self.active is not None
        self._stop_all_ticks()
        self._finish_rest()
        self._set_started_at = None
        self._set_paused = 0.0
        skipped = self.current_exercise
        del self.active.completed_sets[self._exercise_first_set:]

        if self._advance_exercise():
            self.phase = Phase.EXERCISE_READY
        else:
            self.phase = Phase.COMPLETED
        logger.debug("Skipped exercise '%s'", skipped.name if skipped else "?")

    def _abandon(self) -> None:
        self._stop_all_ticks()
        self.active = None
        self.paused = False
        self._reset_progress()
        self.phase = Phase.IDLE
        logger.debug("Workout abandoned")

    # Completion

    def _build_summary(self) -> SessionSummary:
        assert self.active is not None
        self._stop_all_ticks()
        if self._rest_started_at is not None:
            self._finish_rest()
        if self.paused:
            self._fold_pause()

        end_time = self.now()
        total_duration = max(self.clock() - self._session_started_at - self._session_paused, 0.0)
        summary = SessionSummary(
            day_id=self.active.day.id,
            start_time=self.active.start_time,
            end_time=end_time,
            completed_sets=tuple(self.active.completed_sets),
            total_rest_time=self.active.total_rest_time,
            total_duration=total_duration,
            timestamp=end_time,
        )
        self.active = None
        self._reset_progress()
        self.phase = Phase.COMPLETED
        return summary

    def complete_workout(self) -> SessionSummary:
        """Finish the workout, persist its summary and return it.

        A failed save keeps the summary in ``unsaved_summary``; calling this
        again retries the same summary.
        """
        if self._save_in_flight:
            raise InvalidStateTransition(
                "complete the workout", self.phase, "A save is already in progress"
            )
        if self.unsaved_summary is None:
            self._require("complete the workout", *ACTIVE_PHASES, Phase.COMPLETED, allow_paused=True)
            if self.active is None:
                raise InvalidStateTransition("complete the workout", self.phase, "No workout in progress")
            self.unsaved_summary = self._build_summary()
        return self._save(self.unsaved_summary)

    def retry_save(self) -> SessionSummary:
        if self.unsaved_summary is None:
            raise InvalidStateTransition("retry the save", self.phase, "No unsaved workout")
        return self.complete_workout()

    def discard_unsaved(self) -> Optional[SessionSummary]:
        summary, self.unsaved_summary = self.unsaved_summary, None
        return summary

    def _save(self, summary: SessionSummary) -> SessionSummary:
        if self.repository is None:
            logger.debug("No repository configured, summary not persisted")
            self.summary, self.unsaved_summary = summary, None
            return summary

        self._save_in_flight = True
        try:
            summary_id = self.repository.save_session_summary(summary)
        except PersistenceSaveFailure as exc:
            logger.warning("Saving workout failed: %s", exc)
            raise
        finally:
            self._save_in_flight = False

        saved = dataclasses.replace(summary, id=summary_id)
        self.summary, self.unsaved_summary = saved, None
        return saved

    # Presentation

    def snapshot(self) -> SessionView:
        exercise = self.current_exercise if self.phase is not Phase.COMPLETED else None
        day = self.active.day if self.active else None
        completed = tuple(self.active.completed_sets) if self.active else ()
        if not completed and self.summary is not None:
            completed = self.summary.completed_sets
        return SessionView(
            phase=self.phase,
            paused=self.paused,
            day_name=day.name if day else None,
            exercise_name=exercise.name if exercise else None,
            exercise_target=format_target(exercise) if exercise else None,
            exercise_position=self._exercise_index + 1 if exercise else 0,
            exercise_count=len(day.exercises) if day else 0,
            current_set=len(self._current_sets()) + (1 if exercise else 0),
            elapsed=self.exercise_elapsed(),
            rest_elapsed=self.rest_elapsed(),
            session_elapsed=self.session_elapsed(),
            completed_sets=completed,
            pending_confirmation=self.pending_confirmation,
        )
