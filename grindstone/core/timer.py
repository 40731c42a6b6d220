from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union, assert_never

from grindstone.core.clock import Clock, SystemClock
from grindstone.core.config import (
    DEFAULT_LONG_BREAK_SEC,
    DEFAULT_SHORT_BREAK_SEC,
    DEFAULT_WORK_DURATION_SEC,
    SESSIONS_UNTIL_LONG_BREAK,
)
from grindstone.data.models import TimerConfig


class TimerPhase(str, Enum):
    WORK = "work"
    SHORT_BREAK = "short_break"
    LONG_BREAK = "long_break"

    @property
    def label(self) -> str:
        return _PHASE_LABELS[self]

    @property
    def is_break(self) -> bool:
        return self in {TimerPhase.SHORT_BREAK, TimerPhase.LONG_BREAK}


_PHASE_LABELS = {
    TimerPhase.WORK: "WORK SESSION",
    TimerPhase.SHORT_BREAK: "SHORT BREAK",
    TimerPhase.LONG_BREAK: "LONG BREAK",
}


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Running:
    started: float
    elapsed_before_pause: float = 0.0


@dataclass(frozen=True)
class Paused:
    elapsed: float


RunState = Union[Idle, Running, Paused]


@dataclass(frozen=True)
class TimerSnapshot:
    phase: TimerPhase
    status: str
    total_seconds: int
    elapsed_seconds: int
    remaining_seconds: int
    progress: float
    sessions_completed: int
    sessions_until_long: int


class PomodoroTimer:
    """Work and break phase cycle over an idle, running or paused run state.

    Every operation is defined for every state, so nothing here raises: calls
    that make no sense for the current state are no-ops.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock: Clock = clock or SystemClock()
        self.phase = TimerPhase.WORK
        self.state: RunState = Idle()
        self.work_duration = float(DEFAULT_WORK_DURATION_SEC)
        self.short_break = float(DEFAULT_SHORT_BREAK_SEC)
        self.long_break = float(DEFAULT_LONG_BREAK_SEC)
        self.sessions_until_long = SESSIONS_UNTIL_LONG_BREAK
        self.sessions_completed = 0

    def current_phase_duration(self) -> float:
        if self.phase is TimerPhase.WORK:
            return self.work_duration
        if self.phase is TimerPhase.SHORT_BREAK:
            return self.short_break
        if self.phase is TimerPhase.LONG_BREAK:
            return self.long_break
        assert_never(self.phase)

    def elapsed(self) -> float:
        state = self.state
        if isinstance(state, Idle):
            return 0.0
        if isinstance(state, Running):
            return state.elapsed_before_pause + max(0.0, self._clock.instant() - state.started)
        if isinstance(state, Paused):
            return state.elapsed
        assert_never(state)

    def remaining(self) -> float:
        return max(0.0, self.current_phase_duration() - self.elapsed())

    def is_finished(self) -> bool:
        return self.elapsed() >= self.current_phase_duration()

    def is_running(self) -> bool:
        return isinstance(self.state, Running)

    def is_paused(self) -> bool:
        return isinstance(self.state, Paused)

    def is_idle(self) -> bool:
        return isinstance(self.state, Idle)

    def start(self) -> None:
        """Starts from idle or resumes from pause; already running is a no-op."""
        state = self.state
        if isinstance(state, Idle):
            self.state = Running(started=self._clock.instant())
        elif isinstance(state, Paused):
            self.state = Running(started=self._clock.instant(), elapsed_before_pause=state.elapsed)
        elif isinstance(state, Running):
            return
        else:
            assert_never(state)

    def pause(self) -> None:
        if isinstance(self.state, Running):
            self.state = Paused(elapsed=self.elapsed())

    def reset(self) -> None:
        self.state = Idle()

    def advance_phase(self) -> None:
        """Moves to the phase that follows a completed one.

        Only a finished WORK phase counts towards the long break; reaching the
        threshold enters LONG_BREAK and restarts the count.
        """
        phase = self.phase
        if phase is TimerPhase.WORK:
            self.sessions_completed += 1
            if self.sessions_completed >= self.sessions_until_long:
                self.phase = TimerPhase.LONG_BREAK
                self.sessions_completed = 0
            else:
                self.phase = TimerPhase.SHORT_BREAK
        elif phase is TimerPhase.SHORT_BREAK or phase is TimerPhase.LONG_BREAK:
            self.phase = TimerPhase.WORK
        else:
            assert_never(phase)
        self.state = Idle()

    def skip_break(self) -> None:
        if self.phase.is_break:
            self.phase = TimerPhase.WORK
            self.state = Idle()

    def apply_config(self, config: TimerConfig) -> None:
        # Phase, run state and the counter are kept; a shorter duration can
        # finish the current phase on the next tick.
        self.work_duration = float(config.work_duration_secs)
        self.short_break = float(config.short_break_secs)
        self.long_break = float(config.long_break_secs)
        self.sessions_until_long = int(config.sessions_until_long_break)

    def progress(self) -> float:
        total = self.current_phase_duration()
        if total <= 0:
            return 1.0
        return max(0.0, min(1.0, self.elapsed() / total))

    def status(self) -> str:
        state = self.state
        if isinstance(state, Running):
            return "running"
        if isinstance(state, Paused):
            return "paused"
        if isinstance(state, Idle):
            return "ready"
        assert_never(state)

    def snapshot(self) -> TimerSnapshot:
        elapsed = self.elapsed()
        total = self.current_phase_duration()
        return TimerSnapshot(
            phase=self.phase,
            status=self.status(),
            total_seconds=int(total),
            elapsed_seconds=int(elapsed),
            remaining_seconds=int(max(0.0, total - elapsed)),
            progress=self.progress(),
            sessions_completed=self.sessions_completed,
            sessions_until_long=self.sessions_until_long,
        )
