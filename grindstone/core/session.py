from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union, assert_never

from grindstone.core.clock import Clock, SystemClock
from grindstone.data.models import Session


LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Inactive:
    pass


@dataclass(frozen=True)
class Ready:
    session: Session


@dataclass(frozen=True)
class Active:
    session: Session
    start_time: int


SessionPhase = Union[Inactive, Ready, Active]


class SessionLifecycle:
    """Tracks the in-progress session draft: Inactive -> Ready -> Active.

    The draft is never copied between phases. Each transition takes the
    current phase out with :meth:`_take` and installs the next one, so a draft
    is owned by exactly one phase at a time. Nothing here touches storage;
    :meth:`complete` and :meth:`stop_early` hand the finalized session back to
    the caller for saving.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock: Clock = clock or SystemClock()
        self.phase: SessionPhase = Inactive()

    @property
    def current_session(self) -> Session | None:
        phase = self.phase
        if isinstance(phase, (Ready, Active)):
            return phase.session
        if isinstance(phase, Inactive):
            return None
        assert_never(phase)

    @property
    def has_session(self) -> bool:
        return not isinstance(self.phase, Inactive)

    @property
    def is_active(self) -> bool:
        return isinstance(self.phase, Active)

    def _take(self) -> SessionPhase:
        phase, self.phase = self.phase, Inactive()
        return phase

    def create(self, name: str, description: str | None, category: str) -> Session:
        session = Session(name=name, description=description, category=category)
        self.phase = Ready(session)
        LOGGER.info("Session created: name=%s category=%s", name, category)
        return session

    def start(self) -> None:
        """Arms the draft; an already active session gets a fresh start time."""
        phase = self._take()
        if isinstance(phase, (Ready, Active)):
            self.phase = Active(session=phase.session, start_time=self._clock.now_timestamp())
        elif isinstance(phase, Inactive):
            self.phase = phase
        else:
            assert_never(phase)

    def complete(self, work_duration_secs: int) -> Session | None:
        """Finalizes a naturally finished session and keeps it as Ready.

        The recorded duration is the configured work length, not the measured
        time.
        """
        phase = self._take()
        if not isinstance(phase, Active):
            self.phase = phase
            return None
        session = phase.session
        session.started_at = phase.start_time
        session.ended_at = self._clock.now_timestamp()
        session.duration_secs = int(work_duration_secs)
        self.phase = Ready(session)
        LOGGER.info("Session completed: name=%s duration=%ss", session.name, session.duration_secs)
        return session

    def stop_early(self, elapsed_secs: int) -> Session | None:
        """Finalizes an interrupted session with the measured time and drops it.

        Zero elapsed seconds means the timer has only just started, so the
        call is ignored and the session stays active.
        """
        if elapsed_secs <= 0:
            return None
        phase = self._take()
        if not isinstance(phase, Active):
            self.phase = phase
            return None
        session = phase.session
        session.started_at = phase.start_time
        session.ended_at = self._clock.now_timestamp()
        session.duration_secs = int(elapsed_secs)
        LOGGER.info("Session stopped early: name=%s duration=%ss", session.name, session.duration_secs)
        return session
