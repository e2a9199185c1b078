"""Learning-session counters: a bounded window of attempts that is opened and later closed."""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional


class SessionNotFoundError(LookupError):
    pass


class SessionClosedError(RuntimeError):
    pass


class SessionTimeError(ValueError):
    pass


@dataclass(frozen=True)
class SessionState:
    id: str
    user_id: str
    language: str
    started_at: datetime
    ended_at: Optional[datetime] = None
    questions_attempted: int = 0
    questions_correct: int = 0

    @property
    def is_open(self) -> bool:
        return self.ended_at is None

    @property
    def accuracy(self) -> float:
        if not self.questions_attempted:
            return 0.0
        return round(self.questions_correct / self.questions_attempted * 100, 2)


def record_attempt(session: SessionState, was_correct: bool) -> SessionState:
    if not session.is_open:
        raise SessionClosedError(f"Session {session.id} is already ended")
    return replace(
        session,
        questions_attempted=session.questions_attempted + 1,
        questions_correct=session.questions_correct + (1 if was_correct else 0),
    )


def end_session(session: SessionState, now: datetime) -> SessionState:
    if not session.is_open:
        raise SessionClosedError(f"Session {session.id} is already ended")
    if now < session.started_at:
        raise SessionTimeError(
            f"Session {session.id} cannot end at {now.isoformat()}, before it started at {session.started_at.isoformat()}"
        )
    return replace(session, ended_at=now)
