"""Persistence seams for skill and session state.

Services receive a store instead of reaching for a global client. The SQLAlchemy
stores flush but never commit: the request handler owns the transaction so an
attempt, its skill update and its session counters land together or not at all.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from .models import LearningSession, UserSkill
from .sessions import SessionState
from .skill import SkillState


class SkillStore(Protocol):
    def get(self, user_id: str, language: str) -> Optional[SkillState]: ...

    def save(self, user_id: str, language: str, state: SkillState) -> None: ...

    def list_for_user(self, user_id: str) -> List[tuple]: ...


class SessionStore(Protocol):
    def create(self, user_id: str, language: str, started_at: datetime) -> SessionState: ...

    def get(self, session_id: str) -> Optional[SessionState]: ...

    def save(self, session: SessionState) -> None: ...


def _skill_from_row(row: UserSkill) -> SkillState:
    return SkillState(
        score=row.current_difficulty_score,
        streak=row.current_streak,
        best_streak=row.best_streak,
        total_attempted=row.total_questions_attempted,
        total_correct=row.correct_answers,
        last_practiced_at=row.last_practiced_at,
    )


def _session_from_row(row: LearningSession) -> SessionState:
    return SessionState(
        id=row.id,
        user_id=row.user_id,
        language=row.language,
        started_at=row.started_at,
        ended_at=row.ended_at,
        questions_attempted=row.questions_attempted,
        questions_correct=row.questions_correct,
    )


class SqlSkillStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    def _row(self, user_id: str, language: str) -> Optional[UserSkill]:
        return self.db.execute(
            select(UserSkill).where(UserSkill.user_id == user_id, UserSkill.language == language)
        ).scalar_one_or_none()

    def get(self, user_id: str, language: str) -> Optional[SkillState]:
        row = self._row(user_id, language)
        return _skill_from_row(row) if row is not None else None

    def save(self, user_id: str, language: str, state: SkillState) -> None:
        row = self._row(user_id, language)
        if row is None:
            row = UserSkill(user_id=user_id, language=language)
            self.db.add(row)
        row.current_difficulty_score = state.score
        row.current_streak = state.streak
        row.best_streak = state.best_streak
        row.total_questions_attempted = state.total_attempted
        row.correct_answers = state.total_correct
        row.last_practiced_at = state.last_practiced_at
        self.db.flush()

    def list_for_user(self, user_id: str) -> List[tuple]:
        rows = self.db.execute(
            select(UserSkill).where(UserSkill.user_id == user_id).order_by(UserSkill.language)
        ).scalars()
        return [(row.language, _skill_from_row(row)) for row in rows]


class SqlSessionStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    def create(self, user_id: str, language: str, started_at: datetime) -> SessionState:
        row = LearningSession(
            id=uuid.uuid4().hex,
            user_id=user_id,
            language=language,
            started_at=started_at,
            questions_attempted=0,
            questions_correct=0,
        )
        self.db.add(row)
        self.db.flush()
        return _session_from_row(row)

    def get(self, session_id: str) -> Optional[SessionState]:
        row = self.db.get(LearningSession, session_id)
        return _session_from_row(row) if row is not None else None

    def save(self, session: SessionState) -> None:
        row = self.db.get(LearningSession, session.id)
        if row is None:
            row = LearningSession(id=session.id, user_id=session.user_id, language=session.language)
            self.db.add(row)
        row.started_at = session.started_at
        row.ended_at = session.ended_at
        row.questions_attempted = session.questions_attempted
        row.questions_correct = session.questions_correct
        self.db.flush()
