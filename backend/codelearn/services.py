"""Skill tracker and session recorder services built on the injected stores."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from .sessions import SessionNotFoundError, SessionState, end_session, record_attempt
from .skill import SkillState, apply_result
from .stores import SessionStore, SkillStore
from .timeutil import utcnow

logger = logging.getLogger(__name__)


class SkillTracker:
    def __init__(self, store: SkillStore) -> None:
        self.store = store

    def current(self, user_id: str, language: str) -> SkillState:
        """Return the user's state for ``language``, creating the default on first use."""
        state = self.store.get(user_id, language)
        if state is None:
            state = SkillState()
            self.store.save(user_id, language, state)
            logger.info("Created skill state for %s/%s at score %d", user_id, language, state.score)
        return state

    def record(
        self,
        user_id: str,
        language: str,
        was_correct: bool,
        question_difficulty: int,
        *,
        now: Optional[datetime] = None,
    ) -> SkillState:
        previous = self.store.get(user_id, language) or SkillState()
        updated = apply_result(previous, was_correct, question_difficulty, now=now)
        self.store.save(user_id, language, updated)
        logger.debug(
            "Skill %s/%s: %d -> %d (correct=%s, difficulty=%s, streak=%d)",
            user_id, language, previous.score, updated.score, was_correct, question_difficulty, updated.streak,
        )
        return updated

    def all_for_user(self, user_id: str) -> List[tuple]:
        return self.store.list_for_user(user_id)


class SessionRecorder:
    def __init__(self, store: SessionStore) -> None:
        self.store = store

    def start(self, user_id: str, language: str, *, now: Optional[datetime] = None) -> SessionState:
        session = self.store.create(user_id, language, now or utcnow())
        logger.info("Started session %s for %s (%s)", session.id, user_id, language)
        return session

    def get(self, session_id: str, user_id: str) -> SessionState:
        # A session owned by someone else is reported exactly like a missing one
        session = self.store.get(session_id)
        if session is None or session.user_id != user_id:
            raise SessionNotFoundError(f"Session {session_id} not found")
        return session

    def record_attempt(self, session_id: str, user_id: str, was_correct: bool) -> SessionState:
        session = record_attempt(self.get(session_id, user_id), was_correct)
        self.store.save(session)
        return session

    def end(self, session_id: str, user_id: str, *, now: Optional[datetime] = None) -> SessionState:
        session = end_session(self.get(session_id, user_id), now or utcnow())
        self.store.save(session)
        logger.info(
            "Ended session %s: %d/%d correct over %s",
            session.id, session.questions_correct, session.questions_attempted,
            session.ended_at - session.started_at,
        )
        return session
