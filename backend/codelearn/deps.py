"""FastAPI dependency providers; everything is built once in create_app() and read off app.state."""
from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from .db import get_db
from .generation import AnswerJudge, QuestionGenerator
from .services import SessionRecorder, SkillTracker
from .settings import Settings
from .stores import SqlSessionStore, SqlSkillStore


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_question_generator(request: Request) -> QuestionGenerator:
    return request.app.state.question_generator


def get_answer_judge(request: Request) -> AnswerJudge:
    return request.app.state.answer_judge


def get_skill_tracker(db: Session = Depends(get_db)) -> SkillTracker:
    return SkillTracker(SqlSkillStore(db))


def get_session_recorder(db: Session = Depends(get_db)) -> SessionRecorder:
    return SessionRecorder(SqlSessionStore(db))
