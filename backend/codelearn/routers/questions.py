from __future__ import annotations

import json
import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..db import get_db
from ..deps import get_answer_judge, get_question_generator, get_session_recorder, get_skill_tracker
from ..generation import AnswerJudge, GenerationError, QuestionGenerator
from ..llm_client import LLMUnavailableError
from ..models import Question, UserProgress
from ..services import SessionRecorder, SkillTracker
from ..sessions import SessionClosedError, SessionNotFoundError
from ..skill import Language, difficulty_label
from .auth import User, get_current_user


router = APIRouter(prefix="/questions", tags=["questions"])

logger = logging.getLogger(__name__)

RECENT_ATTEMPTS = 5
MAX_PREVIOUS_CONCEPTS = 10


class GenerateRequest(BaseModel):
    language: Language
    session_id: Optional[str] = None


class CheckRequest(BaseModel):
    question_id: str
    user_answer: str = Field(min_length=1)
    time_spent_seconds: Optional[int] = Field(default=None, ge=0)
    session_id: Optional[str] = None


def _recent_context(db: Session, user_id: str) -> tuple:
    rows = db.execute(
        select(UserProgress.is_correct, Question.concepts_json)
        .join(Question, Question.id == UserProgress.question_id)
        .where(UserProgress.user_id == user_id)
        .order_by(UserProgress.attempted_at.desc(), UserProgress.id.desc())
        .limit(RECENT_ATTEMPTS)
    ).all()
    concepts: List[str] = []
    for _, concepts_json in rows:
        concepts.extend(json.loads(concepts_json or "[]"))
    was_last_correct = rows[0][0] if rows else None
    return concepts[:MAX_PREVIOUS_CONCEPTS], was_last_correct


def _require_open_session(recorder: SessionRecorder, session_id: str, user_id: str, language: str) -> None:
    try:
        session = recorder.get(session_id, user_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    if not session.is_open:
        raise HTTPException(status_code=409, detail="Session already ended")
    if session.language != language:
        raise HTTPException(status_code=409, detail="Session is for a different language")


@router.post("/generate")
async def generate_question(
    req: GenerateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    tracker: SkillTracker = Depends(get_skill_tracker),
    recorder: SessionRecorder = Depends(get_session_recorder),
    generator: QuestionGenerator = Depends(get_question_generator),
):
    language = req.language.value
    if req.session_id:
        _require_open_session(recorder, req.session_id, user.username, language)
    skill = tracker.current(user.username, language)
    db.commit()
    previous_concepts, was_last_correct = _recent_context(db, user.username)
    try:
        generated = await generator.generate(language, skill.score, previous_concepts, was_last_correct)
    except (GenerationError, LLMUnavailableError) as exc:
        logger.error("Question generation failed for %s/%s: %s", user.username, language, exc)
        raise HTTPException(status_code=500, detail="Failed to generate question")

    question = Question(
        id=uuid.uuid4().hex,
        code_snippet=generated.code_snippet,
        question_text=generated.question,
        correct_answer=generated.correct_answer,
        explanation=generated.explanation,
        difficulty=difficulty_label(generated.difficulty_score),
        language=language,
        concepts_json=json.dumps(generated.concepts),
        difficulty_score=generated.difficulty_score,
        created_by=user.username,
    )
    db.add(question)
    db.commit()
    # The answer stays server-side until the attempt is judged
    return {
        "id": question.id,
        "code_snippet": question.code_snippet,
        "question": question.question_text,
        "concepts": generated.concepts,
        "difficulty": question.difficulty,
        "difficulty_score": question.difficulty_score,
        "current_score": skill.score,
    }


@router.post("/check")
async def check_answer(
    req: CheckRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    tracker: SkillTracker = Depends(get_skill_tracker),
    recorder: SessionRecorder = Depends(get_session_recorder),
    judge: AnswerJudge = Depends(get_answer_judge),
):
    question = db.get(Question, req.question_id)
    if question is None:
        raise HTTPException(status_code=404, detail="Question not found")
    if req.session_id:
        _require_open_session(recorder, req.session_id, user.username, question.language)

    try:
        verdict = await judge.check(question.question_text, question.correct_answer, req.user_answer)
    except (GenerationError, LLMUnavailableError) as exc:
        logger.error("Answer check failed for question %s: %s", question.id, exc)
        raise HTTPException(status_code=500, detail="Failed to check answer")

    # Attempt row, skill update and session counters commit together
    try:
        db.add(UserProgress(
            user_id=user.username,
            question_id=question.id,
            user_answer=req.user_answer,
            is_correct=verdict.is_correct,
            time_spent_seconds=req.time_spent_seconds,
        ))
        skill = tracker.record(user.username, question.language, verdict.is_correct, question.difficulty_score)
        if req.session_id:
            recorder.record_attempt(req.session_id, user.username, verdict.is_correct)
        db.commit()
    except SessionNotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Session not found")
    except SessionClosedError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Session already ended")
    except Exception:
        db.rollback()
        raise

    return {
        "is_correct": verdict.is_correct,
        "feedback": verdict.feedback,
        "hint": verdict.hint,
        "correct_answer": question.correct_answer,
        "explanation": question.explanation or "No explanation available",
        "new_difficulty_score": skill.score,
        "streak": skill.streak,
        "best_streak": skill.best_streak,
    }
