from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import Float, case, cast, func, select
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import LearningSession
from ..skill import Language


router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])


def leaderboard_rows(db: Session, language: Optional[str] = None, limit: int = 50) -> list:
    """Closed sessions aggregated per user and language, best first, ranked from 1."""
    attempted = func.coalesce(func.sum(LearningSession.questions_attempted), 0)
    correct = func.coalesce(func.sum(LearningSession.questions_correct), 0)
    accuracy = case((attempted > 0, cast(correct, Float) * 100.0 / attempted), else_=0.0)
    stmt = (
        select(
            LearningSession.user_id,
            LearningSession.language,
            func.count(LearningSession.id).label("total_sessions"),
            attempted.label("total_questions_attempted"),
            correct.label("total_questions_correct"),
            accuracy.label("accuracy"),
            func.max(LearningSession.ended_at).label("last_active"),
        )
        .where(LearningSession.ended_at.is_not(None))
        .group_by(LearningSession.user_id, LearningSession.language)
        .order_by(correct.desc(), accuracy.desc(), LearningSession.user_id)
        .limit(limit)
    )
    if language:
        stmt = stmt.where(LearningSession.language == language)

    return [
        {
            "rank": rank,
            "user_id": row.user_id,
            "display_name": row.user_id,
            "language": row.language,
            "total_sessions": row.total_sessions,
            "total_questions_attempted": row.total_questions_attempted,
            "total_questions_correct": row.total_questions_correct,
            "accuracy_percentage": round(row.accuracy, 2),
            "last_active": row.last_active.isoformat() if row.last_active else None,
        }
        for rank, row in enumerate(db.execute(stmt).all(), start=1)
    ]


@router.get("")
async def get_leaderboard(
    language: Optional[Language] = None,
    limit: int = Query(default=50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return leaderboard_rows(db, language.value if language else None, limit)
