from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..deps import get_skill_tracker
from ..services import SkillTracker
from ..skill import Language, SkillState, difficulty_label
from .auth import User, get_current_user


router = APIRouter(prefix="/skills", tags=["skills"])


def skill_payload(language: str, state: SkillState) -> dict:
    return {
        "language": language,
        "score": state.score,
        "difficulty": difficulty_label(state.score),
        "streak": state.streak,
        "best_streak": state.best_streak,
        "total_attempted": state.total_attempted,
        "total_correct": state.total_correct,
        "last_practiced_at": state.last_practiced_at.isoformat() if state.last_practiced_at else None,
    }


@router.get("")
async def list_skills(user: User = Depends(get_current_user), tracker: SkillTracker = Depends(get_skill_tracker)):
    return [skill_payload(language, state) for language, state in tracker.all_for_user(user.username)]


@router.get("/{language}")
async def get_skill(
    language: Language,
    user: User = Depends(get_current_user),
    tracker: SkillTracker = Depends(get_skill_tracker),
    db: Session = Depends(get_db),
):
    state = tracker.current(user.username, language.value)
    db.commit()
    return skill_payload(language.value, state)
