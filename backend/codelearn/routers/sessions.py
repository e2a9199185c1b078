from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..db import get_db
from ..deps import get_session_recorder
from ..services import SessionRecorder
from ..sessions import SessionClosedError, SessionNotFoundError, SessionState, SessionTimeError
from ..skill import Language
from .auth import User, get_current_user


router = APIRouter(prefix="/sessions", tags=["sessions"])


class StartRequest(BaseModel):
    language: Language


def session_payload(session: SessionState) -> Dict[str, Any]:
    return {
        "id": session.id,
        "language": session.language,
        "started_at": session.started_at.isoformat(),
        "ended_at": session.ended_at.isoformat() if session.ended_at else None,
        "questions_attempted": session.questions_attempted,
        "questions_correct": session.questions_correct,
        "accuracy": session.accuracy,
    }


@router.post("/start")
async def start_session(
    req: StartRequest,
    user: User = Depends(get_current_user),
    recorder: SessionRecorder = Depends(get_session_recorder),
    db: Session = Depends(get_db),
):
    session = recorder.start(user.username, req.language.value)
    db.commit()
    return {"session_id": session.id}


@router.post("/{session_id}/end")
async def end_session(
    session_id: str,
    user: User = Depends(get_current_user),
    recorder: SessionRecorder = Depends(get_session_recorder),
    db: Session = Depends(get_db),
):
    try:
        session = recorder.end(session_id, user.username)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found or access denied")
    except SessionClosedError:
        raise HTTPException(status_code=409, detail="Session already ended")
    except SessionTimeError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    db.commit()
    return {"success": True, "session": session_payload(session)}


@router.get("/{session_id}")
async def get_session(
    session_id: str,
    user: User = Depends(get_current_user),
    recorder: SessionRecorder = Depends(get_session_recorder),
):
    try:
        session = recorder.get(session_id, user.username)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found or access denied")
    return session_payload(session)
