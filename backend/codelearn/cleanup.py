from __future__ import annotations
import logging
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy import select
from sqlalchemy.orm import Session

from .models import LearningSession
from .timeutil import utcnow

logger = logging.getLogger(__name__)


def close_stale_sessions(db: Session, max_age: timedelta, *, now: Optional[datetime] = None) -> int:
	"""Close sessions that were opened more than ``max_age`` ago and never ended.

	Skill rows are never touched: only current session windows are tidied up.
	"""
	now = now or utcnow()
	threshold = now - max_age
	stale = db.execute(
		select(LearningSession).where(
			LearningSession.ended_at.is_(None),
			LearningSession.started_at < threshold,
		)
	).scalars().all()
	for row in stale:
		row.ended_at = now
	db.commit()
	if stale:
		logger.info("Closed %d stale session(s) opened before %s", len(stale), threshold.isoformat())
	return len(stale)
