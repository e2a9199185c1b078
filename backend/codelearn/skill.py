"""Per-user, per-language skill score and the update applied after each judged answer."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional

from .timeutil import utcnow

logger = logging.getLogger(__name__)


MIN_SCORE = 1
MAX_SCORE = 100
DEFAULT_SCORE = 10

HOT_STREAK = 3
HOT_STREAK_GAIN = 5
ABOVE_LEVEL_GAIN = 3
BASELINE_GAIN = 2

ON_STREAK_PENALTY = 2
BELOW_LEVEL_PENALTY = 5
BASELINE_PENALTY = 3


class Language(str, Enum):
    javascript = "javascript"
    python = "python"
    java = "java"
    typescript = "typescript"
    go = "go"
    rust = "rust"


@dataclass(frozen=True)
class SkillState:
    score: int = DEFAULT_SCORE
    streak: int = 0
    best_streak: int = 0
    total_attempted: int = 0
    total_correct: int = 0
    last_practiced_at: Optional[datetime] = None


def clamp_score(value: int) -> int:
    return max(MIN_SCORE, min(MAX_SCORE, value))


def normalize_difficulty(value) -> int:
    """Coerce a question difficulty into 1-100.

    Difficulties come from the LLM and are not trusted: floats are rounded and
    anything outside the range is clamped, with a warning, instead of failing
    the attempt.
    """
    try:
        number = float(value)
    except OverflowError:
        # Only ints too large for a float end up here
        number = math.inf if value > 0 else -math.inf
    except (TypeError, ValueError):
        logger.warning("Non-numeric question difficulty %r; using %d", value, DEFAULT_SCORE)
        return DEFAULT_SCORE
    if math.isnan(number):
        logger.warning("Non-numeric question difficulty %r; using %d", value, DEFAULT_SCORE)
        return DEFAULT_SCORE
    if math.isinf(number):
        clamped = MAX_SCORE if number > 0 else MIN_SCORE
        logger.warning("Question difficulty %r out of range; clamped to %d", value, clamped)
        return clamped
    number = int(round(number))
    clamped = clamp_score(number)
    if clamped != number:
        logger.warning("Question difficulty %r out of range; clamped to %d", value, clamped)
    return clamped


def _gain(state: SkillState, difficulty: int) -> int:
    # Streak bonus wins over the above-level bonus
    if state.streak >= HOT_STREAK:
        return HOT_STREAK_GAIN
    if difficulty > state.score:
        return ABOVE_LEVEL_GAIN
    return BASELINE_GAIN


def _penalty(state: SkillState, difficulty: int) -> int:
    if state.streak > 0:
        return ON_STREAK_PENALTY
    if difficulty < state.score:
        return BELOW_LEVEL_PENALTY
    return BASELINE_PENALTY


def apply_result(
    state: SkillState,
    was_correct: bool,
    question_difficulty: int,
    *,
    now: Optional[datetime] = None,
) -> SkillState:
    """Return the skill state after one judged answer.

    Pure: ``state`` is not modified. ``now`` defaults to the current UTC time.
    """
    difficulty = normalize_difficulty(question_difficulty)
    if was_correct:
        score = clamp_score(state.score + _gain(state, difficulty))
        streak = state.streak + 1
    else:
        score = clamp_score(state.score - _penalty(state, difficulty))
        streak = 0
    return replace(
        state,
        score=score,
        streak=streak,
        best_streak=max(state.best_streak, streak),
        total_attempted=state.total_attempted + 1,
        total_correct=state.total_correct + (1 if was_correct else 0),
        last_practiced_at=now or utcnow(),
    )


def difficulty_label(score: int) -> str:
    if score <= 20:
        return "beginner"
    if score <= 40:
        return "easy"
    if score <= 60:
        return "medium"
    if score <= 80:
        return "hard"
    return "expert"
