"""LLM-backed question generator and answer judge."""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .llm_client import GenerationError, LLMClient
from .prompts import (
    ANSWER_SYSTEM_PROMPT,
    QUESTION_SYSTEM_PROMPT,
    build_answer_check_prompt,
    build_question_prompt,
)
from .skill import normalize_difficulty

logger = logging.getLogger(__name__)


class GeneratedQuestion(BaseModel):
    code_snippet: str = Field(min_length=10)
    question: str = Field(min_length=10)
    correct_answer: str = Field(min_length=1)
    explanation: str = Field(default="")
    concepts: List[str] = Field(min_length=1, max_length=5)
    difficulty_score: int

    @field_validator("difficulty_score", mode="before")
    @classmethod
    def _clamp_difficulty(cls, value: Any) -> int:
        return normalize_difficulty(value)


class AnswerCheck(BaseModel):
    is_correct: bool
    feedback: str = Field(min_length=1)
    hint: Optional[str] = None


def extract_json_object(text: str) -> Dict[str, Any]:
    """Pull the first JSON object out of an LLM reply (raw, fenced, or wrapped in prose)."""
    candidates = [text.strip()]
    code_block = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", text)
    if code_block:
        candidates.append(code_block.group(1))
    first = text.find("{")
    last = text.rfind("}")
    if first != -1 and last > first:
        candidates.append(text[first : last + 1])
    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(data, dict):
            return data
    raise GenerationError("LLM did not return a valid JSON object")


def parse_question(raw: str) -> GeneratedQuestion:
    try:
        return GeneratedQuestion.model_validate(extract_json_object(raw))
    except ValidationError as exc:
        logger.warning("Rejected generated question: %s", exc)
        raise GenerationError("Invalid question format from LLM") from exc


def parse_answer_check(raw: str) -> AnswerCheck:
    try:
        return AnswerCheck.model_validate(extract_json_object(raw))
    except ValidationError as exc:
        logger.warning("Rejected answer check: %s", exc)
        raise GenerationError("Invalid answer check format from LLM") from exc


class QuestionGenerator:
    def __init__(self, client: LLMClient) -> None:
        self.client = client

    async def generate(
        self,
        language: str,
        difficulty: int,
        previous_concepts: Optional[List[str]] = None,
        was_last_correct: Optional[bool] = None,
    ) -> GeneratedQuestion:
        prompt = build_question_prompt(language, difficulty, previous_concepts, was_last_correct)
        return await self.client.chat(
            [
                {"role": "system", "content": QUESTION_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=0.7,
            max_tokens=1000,
            parse=parse_question,
        )


class AnswerJudge:
    def __init__(self, client: LLMClient) -> None:
        self.client = client

    async def check(self, question: str, correct_answer: str, user_answer: str) -> AnswerCheck:
        return await self.client.chat(
            [
                {"role": "system", "content": ANSWER_SYSTEM_PROMPT},
                {"role": "user", "content": build_answer_check_prompt(question, correct_answer, user_answer)},
            ],
            temperature=0.3,
            max_tokens=500,
            parse=parse_answer_check,
        )
