from __future__ import annotations

from typing import List, Optional


QUESTION_SYSTEM_PROMPT = "You are a programming education expert. Always respond with valid JSON."
ANSWER_SYSTEM_PROMPT = "You are a fair and encouraging programming teacher. Always respond with valid JSON."

_LEVEL_DESCRIPTIONS = [
    (20, "beginner (basic syntax, simple variables)"),
    (40, "easy (simple functions, basic control flow)"),
    (60, "medium (intermediate concepts, basic algorithms)"),
    (80, "hard (advanced concepts, complex logic)"),
]
_EXPERT_DESCRIPTION = "expert (edge cases, performance optimization, advanced patterns)"


def describe_difficulty(difficulty: int) -> str:
    for ceiling, description in _LEVEL_DESCRIPTIONS:
        if difficulty <= ceiling:
            return description
    return _EXPERT_DESCRIPTION


def build_question_prompt(
    language: str,
    difficulty: int,
    previous_concepts: Optional[List[str]] = None,
    was_last_correct: Optional[bool] = None,
) -> str:
    if was_last_correct is True:
        adjustment = "Make this slightly harder than the previous question."
    elif was_last_correct is False:
        adjustment = "Make this slightly easier to rebuild confidence."
    else:
        adjustment = "Start at an appropriate difficulty level."

    if previous_concepts:
        concept_guidance = (
            f"Avoid repeating these concepts too directly: {', '.join(previous_concepts)}. "
            "Introduce new related concepts."
        )
    else:
        concept_guidance = "Choose fundamental concepts appropriate for the difficulty level."

    return (
        f"You are an expert {language} programming instructor. Generate a code comprehension question.\n\n"
        f"Difficulty: {describe_difficulty(difficulty)} (Score: {difficulty}/100)\n"
        f"{adjustment}\n"
        f"{concept_guidance}\n\n"
        "Return ONLY a JSON object with keys:\n"
        f'- "code_snippet": well-commented, properly formatted {language} code (5-20 lines)\n'
        '- "question": e.g. what does this code output, or what is the value of a variable\n'
        '- "correct_answer": the exact correct answer (concise, specific)\n'
        '- "explanation": why this is the answer (2-3 sentences)\n'
        '- "concepts": array of 1-3 programming concepts covered\n'
        f'- "difficulty_score": integer, the actual difficulty ({difficulty}, adjust by at most 2)\n\n'
        "Rules:\n"
        "1. Code must be syntactically correct and runnable.\n"
        "2. The question must have ONE unambiguous correct answer.\n"
        "3. Avoid trick questions and obscure language features.\n"
        "4. Include helpful comments in code for beginner/easy levels.\n"
        "5. The answer must be testable: exact output, exact value, or a clear explanation.\n"
        "No markdown, no extra commentary."
    )


def build_answer_check_prompt(question: str, correct_answer: str, user_answer: str) -> str:
    return (
        "You are evaluating a student's answer to a programming question.\n\n"
        f"Question: {question}\n"
        f"Expected Answer: {correct_answer}\n"
        f"Student's Answer: {user_answer}\n\n"
        "Determine if the student's answer is correct. Be lenient with formatting and capitalization, "
        "but strict on technical accuracy.\n\n"
        "Return ONLY a JSON object with keys:\n"
        '- "is_correct": true or false\n'
        '- "feedback": encouraging feedback explaining why the answer is right or wrong\n'
        '- "hint": if wrong, a helpful hint that does not give away the answer\n\n'
        "Examples:\n"
        '- "15" vs "15.0" is correct (equivalent)\n'
        '- "fifteen" vs "15" is incorrect unless the question allows text\n'
        '- "Hello World" vs "hello world" is correct unless case is specified'
    )
