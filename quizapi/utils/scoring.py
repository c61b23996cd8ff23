"""Quiz scoring helpers."""
from typing import Any, List, Optional, Sequence


def extract_correct_answers(content: Any) -> List[Optional[str]]:
    """Correct option label per question; None where the question has no usable answer."""
    if not isinstance(content, list):
        return []
    answers = []
    for question in content:
        answer = question.get("answer") if isinstance(question, dict) else None
        answers.append(answer if isinstance(answer, str) and answer else None)
    return answers


def score_answers(submitted: Sequence[Any], correct: Sequence[Optional[str]]) -> int:
    """Positional comparison; indices past either sequence are not scored."""
    return sum(
        1
        for given, expected in zip(submitted, correct)
        if expected is not None and given == expected
    )


def format_percentage(score: int, total_questions: int) -> str:
    """``score / total`` as e.g. ``"66.67%"``; a quiz with no questions is ``"0.00%"``."""
    if total_questions <= 0:
        return "0.00%"
    return f"{score / total_questions * 100:.2f}%"
