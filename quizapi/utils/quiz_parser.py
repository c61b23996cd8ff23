"""Turning raw generator output into validated quiz content."""
import json
import logging
import re
from typing import Dict, List

from pydantic import BaseModel, Field, TypeAdapter, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from quizapi.core.exceptions import DependencyError

logger = logging.getLogger(__name__)

OPTION_LABELS = ("A", "B", "C", "D")

_LEADING_FENCE = re.compile(r"^```(?:json)?", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"```$")


class GeneratedQuestion(BaseModel):
    """One multiple-choice question as returned by the generator."""

    question: str = Field(min_length=1)
    options: Dict[str, str]
    answer: str
    explanation: str = ""

    @field_validator("options", mode="before")
    @classmethod
    def label_options(cls, v):
        # a plain list of four option texts is labelled A-D in order
        if isinstance(v, list) and len(v) == len(OPTION_LABELS):
            return dict(zip(OPTION_LABELS, v))
        if isinstance(v, dict):
            return {str(k).strip().upper(): val for k, val in v.items()}
        return v

    @field_validator("options")
    @classmethod
    def four_labelled_options(cls, v):
        if sorted(v) != list(OPTION_LABELS):
            raise ValueError("options must be labelled A, B, C and D")
        return v

    @field_validator("answer", mode="before")
    @classmethod
    def normalize_answer(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @model_validator(mode="after")
    def answer_is_an_option(self):
        if self.answer not in self.options:
            raise ValueError("answer must be one of the option labels")
        return self


_questions_adapter = TypeAdapter(List[GeneratedQuestion])


def strip_code_fences(text: str) -> str:
    """Remove a leading ```json (or ```) marker and a trailing ``` marker."""
    cleaned = (text or "").strip()
    cleaned = _LEADING_FENCE.sub("", cleaned, count=1)
    cleaned = _TRAILING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def parse_quiz_content(raw_text: str) -> List[dict]:
    """
    Parse generator output into a list of question dicts.

    Accepts either a JSON array of questions or an object holding that array
    under ``questions``.

    Raises:
        DependencyError: the text is not JSON or does not match the question shape
    """
    cleaned = strip_code_fences(raw_text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error("Error parsing generator response: %s", e)
        raise DependencyError("Failed to parse quiz data") from e

    if isinstance(data, dict) and isinstance(data.get("questions"), list):
        data = data["questions"]

    if not isinstance(data, list) or not data:
        logger.error("Generator response is not a non-empty question array")
        raise DependencyError("Failed to parse quiz data")

    try:
        questions = _questions_adapter.validate_python(data)
    except PydanticValidationError as e:
        logger.error("Generator response has an unexpected shape: %s", e)
        raise DependencyError("Failed to parse quiz data") from e

    return [q.model_dump() for q in questions]
