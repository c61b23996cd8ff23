"""Database models."""
from quizapi.models.user import User
from quizapi.models.quiz import Quiz
from quizapi.models.result import Result

__all__ = [
    "User",
    "Quiz",
    "Result",
]
