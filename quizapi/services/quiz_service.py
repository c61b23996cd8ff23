"""Quiz generation, scoring and retrieval."""
import logging
import uuid
from datetime import datetime
from typing import Any, List, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from quizapi.core.exceptions import NotFound, Unauthorized, ValidationError
from quizapi.models.quiz import Quiz
from quizapi.models.result import Result
from quizapi.utils.quiz_parser import parse_quiz_content
from quizapi.utils.scoring import extract_correct_answers, format_percentage, score_answers

logger = logging.getLogger(__name__)


def parse_id(value: Any):
    """UUID from a client-supplied identifier, or None if malformed."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


def _insert_for(dialect_name: str):
    if dialect_name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect_name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        return None
    return insert


class QuizService:
    def __init__(self, db: Session, generator=None):
        self.db = db
        self.generator = generator

    def generate_quiz(self, user_id, links: Any) -> Quiz:
        """Generate questions for the given article links and store them as a new quiz."""
        if not user_id:
            raise Unauthorized("Unauthorized: User ID missing.")
        if (
            not isinstance(links, list)
            or not links
            or not all(isinstance(link, str) and link.strip() for link in links)
        ):
            raise ValidationError("Invalid links provided.")

        prompt = self.generator.build_prompt(links)
        raw_text = self.generator.generate(prompt)
        content = parse_quiz_content(raw_text)

        quiz = Quiz(user_id=user_id, content=content)
        self.db.add(quiz)
        self.db.commit()
        self.db.refresh(quiz)

        logger.info("Generated quiz %s with %d questions for user %s", quiz.id, len(content), user_id)
        return quiz

    def get_owned_quiz(self, user_id, quiz_id) -> Quiz:
        quiz_uuid = parse_id(quiz_id)
        quiz = None
        if quiz_uuid is not None:
            quiz = self.db.query(Quiz).filter(
                Quiz.id == quiz_uuid,
                Quiz.user_id == user_id
            ).first()
        if not quiz:
            raise NotFound("Quiz not found")
        return quiz

    def submit_quiz(self, user_id, quiz_id, answers: Any) -> Tuple[Result, bool]:
        """
        Score submitted answers and record them.

        Returns the stored result and whether it was newly created (False when
        an earlier submission was overwritten).
        """
        quiz = self.get_owned_quiz(user_id, quiz_id)
        if not isinstance(answers, list):
            raise ValidationError("Answers must be a list")

        correct_answers = extract_correct_answers(quiz.content)
        score = score_answers(answers, correct_answers)
        total_questions = len(correct_answers)
        percentage = format_percentage(score, total_questions)

        result, created = self._upsert_result(user_id, quiz.id, score, total_questions, percentage)
        logger.info(
            "%s result for quiz %s: %d/%d",
            "Recorded" if created else "Updated", quiz.id, score, total_questions,
        )
        return result, created

    def _upsert_result(self, user_id, quiz_id, score, total_questions, percentage) -> Tuple[Result, bool]:
        now = datetime.utcnow()
        values = {
            "score": score,
            "total_questions": total_questions,
            "percentage": percentage,
            "updated_at": now,
        }

        insert = _insert_for(self.db.get_bind().dialect.name)
        if insert is not None:
            stmt = insert(Result).values(
                id=uuid.uuid4(), user_id=user_id, quiz_id=quiz_id, created_at=now, **values
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[Result.user_id, Result.quiz_id],
                set_=values,
            )
            self.db.execute(stmt)
            self.db.commit()
        else:
            existing = self._find_result(user_id, quiz_id)
            if existing:
                for key, value in values.items():
                    setattr(existing, key, value)
            else:
                self.db.add(Result(user_id=user_id, quiz_id=quiz_id, created_at=now, **values))
            self.db.commit()

        result = self._find_result(user_id, quiz_id)
        # created_at only equals this call's timestamp when the row was inserted now
        return result, result.created_at == now

    def _find_result(self, user_id, quiz_id):
        return self.db.execute(
            select(Result)
            .where(Result.user_id == user_id, Result.quiz_id == quiz_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def get_quizzes(self, user_id) -> List[Quiz]:
        if not user_id:
            raise Unauthorized("Unauthorized: User ID missing.")

        quizzes = self.db.query(Quiz).filter(
            Quiz.user_id == user_id
        ).order_by(Quiz.created_at).all()
        if not quizzes:
            raise NotFound("No quizzes found for this user.")
        return quizzes

    def get_result(self, user_id, quiz_id) -> Result:
        quiz_uuid = parse_id(quiz_id)
        result = None
        if quiz_uuid is not None:
            result = self._find_result(user_id, quiz_uuid)
        if not result:
            raise NotFound("Result not found")
        return result
