"""Quiz routes."""
from datetime import datetime
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field

from quizapi.core.security import get_current_user
from quizapi.db.sessions import get_db
from quizapi.models.quiz import Quiz
from quizapi.models.result import Result
from quizapi.models.user import User
from quizapi.services.quiz_service import QuizService


router = APIRouter(prefix="/quiz", tags=["Quiz"])


def get_quiz_service(request: Request, db: Session = Depends(get_db)) -> QuizService:
    return QuizService(db, generator=request.app.state.quiz_generator)


# Request/Response schemas
class GenerateQuizRequest(BaseModel):
    # validated by the service so every bad shape gets the same message
    links: Any = None


class SubmitQuizRequest(BaseModel):
    quiz_id: str = Field(alias="quizID")
    # any JSON value; entries that are not the correct label simply score as misses
    answers: List[Any]

    class Config:
        populate_by_name = True


class QuizResponse(BaseModel):
    id: str = Field(alias="_id")
    user_id: str = Field(alias="userID")
    quiz: Any
    attempt: bool
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    class Config:
        populate_by_name = True


class GenerateQuizResponse(BaseModel):
    message: str = "Quiz generated successfully."
    quiz: QuizResponse


class QuizListResponse(BaseModel):
    quizzes: List[QuizResponse]


class SubmitQuizResponse(BaseModel):
    message: str
    score: int
    total_questions: int = Field(alias="totalQuestions")
    percentage: str

    class Config:
        populate_by_name = True


class ResultResponse(BaseModel):
    id: str = Field(alias="_id")
    user_id: str = Field(alias="userID")
    quiz_id: str = Field(alias="quizID")
    score: int
    total_questions: int = Field(alias="totalQuestions")
    percentage: str
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    class Config:
        populate_by_name = True


class ResultEnvelope(BaseModel):
    message: str = "Result retrieved successfully"
    result: ResultResponse


def _quiz_response(quiz: Quiz) -> QuizResponse:
    return QuizResponse(
        id=str(quiz.id),
        user_id=str(quiz.user_id),
        quiz=quiz.content,
        attempt=bool(quiz.attempt),
        created_at=quiz.created_at
    )


def _result_response(result: Result) -> ResultResponse:
    return ResultResponse(
        id=str(result.id),
        user_id=str(result.user_id),
        quiz_id=str(result.quiz_id),
        score=result.score,
        total_questions=result.total_questions,
        percentage=result.percentage,
        created_at=result.created_at,
        updated_at=result.updated_at
    )


@router.post("/generate-quiz", response_model=GenerateQuizResponse, status_code=status.HTTP_201_CREATED)
def generate_quiz(
    request: GenerateQuizRequest,
    current_user: User = Depends(get_current_user),
    service: QuizService = Depends(get_quiz_service)
):
    """
    Generate a quiz from a list of article links.
    
    This endpoint:
    1. Builds a prompt from the links
    2. Calls the text generator
    3. Validates the returned questions
    4. Saves and returns the quiz
    
    Raises:
        400: links missing, not a list, or empty
        500: generator failure or unparseable output
    """
    quiz = service.generate_quiz(current_user.id, request.links)
    return GenerateQuizResponse(quiz=_quiz_response(quiz))


@router.put("/submit-quiz", response_model=SubmitQuizResponse)
def submit_quiz(
    request: SubmitQuizRequest,
    current_user: User = Depends(get_current_user),
    service: QuizService = Depends(get_quiz_service)
):
    """Score answers by position and store (or overwrite) the user's result."""
    result, created = service.submit_quiz(current_user.id, request.quiz_id, request.answers)
    return SubmitQuizResponse(
        message="Quiz submitted successfully" if created else "Quiz submission updated successfully",
        score=result.score,
        total_questions=result.total_questions,
        percentage=result.percentage
    )


@router.get("/get-quiz", response_model=QuizListResponse)
def get_quiz(
    current_user: User = Depends(get_current_user),
    service: QuizService = Depends(get_quiz_service)
):
    quizzes = service.get_quizzes(current_user.id)
    return QuizListResponse(quizzes=[_quiz_response(q) for q in quizzes])


@router.get("/result/{quiz_id}", response_model=ResultEnvelope)
def get_result(
    quiz_id: str,
    current_user: User = Depends(get_current_user),
    service: QuizService = Depends(get_quiz_service)
):
    result = service.get_result(current_user.id, quiz_id)
    return ResultEnvelope(result=_result_response(result))
