"""Authentication and password recovery routes."""
from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, EmailStr, Field, field_validator

from quizapi.core.exceptions import RecoveryRoute
from quizapi.db.sessions import get_db
from quizapi.services.auth_service import AuthService


router = APIRouter(prefix="/auth", tags=["Authentication"])
recovery_router = APIRouter(prefix="/auth", tags=["Password Recovery"], route_class=RecoveryRoute)


def get_auth_service(request: Request, db: Session = Depends(get_db)) -> AuthService:
    return AuthService(db, mailer=request.app.state.mailer)


# Request/Response schemas
class RegisterRequest(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v):
        if not v.strip():
            raise ValueError("Name is required")
        return v.strip()


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class SendOtpRequest(BaseModel):
    email: Optional[EmailStr] = None


class RecoveryRequest(BaseModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    otp: Optional[str] = None

    @field_validator("otp", mode="before")
    @classmethod
    def otp_as_text(cls, v: Any):
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class UserResponse(BaseModel):
    id: str = Field(alias="_id")
    name: str
    email: str
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    class Config:
        populate_by_name = True


class LoginUserResponse(BaseModel):
    id: str = Field(alias="_id")
    name: str
    email: str

    class Config:
        populate_by_name = True


class RegisterResponse(BaseModel):
    message: str = "User registered successfully"
    user: UserResponse
    token: str


class LoginResponse(BaseModel):
    message: str = "Login successful"
    user: LoginUserResponse
    token: str


class AckResponse(BaseModel):
    success: bool = True
    message: str


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(request: RegisterRequest, service: AuthService = Depends(get_auth_service)):
    """
    Register a new user.
    
    - Creates user account with hashed password
    - Returns the user (without password) and a JWT access token
    """
    user, token = service.register(request.name, request.email, request.password)
    return RegisterResponse(
        user=UserResponse(
            id=str(user.id),
            name=user.name,
            email=user.email,
            created_at=user.created_at
        ),
        token=token
    )


@router.post("/login", response_model=LoginResponse)
def login(request: LoginRequest, service: AuthService = Depends(get_auth_service)):
    """
    Login with email and password.
    
    Unknown email and wrong password produce the same 401 response.
    """
    user, token = service.login(request.email, request.password)
    return LoginResponse(
        user=LoginUserResponse(id=str(user.id), name=user.name, email=user.email),
        token=token
    )


@recovery_router.post("/send-otp-password", response_model=AckResponse)
async def send_otp_password(request: SendOtpRequest, service: AuthService = Depends(get_auth_service)):
    """Email a six-digit password reset code to a registered address."""
    message = await service.send_password_reset_otp(request.email)
    return AckResponse(message=message)


@recovery_router.post("/recovery-password", response_model=AckResponse)
def recovery_password(request: RecoveryRequest, service: AuthService = Depends(get_auth_service)):
    """Set a new password using a valid, unexpired reset code."""
    service.reset_password(request.email, request.password, request.otp)
    return AckResponse(message="Password updated successfully")
