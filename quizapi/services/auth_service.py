"""Account registration, login and OTP-based password recovery."""
import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional, Tuple

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from quizapi.core.config import settings
from quizapi.core.exceptions import Conflict, NotFound, Unauthorized, ValidationError
from quizapi.core.security import create_user_token, get_password_hash, verify_password
from quizapi.models.user import User
from quizapi.services.email_service import OTP_SUBJECT, render_otp_message

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


def generate_otp() -> str:
    """Six-digit numeric code, uniform over 100000-999999."""
    return str(100000 + secrets.randbelow(900000))


class AuthService:
    def __init__(self, db: Session, mailer=None):
        self.db = db
        self.mailer = mailer

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def register(self, name: str, email: str, password: str) -> Tuple[User, str]:
        """Create an account and return it with a fresh access token."""
        if self.get_user_by_email(email):
            raise Conflict("Email already in use")

        user = User(
            name=name,
            email=email,
            password_hash=get_password_hash(password)
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # concurrent registration with the same email
            self.db.rollback()
            raise Conflict("Email already in use")
        self.db.refresh(user)

        logger.info("Registered user %s", user.id)
        return user, create_user_token(user)

    def login(self, email: str, password: str) -> Tuple[User, str]:
        user = self.get_user_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            logger.info("Failed login attempt")
            raise Unauthorized(INVALID_CREDENTIALS)

        return user, create_user_token(user)

    async def send_password_reset_otp(self, email: Optional[str]) -> str:
        """Store a new reset code on the account and mail it to the user."""
        if not email:
            raise ValidationError("Please provide an email address")

        # blocking ORM work stays off the event loop
        to_email, name, otp = await run_in_threadpool(self._store_reset_otp, email)

        await self.mailer.send_email(
            to_email,
            OTP_SUBJECT,
            render_otp_message(name, otp, settings.OTP_EXPIRY_MINUTES),
        )
        return f"OTP sent successfully to {email}"

    def _store_reset_otp(self, email: str) -> Tuple[str, str, str]:
        user = self.get_user_by_email(email)
        if not user:
            raise NotFound("Email not registered")

        otp = generate_otp()
        user.email_otp = otp
        user.otp_expiry = datetime.utcnow() + timedelta(minutes=settings.OTP_EXPIRY_MINUTES)
        self.db.commit()
        logger.info("Issued password reset OTP for user %s", user.id)
        return user.email, user.name, otp

    def reset_password(self, email: Optional[str], password: Optional[str], otp: Optional[str]) -> None:
        if not email or not password or not otp:
            raise ValidationError("Email, password, and OTP are required")

        user = self.get_user_by_email(email)
        if not user:
            raise NotFound("User not found")

        stored_otp = user.email_otp
        expiry = user.otp_expiry
        otp_matches = stored_otp is not None and secrets.compare_digest(
            otp.encode("utf-8"), stored_otp.encode("utf-8")
        )
        if not otp_matches or expiry is None or expiry <= datetime.utcnow():
            raise ValidationError("Invalid or expired OTP")

        user.password_hash = get_password_hash(password)
        user.email_otp = None
        user.otp_expiry = None
        self.db.commit()
        logger.info("Password reset for user %s", user.id)
