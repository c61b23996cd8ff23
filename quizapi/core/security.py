"""Security utilities for JWT and password hashing."""
from datetime import datetime, timedelta, timezone
from typing import Optional
import uuid

from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from quizapi.core.config import settings
from quizapi.core.exceptions import Unauthorized
from quizapi.db.sessions import get_db
from quizapi.models.user import User


# Password hashing context
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

# JWT bearer token scheme; missing headers are reported as 401 by get_current_user
security = HTTPBearer(auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a hashed password."""
    return pwd_context.verify(_truncate_for_bcrypt(plain_password), hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(_truncate_for_bcrypt(password))


def _truncate_for_bcrypt(password: str) -> str:
    # bcrypt only reads 72 bytes; cut on bytes without splitting a UTF-8 sequence
    if not isinstance(password, str):
        return password
    return password.encode("utf-8")[:72].decode("utf-8", "ignore")


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Sign ``data`` with an ``exp`` claim; lifetime defaults to ACCESS_TOKEN_EXPIRE_MINUTES."""
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {**data, "exp": datetime.now(timezone.utc) + lifetime}
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_user_token(user: User) -> str:
    return create_access_token({"sub": str(user.id)})


def decode_token(token: str) -> dict:
    """Decode and validate a JWT token (signature and expiry)."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise Unauthorized("Invalid or expired token")


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Resolve the bearer token to a stored user; every failure is a 401."""
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Unauthorized: token missing")

    payload = decode_token(credentials.credentials)
    
    user_id = payload.get("sub")
    if not user_id:
        raise Unauthorized("Unauthorized: User ID missing.")
    try:
        user_uuid = uuid.UUID(str(user_id))
    except ValueError:
        raise Unauthorized("Invalid authentication credentials")
    
    user = db.query(User).filter(User.id == user_uuid).first()
    if user is None:
        raise Unauthorized("Invalid authentication credentials")
    
    return user
