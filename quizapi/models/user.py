"""User model."""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Uuid
from sqlalchemy.orm import relationship, deferred
from quizapi.db.base import Base


class User(Base):
    """Registered account; OTP columns are only loaded when accessed."""
    
    __tablename__ = "users"
    
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    email = Column(String(150), unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    email_otp = deferred(Column(String(6), nullable=True))
    otp_expiry = deferred(Column(DateTime, nullable=True))
    created_at = Column(DateTime, default=datetime.utcnow)
    
    # Relationships
    quizzes = relationship("Quiz", back_populates="user", cascade="all, delete-orphan")
    results = relationship("Result", back_populates="user", cascade="all, delete-orphan")
