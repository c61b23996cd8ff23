"""Quiz model."""
import uuid
from datetime import datetime
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, JSON, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from quizapi.db.base import Base


class Quiz(Base):
    """Generated quiz owned by a single user.

    ``content`` holds the parsed question list exactly as produced by the
    generator. ``attempt`` is kept for existing clients but is never updated;
    submissions are recorded as :class:`quizapi.models.result.Result` rows.
    """
    
    __tablename__ = "quizzes"
    
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False)
    attempt = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    
    # Relationships
    user = relationship("User", back_populates="quizzes")
    results = relationship("Result", back_populates="quiz", cascade="all, delete-orphan")
