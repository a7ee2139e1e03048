import uuid
from datetime import datetime

from sqlalchemy import (
    Column,
    String,
    Text,
    DateTime,
    ForeignKey,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ..database import Base


class Role:
    DEVELOPER = "developer"
    EVALUATOR = "evaluator"

    ALL = (DEVELOPER, EVALUATOR)


class SubmissionStatus:
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"

    DECISIONS = (ACCEPTED, REJECTED)


def _new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(String(100), unique=True, nullable=False)
    full_name = Column(String(255), nullable=False, default="")
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=Role.DEVELOPER)
    created_at = Column(DateTime, server_default=func.now())

    submissions = relationship("Submission", back_populates="user")


class Submission(Base):
    __tablename__ = "submissions"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    full_name = Column(String(255), nullable=False)
    email = Column(String(100), nullable=False)
    phone_number = Column(String(50), nullable=False, default="")
    location = Column(String(255), nullable=False, default="")
    hobbies = Column(Text, nullable=False, default="")
    profile_picture_url = Column(String(1024), nullable=False, default="")
    source_code_url = Column(String(1024), nullable=False)
    status = Column(
        String(20), nullable=False, default=SubmissionStatus.PENDING
    )
    feedback = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    user = relationship("User", back_populates="submissions")
