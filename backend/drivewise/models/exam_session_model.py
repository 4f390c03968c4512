from drivewise.db import Base
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from datetime import datetime


class ExamSession(Base):
    """A scored attempt, written once when the score endpoint runs."""
    __tablename__ = "exam_sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_type = Column(String(20), default="exam", nullable=False)  # exam, practice, review

    total_questions = Column(Integer, nullable=False)
    correct_answers = Column(Integer, nullable=False)
    incorrect_answers = Column(Integer, nullable=False)
    major_faults = Column(Integer, nullable=False)
    minor_faults = Column(Integer, nullable=False)
    score = Column(Integer, nullable=False)
    max_score = Column(Integer, nullable=False)
    passed = Column(Boolean, nullable=False)
    percentage = Column(Integer, nullable=False)

    # reported by the client, not measured here
    time_taken_seconds = Column(Integer, nullable=True)
    started_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    completed_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    answers = relationship("ExamSessionAnswer", back_populates="session", cascade="all, delete-orphan", passive_deletes=True)


class ExamSessionAnswer(Base):
    __tablename__ = "exam_session_answers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(Integer, ForeignKey("exam_sessions.id", ondelete="CASCADE"), nullable=False)
    question_id = Column(Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False)

    submitted_answer = Column(JSONB, nullable=True)
    correct_answer = Column(JSONB, nullable=False)
    is_correct = Column(Boolean, nullable=False)
    is_major_fault = Column(Boolean, nullable=False)

    session = relationship("ExamSession", back_populates="answers")
