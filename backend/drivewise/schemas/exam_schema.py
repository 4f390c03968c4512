from pydantic import Field, field_validator, model_validator
from typing import Any, List, Optional
from datetime import datetime

from .question_schema import CamelModel, QuestionRead


class ExamConfig(CamelModel):
    """Jurisdiction ruleset. Passed to the scorer, never hardcoded in it."""
    total_questions: int = Field(..., gt=0)
    pass_threshold: int = Field(..., ge=0)
    major_fault_penalty: int = Field(..., ge=0)
    minor_fault_penalty: int = Field(..., ge=0)
    max_score: int = Field(..., gt=0)
    time_limit_minutes: int = Field(..., gt=0)

    @model_validator(mode="after")
    def threshold_within_score(self):
        if self.pass_threshold > self.max_score:
            raise ValueError("pass_threshold cannot exceed max_score")
        return self


class GenerateExamRequest(CamelModel):
    locale: Optional[str] = None


class GenerateExamResponse(CamelModel):
    config: ExamConfig
    generated_at: datetime
    # order is the order of the exam, stable for the attempt
    questions: List[QuestionRead]


class AnswerSubmission(CamelModel):
    question_id: int
    # raw value, shape depends on the question's answer type; None = unanswered
    answer: Any = None


class ScoreExamRequest(CamelModel):
    answers: List[AnswerSubmission]
    session_type: str = "exam"
    started_at: Optional[datetime] = None
    time_taken_seconds: Optional[int] = None
    locale: Optional[str] = None

    @field_validator("session_type")
    @classmethod
    def session_type_known(cls, v):
        if v not in ("exam", "practice", "review"):
            raise ValueError("session_type must be one of exam, practice, review")
        return v

    @field_validator("time_taken_seconds")
    @classmethod
    def time_taken_not_negative(cls, v):
        if v is not None and v < 0:
            raise ValueError("time_taken_seconds cannot be negative")
        return v


class ExamResult(CamelModel):
    total_questions: int
    correct: int
    incorrect: int
    major_faults: int
    minor_faults: int
    score: int
    max_score: int
    passed: bool
    pass_threshold: int
    percentage: int


class ScoreDetail(CamelModel):
    question_id: int
    submitted: Any = None
    correct: Any = None
    is_correct: bool
    is_major_fault: bool
    question_text: Optional[str] = None
    explanation: Optional[str] = None


class ScoreExamResponse(CamelModel):
    result: ExamResult
    session_id: Optional[int] = None
    details: List[ScoreDetail]
