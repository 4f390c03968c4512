from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from typing import Any, List, Optional
import enum


class AnswerType(str, enum.Enum):
    """Tag deciding how an answer value is shaped and compared."""
    SINGLE_CHOICE = "SINGLE_CHOICE"
    YES_NO = "YES_NO"
    ORDER = "ORDER"
    INPUT = "INPUT"


CHOICE_TYPES = (AnswerType.SINGLE_CHOICE, AnswerType.YES_NO)


class CamelModel(BaseModel):
    """Base for wire models: snake_case in python, camelCase in JSON."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChoiceData(CamelModel):
    position: int = Field(..., ge=0)
    text: Optional[str] = None
    image_url: Optional[str] = None


class QuestionData(CamelModel):
    """
    Schema for validating one question of an import.

    The answer value has to match the shape its answer_type expects:
    - SINGLE_CHOICE / YES_NO: a choice position (int) inside the choices list.
    - ORDER: a list of choice positions.
    - INPUT: a string or a number typed by the candidate.
    """
    original_id: str = Field(..., min_length=1)
    category: Optional[str] = None  # category slug
    lessons: List[int] = Field(default_factory=list)  # lesson numbers
    answer_type: AnswerType
    answer: Any = None
    is_major_fault: bool = False
    locale: str = "nl-BE"
    question_text: str = Field(..., min_length=1)
    explanation: Optional[str] = None
    image_url: Optional[str] = None
    choices: List[ChoiceData] = Field(default_factory=list)

    @field_validator("choices")
    @classmethod
    def positions_unique(cls, v):
        positions = [c.position for c in v]
        if len(set(positions)) != len(positions):
            raise ValueError("Choice positions must be unique.")
        return v

    @model_validator(mode="after")
    def answer_matches_type(self):
        positions = {c.position for c in self.choices}
        v = self.answer

        if self.answer_type in CHOICE_TYPES:
            if not isinstance(v, int) or isinstance(v, bool):
                raise ValueError(f"{self.answer_type.value} answer must be a choice position.")
            if v not in positions:
                raise ValueError(f"Answer position {v} is not one of the choices.")

        elif self.answer_type == AnswerType.ORDER:
            if not isinstance(v, list) or not v:
                raise ValueError("ORDER answer must be a non-empty list of positions.")
            if any(not isinstance(p, int) or isinstance(p, bool) or p not in positions for p in v):
                raise ValueError("ORDER answer may only contain choice positions.")

        elif self.answer_type == AnswerType.INPUT:
            if isinstance(v, bool) or not isinstance(v, (int, float, str)):
                raise ValueError("INPUT answer must be a string or a number.")

        if self.answer_type != AnswerType.INPUT and not self.choices:
            raise ValueError("Choices are required for non-INPUT questions.")
        return self


class CategoryRead(CamelModel):
    slug: Optional[str] = None
    title: Optional[str] = None


class LessonRead(CamelModel):
    number: int
    slug: str
    title: Optional[str] = None


class QuestionRead(CamelModel):
    """A localized question as handed to an exam. Never carries the answer."""
    id: int
    original_id: Optional[str] = None
    answer_type: AnswerType
    is_major_fault: bool = False
    question_text: Optional[str] = None
    category: Optional[CategoryRead] = None
    lessons: List[LessonRead] = Field(default_factory=list)
    image_url: Optional[str] = None
    choices: List[ChoiceData] = Field(default_factory=list)


class QuestionDetail(QuestionRead):
    # includes answer + explanation, used by the question bank and the results review
    answer: Any = None
    explanation: Optional[str] = None
