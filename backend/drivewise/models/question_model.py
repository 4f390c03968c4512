from drivewise.db import Base
from sqlalchemy import Column, Integer, String, Boolean, Text, Enum, ForeignKey, Table, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship


"""
Questions, their categories and lessons, each with per-locale translations

### questions
| Column | Type | Notes |
| :--- | :--- | :--- |
| `id` | SERIAL | Primary Key |
| `original_id` | VARCHAR | Id in the source catalog, unique |
| `category_id` | INTEGER | FK -> categories |
| `answer_type` | ENUM | SINGLE_CHOICE, YES_NO, ORDER, INPUT |
| `answer` | JSONB | position, list of positions, or typed value |
| `is_major_fault` | BOOLEAN | safety-critical question |
| `image_url` | TEXT | |
| `choices` | JSONB | [{position, imageUrl}] |

### question_translations
| Column | Type | Notes |
| :--- | :--- | :--- |
| `question_id` | INTEGER | FK -> questions |
| `locale` | VARCHAR | nl-BE, fr-BE, de-BE, en |
| `question_text` | TEXT | |
| `explanation` | TEXT | |
| `choice_texts` | JSONB | {position: text} |

### categories / category_translations
`slug` is unique; `title` per locale.

### lessons / lesson_translations
`number` (1-34) and `slug` (les-1, ...) are unique; `title` per locale.
Linked to questions through `question_lessons`.
"""


question_lessons = Table(
    "question_lessons",
    Base.metadata,
    Column("question_id", Integer, ForeignKey("questions.id", ondelete="CASCADE"), primary_key=True),
    Column("lesson_id", Integer, ForeignKey("lessons.id", ondelete="CASCADE"), primary_key=True),
)


class _Translated:
    """Lookup of the row for one locale among `translations`."""

    def translation(self, locale: str):
        for t in self.translations:
            if t.locale == locale:
                return t
        return None


class CategoryDB(_Translated, Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    slug = Column(String(100), unique=True, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)

    translations = relationship("CategoryTranslationDB", cascade="all, delete-orphan", lazy="selectin")


class CategoryTranslationDB(Base):
    __tablename__ = "category_translations"
    __table_args__ = (UniqueConstraint("category_id", "locale", name="uq_category_locale"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False)
    locale = Column(String(10), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)


class LessonDB(_Translated, Base):
    __tablename__ = "lessons"

    id = Column(Integer, primary_key=True, autoincrement=True)
    number = Column(Integer, unique=True, nullable=False)
    slug = Column(String(50), unique=True, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)

    translations = relationship("LessonTranslationDB", cascade="all, delete-orphan", lazy="selectin")


class LessonTranslationDB(Base):
    __tablename__ = "lesson_translations"
    __table_args__ = (UniqueConstraint("lesson_id", "locale", name="uq_lesson_locale"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    lesson_id = Column(Integer, ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False)
    locale = Column(String(10), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)


class QuestionDB(_Translated, Base):
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    original_id = Column(String(100), unique=True, nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    answer_type = Column(Enum("SINGLE_CHOICE", "YES_NO", "ORDER", "INPUT", name="answer_type"), nullable=False)
    answer = Column(JSONB, nullable=False)
    is_major_fault = Column(Boolean, default=False, nullable=False)
    image_url = Column(Text, nullable=True)
    choices = Column(JSONB, nullable=True, default=list)

    # async sessions cannot lazy load, everything a question shows is loaded with it
    category = relationship("CategoryDB", lazy="selectin")
    lessons = relationship("LessonDB", secondary=question_lessons, lazy="selectin", order_by="LessonDB.number")
    translations = relationship(
        "QuestionTranslationDB",
        back_populates="question",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class QuestionTranslationDB(Base):
    __tablename__ = "question_translations"
    __table_args__ = (UniqueConstraint("question_id", "locale", name="uq_question_locale"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    question_id = Column(Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False)
    locale = Column(String(10), nullable=False)
    question_text = Column(Text, nullable=True)
    explanation = Column(Text, nullable=True)
    # JSONB keys are strings: {"0": "...", "1": "..."}
    choice_texts = Column(JSONB, nullable=True, default=dict)

    question = relationship("QuestionDB", back_populates="translations")
