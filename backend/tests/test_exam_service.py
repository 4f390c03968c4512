import asyncio

import pytest

from drivewise.schemas.exam_schema import ExamConfig
from drivewise.schemas.question_schema import QuestionRead
from drivewise.services.exam_service import (
    NotEnoughQuestionsError,
    _get_question,
    _get_questions_by_ids,
    _localize_question,
    generate_exam,
)


CONFIG = ExamConfig(
    total_questions=2,
    pass_threshold=1,
    major_fault_penalty=5,
    minor_fault_penalty=1,
    max_score=2,
    time_limit_minutes=1,
)


class DummyRow:
    def __init__(self, translations=(), **fields):
        self.translations = list(translations)
        self.__dict__.update(fields)

    def translation(self, locale):
        for t in self.translations:
            if t.locale == locale:
                return t
        return None


class DummyTranslation:
    def __init__(self, locale, **fields):
        self.locale = locale
        self.__dict__.update(fields)


SIGNS = DummyRow(slug="signs", translations=[DummyTranslation("nl-BE", title="Verkeersborden")])
LESSON_3 = DummyRow(number=3, slug="les-3", translations=[DummyTranslation("nl-BE", title="Voorrang")])
LESSON_1 = DummyRow(number=1, slug="les-1", translations=[])


def dummy_question(id, answer=1, category=SIGNS, lessons=(LESSON_3, LESSON_1)):
    return DummyRow(
        id=id,
        original_id=f"B-{id}",
        answer_type="SINGLE_CHOICE",
        answer=answer,
        is_major_fault=True,
        image_url=None,
        category=category,
        lessons=list(lessons),
        choices=[{"position": 1, "imageUrl": None}, {"position": 0, "imageUrl": "a.png"}],
        translations=[
            DummyTranslation(
                "nl-BE",
                question_text=f"Vraag {id}",
                explanation="Uitleg",
                choice_texts={"0": "Ja", "1": "Nee"},
            )
        ],
    )


class FakeResult:
    def __init__(self, rows):
        self.rows = rows

    def scalars(self):
        return self

    def all(self):
        return list(self.rows)

    def scalar_one_or_none(self):
        return self.rows[0] if self.rows else None


class FakeSession:
    def __init__(self, rows):
        self.rows = rows
        self.statements = []

    async def execute(self, stmt):
        self.statements.append(stmt)
        return FakeResult(self.rows)


def test_generated_questions_never_carry_answers():
    session = FakeSession([dummy_question(1), dummy_question(2, answer=0)])
    exam = asyncio.run(generate_exam(session, "nl-BE", CONFIG))

    assert exam.config == CONFIG
    assert [q.id for q in exam.questions] == [1, 2]
    for q in exam.questions:
        assert type(q) is QuestionRead
        body = q.model_dump(by_alias=True)
        assert "answer" not in body
        assert "explanation" not in body

    q = exam.questions[0].model_dump(mode="json", by_alias=True)
    assert q["questionText"] == "Vraag 1"
    assert q["category"] == {"slug": "signs", "title": "Verkeersborden"}
    assert q["lessons"] == [
        {"number": 1, "slug": "les-1", "title": None},
        {"number": 3, "slug": "les-3", "title": "Voorrang"},
    ]
    assert q["choices"] == [
        {"position": 0, "text": "Ja", "imageUrl": "a.png"},
        {"position": 1, "text": "Nee", "imageUrl": None},
    ]


def test_generate_needs_a_full_exam():
    session = FakeSession([dummy_question(1)])
    with pytest.raises(NotEnoughQuestionsError):
        asyncio.run(generate_exam(session, "nl-BE", CONFIG))


def test_missing_translation_gives_empty_texts():
    q = _localize_question(dummy_question(1), "de-BE")
    assert q.question_text is None
    assert q.explanation is None
    assert [c.text for c in q.choices] == [None, None]
    assert q.category.slug == "signs"
    assert q.category.title is None
    # the canonical answer does not depend on the locale
    assert q.answer == 1


def test_question_without_category():
    q = _localize_question(dummy_question(1, category=None, lessons=()), "nl-BE")
    assert q.category is None
    assert q.lessons == []


def test_questions_by_ids_follow_the_requested_order():
    session = FakeSession([dummy_question(1), dummy_question(2), dummy_question(3)])
    questions = asyncio.run(_get_questions_by_ids(session, [3, 1, 404, 3], "nl-BE"))
    assert [q.id for q in questions] == [3, 1]
    assert questions[0].answer == 1
    assert questions[0].explanation == "Uitleg"

    empty = FakeSession([])
    assert asyncio.run(_get_questions_by_ids(empty, [], "nl-BE")) == []
    assert empty.statements == []


def test_get_question_unknown_id():
    assert asyncio.run(_get_question(FakeSession([]), 7, "nl-BE")) is None
    assert asyncio.run(_get_question(FakeSession([dummy_question(7)]), 7, "nl-BE")).id == 7
