from typing import List, Optional
from datetime import datetime, timezone
import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.question_model import QuestionDB
from ..models.exam_session_model import ExamSession, ExamSessionAnswer
from ..schemas.exam_schema import ExamConfig, ExamResult, GenerateExamResponse, ScoreDetail, ScoreExamRequest
from ..schemas.question_schema import CategoryRead, ChoiceData, LessonRead, QuestionDetail, QuestionRead

logger = logging.getLogger(__name__)


class NotEnoughQuestionsError(RuntimeError):
    """The catalog cannot fill an exam of the requested size."""


def _to_naive_utc(dt: datetime | None) -> datetime | None:
    """Convert an aware datetime to naive UTC. Naive values are assumed to be UTC already."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def _localized_choices(q: QuestionDB, choice_texts: dict) -> List[ChoiceData]:
    out = []
    for c in sorted(q.choices or [], key=lambda c: c.get("position", 0)):
        position = c.get("position", 0)
        out.append(ChoiceData(
            position=position,
            text=choice_texts.get(str(position)),
            image_url=c.get("imageUrl"),
        ))
    return out


def _title(row, locale: str) -> Optional[str]:
    t = row.translation(locale)
    return t.title if t else None


def _localized_category(category, locale: str) -> Optional[CategoryRead]:
    if category is None:
        return None
    return CategoryRead(slug=category.slug, title=_title(category, locale))


def _localized_lessons(lessons, locale: str) -> List[LessonRead]:
    return [
        LessonRead(number=l.number, slug=l.slug, title=_title(l, locale))
        for l in sorted(lessons, key=lambda l: l.number)
    ]


def _localize_question(q: QuestionDB, locale: str) -> QuestionDetail:
    # missing translation -> texts are None, the question itself is still usable
    t = q.translation(locale)
    return QuestionDetail(
        id=q.id,
        original_id=q.original_id,
        answer_type=q.answer_type,
        is_major_fault=bool(q.is_major_fault),
        question_text=t.question_text if t else None,
        category=_localized_category(q.category, locale),
        lessons=_localized_lessons(q.lessons or [], locale),
        image_url=q.image_url,
        choices=_localized_choices(q, (t.choice_texts or {}) if t else {}),
        answer=q.answer,
        explanation=t.explanation if t else None,
    )


def _sanitize_question(q: QuestionDetail) -> QuestionRead:
    # remove answer and explanation to prevent leaking
    return QuestionRead(**q.model_dump(exclude={"answer", "explanation"}))


async def _get_random_questions(session: AsyncSession, count: int) -> List[QuestionDB]:
    stmt = select(QuestionDB).order_by(func.random()).limit(count)
    res = await session.execute(stmt)
    return list(res.scalars().all())


async def _get_questions_by_ids(session: AsyncSession, qids: List[int], locale: str) -> List[QuestionDetail]:
    if not qids:
        return []
    stmt = select(QuestionDB).where(QuestionDB.id.in_(set(qids)))
    res = await session.execute(stmt)
    qmap = {q.id: q for q in res.scalars().all()}
    # preserve order from qids, drop unknown ids
    return [_localize_question(qmap[qid], locale) for qid in dict.fromkeys(qids) if qid in qmap]


async def _get_question(session: AsyncSession, question_id: int, locale: str) -> Optional[QuestionDetail]:
    res = await session.execute(select(QuestionDB).where(QuestionDB.id == question_id))
    q = res.scalar_one_or_none()
    return _localize_question(q, locale) if q else None


async def generate_exam(session: AsyncSession, locale: str, config: ExamConfig) -> GenerateExamResponse:
    """Draw `config.total_questions` random questions, localized and without answers."""
    questions = await _get_random_questions(session, config.total_questions)
    if len(questions) < config.total_questions:
        raise NotEnoughQuestionsError(
            f"catalog holds {len(questions)} questions, exam needs {config.total_questions}"
        )
    return GenerateExamResponse(
        config=config,
        generated_at=datetime.now(timezone.utc),
        questions=[_sanitize_question(_localize_question(q, locale)) for q in questions],
    )


async def _record_session(
    session: AsyncSession, payload: ScoreExamRequest, result: ExamResult, details: List[ScoreDetail]
) -> int:
    now = _to_naive_utc(datetime.now(timezone.utc))
    exam_session = ExamSession(
        session_type=payload.session_type,
        total_questions=result.total_questions,
        correct_answers=result.correct,
        incorrect_answers=result.incorrect,
        major_faults=result.major_faults,
        minor_faults=result.minor_faults,
        score=result.score,
        max_score=result.max_score,
        passed=result.passed,
        percentage=result.percentage,
        time_taken_seconds=payload.time_taken_seconds,
        started_at=_to_naive_utc(payload.started_at) or now,
        completed_at=now,
    )
    exam_session.answers = [
        ExamSessionAnswer(
            question_id=d.question_id,
            submitted_answer=d.submitted,
            correct_answer=d.correct,
            is_correct=d.is_correct,
            is_major_fault=d.is_major_fault,
        )
        for d in details
    ]
    session.add(exam_session)
    await session.commit()
    await session.refresh(exam_session)
    logger.info("Recorded %s session %s: score=%s passed=%s", exam_session.session_type, exam_session.id, result.score, result.passed)
    return exam_session.id
