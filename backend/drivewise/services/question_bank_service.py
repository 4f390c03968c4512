from typing import Dict, Iterable, List, Set
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.question_model import CategoryDB, LessonDB, QuestionDB, QuestionTranslationDB
from ..schemas.question_schema import QuestionData

logger = logging.getLogger(__name__)


async def _existing_original_ids(session: AsyncSession, original_ids: Iterable[str]) -> Set[str]:
    ids = set(original_ids)
    if not ids:
        return set()
    res = await session.execute(select(QuestionDB.original_id).where(QuestionDB.original_id.in_(ids)))
    return set(res.scalars().all())


async def _categories_by_slug(session: AsyncSession, slugs: Iterable[str]) -> Dict[str, CategoryDB]:
    slugs = set(slugs)
    if not slugs:
        return {}
    res = await session.execute(select(CategoryDB).where(CategoryDB.slug.in_(slugs)))
    return {c.slug: c for c in res.scalars().all()}


async def _lessons_by_number(session: AsyncSession, numbers: Iterable[int]) -> Dict[int, LessonDB]:
    numbers = set(numbers)
    if not numbers:
        return {}
    res = await session.execute(select(LessonDB).where(LessonDB.number.in_(numbers)))
    return {l.number: l for l in res.scalars().all()}


async def import_questions(session: AsyncSession, questions: List[QuestionData]) -> int:
    """
    Save validated questions, returns how many were saved.

    A question whose original_id is already stored, or appeared earlier in the
    same batch, is skipped. Unknown category slugs create the category;
    unknown lesson numbers are dropped from the link.
    """
    existing = await _existing_original_ids(session, [q.original_id for q in questions])
    categories = await _categories_by_slug(session, [q.category for q in questions if q.category])
    lessons = await _lessons_by_number(session, [n for q in questions for n in q.lessons])

    saved = 0
    for q in questions:
        if q.original_id in existing:
            logger.warning("Question '%s' already exists in database, skipped", q.original_id)
            continue

        category = None
        if q.category:
            category = categories.get(q.category)
            if category is None:
                category = CategoryDB(slug=q.category)
                categories[q.category] = category

        numbers = list(dict.fromkeys(q.lessons))
        unknown = [n for n in numbers if n not in lessons]
        if unknown:
            logger.warning("Question '%s' links unknown lessons %s, not linked", q.original_id, unknown)

        question = QuestionDB(
            original_id=q.original_id,
            answer_type=q.answer_type.value,
            answer=q.answer,
            is_major_fault=q.is_major_fault,
            image_url=q.image_url,
            choices=[{"position": c.position, "imageUrl": c.image_url} for c in q.choices],
        )
        question.category = category
        question.lessons = [lessons[n] for n in numbers if n in lessons]
        question.translations = [
            QuestionTranslationDB(
                locale=q.locale,
                question_text=q.question_text,
                explanation=q.explanation,
                choice_texts={str(c.position): c.text for c in q.choices if c.text},
            )
        ]
        session.add(question)
        existing.add(q.original_id)
        saved += 1

    await session.commit()
    logger.info("Imported %d of %d questions", saved, len(questions))
    return saved
