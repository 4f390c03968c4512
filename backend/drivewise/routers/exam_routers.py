from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ..config import DEFAULT_LOCALE, SUPPORTED_LOCALES
from ..dependencies import active_exam_config
from ..db import get_async_session
from ..schemas.exam_schema import (
    ExamConfig,
    GenerateExamRequest,
    GenerateExamResponse,
    ScoreExamRequest,
    ScoreExamResponse,
)
from ..services.exam_service import NotEnoughQuestionsError, generate_exam, _get_questions_by_ids, _record_session
from ..services.grading_service import grade_submission

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/exam", tags=["Exam"])


def _resolve_locale(locale: str | None) -> str:
    locale = locale or DEFAULT_LOCALE
    if locale not in SUPPORTED_LOCALES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unsupported locale '{locale}'")
    return locale


@router.get("/config", response_model=ExamConfig)
async def get_config(config: ExamConfig = Depends(active_exam_config)):
    return config


@router.post("/generate", response_model=GenerateExamResponse)
async def generate(
    payload: GenerateExamRequest | None = None,
    session: AsyncSession = Depends(get_async_session),
    config: ExamConfig = Depends(active_exam_config),
):
    locale = _resolve_locale(payload.locale if payload else None)
    try:
        return await generate_exam(session, locale, config)
    except NotEnoughQuestionsError as e:
        logger.warning("Cannot generate exam: %s", e)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Not enough questions to build an exam")
    except Exception as e:
        logger.exception("Error generating exam for locale=%s: %s", locale, e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to generate exam")


@router.post("/score", response_model=ScoreExamResponse)
async def score(
    payload: ScoreExamRequest,
    session: AsyncSession = Depends(get_async_session),
    config: ExamConfig = Depends(active_exam_config),
):
    locale = _resolve_locale(payload.locale)
    try:
        if not payload.answers:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="answers array is required")

        qids = [a.question_id for a in payload.answers]
        if len(set(qids)) != len(qids):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Duplicate question IDs are not allowed")

        questions = await _get_questions_by_ids(session, qids, locale)
        known = {q.id for q in questions}
        unknown = [qid for qid in qids if qid not in known]
        if unknown:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown question IDs: {unknown}")

        result, details = grade_submission(payload.answers, questions, config)
        session_id = await _record_session(session, payload, result, details)

        return ScoreExamResponse(result=result, session_id=session_id, details=details)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error while scoring exam with %d answers: %s", len(payload.answers), e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to score exam")
