from fastapi import APIRouter, UploadFile, File, Depends, HTTPException, status
from typing import List
import json
import logging
import os
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import DEFAULT_LOCALE
from ..db import get_async_session
from ..schemas.question_schema import QuestionData, QuestionDetail
from ..services.excel_service import REQUIRED_COLUMNS, parse_excel
from ..services.exam_service import _get_question
from ..services.question_bank_service import import_questions

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/questionbank", tags=["Question Bank"])


# Upload Excel & Preview
@router.post("/upload")
async def upload_excel(file: UploadFile = File(...)):
    #  check file extension and return parsed preview
    file_extension = os.path.splitext(file.filename or "")[1]
    allowed_extension = {".xlsx", ".xlsm", ".xls", ".xlsb", ".ods"}

    if file_extension not in allowed_extension:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid file extension. Only {allowed_extension} are allowed."
        )
    try:
        preview = parse_excel(file.file)
    except KeyError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                f"Column not found :{str(e)}. Please check the column in uploaded file. "
                f"file must contain these columns {REQUIRED_COLUMNS}. Columns are case sensitive."
            ),
        )
    except json.JSONDecodeError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid JSON cell: {e}")

    logger.info("Parsed %d questions from %s", len(preview), file.filename)
    return {"total": len(preview), "preview": preview}


# Confirm Import
@router.post("/confirm-import")
async def confirm_import(
    questions: List[QuestionData],
    session: AsyncSession = Depends(get_async_session),
):
    #  save validated questions into DB if not duplicate
    total_questions = await import_questions(session, questions)

    return {"message": f"{total_questions} questions saved successfully!"}


@router.get("/{question_id}", response_model=QuestionDetail)
async def get_question(question_id: int, locale: str = DEFAULT_LOCALE, session: AsyncSession = Depends(get_async_session)):
    # return a single question with its answer or 404
    question = await _get_question(session, question_id, locale)
    if not question:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Question not found.")
    return question
