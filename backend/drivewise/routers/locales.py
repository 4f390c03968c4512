from fastapi import APIRouter
from typing import List

from ..config import DEFAULT_LOCALE, LOCALE_NAMES
from ..schemas.locale_schema import LocaleRead

router = APIRouter(prefix="/locales", tags=["Localization"])


@router.get("", response_model=List[LocaleRead])
async def list_locales():
    # the locales questions can be generated and scored in
    return [
        LocaleRead(code=code, name=name, is_default=code == DEFAULT_LOCALE)
        for code, name in LOCALE_NAMES.items()
    ]
