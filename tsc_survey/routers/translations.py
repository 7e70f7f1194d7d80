"""Translation strings for the survey form."""
from typing import Optional

from fastapi import APIRouter, Depends

from tsc_survey.data.questions import LANGUAGE_LABELS
from tsc_survey.dependencies import get_translations
from tsc_survey.services.translation_service import Translations

router = APIRouter(prefix="/api")


@router.get("/translations")
async def get_form_translations(
    lang: Optional[str] = None,
    translations: Translations = Depends(get_translations),
) -> dict:
    """Strings for ``lang``; unknown languages and missing keys fall back to the default language."""
    language = translations.resolve_language(lang)
    available = list(LANGUAGE_LABELS) + [code for code in translations.languages if code not in LANGUAGE_LABELS]
    return {
        "ok": True,
        "lang": language,
        "dir": translations.direction(language),
        "available": [{"code": code, "label": LANGUAGE_LABELS.get(code, code)} for code in available],
        "strings": translations.strings_for(language),
    }
