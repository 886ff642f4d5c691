from fastapi import APIRouter

from songbird.llms.models import SUPPORTED_PROVIDERS
from songbird.models.catalog import (
    SUPPORTED_DETECT_LANGUAGES,
    SUPPORTED_TRANSLATE_TARGET_LANGUAGES,
    VOICE_CONVERSION_MODELS,
)
from songbird.router.params import GetOptionsResponse

router = APIRouter(
    tags=["config"],
    prefix="/api/config",
)


@router.get("/options")
async def get_options() -> GetOptionsResponse:
    return GetOptionsResponse(
        providers=SUPPORTED_PROVIDERS,
        voice_conversion_models=VOICE_CONVERSION_MODELS,
        auto_detect_languages=SUPPORTED_DETECT_LANGUAGES,
        speech_translate_target_languages=SUPPORTED_TRANSLATE_TARGET_LANGUAGES,
    )
