from fastapi import APIRouter, Depends

from legalchat.api.dependencies import get_ai_client, get_current_user
from legalchat.db.models import User
from legalchat.schemas import DetectLanguageRequest, TranslateRequest
from legalchat.services.ai_backend import AIBackendClient

router = APIRouter()


@router.post("/translate")
async def translate(
        data: TranslateRequest,
        current_user: User = Depends(get_current_user),
        ai_client: AIBackendClient = Depends(get_ai_client)
):
    result = await ai_client.translate(data.text, data.source_lang, data.target_lang)
    return result.model_dump()


@router.post("/detect-language")
async def detect_language(
        data: DetectLanguageRequest,
        current_user: User = Depends(get_current_user),
        ai_client: AIBackendClient = Depends(get_ai_client)
):
    result = await ai_client.detect_language(data.text)
    return result.model_dump()
