from fastapi import APIRouter, Depends

from legalchat.api.dependencies import get_ai_client, get_current_user
from legalchat.db.models import User
from legalchat.schemas import GenerateDocumentRequest
from legalchat.services.ai_backend import AIBackendClient

router = APIRouter()


@router.post("/generate")
async def generate_document(
        data: GenerateDocumentRequest,
        current_user: User = Depends(get_current_user),
        ai_client: AIBackendClient = Depends(get_ai_client)
):
    """Fill a legal document template on the AI backend"""
    result = await ai_client.generate_document(data.template_name, data.data)
    return result.model_dump()
