from fastapi import APIRouter

from legalchat.api.v1.endpoints import (
    chat,
    documents,
    translation
)

api_router = APIRouter()

# Include all routers
api_router.include_router(chat.router, prefix="/chat", tags=["Chat"])
api_router.include_router(translation.router, prefix="/translation", tags=["Translation"])
api_router.include_router(documents.router, prefix="/documents", tags=["Documents"])
