from legalchat.services.ai_backend.client import AIBackendClient
from legalchat.services.ai_backend.schemas import (
    AIResponse,
    AgentChatResponse,
    PlainChatResponse,
    UploadAndChatResponse,
    infer_response_kind,
    parse_ai_response,
)

__all__ = [
    "AIBackendClient",
    "AIResponse",
    "AgentChatResponse",
    "PlainChatResponse",
    "UploadAndChatResponse",
    "infer_response_kind",
    "parse_ai_response",
]
