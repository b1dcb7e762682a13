import uuid
from typing import Optional
from pydantic import BaseModel

from legalchat.schemas.conversation import MessageResponse


class ConversationState(BaseModel):
    """Session/document ids resolved from the AI response of one exchange"""
    id: uuid.UUID
    session_id: Optional[str] = None
    document_id: Optional[str] = None


class SendMessageResponse(BaseModel):
    message: MessageResponse
    conversation: ConversationState
