import uuid
from typing import Any, Dict, List, Optional
from datetime import datetime
from pydantic import AliasChoices, BaseModel, Field


class ConversationCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    mode: str = Field("NORMAL", pattern=r"^(NORMAL|AGENTIC)$")
    document_id: Optional[str] = None
    document_name: Optional[str] = None
    session_id: Optional[str] = None
    # Client-generated id, accepted so optimistic UIs can keep their key
    id: Optional[uuid.UUID] = None


class MessageResponse(BaseModel):
    id: uuid.UUID
    conversation_id: uuid.UUID
    role: str
    content: str
    attachments: List[str] = Field(default_factory=list)
    metadata: Optional[Dict[str, Any]] = Field(
        None, validation_alias=AliasChoices("meta", "metadata")
    )
    created_at: datetime

    class Config:
        from_attributes = True


class ConversationResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    mode: str
    document_id: Optional[str] = None
    document_name: Optional[str] = None
    session_id: Optional[str] = None
    summary: Optional[str] = None
    summary_updated_at: Optional[datetime] = None
    is_shared: bool = False
    created_at: datetime
    last_message_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ConversationListItem(ConversationResponse):
    last_message: Optional[MessageResponse] = None


class ConversationWithMessages(ConversationResponse):
    messages: List[MessageResponse] = Field(default_factory=list)


class ConversationInfo(BaseModel):
    id: uuid.UUID
    title: str
    mode: str
    document_id: Optional[str] = None
    document_name: Optional[str] = None
    session_id: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
