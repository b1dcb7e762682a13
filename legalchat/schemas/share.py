import uuid
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field


class ShareRequest(BaseModel):
    share: bool = True
    expires_in_hours: Optional[int] = Field(None, ge=1, le=24 * 365)
    max_views: Optional[int] = Field(None, ge=1)


class ShareResponse(BaseModel):
    link: Optional[str] = None
    message: Optional[str] = None


class SharedMessage(BaseModel):
    id: uuid.UUID
    role: str
    content: str
    created_at: datetime
    attachments: List[str] = Field(default_factory=list)

    class Config:
        from_attributes = True


class SharedConversation(BaseModel):
    id: uuid.UUID
    title: str
    mode: str
    created_at: datetime
    messages: List[SharedMessage] = Field(default_factory=list)


class ShareInfo(BaseModel):
    view_count: int
    max_views: Optional[int] = None
    expires_at: Optional[datetime] = None


class SharedConversationResponse(BaseModel):
    user_name: str
    conversation: SharedConversation
    share_info: ShareInfo
