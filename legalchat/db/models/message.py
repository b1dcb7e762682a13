from enum import Enum

from sqlalchemy import Column, String, DateTime, ForeignKey, Text, JSON, Uuid
import uuid
from datetime import datetime

from legalchat.db.base import Base


class MessageRole(str, Enum):
    USER = "USER"
    ASSISTANT = "ASSISTANT"


class Message(Base):
    __tablename__ = "messages"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    conversation_id = Column(Uuid, ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String(20), nullable=False)
    content = Column(Text, nullable=False)
    attachments = Column(JSON, default=list)
    # "metadata" is reserved on declarative classes
    meta = Column("metadata", JSON)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
