from enum import Enum

from sqlalchemy import Column, String, DateTime, ForeignKey, Boolean, Text, Uuid
import uuid
from datetime import datetime

from legalchat.db.base import Base


class ConversationMode(str, Enum):
    NORMAL = "NORMAL"
    AGENTIC = "AGENTIC"


class Conversation(Base):
    __tablename__ = "conversations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    mode = Column(String(20), nullable=False, default=ConversationMode.NORMAL.value)

    # Document bound by an agentic upload, reused on later agentic turns
    document_id = Column(String(255))
    document_name = Column(String(255))
    # Upstream agent session
    session_id = Column(String(255))

    # Rolling summary maintained by the plain-chat backend
    summary = Column(Text)
    summary_updated_at = Column(DateTime)

    is_shared = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    last_message_at = Column(DateTime, default=datetime.utcnow, index=True)
