"""Database models"""
from legalchat.db.base import Base
from legalchat.db.models.user import User
from legalchat.db.models.conversation import Conversation, ConversationMode
from legalchat.db.models.message import Message, MessageRole
from legalchat.db.models.shared_link import SharedLink


__all__ = [
    "Base",
    "User",
    "Conversation",
    "ConversationMode",
    "Message",
    "MessageRole",
    "SharedLink",
]
