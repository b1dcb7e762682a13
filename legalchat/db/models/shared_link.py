from sqlalchemy import Column, String, DateTime, ForeignKey, Integer, Index, Uuid, text
import uuid
from datetime import datetime

from legalchat.db.base import Base


class SharedLink(Base):
    """Public read token for one conversation of one user"""
    __tablename__ = "shared_links"
    __table_args__ = (
        # At most one active link per (user, conversation)
        Index(
            "uq_shared_links_active_user_conversation",
            "user_id",
            "conversation_id",
            unique=True,
            sqlite_where=text("revoked_at IS NULL"),
            postgresql_where=text("revoked_at IS NULL"),
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    conversation_id = Column(Uuid, ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False)
    token = Column(String(64), unique=True, nullable=False, index=True)
    view_count = Column(Integer, default=0, nullable=False)
    expires_at = Column(DateTime)
    max_views = Column(Integer)
    created_at = Column(DateTime, default=datetime.utcnow)
    # Set when the owner stops sharing; the token keeps resolving so readers get a 403
    revoked_at = Column(DateTime)

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at < now

    def views_exhausted(self) -> bool:
        return bool(self.max_views) and self.view_count >= self.max_views
