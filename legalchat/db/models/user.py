from sqlalchemy import Column, String, DateTime, Boolean, Uuid
import uuid
from datetime import datetime

from legalchat.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(100))
    # Global switch: share links of this user work only while it is on
    share_enabled = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    @property
    def display_name(self) -> str:
        return self.name or self.email
