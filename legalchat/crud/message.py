# legalchat/crud/message.py
from typing import Any, Dict, List, Optional
from uuid import UUID
from datetime import datetime
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from legalchat.crud.base import CRUDBase
from legalchat.db.models.message import Message


class CRUDMessage(CRUDBase[Message, dict, dict]):
    async def create_message(
            self,
            db: AsyncSession,
            *,
            conversation_id: UUID,
            role: str,
            content: str,
            attachments: Optional[List[str]] = None,
            metadata: Optional[Dict[str, Any]] = None,
            created_at: Optional[datetime] = None,
            commit: bool = True
    ) -> Message:
        """Create a new message in conversation"""
        db_obj = Message(
            conversation_id=conversation_id,
            role=role,
            content=content,
            attachments=attachments or [],
            meta=metadata,
            created_at=created_at or datetime.utcnow()
        )
        db.add(db_obj)
        await self._persist(db, db_obj, commit)
        return db_obj

    async def get_conversation_messages(
            self,
            db: AsyncSession,
            *,
            conversation_id: UUID,
            skip: int = 0,
            limit: Optional[int] = None
    ) -> List[Message]:
        """Get messages in a conversation, oldest first"""
        query = select(Message).where(
            Message.conversation_id == conversation_id
        ).order_by(Message.created_at).offset(skip)

        if limit:
            query = query.limit(limit)

        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_last_messages(
            self,
            db: AsyncSession,
            *,
            conversation_id: UUID,
            count: int = 20
    ) -> List[Message]:
        """Get last N messages from conversation"""
        query = select(Message).where(
            Message.conversation_id == conversation_id
        ).order_by(Message.created_at.desc()).limit(count)

        result = await db.execute(query)
        messages = result.scalars().all()
        # Return in chronological order
        return list(reversed(messages))


crud_message = CRUDMessage(Message)
