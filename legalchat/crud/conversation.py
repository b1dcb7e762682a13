# legalchat/crud/conversation.py
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from legalchat.crud.base import CRUDBase
from legalchat.db.models.conversation import Conversation
from legalchat.db.models.message import Message
from legalchat.db.models.shared_link import SharedLink


class CRUDConversation(CRUDBase[Conversation, dict, dict]):
    async def get_for_user(
            self,
            db: AsyncSession,
            *,
            conversation_id: UUID,
            user_id: UUID
    ) -> Optional[Conversation]:
        """Get a conversation only if it belongs to the user"""
        result = await db.execute(
            select(Conversation).where(
                Conversation.id == conversation_id,
                Conversation.user_id == user_id
            )
        )
        return result.scalar_one_or_none()

    async def get_user_conversations(
            self,
            db: AsyncSession,
            *,
            user_id: UUID,
            skip: int = 0,
            limit: Optional[int] = None
    ) -> List[Tuple[Conversation, Optional[Message]]]:
        """Conversations of a user, most recently active first, each with its latest message"""
        latest = (
            select(Message.conversation_id, func.max(Message.created_at).label("latest_at"))
            .group_by(Message.conversation_id)
            .subquery()
        )
        query = (
            select(Conversation, Message)
            .outerjoin(latest, latest.c.conversation_id == Conversation.id)
            .outerjoin(
                Message,
                (Message.conversation_id == Conversation.id) & (Message.created_at == latest.c.latest_at)
            )
            .where(Conversation.user_id == user_id)
            .order_by(Conversation.last_message_at.desc())
            .offset(skip)
        )
        if limit:
            query = query.limit(limit)

        result = await db.execute(query)
        rows: List[Tuple[Conversation, Optional[Message]]] = []
        seen = set()
        # Two messages sharing the latest timestamp would duplicate a row
        for conversation, message in result.all():
            if conversation.id in seen:
                continue
            seen.add(conversation.id)
            rows.append((conversation, message))
        return rows

    async def create_for_user(
            self,
            db: AsyncSession,
            *,
            user_id: UUID,
            title: str,
            mode: str,
            document_id: Optional[str] = None,
            document_name: Optional[str] = None,
            session_id: Optional[str] = None,
            conversation_id: Optional[UUID] = None
    ) -> Conversation:
        """Create a new conversation for a user"""
        data = {
            "user_id": user_id,
            "title": title,
            "mode": mode,
            "document_id": document_id,
            "document_name": document_name,
            "session_id": session_id,
        }
        if conversation_id:
            data["id"] = conversation_id
        return await self.create(db, obj_in=data)

    async def _delete_children(self, db: AsyncSession, conversation_ids) -> None:
        await db.execute(delete(Message).where(Message.conversation_id.in_(conversation_ids)))
        await db.execute(delete(SharedLink).where(SharedLink.conversation_id.in_(conversation_ids)))

    async def delete_for_user(
            self,
            db: AsyncSession,
            *,
            conversation_id: UUID,
            user_id: UUID
    ) -> bool:
        """Delete one conversation together with its messages and share links"""
        conversation = await self.get_for_user(db, conversation_id=conversation_id, user_id=user_id)
        if not conversation:
            return False
        await self._delete_children(db, [conversation.id])
        await db.delete(conversation)
        await db.commit()
        return True

    async def delete_all_for_user(self, db: AsyncSession, *, user_id: UUID) -> int:
        """Delete every conversation of a user, returns how many were removed"""
        ids = select(Conversation.id).where(Conversation.user_id == user_id)
        await self._delete_children(db, ids)
        result = await db.execute(delete(Conversation).where(Conversation.user_id == user_id))
        await db.commit()
        return result.rowcount or 0


crud_conversation = CRUDConversation(Conversation)
