# legalchat/crud/shared_link.py
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import select, update, or_
from sqlalchemy.ext.asyncio import AsyncSession

from legalchat.crud.base import CRUDBase
from legalchat.db.models.shared_link import SharedLink


class CRUDSharedLink(CRUDBase[SharedLink, dict, dict]):
    async def get_by_token(self, db: AsyncSession, *, token: str) -> Optional[SharedLink]:
        """Find a link by token, revoked ones included"""
        result = await db.execute(select(SharedLink).where(SharedLink.token == token))
        return result.scalar_one_or_none()

    async def get_active_for_conversation(
            self,
            db: AsyncSession,
            *,
            user_id: UUID,
            conversation_id: UUID
    ) -> Optional[SharedLink]:
        """The single non-revoked link of a (user, conversation) pair"""
        result = await db.execute(
            select(SharedLink).where(
                SharedLink.user_id == user_id,
                SharedLink.conversation_id == conversation_id,
                SharedLink.revoked_at.is_(None)
            ).order_by(SharedLink.created_at.desc()).limit(1)
        )
        return result.scalar_one_or_none()

    async def create_link(
            self,
            db: AsyncSession,
            *,
            user_id: UUID,
            conversation_id: UUID,
            token: str,
            expires_at: Optional[datetime] = None,
            max_views: Optional[int] = None,
            commit: bool = True
    ) -> SharedLink:
        return await self.create(
            db,
            obj_in={
                "user_id": user_id,
                "conversation_id": conversation_id,
                "token": token,
                "expires_at": expires_at,
                "max_views": max_views,
            },
            commit=commit
        )

    async def revoke_for_conversation(
            self,
            db: AsyncSession,
            *,
            user_id: UUID,
            conversation_id: UUID,
            commit: bool = True
    ) -> int:
        """Revoke every active link of the pair, returns how many were revoked"""
        result = await db.execute(
            update(SharedLink)
            .where(
                SharedLink.user_id == user_id,
                SharedLink.conversation_id == conversation_id,
                SharedLink.revoked_at.is_(None)
            )
            .values(revoked_at=datetime.utcnow())
            .execution_options(synchronize_session="fetch")
        )
        if commit:
            await db.commit()
        return result.rowcount or 0

    async def register_view(self, db: AsyncSession, *, link_id: UUID) -> bool:
        """
        Increment the view counter unless the view limit is already reached.
        The limit check and the increment happen in one UPDATE statement.
        """
        result = await db.execute(
            update(SharedLink)
            .where(
                SharedLink.id == link_id,
                SharedLink.revoked_at.is_(None),
                or_(
                    SharedLink.max_views.is_(None),
                    SharedLink.max_views == 0,
                    SharedLink.view_count < SharedLink.max_views
                )
            )
            .values(view_count=SharedLink.view_count + 1)
        )
        await db.commit()
        return (result.rowcount or 0) == 1


crud_shared_link = CRUDSharedLink(SharedLink)
