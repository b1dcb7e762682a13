# legalchat/crud/user.py
from typing import Optional
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from legalchat.crud.base import CRUDBase
from legalchat.db.models.user import User


class CRUDUser(CRUDBase[User, dict, dict]):
    async def get_or_create(
            self,
            db: AsyncSession,
            *,
            user_id: UUID,
            email: str,
            name: Optional[str] = None
    ) -> User:
        """Return the user for a verified token subject, provisioning it on first sight"""
        user = await self.get(db, id=user_id)
        if user:
            return user
        return await self.create(db, obj_in={"id": user_id, "email": email, "name": name})

    async def set_share_enabled(
            self,
            db: AsyncSession,
            *,
            user_id: UUID,
            enabled: bool,
            commit: bool = True
    ) -> None:
        await db.execute(
            update(User).where(User.id == user_id).values(share_enabled=enabled)
        )
        if commit:
            await db.commit()


crud_user = CRUDUser(User)
