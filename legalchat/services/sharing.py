# legalchat/services/sharing.py
"""
Share links: public, token-gated read views of one conversation.

A link works only while all of these hold:
  - the owner's global share_enabled flag is on
  - the conversation still exists and its is_shared flag is on
  - the link was not revoked by a later "stop sharing"
  - the link is not past expires_at
  - view_count is below max_views (when max_views is set)
"""
import logging
import secrets
import uuid
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from legalchat.core.exceptions import ForbiddenException, NotFoundException
from legalchat.crud import crud_conversation, crud_message, crud_shared_link, crud_user
from legalchat.observability.metrics import inc_counter
from legalchat.schemas import (
    ShareInfo,
    ShareResponse,
    SharedConversation,
    SharedConversationResponse,
    SharedMessage,
)

logger = logging.getLogger(__name__)

SHARED_PATH = "/api/v1/chat/shared"


def generate_share_token() -> str:
    # 8 random bytes -> 16 hex characters
    return secrets.token_hex(8)


class ShareService:
    async def share_conversation(
            self,
            db: AsyncSession,
            *,
            user_id: uuid.UUID,
            conversation_id: uuid.UUID,
            enable: bool,
            base_url: str,
            expires_in_hours: Optional[int] = None,
            max_views: Optional[int] = None
    ) -> ShareResponse:
        conversation = await crud_conversation.get_for_user(
            db, conversation_id=conversation_id, user_id=user_id
        )
        if not conversation:
            raise NotFoundException("Conversation not found")

        if not enable:
            conversation.is_shared = False
            removed = await crud_shared_link.revoke_for_conversation(
                db, user_id=user_id, conversation_id=conversation_id, commit=False
            )
            await db.commit()
            logger.info(f"🔒 Sharing disabled for {conversation_id} ({removed} link(s) revoked)")
            return ShareResponse(message="Sharing disabled")

        expires_at = None
        if expires_in_hours:
            expires_at = datetime.utcnow() + timedelta(hours=expires_in_hours)

        link = await crud_shared_link.get_active_for_conversation(
            db, user_id=user_id, conversation_id=conversation_id
        )
        created = False
        if link is None:
            try:
                link = await crud_shared_link.create_link(
                    db,
                    user_id=user_id,
                    conversation_id=conversation_id,
                    token=generate_share_token(),
                    expires_at=expires_at,
                    max_views=max_views,
                    commit=False
                )
                created = True
                logger.info(f"🔗 New share link for {conversation_id}")
            except IntegrityError:
                # A concurrent request created the active link first
                await db.rollback()
                conversation = await crud_conversation.get_for_user(
                    db, conversation_id=conversation_id, user_id=user_id
                )
                link = await crud_shared_link.get_active_for_conversation(
                    db, user_id=user_id, conversation_id=conversation_id
                )
                if conversation is None:
                    raise NotFoundException("Conversation not found")
                if link is None:
                    raise
                logger.info(f"🔗 Share link for {conversation_id} created concurrently, reusing it")

        if not created:
            if expires_at is not None:
                link.expires_at = expires_at
            if max_views is not None:
                link.max_views = max_views

        conversation.is_shared = True
        await crud_user.set_share_enabled(db, user_id=user_id, enabled=True, commit=False)
        await db.commit()

        return ShareResponse(link=f"{base_url.rstrip('/')}{SHARED_PATH}/{link.token}")

    async def get_shared_conversation(self, db: AsyncSession, *, token: str) -> SharedConversationResponse:
        link = await crud_shared_link.get_by_token(db, token=token)
        if not link:
            raise NotFoundException("Invalid share link")

        owner = await crud_user.get(db, id=link.user_id)
        if owner is None or not owner.share_enabled:
            raise ForbiddenException("Sharing is disabled for this user")

        conversation = await crud_conversation.get(db, id=link.conversation_id)
        if not conversation:
            raise NotFoundException("Shared conversation not found")

        if not conversation.is_shared or link.revoked_at is not None:
            raise ForbiddenException("This conversation is no longer shared")

        if link.is_expired(datetime.utcnow()):
            raise ForbiddenException("Share link has expired")

        if link.views_exhausted():
            raise ForbiddenException("Share link view limit exceeded")

        # Another reader may have taken the last view since the link was loaded
        views_before = link.view_count
        if not await crud_shared_link.register_view(db, link_id=link.id):
            raise ForbiddenException("Share link view limit exceeded")
        inc_counter("shared_link_views_total")

        messages = await crud_message.get_conversation_messages(db, conversation_id=conversation.id)

        return SharedConversationResponse(
            user_name=owner.display_name,
            conversation=SharedConversation(
                id=conversation.id,
                title=conversation.title,
                mode=conversation.mode,
                created_at=conversation.created_at,
                messages=[SharedMessage.model_validate(m) for m in messages],
            ),
            share_info=ShareInfo(
                view_count=views_before + 1,
                max_views=link.max_views,
                expires_at=link.expires_at,
            ),
        )
