# legalchat/services/chat.py
"""
Conversation orchestration.

send_message picks the AI backend operation from (mode, uploaded file, bound
document), normalizes the answer and records the exchange. Write order for one
exchange:

    1. AI backend call (nothing is written if it fails)
    2. cache store (requests without a file only)
    3. user message, assistant message, conversation state
       (document binding, session id, summary, last_message_at) in ONE commit
    4. per-user conversation list invalidation

A failure between 2 and 3 leaves a cached answer without messages; the next
identical prompt replays it and records the pair.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from legalchat.core.config import settings
from legalchat.core.exceptions import NotFoundException
from legalchat.crud import crud_conversation, crud_message
from legalchat.db.models import Conversation, ConversationMode, MessageRole
from legalchat.observability.context import conversation_id_ctx
from legalchat.observability.metrics import inc_counter
from legalchat.schemas import (
    ConversationInfo,
    ConversationListItem,
    ConversationResponse,
    ConversationState,
    ConversationWithMessages,
    MessageResponse,
    SendMessageResponse,
)
from legalchat.services.ai_backend import AIBackendClient, AIResponse
from legalchat.services.cache import ResponseCache
from legalchat.services.locks import KeyedLocks
from legalchat.services.normalizer import (
    extract_document_id,
    extract_session_id,
    extract_text,
    summarize_metadata,
)

logger = logging.getLogger(__name__)

EMPTY_ANSWER_PLACEHOLDER = "AI response received but content could not be extracted."


@dataclass
class UploadedFile:
    content: bytes
    filename: str


def _after(previous: datetime) -> datetime:
    """utcnow(), nudged forward so the assistant message sorts after the user message"""
    now = datetime.utcnow()
    if now <= previous:
        now = previous + timedelta(microseconds=1)
    return now


def _answer_text(response: AIResponse) -> str:
    content = extract_text(response)
    if not content.strip():
        logger.warning(f"⚠️ Empty {response.kind} answer, storing placeholder")
        return EMPTY_ANSWER_PLACEHOLDER
    return content


class ChatService:
    def __init__(
            self,
            ai_client: AIBackendClient,
            cache: ResponseCache,
            locks: Optional[KeyedLocks] = None,
            history_window: Optional[int] = None
    ):
        self.ai_client = ai_client
        self.cache = cache
        self.locks = locks if locks is not None else KeyedLocks(enabled=settings.SERIALIZE_CONVERSATION_WRITES)
        self.history_window = history_window or settings.HISTORY_WINDOW

    async def _get_owned(self, db: AsyncSession, user_id: uuid.UUID, conversation_id: uuid.UUID) -> Conversation:
        conversation = await crud_conversation.get_for_user(
            db, conversation_id=conversation_id, user_id=user_id
        )
        if not conversation:
            raise NotFoundException("Conversation not found")
        return conversation

    async def create_conversation(
            self,
            db: AsyncSession,
            *,
            user_id: uuid.UUID,
            title: str,
            mode: str = ConversationMode.NORMAL.value,
            document_id: Optional[str] = None,
            document_name: Optional[str] = None,
            session_id: Optional[str] = None,
            conversation_id: Optional[uuid.UUID] = None
    ) -> ConversationResponse:
        conversation = await crud_conversation.create_for_user(
            db,
            user_id=user_id,
            title=title,
            mode=mode,
            document_id=document_id,
            document_name=document_name,
            session_id=session_id,
            conversation_id=conversation_id
        )
        await self.cache.invalidate_user(user_id)
        logger.info(f"✅ Created {mode} conversation {conversation.id}")
        return ConversationResponse.model_validate(conversation)

    async def send_message(
            self,
            db: AsyncSession,
            *,
            user_id: uuid.UUID,
            conversation_id: uuid.UUID,
            text: str,
            mode: Optional[str] = None,
            file: Optional[UploadedFile] = None,
            input_language: Optional[str] = None,
            output_language: Optional[str] = None
    ) -> SendMessageResponse:
        conversation_id_ctx.set(str(conversation_id))
        async with self.locks.hold(conversation_id):
            conversation = await self._get_owned(db, user_id, conversation_id)
            mode = mode or conversation.mode

            if file is None:
                cached = await self.cache.lookup(text, mode)
                if cached is not None:
                    logger.info(f"♻️ Cache hit for {mode} prompt, skipping AI backend")
                    return await self._record_cached(db, user_id, conversation, text, cached)

            ai_response, state = await self._dispatch(
                db, conversation, text, mode, file, input_language, output_language
            )

            if file is None:
                await self.cache.store(text, mode, ai_response)

            return await self._record_exchange(
                db, user_id, conversation, text, mode, file, ai_response, state
            )

    async def _dispatch(
            self,
            db: AsyncSession,
            conversation: Conversation,
            text: str,
            mode: str,
            file: Optional[UploadedFile],
            input_language: Optional[str],
            output_language: Optional[str]
    ):
        """Call the AI backend; returns the response and the conversation fields to update"""
        state: Dict[str, Any] = {}
        previous_session = conversation.session_id

        if mode == ConversationMode.AGENTIC.value and file is not None:
            inc_counter("chat_dispatch_total", operation="upload_and_chat")
            response = await self.ai_client.agent_upload_and_chat(
                file.content,
                file.filename,
                text,
                session_id=previous_session or None,
                input_language=input_language,
                output_language=output_language
            )
            document_id = extract_document_id(response)
            if document_id:
                state["document_id"] = document_id
                state["document_name"] = file.filename
            session_id = extract_session_id(response)
            if session_id:
                state["session_id"] = session_id

        elif mode == ConversationMode.AGENTIC.value:
            operation = "agent_chat_document" if conversation.document_id else "agent_chat"
            inc_counter("chat_dispatch_total", operation=operation)
            response = await self.ai_client.agent_chat(
                text,
                session_id=previous_session or None,
                document_id=conversation.document_id or None,
                input_language=input_language,
                output_language=output_language
            )
            session_id = extract_session_id(response)
            if session_id and session_id != previous_session:
                state["session_id"] = session_id

        else:
            # Files are not sent in plain mode; the name is still kept as an attachment
            inc_counter("chat_dispatch_total", operation="chat")
            recent = await crud_message.get_last_messages(
                db, conversation_id=conversation.id, count=self.history_window
            )
            history = [{"role": m.role.lower(), "content": m.content} for m in recent]
            response = await self.ai_client.chat(text, history, conversation.summary)
            if response.updated_summary:
                state["summary"] = response.updated_summary
                state["summary_updated_at"] = datetime.utcnow()

        return response, state

    async def _record_exchange(
            self,
            db: AsyncSession,
            user_id: uuid.UUID,
            conversation: Conversation,
            text: str,
            mode: str,
            file: Optional[UploadedFile],
            ai_response: AIResponse,
            state: Dict[str, Any]
    ) -> SendMessageResponse:
        document_id = extract_document_id(ai_response) or conversation.document_id
        content = _answer_text(ai_response)

        user_message = await crud_message.create_message(
            db,
            conversation_id=conversation.id,
            role=MessageRole.USER.value,
            content=text,
            attachments=[file.filename] if file else [],
            commit=False
        )
        assistant_message = await crud_message.create_message(
            db,
            conversation_id=conversation.id,
            role=MessageRole.ASSISTANT.value,
            content=content,
            metadata={**summarize_metadata(ai_response), "document_id": document_id},
            created_at=_after(user_message.created_at),
            commit=False
        )

        state["last_message_at"] = assistant_message.created_at
        await crud_conversation.update(db, db_obj=conversation, obj_in=state, commit=False)
        await db.commit()
        await db.refresh(assistant_message)

        await self.cache.invalidate_user(user_id)
        logger.info(
            f"✅ {mode} exchange stored (kind={ai_response.kind}, "
            f"updated={sorted(k for k in state if k != 'last_message_at')})"
        )

        return SendMessageResponse(
            message=MessageResponse.model_validate(assistant_message),
            conversation=ConversationState(
                id=conversation.id,
                session_id=extract_session_id(ai_response),
                document_id=extract_document_id(ai_response)
            )
        )

    async def _record_cached(
            self,
            db: AsyncSession,
            user_id: uuid.UUID,
            conversation: Conversation,
            text: str,
            cached: AIResponse
    ) -> SendMessageResponse:
        user_message = await crud_message.create_message(
            db,
            conversation_id=conversation.id,
            role=MessageRole.USER.value,
            content=text,
            commit=False
        )
        assistant_message = await crud_message.create_message(
            db,
            conversation_id=conversation.id,
            role=MessageRole.ASSISTANT.value,
            content=_answer_text(cached),
            metadata={"cached": True, **summarize_metadata(cached)},
            created_at=_after(user_message.created_at),
            commit=False
        )
        conversation.last_message_at = assistant_message.created_at
        await db.commit()
        await db.refresh(assistant_message)

        await self.cache.invalidate_user(user_id)

        return SendMessageResponse(
            message=MessageResponse.model_validate(assistant_message),
            conversation=ConversationState(
                id=conversation.id,
                session_id=extract_session_id(cached),
                document_id=extract_document_id(cached)
            )
        )

    async def get_conversations(self, db: AsyncSession, *, user_id: uuid.UUID) -> List[ConversationListItem]:
        cached = await self.cache.get_conversation_list(user_id)
        if cached is not None:
            return [ConversationListItem.model_validate(item) for item in cached]

        rows = await crud_conversation.get_user_conversations(db, user_id=user_id)
        items = []
        for conversation, last_message in rows:
            item = ConversationListItem.model_validate(conversation)
            if last_message is not None:
                item.last_message = MessageResponse.model_validate(last_message)
            items.append(item)

        await self.cache.set_conversation_list(user_id, [i.model_dump(mode="json") for i in items])
        return items

    async def get_conversation_messages(
            self,
            db: AsyncSession,
            *,
            user_id: uuid.UUID,
            conversation_id: uuid.UUID
    ) -> ConversationWithMessages:
        conversation = await self._get_owned(db, user_id, conversation_id)
        messages = await crud_message.get_conversation_messages(db, conversation_id=conversation.id)
        result = ConversationWithMessages.model_validate(conversation)
        result.messages = [MessageResponse.model_validate(m) for m in messages]
        return result

    async def get_conversation_info(
            self,
            db: AsyncSession,
            *,
            user_id: uuid.UUID,
            conversation_id: uuid.UUID
    ) -> ConversationInfo:
        conversation = await self._get_owned(db, user_id, conversation_id)
        return ConversationInfo.model_validate(conversation)

    async def delete_conversation(
            self,
            db: AsyncSession,
            *,
            user_id: uuid.UUID,
            conversation_id: uuid.UUID
    ) -> None:
        deleted = await crud_conversation.delete_for_user(
            db, conversation_id=conversation_id, user_id=user_id
        )
        if not deleted:
            raise NotFoundException("Conversation not found")
        await self.cache.invalidate_user(user_id)
        logger.info(f"🗑️ Deleted conversation {conversation_id}")

    async def delete_all_conversations(self, db: AsyncSession, *, user_id: uuid.UUID) -> int:
        deleted = await crud_conversation.delete_all_for_user(db, user_id=user_id)
        await self.cache.invalidate_user(user_id)
        logger.info(f"🗑️ Deleted {deleted} conversations")
        return deleted
