from typing import List, Optional
from uuid import UUID

import logging

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from legalchat.api.dependencies import get_chat_service, get_current_user, get_share_service
from legalchat.core.config import settings
from legalchat.db.models import User
from legalchat.db.session import get_db
from legalchat.schemas import (
    ConversationCreate,
    ConversationInfo,
    ConversationListItem,
    ConversationResponse,
    ConversationWithMessages,
    DeleteAllResponse,
    SendMessageResponse,
    ShareRequest,
    ShareResponse,
    SharedConversationResponse,
    SuccessResponse,
)
from legalchat.services import ChatService, ShareService, UploadedFile

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/conversations", response_model=ConversationResponse, status_code=201)
async def create_conversation(
        data: ConversationCreate,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(get_current_user),
        chat_service: ChatService = Depends(get_chat_service)
):
    """Create an empty conversation"""
    return await chat_service.create_conversation(
        db,
        user_id=current_user.id,
        title=data.title,
        mode=data.mode,
        document_id=data.document_id,
        document_name=data.document_name,
        session_id=data.session_id,
        conversation_id=data.id
    )


@router.get("/conversations", response_model=List[ConversationListItem])
async def get_conversations(
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(get_current_user),
        chat_service: ChatService = Depends(get_chat_service)
):
    """Conversations of the current user, most recently active first"""
    return await chat_service.get_conversations(db, user_id=current_user.id)


@router.delete("/conversations", response_model=DeleteAllResponse)
async def delete_all_conversations(
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(get_current_user),
        chat_service: ChatService = Depends(get_chat_service)
):
    deleted = await chat_service.delete_all_conversations(db, user_id=current_user.id)
    return DeleteAllResponse(deleted_count=deleted)


@router.get("/conversations/{conversation_id}", response_model=ConversationInfo)
async def get_conversation_info(
        conversation_id: UUID,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(get_current_user),
        chat_service: ChatService = Depends(get_chat_service)
):
    return await chat_service.get_conversation_info(
        db, user_id=current_user.id, conversation_id=conversation_id
    )


@router.get("/conversations/{conversation_id}/messages", response_model=ConversationWithMessages)
async def get_conversation_messages(
        conversation_id: UUID,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(get_current_user),
        chat_service: ChatService = Depends(get_chat_service)
):
    """Conversation with all its messages, oldest first"""
    return await chat_service.get_conversation_messages(
        db, user_id=current_user.id, conversation_id=conversation_id
    )


@router.post("/conversations/{conversation_id}/messages", response_model=SendMessageResponse)
async def send_message(
        conversation_id: UUID,
        message: str = Form(..., min_length=1, max_length=10000),
        mode: Optional[str] = Form(None, pattern=r"^(NORMAL|AGENTIC)$"),
        input_language: Optional[str] = Form(None),
        output_language: Optional[str] = Form(None),
        file: Optional[UploadFile] = File(None),
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(get_current_user),
        chat_service: ChatService = Depends(get_chat_service)
):
    """
    Send a message and get the assistant answer.
    Multipart form; ``file`` is forwarded to the AI backend in AGENTIC mode only.
    """
    uploaded = None
    if file is not None and file.filename:
        uploaded = UploadedFile(content=await file.read(), filename=file.filename)

    logger.info(
        f"📨 Message from {current_user.id} to {conversation_id} "
        f"(mode={mode or 'conversation'}, file={uploaded.filename if uploaded else '-'})"
    )
    return await chat_service.send_message(
        db,
        user_id=current_user.id,
        conversation_id=conversation_id,
        text=message,
        mode=mode,
        file=uploaded,
        input_language=input_language,
        output_language=output_language
    )


@router.delete("/conversations/{conversation_id}", response_model=SuccessResponse)
async def delete_conversation(
        conversation_id: UUID,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(get_current_user),
        chat_service: ChatService = Depends(get_chat_service)
):
    await chat_service.delete_conversation(
        db, user_id=current_user.id, conversation_id=conversation_id
    )
    return SuccessResponse(message="Conversation deleted")


@router.post("/conversations/{conversation_id}/share", response_model=ShareResponse,
             response_model_exclude_none=True)
async def share_conversation(
        conversation_id: UUID,
        data: ShareRequest,
        request: Request,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(get_current_user),
        share_service: ShareService = Depends(get_share_service)
):
    """Enable (returns the public link) or disable sharing of a conversation"""
    return await share_service.share_conversation(
        db,
        user_id=current_user.id,
        conversation_id=conversation_id,
        enable=data.share,
        base_url=settings.PUBLIC_BASE_URL or str(request.base_url),
        expires_in_hours=data.expires_in_hours,
        max_views=data.max_views
    )


@router.get("/shared/{token}", response_model=SharedConversationResponse)
async def get_shared_conversation(
        token: str,
        db: AsyncSession = Depends(get_db),
        share_service: ShareService = Depends(get_share_service)
):
    """Public read-only view of a shared conversation, no authentication"""
    return await share_service.get_shared_conversation(db, token=token)
