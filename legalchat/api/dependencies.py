from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from legalchat.db.session import get_db
from legalchat.db.models import User
from legalchat.core import security
from legalchat.core.exceptions import UnauthorizedException
from legalchat.crud.user import crud_user
from legalchat.observability.context import user_id_ctx
from legalchat.services import ChatService, ShareService
from legalchat.services.ai_backend import AIBackendClient

# Security scheme
security_bearer = HTTPBearer(auto_error=False)


async def get_current_user(
        credentials: HTTPAuthorizationCredentials = Depends(security_bearer),
        db: AsyncSession = Depends(get_db)
) -> User:
    """
    Resolve the bearer token to a user. Tokens are issued by the auth service;
    a user seen for the first time is provisioned from the token claims.
    """
    if not credentials:
        raise UnauthorizedException()

    payload = security.decode_access_token(credentials.credentials)
    if not payload:
        raise UnauthorizedException("Invalid authentication credentials")

    try:
        user_id = UUID(str(payload.get("sub")))
    except ValueError:
        raise UnauthorizedException("Invalid authentication credentials")

    email = payload.get("email") or f"{user_id}@users.local"
    user = await crud_user.get_or_create(db, user_id=user_id, email=email, name=payload.get("name"))
    user_id_ctx.set(str(user.id))
    return user


def get_chat_service(request: Request) -> ChatService:
    return request.app.state.chat_service


def get_share_service(request: Request) -> ShareService:
    return request.app.state.share_service


def get_ai_client(request: Request) -> AIBackendClient:
    return request.app.state.ai_client
