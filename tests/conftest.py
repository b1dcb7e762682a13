import asyncio
import os
import uuid
from types import SimpleNamespace

# Settings are read at import time, so the environment goes first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REDIS_URL", "")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("AI_BACKEND_URL", "http://ai-backend.test")

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import legalchat.db.models  # noqa: F401
from legalchat.crud import crud_conversation, crud_user
from legalchat.db.base import Base
from legalchat.observability.metrics import reset_metrics
from legalchat.services import ChatService
from legalchat.services.ai_backend import parse_ai_response
from legalchat.services.cache import MemoryCacheBackend, ResponseCache


class FakeAIClient:
    """Stands in for AIBackendClient; answers from canned payloads and records calls"""

    def __init__(self):
        self.calls = []
        self.chat_payload = {"response": "hello"}
        self.agent_payload = {"response": "agent answer", "session_id": "sess-1", "tools_used": []}
        self.upload_payload = {
            "document_id": "doc-1",
            "agent_response": "document analysed",
            "session_id": "sess-upload",
            "tools_used": ["document_search"],
            "intermediate_steps": [],
        }
        self.error = None

    def _answer(self, operation, payload, kind, **kwargs):
        self.calls.append((operation, kwargs))
        if self.error is not None:
            raise self.error
        return parse_ai_response(payload, kind=kind)

    def operations(self):
        return [operation for operation, _ in self.calls]

    async def chat(self, prompt, history=None, summary=None):
        return self._answer("chat", self.chat_payload, "chat",
                            prompt=prompt, history=history, summary=summary)

    async def agent_chat(self, message, session_id=None, document_id=None,
                         input_language=None, output_language=None):
        return self._answer("agent_chat", self.agent_payload, "agent_chat",
                            message=message, session_id=session_id, document_id=document_id)

    async def agent_upload_and_chat(self, file_bytes, filename, message="Please analyze this document",
                                    session_id=None, input_language=None, output_language=None):
        return self._answer("agent_upload_and_chat", self.upload_payload, "upload_and_chat",
                            filename=filename, message=message, session_id=session_id,
                            input_language=input_language, output_language=output_language)

    async def aclose(self):
        pass


@pytest.fixture(autouse=True)
def _clean_metrics():
    reset_metrics()
    yield


@pytest.fixture
def fake_ai():
    return FakeAIClient()


@pytest.fixture
def cache():
    return ResponseCache(MemoryCacheBackend(), ai_response_ttl=60, conversation_list_ttl=60)


@pytest.fixture
def chat_service(fake_ai, cache):
    return ChatService(fake_ai, cache)


@pytest.fixture
def run_db():
    """Run ``scenario(db)`` against a fresh in-memory database inside one event loop."""

    def runner(scenario):
        async def main():
            engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            session_factory = async_sessionmaker(
                bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
            )
            try:
                async with session_factory() as session:
                    return await scenario(session)
            finally:
                await engine.dispose()

        return asyncio.run(main())

    return runner


async def _make_user(db, *, email=None, name="Test User", share_enabled=False):
    user = await crud_user.create(
        db,
        obj_in={
            "id": uuid.uuid4(),
            "email": email or f"{uuid.uuid4().hex[:8]}@example.com",
            "name": name,
            "share_enabled": share_enabled,
        }
    )
    return user


async def _make_conversation(db, user, *, mode="NORMAL", title="Contract questions", **fields):
    return await crud_conversation.create_for_user(
        db, user_id=user.id, title=title, mode=mode, **fields
    )


@pytest.fixture
def factory():
    return SimpleNamespace(user=_make_user, conversation=_make_conversation)
