"""
AI Backend Client
HTTP client for the remote inference service (chat, agent, translation, documents)
"""
import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from legalchat.core.config import settings
from legalchat.core.exceptions import UpstreamServiceException, UpstreamTimeoutException
from legalchat.observability.metrics import inc_counter, timed
from legalchat.services.ai_backend.schemas import (
    AgentChatResponse,
    DocumentGenerationResponse,
    LanguageDetectionResponse,
    PlainChatResponse,
    TranslateResponse,
    UploadAndChatResponse,
    parse_ai_response,
)

logger = logging.getLogger(__name__)


class AIBackendClient:
    """Typed RPC client for the AI backend. One instance per process, closed on shutdown."""

    def __init__(
            self,
            base_url: Optional[str] = None,
            timeout: Optional[float] = None,
            transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = (base_url or settings.AI_BACKEND_URL).rstrip('/')
        read_timeout = timeout if timeout is not None else settings.AI_BACKEND_TIMEOUT
        self.timeout = httpx.Timeout(read_timeout, connect=10.0)
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=transport,
        )

        logger.info(f"🚀 AIBackendClient initialized: {self.base_url} (timeout {read_timeout}s)")

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _post(self, path: str, **kwargs: Any) -> Dict[str, Any]:
        endpoint = path.replace("/api/v1/", "", 1)
        try:
            with timed("ai_backend_request", endpoint=endpoint):
                response = await self._client.post(path, **kwargs)
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as e:
            inc_counter("ai_backend_requests_total", endpoint=endpoint, outcome="timeout")
            logger.error(f"❌ AI backend timeout on {path}: {e}. The service might be sleeping or overloaded.")
            raise UpstreamTimeoutException() from e
        except httpx.HTTPStatusError as e:
            inc_counter("ai_backend_requests_total", endpoint=endpoint, outcome="http_error")
            logger.error(f"❌ AI backend HTTP error on {path}: {e.response.status_code} - {e.response.text[:200]}")
            raise UpstreamServiceException(
                f"AI service request failed with status {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            inc_counter("ai_backend_requests_total", endpoint=endpoint, outcome="network_error")
            logger.error(f"❌ AI backend unreachable on {path}: {type(e).__name__}: {e}")
            raise UpstreamServiceException("AI service is unreachable") from e
        except ValueError as e:
            inc_counter("ai_backend_requests_total", endpoint=endpoint, outcome="bad_payload")
            logger.error(f"❌ AI backend returned a non-JSON body on {path}")
            raise UpstreamServiceException("AI service returned an invalid response") from e

        if not isinstance(data, dict):
            inc_counter("ai_backend_requests_total", endpoint=endpoint, outcome="bad_payload")
            raise UpstreamServiceException("AI service returned an invalid response")

        inc_counter("ai_backend_requests_total", endpoint=endpoint, outcome="ok")
        return data

    @staticmethod
    def _typed(data: Dict[str, Any], kind: str):
        try:
            return parse_ai_response(data, kind=kind)
        except ValidationError as e:
            logger.error(f"❌ AI backend payload does not match '{kind}': {e.errors()[:3]}")
            raise UpstreamServiceException("AI service returned an invalid response") from e

    async def chat(
            self,
            prompt: str,
            history: Optional[List[Dict[str, str]]] = None,
            summary: Optional[str] = None
    ) -> PlainChatResponse:
        """Plain chat with conversation history and the rolling summary"""
        payload = {
            "prompt": prompt,
            "history": history or [],
            "summary": summary,
        }
        logger.info(f"📡 Plain chat: history={len(payload['history'])}, summary={'yes' if summary else 'no'}")
        data = await self._post("/api/v1/chat", json=payload)
        return self._typed(data, "chat")

    async def agent_chat(
            self,
            message: str,
            session_id: Optional[str] = None,
            document_id: Optional[str] = None,
            input_language: Optional[str] = None,
            output_language: Optional[str] = None
    ) -> AgentChatResponse:
        """Agentic chat, optionally against a previously uploaded document"""
        payload = {
            "message": message,
            "session_id": session_id or "",
            "document_id": document_id or "",
        }
        if input_language:
            payload["input_language"] = input_language
        if output_language:
            payload["output_language"] = output_language

        logger.info(f"📡 Agent chat: session={session_id or '-'}, document={document_id or '-'}")
        data = await self._post("/api/v1/agent/chat", json=payload)
        return self._typed(data, "agent_chat")

    async def agent_upload_and_chat(
            self,
            file_bytes: bytes,
            filename: str,
            message: str = "Please analyze this document",
            session_id: Optional[str] = None,
            input_language: Optional[str] = None,
            output_language: Optional[str] = None
    ) -> UploadAndChatResponse:
        """Upload a document and run the first agentic turn on it"""
        form: Dict[str, str] = {"initial_message": message}
        if session_id:
            form["session_id"] = session_id
        if input_language:
            form["input_language"] = input_language
        if output_language:
            form["output_language"] = output_language

        logger.info(f"📡 Agent upload-and-chat: file={filename} ({len(file_bytes)} bytes)")
        data = await self._post(
            "/api/v1/agent/upload-and-chat",
            data=form,
            files={"file": (filename, file_bytes)},
        )
        return self._typed(data, "upload_and_chat")

    async def detect_language(self, text: str) -> LanguageDetectionResponse:
        data = await self._post("/api/v1/agent/detect-language", json={"text": text})
        return LanguageDetectionResponse.model_validate(data)

    async def generate_document(self, template_name: str, data: Dict[str, Any]) -> DocumentGenerationResponse:
        result = await self._post(
            "/api/v1/generate-document",
            json={"template_name": template_name, "data": data},
        )
        return DocumentGenerationResponse.model_validate(result)

    async def translate(
            self,
            text: str,
            source_lang: str = "en",
            target_lang: str = "hi"
    ) -> TranslateResponse:
        data = await self._post(
            "/api/v1/translate",
            json={"text": text, "source_lang": source_lang, "target_lang": target_lang},
        )
        return TranslateResponse.model_validate(data)
