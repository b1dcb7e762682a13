import asyncio
import json

import httpx
import pytest

from legalchat.core.exceptions import (
    UPSTREAM_TIMEOUT_MESSAGE,
    UpstreamServiceException,
    UpstreamTimeoutException,
)
from legalchat.observability.metrics import get_counter
from legalchat.services.ai_backend import AIBackendClient


def _client(handler):
    return AIBackendClient(
        base_url="http://ai-backend.test/",
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


def _run(client, call):
    async def scenario():
        try:
            return await call(client)
        finally:
            await client.aclose()

    return asyncio.run(scenario())


def test_chat_posts_prompt_history_and_summary():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"response": "hello", "updated_summary": "S2"})

    response = _run(
        _client(handler),
        lambda c: c.chat("What is a contract?", [{"role": "user", "content": "hi"}], "S1"),
    )

    assert seen["path"] == "/api/v1/chat"
    assert seen["body"] == {
        "prompt": "What is a contract?",
        "history": [{"role": "user", "content": "hi"}],
        "summary": "S1",
    }
    assert response.kind == "chat"
    assert response.updated_summary == "S2"
    assert get_counter("ai_backend_requests_total", endpoint="chat", outcome="ok") == 1


def test_agent_chat_is_tagged_even_with_document_id_echoed():
    def handler(request):
        body = json.loads(request.content)
        assert body["document_id"] == "doc-1"
        assert body["session_id"] == ""
        return httpx.Response(200, json={"response": "r", "session_id": "s-1", "document_id": "doc-1"})

    response = _run(_client(handler), lambda c: c.agent_chat("q", document_id="doc-1"))
    assert response.kind == "agent_chat"
    assert response.session_id == "s-1"


def test_upload_and_chat_sends_multipart_fields():
    def handler(request):
        assert request.url.path == "/api/v1/agent/upload-and-chat"
        assert request.headers["content-type"].startswith("multipart/form-data")
        body = request.content
        assert b'name="initial_message"' in body
        assert b'name="session_id"' in body
        assert b'name="output_language"' in body
        assert b'name="input_language"' not in body
        assert b'filename="lease.pdf"' in body
        assert b"%PDF-1.4" in body
        return httpx.Response(
            200,
            json={"document_id": "doc-7", "agent_response": "ok", "session_id": "s-9", "storage_url": "u"},
        )

    response = _run(
        _client(handler),
        lambda c: c.agent_upload_and_chat(
            b"%PDF-1.4 fake", "lease.pdf", "Summarize", session_id="s-1", output_language="hi"
        ),
    )
    assert response.kind == "upload_and_chat"
    assert response.document_id == "doc-7"


def test_timeout_is_rewritten_to_waking_up_message():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(UpstreamTimeoutException) as exc_info:
        _run(_client(handler), lambda c: c.chat("q"))

    assert exc_info.value.status_code == 504
    assert exc_info.value.detail == UPSTREAM_TIMEOUT_MESSAGE
    assert get_counter("ai_backend_requests_total", endpoint="chat", outcome="timeout") == 1


def test_non_2xx_becomes_upstream_error():
    def handler(request):
        return httpx.Response(503, text="overloaded")

    with pytest.raises(UpstreamServiceException) as exc_info:
        _run(_client(handler), lambda c: c.agent_chat("q"))

    assert exc_info.value.status_code == 502
    assert "503" in exc_info.value.detail
    assert not isinstance(exc_info.value, UpstreamTimeoutException)


def test_connection_error_becomes_upstream_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(UpstreamServiceException):
        _run(_client(handler), lambda c: c.translate("hello"))


def test_non_json_body_becomes_upstream_error():
    def handler(request):
        return httpx.Response(200, text="<html>sleeping</html>")

    with pytest.raises(UpstreamServiceException):
        _run(_client(handler), lambda c: c.chat("q"))


def test_translate_detect_and_generate():
    def handler(request):
        body = json.loads(request.content)
        if request.url.path == "/api/v1/translate":
            assert body == {"text": "hello", "source_lang": "en", "target_lang": "hi"}
            return httpx.Response(200, json={"translated_text": "namaste"})
        if request.url.path == "/api/v1/agent/detect-language":
            return httpx.Response(200, json={
                "input_detection": {"language": "hi", "confidence": 0.9},
                "suggested_output": {"language": "hi", "display_name": "Hindi"},
            })
        assert request.url.path == "/api/v1/generate-document"
        assert body == {"template_name": "nda", "data": {"party": "A"}}
        return httpx.Response(200, json={"document_content": "NDA text"})

    async def calls(client):
        return (
            await client.translate("hello"),
            await client.detect_language("namaste"),
            await client.generate_document("nda", {"party": "A"}),
        )

    translated, detected, document = _run(_client(handler), calls)
    assert translated.translated_text == "namaste"
    assert detected.suggested_output["display_name"] == "Hindi"
    assert document.document_content == "NDA text"
