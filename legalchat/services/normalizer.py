"""
Response normalization.

Turns any AI backend response into what gets persisted: display text, the
session and document ids the conversation should bind, and a compact
tool-usage summary for the assistant message metadata. Nothing here raises;
a malformed response degrades to empty text / empty metadata.
"""
import json
import logging
from typing import Any, Dict, List, Optional

from legalchat.services.ai_backend.schemas import AIResponse

logger = logging.getLogger(__name__)

STEP_DETAIL_FIELDS = ("query_time", "chunks_used", "total_chunks")


def _primary_value(response: AIResponse) -> Any:
    if response.kind == "upload_and_chat":
        return response.agent_response
    return response.response


def _steps(response: AIResponse) -> List[Any]:
    if response.kind == "chat":
        return []
    return response.intermediate_steps or []


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return not value


def _to_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, default=str)


def _from_structured(value: Dict[str, Any]) -> str:
    if value.get("answer"):
        content = str(value["answer"])
        sources = value.get("sources")
        if sources:
            if isinstance(sources, (list, tuple)):
                sources = "\n".join(str(s) for s in sources)
            content += "\n\n**Sources:**\n" + str(sources)
        return content
    if value.get("response"):
        nested = value["response"]
        return nested if isinstance(nested, str) else _to_json(nested)
    return _to_json(value)


def extract_text(response: AIResponse) -> str:
    try:
        value = _primary_value(response)

        if _is_blank(value):
            steps = _steps(response)
            first = steps[0] if steps else None
            if isinstance(first, dict) and first.get("result"):
                value = first["result"]

        if isinstance(value, str):
            return value
        if isinstance(value, dict):
            return _from_structured(value)
        return str(value) if value else ""
    except Exception:
        logger.exception("Could not extract text from %s response", getattr(response, "kind", "unknown"))
        return ""


def extract_session_id(response: AIResponse) -> Optional[str]:
    if response.kind == "chat":
        return None
    return response.session_id or None


def extract_document_id(response: AIResponse) -> Optional[str]:
    if response.kind != "upload_and_chat":
        return None
    return response.document_id or None


def summarize_metadata(response: AIResponse) -> Dict[str, Any]:
    """
    Compact tool-usage summary:

        {"tools_used": [{"tool": "search", "query_time": 0.4, ...}],
         "total_query_time": 0.4, "total_chunks": 12, "document_id": "..."}

    ``total_*`` keys are present only when nonzero, ``document_id`` only for uploads.
    """
    try:
        detailed = []
        for step in _steps(response):
            if not isinstance(step, dict):
                continue
            info: Dict[str, Any] = {"tool": step.get("tool") or "unknown"}
            result = step.get("result")
            if isinstance(result, dict):
                for field in STEP_DETAIL_FIELDS:
                    if field in result:
                        info[field] = result[field]
            detailed.append(info)

        metadata: Dict[str, Any] = {}
        if detailed:
            metadata["tools_used"] = detailed
        elif response.kind != "chat":
            metadata["tools_used"] = [{"tool": name} for name in (response.tools_used or [])]
        else:
            metadata["tools_used"] = []

        if response.kind == "upload_and_chat":
            metadata["document_id"] = response.document_id

        total_query_time = 0.0
        max_total_chunks = 0
        for info in detailed:
            if isinstance(info.get("query_time"), (int, float)):
                total_query_time += info["query_time"]
            if isinstance(info.get("total_chunks"), (int, float)):
                max_total_chunks = max(max_total_chunks, info["total_chunks"])

        if total_query_time > 0:
            metadata["total_query_time"] = round(total_query_time, 2)
        if max_total_chunks > 0:
            metadata["total_chunks"] = max_total_chunks

        return metadata
    except Exception:
        logger.exception("Could not summarize metadata of %s response", getattr(response, "kind", "unknown"))
        return {}
