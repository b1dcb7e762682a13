"""
Typed shapes returned by the AI backend.

The backend itself sends untagged JSON; the client tags every payload with
``kind`` according to the endpoint it called, so the rest of the service
dispatches on ``kind`` instead of probing for fields.
"""
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


class _UpstreamModel(BaseModel):
    # Unknown fields from the backend are kept so cached payloads stay complete
    model_config = ConfigDict(extra="allow")

    @field_validator("session_id", "document_id", "updated_summary", mode="before", check_fields=False)
    @classmethod
    def _ids_as_text(cls, value: Any) -> Optional[str]:
        if value is None or isinstance(value, str):
            return value
        return str(value)


class PlainChatResponse(_UpstreamModel):
    kind: Literal["chat"] = "chat"
    response: Any = ""
    updated_summary: Optional[str] = None


class AgentChatResponse(_UpstreamModel):
    kind: Literal["agent_chat"] = "agent_chat"
    response: Any = ""
    session_id: Optional[str] = None
    tools_used: Optional[List[Any]] = Field(default_factory=list)
    intermediate_steps: Optional[List[Any]] = Field(default_factory=list)
    raw_results: Optional[List[Any]] = Field(default_factory=list)
    language_info: Optional[Dict[str, Any]] = None


class UploadAndChatResponse(_UpstreamModel):
    kind: Literal["upload_and_chat"] = "upload_and_chat"
    document_id: Optional[str] = None
    storage_url: Optional[str] = None
    agent_response: Any = ""
    session_id: Optional[str] = None
    tools_used: Optional[List[Any]] = Field(default_factory=list)
    intermediate_steps: Optional[List[Any]] = Field(default_factory=list)
    raw_results: Optional[List[Any]] = Field(default_factory=list)
    language_info: Optional[Dict[str, Any]] = None
    deduplication_info: Optional[Dict[str, Any]] = None


AIResponse = Annotated[
    Union[PlainChatResponse, AgentChatResponse, UploadAndChatResponse],
    Field(discriminator="kind"),
]

_ai_response_adapter = TypeAdapter(AIResponse)


def infer_response_kind(payload: Dict[str, Any]) -> str:
    """Classify an untagged backend payload by the fields it carries."""
    if "document_id" in payload and "agent_response" in payload:
        return "upload_and_chat"
    if "session_id" in payload and "document_id" not in payload:
        return "agent_chat"
    return "chat"


def parse_ai_response(payload: Dict[str, Any], kind: Optional[str] = None) -> AIResponse:
    """Build the typed response; ``kind`` wins over any tag or inference."""
    data = dict(payload)
    data["kind"] = kind or data.get("kind") or infer_response_kind(data)
    return _ai_response_adapter.validate_python(data)


class TranslateResponse(_UpstreamModel):
    translated_text: str = ""


class DocumentGenerationResponse(_UpstreamModel):
    document_content: str = ""


class LanguageDetectionResponse(_UpstreamModel):
    input_detection: Dict[str, Any] = Field(default_factory=dict)
    suggested_output: Dict[str, Any] = Field(default_factory=dict)
