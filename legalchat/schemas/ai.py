from typing import Any, Dict
from pydantic import BaseModel, Field


class TranslateRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=20000)
    source_lang: str = "en"
    target_lang: str = "hi"


class DetectLanguageRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=20000)


class GenerateDocumentRequest(BaseModel):
    template_name: str = Field(..., min_length=1, max_length=200)
    data: Dict[str, Any] = Field(default_factory=dict)
