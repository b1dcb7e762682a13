# legalchat/core/config.py

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Основные
    APP_NAME: str = Field("LegalChat API")
    DATABASE_URL: str = Field("sqlite+aiosqlite:///./legalchat.db")
    JWT_SECRET_KEY: str = Field("change-me")
    JWT_ALGORITHM: str = Field("HS256")
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(10080)
    ALLOWED_ORIGINS: str = Field("http://localhost:3000")
    PUBLIC_BASE_URL: Optional[str] = Field(None)

    # AI backend
    AI_BACKEND_URL: str = Field("http://localhost:7860")
    AI_BACKEND_TIMEOUT: float = Field(180.0)

    # Cache
    REDIS_URL: str = Field("")
    AI_RESPONSE_CACHE_TTL: int = Field(3600)
    CONVERSATION_LIST_CACHE_TTL: int = Field(1800)

    # Conversations
    HISTORY_WINDOW: int = Field(20)
    SERIALIZE_CONVERSATION_WRITES: bool = Field(True)

    # Системные параметры
    LOG_LEVEL: str = Field("INFO")
    LOG_FILE: Optional[str] = Field(None)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    def get_allowed_origins(self) -> List[str]:
        return [o.strip().rstrip("/") for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]


settings = Settings()
