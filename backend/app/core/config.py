from enum import Enum
from typing import Any

from pydantic import PostgresDsn, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ModeEnum(str, Enum):
    development = "development"
    production = "production"
    testing = "testing"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file="../.env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── App ───────────────────────────────────────────────────
    MODE: ModeEnum = ModeEnum.production
    API_STR: str = "/api"
    PROJECT_NAME: str = "DECKGEN"
    LOG_LEVEL: str = "INFO"

    ALLOWED_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # ── Database (Supabase Postgres) ──────────────────────────
    DATABASE_USER: str = "postgres"
    DATABASE_PASSWORD: str = "postgres"
    DATABASE_HOST: str = "localhost"
    DATABASE_PORT: int = 5432
    DATABASE_NAME: str = "postgres"
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 10
    # Supabase closes idle pooled connections
    DATABASE_POOL_RECYCLE_SECONDS: int = 300

    ASYNC_DATABASE_URI: PostgresDsn | str = ""

    @field_validator("ASYNC_DATABASE_URI", mode="before")
    @classmethod
    def assemble_db_connection(cls, v: str | None, info) -> Any:
        if isinstance(v, str) and v == "":
            data = info.data
            # Skip SSL for local dev
            mode = data.get("MODE", ModeEnum.development)
            query = "ssl=require" if mode != ModeEnum.development else None
            return PostgresDsn.build(
                scheme="postgresql+asyncpg",
                username=data.get("DATABASE_USER"),
                password=data.get("DATABASE_PASSWORD"),
                host=data.get("DATABASE_HOST"),
                port=data.get("DATABASE_PORT"),
                path=data.get("DATABASE_NAME"),
                query=query,
            )
        return v

    # ── OpenAI ────────────────────────────────────────────────
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "openai:gpt-4o"
    OPENAI_FAST_MODEL: str = "openai:gpt-4o-mini"
    EMBEDDING_MODEL: str = "text-embedding-3-small"

    # ── Generation ────────────────────────────────────────────
    SLIDE_TEMPERATURE: float = 0.7
    SLIDE_MAX_TOKENS: int = 2500
    TOC_TEMPERATURE: float = 0.7
    TOC_MAX_TOKENS: int = 2000
    LLM_REQUEST_INTERVAL_SECONDS: float = 0.12
    CONTEXT_CHAR_LIMIT: int = 15000
    MIN_BULLETS: int = 8
    MIN_METRICS: int = 3

    # ── Export ────────────────────────────────────────────────
    EXPORT_TIMEOUT_SECONDS: float = 30.0

    # ── Knowledge base / slide library search ────────────────
    KB_MATCH_THRESHOLD: float = 0.7
    KB_MATCH_COUNT: int = 5
    SIMILAR_MATCH_THRESHOLD: float = 0.75
    SIMILAR_MATCH_COUNT: int = 10


settings = Settings()
