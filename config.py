from __future__ import annotations

import os
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


class ConfigurationError(RuntimeError):
    """서버를 띄울 수 없는 설정 오류 (요청 단위가 아니라 기동 단위)."""


def _split_origins(raw: str) -> List[str]:
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or ["*"]


class Settings(BaseModel):
    """환경 변수(.env 포함)에서 읽어오는 런타임 설정."""

    api_key: str
    model: str = "gemini-2.5-flash-lite"
    host: str = "0.0.0.0"
    port: int = 3228

    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    gateway_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gateway_timeout_sec: float = 30.0

    answers_path: Optional[str] = None
    system_prompt_path: Optional[str] = None


def load_settings() -> Settings:
    api_key = os.getenv("API_KEY")
    if not api_key:
        raise ConfigurationError("API_KEY not set (environment or .env)")

    return Settings(
        api_key=api_key,
        model=os.getenv("MODEL", "gemini-2.5-flash-lite"),
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "3228")),
        cors_origins=_split_origins(os.getenv("CORS_ORIGINS", "*")),
        gateway_base_url=os.getenv(
            "GATEWAY_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
        ),
        gateway_timeout_sec=float(os.getenv("GATEWAY_TIMEOUT_SEC", "30")),
        answers_path=os.getenv("ANSWERS_PATH") or None,
        system_prompt_path=os.getenv("SYSTEM_PROMPT_PATH") or None,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
