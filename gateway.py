from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from metrics_prom import TOKENS
from obs_log import log, normalize_usage
from otel import get_tracer

logger = logging.getLogger("uvicorn")

GENERATION_CONFIG: Dict[str, Any] = {
    "temperature": 0.7,
    "topK": 1,
    "topP": 1,
    "maxOutputTokens": 150,
}

# 모델이 두 번째 메시지부터 다시 자기소개하는 경우 잘라낸다
INTRO_SENTENCE = "Привет, я Мини Рамилька, цифровой помощник Рамиля"

FALLBACK_REPLY = "Не могу ответить на этот вопрос"
UNKNOWN_PROVIDER_ERROR = "Неизвестная ошибка"
UNPARSEABLE_RESPONSE = "Не удалось обработать ответ от модели"
TRANSPORT_ERROR = "Произошла ошибка при обращении к API"


class GatewayError(Exception):
    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status
        self.message = message


def _extract_text(data: Any) -> Optional[str]:
    """candidates[0].content.parts[0].text, 없으면 None"""
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    if not isinstance(text, str):
        return None
    return text


def _provider_error_message(resp: httpx.Response) -> Optional[str]:
    try:
        body = resp.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    err = body.get("error")
    if isinstance(err, dict):
        msg = err.get("message")
        return msg if isinstance(msg, str) and msg else None
    return None


def clean_reply(text: str, is_first_message: bool) -> str:
    if not is_first_message:
        text = text.replace(INTRO_SENTENCE, "")
    return text.strip() or FALLBACK_REPLY


class CompletionGateway:
    """
    Gemini generateContent REST 호출 1회. 재시도 없음.
    실패는 전부 GatewayError(status, message) 로 변환한다.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout_sec: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout_sec = timeout_sec
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def url(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def _get_client(self) -> httpx.AsyncClient:
        # 전역으로 1번만 생성
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout_sec, transport=self._transport)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def complete(self, prompt: str, is_first_message: bool = True) -> str:
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": GENERATION_CONFIG,
        }

        with get_tracer().start_as_current_span("gemini.generate_content") as span:
            span.set_attribute("llm.model", self.model)
            try:
                resp = await self._get_client().post(
                    self.url,
                    params={"key": self.api_key},
                    json=payload,
                )
            except httpx.HTTPError as e:
                logger.error(f"Gateway transport error: {type(e).__name__}: {e}")
                log("gateway_error", kind="transport", error=type(e).__name__)
                raise GatewayError(500, TRANSPORT_ERROR) from e

            span.set_attribute("http.status_code", resp.status_code)

            if not resp.is_success:
                provider_msg = _provider_error_message(resp)
                status = resp.status_code if resp.status_code >= 400 else 500
                logger.error(f"Provider error {resp.status_code}: {resp.text[:2000]}")
                log("gateway_error", kind="provider", status=resp.status_code, message=provider_msg)
                raise GatewayError(
                    status,
                    f"Ошибка от внешнего API: {provider_msg or UNKNOWN_PROVIDER_ERROR}",
                )

            try:
                data = resp.json()
            except ValueError:
                data = None

            text = _extract_text(data)
            if text is None:
                logger.error(f"Unparseable provider response: {resp.text[:2000]}")
                log("gateway_error", kind="unparseable", status=resp.status_code)
                raise GatewayError(500, UNPARSEABLE_RESPONSE)

            usage = normalize_usage(data.get("usageMetadata"))
            for kind, count in usage.items():
                TOKENS.labels(kind=kind.replace("_tokens", "")).inc(count)
            log("gateway_done", model=self.model, status=resp.status_code, usage=usage)

        return clean_reply(text, is_first_message)
