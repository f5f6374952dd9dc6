import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from answer_cache import load_answer_cache
from config import get_settings
from dialog_store import DEFAULT_DIALOG_ID, DIALOG_STORE
from gateway import CompletionGateway, GatewayError
from metrics_prom import REQ_COUNT, REQ_LATENCY_MS
from obs_log import log
from otel import setup_tracing
from prompt_builder import build_prompt, load_system_prompt
from rate_limit import CHAT_LIMITER, RATE_LIMIT_MESSAGE, RateLimitExceeded, RateLimitResult
from schemas import ChatRequest, ChatResponse, ErrorResponse, StatusResponse
from utils_obs import Timer, client_address, ensure_request_id

# 로깅 설정 (uvicorn 로그와 통합)
logger = logging.getLogger("uvicorn")

MAX_MESSAGE_LENGTH = 500

EMPTY_MESSAGE = "Пустое сообщение"
MESSAGE_TOO_LONG = f"Сообщение слишком длинное (максимум {MAX_MESSAGE_LENGTH} символов)"
BAD_REQUEST = "Некорректный запрос"

CHAT_ENDPOINT = "/api/chat"

# API_KEY 가 없으면 여기서 ConfigurationError -> 서버 기동 실패
settings = get_settings()

ANSWER_CACHE = load_answer_cache(settings.answers_path)
SYSTEM_PROMPT = load_system_prompt(settings.system_prompt_path)

# 전역으로 1번만 생성
gateway = CompletionGateway(
    api_key=settings.api_key,
    model=settings.model,
    base_url=settings.gateway_base_url,
    timeout_sec=settings.gateway_timeout_sec,
)

@asynccontextmanager
async def lifespan(app: FastAPI):
    tracing = setup_tracing()
    logger.info(
        f"Сервер запущен на http://localhost:{settings.port} "
        f"(model={settings.model}, canned_answers={len(ANSWER_CACHE)}, tracing={tracing})"
    )
    log("startup", model=settings.model, port=settings.port, cors_origins=settings.cors_origins)

    yield

    logger.info("LIFESPAN: Shutdown initiated.")
    await gateway.aclose()

app = FastAPI(title="Portfolio Chat Relay", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["RateLimit-Limit", "RateLimit-Remaining", "RateLimit-Reset", "Retry-After"],
)

async def enforce_chat_rate_limit(request: Request) -> RateLimitResult:
    # 한도 초과 시 RateLimitExceeded -> 429 핸들러
    result = CHAT_LIMITER.check(client_address(request))
    request.state.rate_limit = result
    return result

def _json(request: Request, status_code: int, body: Dict[str, Any]) -> JSONResponse:
    rl: Optional[RateLimitResult] = getattr(request.state, "rate_limit", None)
    headers = rl.headers() if rl else None
    return JSONResponse(status_code=status_code, content=body, headers=headers)

def _record(outcome: str, status_code: int, timer: Timer) -> int:
    latency = timer.ms()
    REQ_COUNT.labels(endpoint=CHAT_ENDPOINT, outcome=outcome, status=str(status_code)).inc()
    REQ_LATENCY_MS.labels(endpoint=CHAT_ENDPOINT, outcome=outcome).observe(latency)
    return latency

@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    REQ_COUNT.labels(endpoint=request.url.path, outcome="rate_limited", status="429").inc()
    log("rate_limited", client=client_address(request), path=request.url.path)
    return JSONResponse(
        status_code=429,
        content={"error": RATE_LIMIT_MESSAGE},
        headers=exc.result.headers(),
    )

@app.exception_handler(RequestValidationError)
async def validation_handler(request: Request, exc: RequestValidationError):
    # 바디가 JSON 객체가 아니거나 필드 타입이 틀린 경우
    logger.info(f"Invalid request body on {request.url.path}: {exc.errors()}")
    return _json(request, 400, {"error": BAD_REQUEST})

@app.get("/", response_model=StatusResponse)
def root():
    return {
        "status": "API работает",
        "available_endpoints": {
            "chat": f"POST {CHAT_ENDPOINT}",
        },
    }

@app.get("/health")
def health():
    return {"ok": True}

@app.get("/metrics")
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

@app.post(
    CHAT_ENDPOINT,
    response_model=ChatResponse,
    responses={400: {"model": ErrorResponse}, 429: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def chat(
    req: ChatRequest,
    request: Request,
    _rate_limit: RateLimitResult = Depends(enforce_chat_rate_limit),
):
    rid = ensure_request_id(request.headers.get("X-Request-ID"))
    timer = Timer.start()
    dialog_id = req.dialog_id or DEFAULT_DIALOG_ID

    # 1) validate
    user_message = (req.message or "").strip()
    if not user_message:
        _record("invalid", 400, timer)
        return _json(request, 400, {"error": EMPTY_MESSAGE})
    if len(user_message) > MAX_MESSAGE_LENGTH:
        _record("invalid", 400, timer)
        log("chat_rejected", request_id=rid, dialog_id=dialog_id, reason="too_long", length=len(user_message))
        return _json(request, 400, {"error": MESSAGE_TOO_LONG})

    # 2) 자주 묻는 질문 캐시 (상태 변경/외부 호출 없음)
    cached = ANSWER_CACHE.lookup(user_message)
    if cached is not None:
        latency = _record("cache_hit", 200, timer)
        log("chat_done", request_id=rid, dialog_id=dialog_id, outcome="cache_hit", latency_ms=latency)
        return _json(request, 200, {"reply": cached})

    # 3) 대화 상태: 외부 호출 전에 플래그를 소비한다
    is_first_message = DIALOG_STORE.begin_turn(dialog_id)

    # 4) 프롬프트
    prompt = build_prompt(SYSTEM_PROMPT, is_first_message, user_message)

    # 5) LLM 호출
    try:
        reply = await gateway.complete(prompt, is_first_message=is_first_message)
    except GatewayError as e:
        latency = _record("gateway_error", e.status, timer)
        log(
            "chat_failed",
            request_id=rid,
            dialog_id=dialog_id,
            status=e.status,
            error=e.message,
            first_message=is_first_message,
            latency_ms=latency,
        )
        return _json(request, e.status, {"error": e.message})

    latency = _record("llm", 200, timer)
    log(
        "chat_done",
        request_id=rid,
        dialog_id=dialog_id,
        outcome="llm",
        first_message=is_first_message,
        reply_chars=len(reply),
        latency_ms=latency,
    )
    return _json(request, 200, {"reply": reply})
