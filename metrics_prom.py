import os
from prometheus_client import Counter, Histogram

APP_NAME = os.getenv("APP_NAME", "portfolio_chat")

REQ_COUNT = Counter(
    f"{APP_NAME}_requests_total",
    "Total chat requests",
    ["endpoint", "outcome", "status"],  # outcome: cache_hit/llm/invalid/gateway_error/rate_limited
)

REQ_LATENCY_MS = Histogram(
    f"{APP_NAME}_request_latency_ms",
    "Request latency in milliseconds",
    ["endpoint", "outcome"],
    buckets=(5, 50, 100, 200, 400, 800, 1500, 3000, 5000, 8000, 12000, 20000, 40000),
)

TOKENS = Counter(
    f"{APP_NAME}_tokens_total",
    "Token counts reported by the provider",
    ["kind"],    # kind: input/output/total
)
