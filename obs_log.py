import json
import os
import time
from typing import Any, Optional

LOG_JSON = os.getenv("LOG_JSON", "1") == "1"

def now_ms() -> int:
    return int(time.time() * 1000)

def log(event: str, **fields):
    payload = {"ts_ms": now_ms(), "event": event, **fields}
    if LOG_JSON:
        print(json.dumps(payload, ensure_ascii=False), flush=True)
    else:
        print(payload, flush=True)

def normalize_usage(usage: Optional[Any]) -> dict:
    """
    Gemini usageMetadata 포멧을 통일:
        {"input_tokens": int, "output_tokens": int, "total_tokens": int}
    """
    if not isinstance(usage, dict) or not usage:
        return {}

    try:
        inp = int(usage.get("promptTokenCount") or usage.get("input_tokens") or 0)
        out = int(usage.get("candidatesTokenCount") or usage.get("output_tokens") or 0)
        total = int(usage.get("totalTokenCount") or usage.get("total_tokens") or (inp + out))
        return {"input_tokens": inp, "output_tokens": out, "total_tokens": total}
    except (TypeError, ValueError):
        # 예상 밖 포멧이면 집계만 생략
        return {}
