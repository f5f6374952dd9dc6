import os
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, Optional

# /api/chat 고정 윈도우 제한: 15분에 클라이언트(IP)당 100회
RATE_LIMIT_WINDOW_SEC = float(os.getenv("RATE_LIMIT_WINDOW_SEC", "900"))
RATE_LIMIT_MAX = int(os.getenv("RATE_LIMIT_MAX", "100"))

RATE_LIMIT_MESSAGE = "Слишком много запросов, попробуйте позже."


@dataclass
class WindowCounter:
    window_start: float
    count: int


@dataclass
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_sec: int      # 윈도우가 끝날 때까지 남은 초

    def headers(self) -> Dict[str, str]:
        h = {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(self.reset_sec),
        }
        if not self.allowed:
            h["Retry-After"] = str(self.reset_sec)
        return h


class RateLimitExceeded(Exception):
    def __init__(self, result: RateLimitResult):
        super().__init__(RATE_LIMIT_MESSAGE)
        self.result = result


class FixedWindowLimiter:
    """
    프로세스 로컬 고정 윈도우 카운터.
    윈도우는 클라이언트별 첫 요청 시점부터 시작한다.

    OrderedDict 를 윈도우 시작 순서로 유지한다: 새 윈도우는 맨 뒤로 가므로
    끝난 윈도우는 앞에서부터만 정리하면 된다.
    """

    def __init__(self, window_sec: float = RATE_LIMIT_WINDOW_SEC, max_requests: int = RATE_LIMIT_MAX):
        self.window_sec = window_sec
        self.max_requests = max_requests
        self._counters: "OrderedDict[str, WindowCounter]" = OrderedDict()

    def _purge(self, now: float) -> None:
        # 끝난 윈도우 정리 (클라이언트 수만큼 메모리가 쌓이지 않게)
        while self._counters:
            oldest = next(iter(self._counters.values()))
            if now - oldest.window_start < self.window_sec:
                break
            self._counters.popitem(last=False)

    def hit(self, key: str, now: Optional[float] = None) -> RateLimitResult:
        now = time.monotonic() if now is None else now

        counter = self._counters.get(key)
        if counter is None or now - counter.window_start >= self.window_sec:
            self._purge(now)
            counter = WindowCounter(window_start=now, count=0)
            self._counters[key] = counter
            self._counters.move_to_end(key)

        counter.count += 1
        reset_sec = max(0, int(round(counter.window_start + self.window_sec - now)))
        return RateLimitResult(
            allowed=counter.count <= self.max_requests,
            limit=self.max_requests,
            remaining=max(0, self.max_requests - counter.count),
            reset_sec=reset_sec,
        )

    def check(self, key: str, now: Optional[float] = None) -> RateLimitResult:
        result = self.hit(key, now)
        if not result.allowed:
            raise RateLimitExceeded(result)
        return result

    def reset(self) -> None:
        self._counters.clear()

    def __len__(self) -> int:
        return len(self._counters)


# 전역에서 사용할 limiter 인스턴스
CHAT_LIMITER = FixedWindowLimiter()
