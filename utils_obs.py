import time
import uuid
from dataclasses import dataclass

from fastapi import Request

@dataclass
class Timer:
    t0: float

    @classmethod
    def start(cls):
        return cls(time.perf_counter())

    def ms(self) -> int:
        return int((time.perf_counter() - self.t0) * 1000)

def ensure_request_id(rid: str | None) -> str:
    return rid or str(uuid.uuid4())

def client_address(request: Request) -> str:
    # 프록시 뒤에서는 uvicorn --proxy-headers 로 client.host 가 실제 IP가 된다
    if request.client and request.client.host:
        return request.client.host
    return "unknown"
