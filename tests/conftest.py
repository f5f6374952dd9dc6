import os
import sys

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# api_server 는 import 시점에 API_KEY 를 요구한다
os.environ.setdefault("API_KEY", "test-api-key")

from fastapi.testclient import TestClient

import api_server
from dialog_store import DIALOG_STORE
from rate_limit import CHAT_LIMITER


class FakeGateway:
    """외부 API 대신 프롬프트만 기록하고 정해진 응답/에러를 돌려준다."""

    def __init__(self, reply="Ответ модели", error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def complete(self, prompt, is_first_message=True):
        self.calls.append({"prompt": prompt, "is_first_message": is_first_message})
        if self.error is not None:
            raise self.error
        return self.reply

    async def aclose(self):
        return None


@pytest.fixture(autouse=True)
def _reset_state():
    DIALOG_STORE.clear()
    CHAT_LIMITER.reset()
    yield
    DIALOG_STORE.clear()
    CHAT_LIMITER.reset()


@pytest.fixture
def fake_gateway(monkeypatch):
    fake = FakeGateway()
    monkeypatch.setattr(api_server, "gateway", fake)
    return fake


@pytest.fixture
def client():
    return TestClient(api_server.app)
