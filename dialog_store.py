from __future__ import annotations

import os
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Optional

DIALOG_TTL_SEC = float(os.getenv("DIALOG_TTL_SEC", "1800"))          # 30분 무활동이면 새 대화
DIALOG_MAX_ENTRIES = int(os.getenv("DIALOG_MAX_ENTRIES", "10000"))   # 메모리 상한

DEFAULT_DIALOG_ID = "default"


@dataclass
class DialogState:
    dialog_id: str
    is_first_message: bool
    last_updated: float


class DialogStore:
    """
    dialog_id -> DialogState (프로세스 메모리).

    OrderedDict를 마지막 활동 순서로 유지한다: 접근할 때마다 맨 뒤로 이동하므로
    앞쪽이 가장 오래된 대화. TTL을 넘긴 항목은 접근 시 앞에서부터 정리하고,
    용량을 넘으면 가장 오래된 대화부터 밀어낸다.

    모든 연산은 동기 함수라서 이벤트 루프 안에서는 await 없이 한 번에 끝난다.
    """

    def __init__(self, ttl_sec: float = DIALOG_TTL_SEC, max_entries: int = DIALOG_MAX_ENTRIES):
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.ttl_sec = ttl_sec
        self.max_entries = max_entries
        self._states: "OrderedDict[str, DialogState]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._states)

    def __contains__(self, dialog_id: object) -> bool:
        return dialog_id in self._states

    def _expired(self, state: DialogState, now: float) -> bool:
        return now - state.last_updated > self.ttl_sec

    def _sweep(self, now: float) -> None:
        while self._states:
            oldest = next(iter(self._states.values()))
            if not self._expired(oldest, now):
                break
            self._states.popitem(last=False)

    def get_or_init_state(self, dialog_id: str, now: Optional[float] = None) -> DialogState:
        """
        없거나 TTL이 지난 대화는 is_first_message=True 로 새로 만든다.
        어느 경우든 last_updated 는 now 로 갱신된다.
        """
        now = time.monotonic() if now is None else now

        state = self._states.get(dialog_id)
        if state is None or self._expired(state, now):
            state = DialogState(dialog_id=dialog_id, is_first_message=True, last_updated=now)
            self._states[dialog_id] = state
        else:
            state.last_updated = now
        self._states.move_to_end(dialog_id)

        self._sweep(now)
        while len(self._states) > self.max_entries:
            self._states.popitem(last=False)
        return state

    def consume_first_message_flag(self, dialog_id: str) -> bool:
        # 읽은 값(변경 전)을 반환
        state = self._states.get(dialog_id)
        if state is None:
            return False
        was_first = state.is_first_message
        if was_first:
            state.is_first_message = False
        return was_first

    def begin_turn(self, dialog_id: str, now: Optional[float] = None) -> bool:
        """get_or_init_state + consume_first_message_flag 를 한 단계로."""
        self.get_or_init_state(dialog_id, now)
        return self.consume_first_message_flag(dialog_id)

    def get(self, dialog_id: str) -> Optional[DialogState]:
        return self._states.get(dialog_id)

    def clear(self) -> None:
        self._states.clear()


DIALOG_STORE = DialogStore()
