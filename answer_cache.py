from __future__ import annotations

import json
from typing import Dict, Mapping, Optional

from config import ConfigurationError

# 자주 묻는 질문: LLM 호출 없이 바로 응답
DEFAULT_ANSWERS: Dict[str, str] = {
    "кто такой рамиль?": "Рамиль Нуруллаев - фулл-стек разработчик со специализацией в веб-технологиях и разработке ПО",
    "чем занимается рамиль?": "Рамиль занимается веб-разработкой, созданием адаптивных интерфейсов и системным администрированием.",
    "какие навыки у рамиля?": "Основные навыки: Vue.js, Node.js, Docker, настройка серверов и веб-разработка.",
}


def normalize_question(text: str) -> str:
    return text.strip().casefold()


class AnswerCache:
    """
    정규화된 질문 -> 고정 답변. 기동 시 한 번 로드하고 런타임에는 읽기만 한다.
    부분 일치/유사도 매칭은 하지 않는다.
    """

    def __init__(self, answers: Optional[Mapping[str, str]] = None):
        source = DEFAULT_ANSWERS if answers is None else answers
        self._answers: Dict[str, str] = {
            normalize_question(q): reply for q, reply in source.items()
        }

    @classmethod
    def from_file(cls, path: str) -> "AnswerCache":
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot load answers file {path}: {e}") from e

        if not isinstance(data, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in data.items()
        ):
            raise ConfigurationError(f"Answers file {path} must be a JSON object of strings")
        return cls(data)

    def lookup(self, question: str) -> Optional[str]:
        return self._answers.get(normalize_question(question))

    def __len__(self) -> int:
        return len(self._answers)

    def __contains__(self, question: object) -> bool:
        return isinstance(question, str) and normalize_question(question) in self._answers


def load_answer_cache(path: Optional[str] = None) -> AnswerCache:
    if path:
        return AnswerCache.from_file(path)
    return AnswerCache()
