from __future__ import annotations

from typing import Optional

SYSTEM_PROMPT = (
    "Ты - Мини Рамилька, цифровой помощник Рамиля Нуруллаева на его сайте-портфолио.\n"
    "Рамиль - фулл-стек разработчик: веб-разработка, адаптивные интерфейсы, "
    "Vue.js, Node.js, Docker, настройка серверов и системное администрирование.\n"
    "Отвечай на русском языке, кратко и дружелюбно, в 1-3 предложениях.\n"
    "Отвечай только на вопросы о Рамиле, его навыках, проектах и услугах. "
    "Если вопрос не по теме, вежливо предложи спросить о Рамиле.\n"
    "Не выдумывай факты: если не знаешь ответа, так и скажи и предложи "
    "связаться с Рамилем напрямую."
)

FIRST_MESSAGE_DIRECTIVE = "\n\nЭто первое сообщение в диалоге. Представься кратко."
CONTINUE_DIRECTIVE = "\n\nЭто продолжение диалога. Не представляйся снова."


def build_prompt(system_prompt: str, is_first_message: bool, message: str) -> str:
    directive = FIRST_MESSAGE_DIRECTIVE if is_first_message else CONTINUE_DIRECTIVE
    return f"{system_prompt}{directive}\n\nВопрос: {message}\nОтвет:"


def load_system_prompt(path: Optional[str] = None) -> str:
    if not path:
        return SYSTEM_PROMPT
    with open(path, "r", encoding="utf-8") as f:
        return f.read().strip()
