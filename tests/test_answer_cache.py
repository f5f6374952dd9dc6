import json

import pytest

from answer_cache import AnswerCache, load_answer_cache, normalize_question
from config import ConfigurationError


def test_normalize_question():
    assert normalize_question("  Кто Такой РАМИЛЬ?\n") == "кто такой рамиль?"


def test_default_answers_loaded():
    cache = load_answer_cache()
    assert len(cache) == 3
    assert cache.lookup("Какие навыки у Рамиля?") == (
        "Основные навыки: Vue.js, Node.js, Docker, настройка серверов и веб-разработка."
    )


def test_exact_match_only():
    cache = AnswerCache()
    assert cache.lookup("Кто такой Рамиль") is None
    assert cache.lookup("Скажи, кто такой Рамиль?") is None
    assert "кто такой рамиль?" in cache


def test_custom_answers_are_normalized():
    cache = AnswerCache({"  Где Рамиль живёт?  ": "В Казани."})
    assert cache.lookup("где рамиль живёт?") == "В Казани."


def test_load_from_file(tmp_path):
    path = tmp_path / "answers.json"
    path.write_text(json.dumps({"Как связаться?": "Через форму на сайте."}, ensure_ascii=False), encoding="utf-8")

    cache = load_answer_cache(str(path))
    assert len(cache) == 1
    assert cache.lookup("как связаться?") == "Через форму на сайте."


@pytest.mark.parametrize("content", ["{not json", "[1, 2]", '{"q": 1}'])
def test_malformed_file_is_configuration_error(tmp_path, content):
    path = tmp_path / "answers.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_answer_cache(str(path))


def test_missing_file_is_configuration_error(tmp_path):
    with pytest.raises(ConfigurationError):
        load_answer_cache(str(tmp_path / "nope.json"))
