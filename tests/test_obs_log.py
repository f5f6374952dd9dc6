import pytest

from obs_log import normalize_usage


def test_normalize_gemini_usage():
    usage = {"promptTokenCount": 12, "candidatesTokenCount": 7, "totalTokenCount": 19}
    assert normalize_usage(usage) == {"input_tokens": 12, "output_tokens": 7, "total_tokens": 19}


def test_total_is_derived_when_missing():
    assert normalize_usage({"input_tokens": 3, "output_tokens": 4}) == {
        "input_tokens": 3,
        "output_tokens": 4,
        "total_tokens": 7,
    }


@pytest.mark.parametrize("usage", [None, {}, [1], "12", 5, {"promptTokenCount": "many"}, {"totalTokenCount": [1]}])
def test_unexpected_shapes_are_skipped(usage):
    assert normalize_usage(usage) == {}
