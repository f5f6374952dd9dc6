import pytest

from config import ConfigurationError, load_settings


def test_missing_api_key_is_fatal(monkeypatch):
    monkeypatch.delenv("API_KEY", raising=False)
    with pytest.raises(ConfigurationError):
        load_settings()


def test_defaults(monkeypatch):
    monkeypatch.setenv("API_KEY", "k")
    for name in ("MODEL", "PORT", "HOST", "CORS_ORIGINS"):
        monkeypatch.delenv(name, raising=False)

    s = load_settings()
    assert s.api_key == "k"
    assert s.model == "gemini-2.5-flash-lite"
    assert s.port == 3228
    assert s.host == "0.0.0.0"
    assert s.cors_origins == ["*"]


def test_overrides(monkeypatch):
    monkeypatch.setenv("API_KEY", "k")
    monkeypatch.setenv("MODEL", "gemini-2.0-flash")
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("CORS_ORIGINS", "https://ramil.example, https://www.ramil.example")

    s = load_settings()
    assert s.model == "gemini-2.0-flash"
    assert s.port == 8080
    assert s.cors_origins == ["https://ramil.example", "https://www.ramil.example"]
