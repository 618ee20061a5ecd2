"""
Tests for environment-driven settings.
"""

from studio.config import DEFAULT_API_ENDPOINT, DEFAULT_IMAGE_MODEL, load_settings


def test_defaults(monkeypatch) -> None:
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    monkeypatch.delenv("GOOGLE_IMAGE_MODEL", raising=False)
    monkeypatch.delenv("GOOGLE_API_ENDPOINT", raising=False)

    settings = load_settings()

    assert settings.google_api_key == ""
    assert settings.has_credentials is False
    assert settings.google_image_model == DEFAULT_IMAGE_MODEL
    assert settings.api_endpoint == DEFAULT_API_ENDPOINT


def test_overrides(monkeypatch) -> None:
    monkeypatch.setenv("GOOGLE_API_KEY", "secret")
    monkeypatch.setenv("GOOGLE_IMAGE_MODEL", "gemini-2.5-flash-image")
    monkeypatch.setenv("GOOGLE_API_ENDPOINT", "https://proxy.example/")

    settings = load_settings()

    assert settings.has_credentials is True
    assert settings.google_image_model == "gemini-2.5-flash-image"
    assert settings.api_endpoint == "https://proxy.example"
