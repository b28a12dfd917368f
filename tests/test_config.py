"""Tests for configuration helpers."""

from gym_checkin.config import Settings, parse_allowed_origins


def test_parse_allowed_origins() -> None:
    assert parse_allowed_origins(None) == []
    assert parse_allowed_origins(" * ") == []
    assert parse_allowed_origins("http://localhost:3000, https://gym.example,") == [
        "http://localhost:3000",
        "https://gym.example",
    ]


def test_settings_defaults(monkeypatch) -> None:
    monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
    monkeypatch.setenv("SUPABASE_SERVICE_KEY", "key")
    monkeypatch.delenv("ACTIVE_SESSIONS_INTERVAL_SECONDS", raising=False)

    settings = Settings(_env_file=None)

    assert settings.active_sessions_interval_seconds == 30.0
    assert settings.cors_allowed_origins is None
