from mathgpt.config import Settings


def test_defaults(monkeypatch):
    for key in ("PORT", "DEBUG", "API_BASE_URL", "SESSION_MAX_AGE"):
        monkeypatch.delenv(key, raising=False)
    s = Settings()
    assert s.PORT == 8000
    assert s.DEBUG is False
    assert s.API_BASE_URL == ""
    assert s.SESSION_MAX_AGE == 900


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("PORT", "9000")
    monkeypatch.setenv("DEBUG", "yes")
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test,http://b.test")
    monkeypatch.setenv("COMPLETION_TIMEOUT", "12.5")
    s = Settings()
    assert s.PORT == 9000
    assert s.DEBUG is True
    assert s.CORS_ORIGINS == ["http://a.test", "http://b.test"]
    assert s.COMPLETION_TIMEOUT == 12.5
