from property_weather_search.settings import Settings, get_settings, reset_settings_cache


def test_defaults_preserve_search_behavior():
    settings = get_settings()
    assert settings.desired_results == 20
    assert settings.fetch_batch_size == 50
    assert settings.max_attempts == 3
    assert settings.weather_concurrency == 5
    assert settings.weather_timeout == 5.0
    assert settings.on_missing_weather == "exclude"
    assert settings.cache_enabled is True


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("PWS_SQLITE_PATH", "/tmp/x.sqlite")
    monkeypatch.setenv("PWS_MAX_ATTEMPTS", "5")
    monkeypatch.setenv("PWS_ON_MISSING_WEATHER", "INCLUDE")
    monkeypatch.setenv("PWS_CACHE", "0")
    monkeypatch.setenv("FRONTEND_URL", "http://localhost:3000")
    reset_settings_cache()
    settings = get_settings()
    assert settings.db_path == "/tmp/x.sqlite"
    assert settings.max_attempts == 5
    assert settings.on_missing_weather == "include"
    assert settings.cache_enabled is False
    assert settings.frontend_url == "http://localhost:3000"


def test_invalid_values_fall_back(monkeypatch):
    monkeypatch.setenv("PWS_MAX_ATTEMPTS", "lots")
    monkeypatch.setenv("PWS_WEATHER_TIMEOUT", "-1")
    monkeypatch.setenv("PWS_ON_MISSING_WEATHER", "maybe")
    settings = Settings.from_env()
    assert settings.max_attempts == 3
    assert settings.weather_timeout == 5.0
    assert settings.on_missing_weather == "exclude"
