from pathlib import Path

import pytest

from linkshop import config
from linkshop.config import Settings, get_settings


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "DEV_MODE",
        "DATABASE_URL",
        "MYSQL_DSN",
        "SUPABASE_URL",
        "SUPABASE_SERVICE_KEY",
        "SELF_PING_URL",
        "RENDER_PING_URL",
        "SELF_PING_INTERVAL_MIN",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config, "_load_dotenv", lambda: None)
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


def test_defaults():
    settings = Settings()
    assert settings.dev_mode is False
    assert settings.admin_username == "admin"
    assert settings.self_ping_interval_min == 14
    assert settings.static_dir == Path("static")
    assert settings.media_configured is False


def test_environment_aliases():
    settings = Settings(
        **{
            "MYSQL_DSN": "mysql+pymysql://u:p@db/shop",
            "RENDER_PING_URL": "https://shop.test/ping",
            "DEV_MODE": "1",
            "ADMIN_TOKEN": "",
            "log_level": "debug",
        }
    )
    assert settings.database_url == "mysql+pymysql://u:p@db/shop"
    assert settings.self_ping_url == "https://shop.test/ping"
    assert settings.dev_mode is True
    assert settings.admin_token is None
    assert settings.log_level == "DEBUG"


def test_missing_services():
    settings = Settings(SUPABASE_URL="https://abc.supabase.co")
    assert settings.missing_services() == ["DATABASE_URL", "SUPABASE_SERVICE_KEY"]


def test_get_settings_requires_services_outside_dev_mode(clean_env):
    with pytest.raises(RuntimeError, match="DATABASE_URL"):
        get_settings()


def test_get_settings_dev_mode(clean_env):
    clean_env.setenv("DEV_MODE", "true")
    assert get_settings().dev_mode is True


def test_get_settings_invalid_value(clean_env):
    clean_env.setenv("DEV_MODE", "true")
    clean_env.setenv("SELF_PING_INTERVAL_MIN", "soon")
    with pytest.raises(RuntimeError, match="Invalid environment variables"):
        get_settings()
