"""Tests for settings parsing."""

from quantum5ocial.settings import Settings


def test_cors_origins_comma_separated():
    s = Settings(CORS_ORIGINS="https://a.com, http://localhost:3000,")
    assert s.cors_origins == ["https://a.com", "http://localhost:3000"]


def test_cors_origins_json_array():
    s = Settings(CORS_ORIGINS='["https://a.com","https://b.com"]')
    assert s.cors_origins == ["https://a.com", "https://b.com"]


def test_async_database_url_rewrites_driver():
    assert Settings(database_url="postgres://u:p@db:5432/q5").async_database_url == (
        "postgresql+asyncpg://u:p@db:5432/q5"
    )
    assert Settings(database_url="postgresql://u:p@db:5432/q5").async_database_url == (
        "postgresql+asyncpg://u:p@db:5432/q5"
    )


def test_internal_hosts_disable_ssl():
    assert Settings(database_url="postgresql://u:p@db.railway.internal:5432/q5").asyncpg_connect_args == {
        "ssl": False,
        "timeout": 20,
    }
    assert Settings(database_url="postgresql://u:p@example.com:5432/q5").asyncpg_connect_args == {}


def test_ai_available_needs_key_and_switch():
    assert not Settings(AI_ENABLED=True, OPENAI_API_KEY="").ai_available
    assert not Settings(AI_ENABLED=False, OPENAI_API_KEY="sk-test").ai_available
    assert Settings(AI_ENABLED=True, OPENAI_API_KEY="sk-test").ai_available
