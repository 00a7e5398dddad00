"""
Tests for environment-derived settings.
"""

from __future__ import annotations

from guessometer.settings import Settings


def test_airtable_table_follows_environment() -> None:
    assert Settings(environment="production").airtable_table_name == "Production"
    assert Settings(environment="development").airtable_table_name == "Predictions"
    assert Settings(airtable_table="Custom").airtable_table_name == "Custom"


def test_airtable_enabled_needs_both_credentials() -> None:
    assert not Settings(airtable_token="", airtable_base_id="").airtable_enabled
    assert not Settings(airtable_token="tok", airtable_base_id="").airtable_enabled
    assert Settings(airtable_token="tok", airtable_base_id="app1").airtable_enabled


def test_admin_email_case_insensitive() -> None:
    settings = Settings(admin_emails=["Boss@Example.com"])
    assert settings.is_admin_email("boss@example.com")
    assert not settings.is_admin_email("other@example.com")
    assert not settings.is_admin_email(None)


def test_env_binding(monkeypatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "testing")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    settings = Settings()
    assert settings.is_testing
    assert settings.log_level == "DEBUG"


def test_comma_separated_admin_emails(monkeypatch) -> None:
    monkeypatch.setenv("ADMIN_EMAILS", "alice@example.com, bob@example.com")
    settings = Settings()
    assert settings.admin_emails == ["alice@example.com", "bob@example.com"]
    assert settings.is_admin_email("BOB@example.com")


def test_database_url_uses_asyncpg() -> None:
    settings = Settings(database_url="postgres://u:p@db:5432/guess")
    assert settings.database_url == "postgresql+asyncpg://u:p@db:5432/guess"

    sqlite = Settings(database_url="sqlite+aiosqlite:///dev.db")
    assert sqlite.database_url == "sqlite+aiosqlite:///dev.db"
