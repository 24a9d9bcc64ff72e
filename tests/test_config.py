"""Tests for settings loading."""

from __future__ import annotations

import pytest

from leave_sync.config import Settings, load_settings
from leave_sync.exceptions import ConfigurationError

ENV_NAMES = [
    "NOTION_API_KEY",
    "NOTION_TOKEN",
    "EMPLOYEES_DB_ID",
    "DATABASE_ID_EMPLOYEES",
    "LEAVE_REQUESTS_DB_ID",
    "DATABASE_ID_LEAVE_REQUESTS",
]


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> pytest.MonkeyPatch:
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


def test_settings_read_environment(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("NOTION_API_KEY", "secret_abc")
    clean_env.setenv("EMPLOYEES_DB_ID", "emp")
    clean_env.setenv("LEAVE_REQUESTS_DB_ID", "req")
    clean_env.setenv("IDENTIFIER_FIELD_NAMES", '["National ID"]')

    settings = load_settings()

    assert settings.get_notion_api_key() == "secret_abc"
    assert settings.identifier_field_names == ["National ID"]
    assert settings.default_status == "قيد الانتظار"
    assert settings.relation_policy == "fill_empty"


def test_alternative_variable_names(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("NOTION_TOKEN", "secret_abc")
    clean_env.setenv("DATABASE_ID_EMPLOYEES", "emp")
    clean_env.setenv("DATABASE_ID_LEAVE_REQUESTS", "req")

    settings = load_settings()

    assert settings.employees_db_id == "emp"
    assert settings.leave_requests_db_id == "req"


def test_missing_variables_raise_configuration_error(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("NOTION_API_KEY", "secret_abc")

    with pytest.raises(ConfigurationError) as excinfo:
        load_settings()

    assert "EMPLOYEES_DB_ID" in str(excinfo.value)
    assert "LEAVE_REQUESTS_DB_ID" in str(excinfo.value)


def test_page_size_is_bounded(clean_env: pytest.MonkeyPatch) -> None:
    with pytest.raises(ConfigurationError, match="PAGE_SIZE"):
        load_settings(
            NOTION_API_KEY="secret", EMPLOYEES_DB_ID="e", LEAVE_REQUESTS_DB_ID="r", PAGE_SIZE=500
        )


def test_retry_policy_from_settings(settings: Settings) -> None:
    policy = settings.retry_policy()

    assert policy.max_attempts == 5
    assert policy.base_delay_seconds == 0.5
    assert policy.max_delay_seconds == 16.0
