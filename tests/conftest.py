"""Shared pytest fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from leave_sync.config import Settings  # noqa: E402
from leave_sync.models import DatabaseSchema  # noqa: E402
from leave_sync.retry import RetryPolicy  # noqa: E402

from factories import (  # noqa: E402
    EMPLOYEES_DB,
    REQUESTS_DB,
    employees_schema_payload,
    requests_schema_payload,
)


@pytest.fixture
def settings() -> Settings:
    """Return settings pointing at the fake databases, without write pauses."""
    return Settings(
        _env_file=None,
        NOTION_API_KEY="secret_token",
        EMPLOYEES_DB_ID=EMPLOYEES_DB,
        LEAVE_REQUESTS_DB_ID=REQUESTS_DB,
        WRITE_DELAY_SECONDS=0,
        INITIAL_BACKOFF_SECONDS=0.5,
    )


@pytest.fixture
def retry_policy() -> RetryPolicy:
    return RetryPolicy(max_attempts=3, base_delay_seconds=0.5, max_delay_seconds=4.0)


@pytest.fixture
def sleeps() -> list:
    """Collect requested sleep durations instead of sleeping."""
    return []


@pytest.fixture
def fake_sleep(sleeps: list):
    return sleeps.append


@pytest.fixture
def employees_schema() -> DatabaseSchema:
    return DatabaseSchema.model_validate(employees_schema_payload())


@pytest.fixture
def requests_schema() -> DatabaseSchema:
    return DatabaseSchema.model_validate(requests_schema_payload())
