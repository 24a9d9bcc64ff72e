"""Application configuration and environment management."""

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import AliasChoices, Field, SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError
from .retry import RetryPolicy


class Settings(BaseSettings):
    """Application configuration loaded from environment variables.

    Attributes:
        notion_api_key: Notion integration token with access to both databases.
        employees_db_id: Identifier of the employees database.
        leave_requests_db_id: Identifier of the leave requests database.
        relation_field_name: Relation field of the leave requests linking to
            employees, when auto-detection picks the wrong one.
        status_field_name: Preferred name of the request status field.
        identifier_field_names: Accepted identifier field names, most preferred first.
        default_status: Status given to requests that have none.
        relation_policy: Whether requests linked to another employee are relinked.
        only_pending: Query only requests with an empty relation or status.
        notion_version: Value of the Notion-Version header.
        request_timeout_seconds: HTTP timeout for outbound API requests.
        max_retry_attempts: Attempts per call when Notion rate limits requests.
        initial_backoff_seconds: Delay before the first retry.
        max_backoff_seconds: Upper bound of a single retry delay.
        page_size: Records fetched per query (Notion allows at most 100).
        write_delay_seconds: Pause after each page update.
    """

    notion_api_key: SecretStr = Field(
        ..., validation_alias=AliasChoices("NOTION_API_KEY", "NOTION_TOKEN")
    )
    employees_db_id: str = Field(
        ..., validation_alias=AliasChoices("EMPLOYEES_DB_ID", "DATABASE_ID_EMPLOYEES")
    )
    leave_requests_db_id: str = Field(
        ...,
        validation_alias=AliasChoices("LEAVE_REQUESTS_DB_ID", "DATABASE_ID_LEAVE_REQUESTS"),
    )
    relation_field_name: Optional[str] = Field(default=None, alias="RELATION_FIELD_NAME")
    status_field_name: str = Field(default="حالة الطلب", alias="STATUS_FIELD_NAME")
    identifier_field_names: List[str] = Field(
        default_factory=lambda: ["رقم الهوية", "ID Number", "رقم"],
        alias="IDENTIFIER_FIELD_NAMES",
    )
    default_status: str = Field(default="قيد الانتظار", alias="DEFAULT_STATUS")
    relation_policy: Literal["fill_empty", "overwrite"] = Field(
        default="fill_empty", alias="RELATION_POLICY"
    )
    only_pending: bool = Field(default=False, alias="ONLY_PENDING")
    notion_version: str = Field(default="2022-06-28", alias="NOTION_VERSION")
    request_timeout_seconds: int = Field(default=30, alias="REQUEST_TIMEOUT_SECONDS")
    max_retry_attempts: int = Field(default=5, ge=1, alias="MAX_RETRY_ATTEMPTS")
    initial_backoff_seconds: float = Field(default=1.0, ge=0, alias="INITIAL_BACKOFF_SECONDS")
    max_backoff_seconds: float = Field(default=16.0, ge=0, alias="MAX_BACKOFF_SECONDS")
    page_size: int = Field(default=100, ge=1, le=100, alias="PAGE_SIZE")
    write_delay_seconds: float = Field(default=0.3, ge=0, alias="WRITE_DELAY_SECONDS")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def get_notion_api_key(self) -> str:
        """Return the Notion token as a plain string."""
        return self.notion_api_key.get_secret_value()

    def retry_policy(self) -> RetryPolicy:
        """Return the retry policy described by these settings."""
        return RetryPolicy(
            max_attempts=self.max_retry_attempts,
            base_delay_seconds=self.initial_backoff_seconds,
            max_delay_seconds=self.max_backoff_seconds,
        )


_ENV_NAMES = {
    "notion_api_key": "NOTION_API_KEY",
    "employees_db_id": "EMPLOYEES_DB_ID",
    "leave_requests_db_id": "LEAVE_REQUESTS_DB_ID",
}


def load_settings(**overrides) -> Settings:
    """Build settings from the environment, raising :class:`ConfigurationError` on failure."""
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        problems = []
        for error in exc.errors():
            location = str(error["loc"][0]) if error["loc"] else "settings"
            name = _ENV_NAMES.get(location, location)
            if error["type"] == "missing":
                problems.append(f"{name} is not set")
            else:
                problems.append(f"{name}: {error['msg']}")
        raise ConfigurationError("Invalid configuration: " + "; ".join(problems)) from exc


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings instance."""
    return load_settings()
