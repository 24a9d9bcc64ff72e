"""Wrapper around the Notion REST API."""

from __future__ import annotations

import logging
import time
from collections import deque
from typing import Any, Deque, Dict, Optional, Tuple

import requests
from requests import Response, Session

from .exceptions import (
    NotionAuthenticationError,
    NotionClientError,
    NotionNotFoundError,
    NotionRateLimitError,
)
from .models import DatabaseSchema, Page, QueryResult

LOGGER = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


class RateLimiter:
    """Simple rate limiter implementing a leaky bucket algorithm."""

    def __init__(self, max_calls: int, period_seconds: float) -> None:
        """Initialize the rate limiter.

        Args:
            max_calls: Maximum number of requests permitted in the period.
            period_seconds: Time window for rate limiting in seconds.
        """
        self.max_calls = max_calls
        self.period_seconds = period_seconds
        self._timestamps: Deque[float] = deque()

    def acquire(self) -> None:
        """Block until another request is permitted."""
        while True:
            now = time.monotonic()
            while self._timestamps and now - self._timestamps[0] > self.period_seconds:
                self._timestamps.popleft()

            if len(self._timestamps) < self.max_calls:
                self._timestamps.append(now)
                return

            sleep_duration = self.period_seconds - (now - self._timestamps[0])
            if sleep_duration <= 0:
                # The loop will clean up on the next iteration.
                continue

            time.sleep(sleep_duration)


class NotionClient:
    """Client for the three Notion endpoints the sync needs.

    Rate-limit responses are raised as :class:`NotionRateLimitError` instead of
    being retried here; callers wrap calls with :func:`leave_sync.retry.with_retry`.
    """

    API_ROOT = "https://api.notion.com/v1"

    def __init__(
        self,
        access_token: str,
        timeout_seconds: int = 30,
        notion_version: str = "2022-06-28",
        session: Optional[Session] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """Initialize the client with authentication and transport settings."""
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {access_token}",
                "Notion-Version": notion_version,
                "Content-Type": "application/json",
            }
        )
        self.timeout_seconds = timeout_seconds
        # Notion allows an average of three requests per second per integration.
        self.rate_limiter = RateLimiter(max_calls=3, period_seconds=1.0)
        self.logger = logger or LOGGER

    def get_database_schema(self, database_id: str) -> DatabaseSchema:
        """Retrieve the field catalog of a database.

        Args:
            database_id: Notion database identifier.

        Returns:
            Validated database schema.
        """
        response = self._request("GET", f"/databases/{database_id}")
        return DatabaseSchema.model_validate(self._parse_json(response))

    def query_database(
        self,
        database_id: str,
        *,
        start_cursor: Optional[str] = None,
        page_size: int = MAX_PAGE_SIZE,
        filter: Optional[Dict[str, Any]] = None,
    ) -> QueryResult:
        """Fetch one page of database records.

        Args:
            database_id: Notion database identifier.
            start_cursor: Cursor returned by the previous page, if any.
            page_size: Number of records to request (at most 100).
            filter: Optional Notion filter object.

        Returns:
            The records of this page and the cursor of the next one.
        """
        body: Dict[str, Any] = {"page_size": max(1, min(page_size, MAX_PAGE_SIZE))}
        if start_cursor:
            body["start_cursor"] = start_cursor
        if filter:
            body["filter"] = filter

        response = self._request("POST", f"/databases/{database_id}/query", json=body)
        payload = self._parse_json(response)
        if not isinstance(payload.get("results"), list):
            raise NotionClientError("Unexpected response format: 'results' is not a list.")
        return QueryResult.model_validate(payload)

    def update_page(self, page_id: str, properties: Dict[str, Any]) -> Page:
        """Patch the given properties of a single page."""
        response = self._request(
            "PATCH", f"/pages/{page_id}", json={"properties": properties}
        )
        return Page.model_validate(self._parse_json(response))

    def _request(
        self, method: str, path: str, *, json: Optional[Dict[str, Any]] = None
    ) -> Response:
        url = f"{self.API_ROOT}{path}"
        self.rate_limiter.acquire()
        self.logger.debug("%s %s", method, path)

        try:
            response = self.session.request(
                method=method,
                url=url,
                json=json,
                timeout=self.timeout_seconds,
            )
        except requests.Timeout as exc:
            raise NotionClientError("Notion API request timed out.") from exc
        except requests.ConnectionError as exc:
            raise NotionClientError("Could not connect to the Notion API.") from exc

        if response.status_code < 400:
            return response

        code, message = self._error_details(response)

        if response.status_code == 429 or code == "rate_limited":
            raise NotionRateLimitError(
                "Notion rate limit reached.",
                retry_after=self._retry_after(response),
            )

        if response.status_code in {401, 403}:
            raise NotionAuthenticationError(
                "Notion authentication failed. Verify the token and that the "
                "databases are shared with the integration.",
                status_code=response.status_code,
                code=code,
            )

        if response.status_code == 404:
            raise NotionNotFoundError(
                f"Notion resource not found: {path}",
                status_code=404,
                code=code,
            )

        raise NotionClientError(
            f"Notion API error ({response.status_code}, {code}): {message}",
            status_code=response.status_code,
            code=code,
        )

    def _parse_json(self, response: Response) -> Dict[str, Any]:
        try:
            return response.json()
        except ValueError as exc:
            raise NotionClientError("Failed to parse Notion response as JSON.") from exc

    def _error_details(self, response: Response) -> Tuple[Optional[str], str]:
        try:
            body = response.json()
        except ValueError:
            return None, response.text
        if not isinstance(body, dict):
            return None, response.text
        return body.get("code"), body.get("message") or response.text

    def _retry_after(self, response: Response) -> Optional[float]:
        value = response.headers.get("Retry-After")
        if value is None:
            return None
        try:
            return float(value)
        except ValueError:
            return None
