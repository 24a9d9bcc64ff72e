"""Run the leave-request sync against the real Notion databases."""

from __future__ import annotations

import logging
from pathlib import Path

from leave_sync.config import get_settings
from leave_sync.logging_config import configure_logging
from leave_sync.notion_client import NotionClient
from leave_sync.report_builder import ReportBuilder
from leave_sync.service import LeaveSyncService


def main() -> None:
    """Execute one sync pass using environment configuration."""
    configure_logging(logging.INFO)
    settings = get_settings()

    client = NotionClient(
        access_token=settings.get_notion_api_key(),
        timeout_seconds=settings.request_timeout_seconds,
        notion_version=settings.notion_version,
    )
    service = LeaveSyncService(settings=settings, store=client)
    summary = service.run()

    builder = ReportBuilder()
    print(builder.build_summary(summary))

    output_path = Path("reports") / "leave_sync.md"
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(builder.build_markdown(summary), encoding="utf-8")
    print(f"\nReport saved to: {output_path}")


if __name__ == "__main__":
    main()
