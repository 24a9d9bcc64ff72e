"""Command-line interface for the Notion leave-request sync."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from .config import Settings, load_settings
from .exceptions import LeaveSyncError
from .logging_config import configure_logging
from .notion_client import NotionClient
from .report_builder import ReportBuilder
from .service import LeaveSyncService

app = typer.Typer(help="Link Notion leave requests to employees and backfill their status.")


@app.command()
def sync(
    employees_db: Optional[str] = typer.Option(
        None, "--employees-db", help="Override the employees database id."
    ),
    leave_requests_db: Optional[str] = typer.Option(
        None, "--leave-requests-db", help="Override the leave requests database id."
    ),
    relation_field: Optional[str] = typer.Option(
        None,
        "--relation-field",
        help="Relation field of the leave requests that points at employees.",
    ),
    relation_policy: Optional[str] = typer.Option(
        None,
        "--relation-policy",
        help="fill_empty (default) or overwrite links to a different employee.",
    ),
    only_pending: bool = typer.Option(
        False,
        "--only-pending",
        help="Query only requests with an empty relation or status.",
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Compute the updates without writing them."
    ),
    report: Optional[Path] = typer.Option(
        None, "--report", "-r", help="Write a markdown report of every record to this path."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging."),
) -> None:
    """Run the sync against both databases."""
    configure_logging(logging.DEBUG if verbose else logging.INFO)
    try:
        settings = _resolve_settings(
            employees_db=employees_db,
            leave_requests_db=leave_requests_db,
            relation_field=relation_field,
            relation_policy=relation_policy,
            only_pending=only_pending,
        )
        service = LeaveSyncService(
            settings=settings, store=_build_client(settings), dry_run=dry_run
        )
        summary = service.run()
    except LeaveSyncError as exc:
        typer.echo(f"Fatal error: {exc}", err=True)
        raise typer.Exit(code=1)

    builder = ReportBuilder()
    typer.echo(builder.build_summary(summary))

    if report is not None:
        report.parent.mkdir(parents=True, exist_ok=True)
        report.write_text(builder.build_markdown(summary), encoding="utf-8")
        typer.echo(f"Report saved to: {report}")


@app.command()
def inspect(
    employees_db: Optional[str] = typer.Option(
        None, "--employees-db", help="Override the employees database id."
    ),
    leave_requests_db: Optional[str] = typer.Option(
        None, "--leave-requests-db", help="Override the leave requests database id."
    ),
    relation_field: Optional[str] = typer.Option(
        None, "--relation-field", help="Relation field to validate instead of detecting one."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging."),
) -> None:
    """Show which fields the sync would use, without changing anything."""
    configure_logging(logging.DEBUG if verbose else logging.WARNING)
    try:
        settings = _resolve_settings(
            employees_db=employees_db,
            leave_requests_db=leave_requests_db,
            relation_field=relation_field,
        )
        roles = LeaveSyncService(settings=settings, store=_build_client(settings)).detect_roles()
    except LeaveSyncError as exc:
        typer.echo(f"Fatal error: {exc}", err=True)
        raise typer.Exit(code=1)

    for label, table in (("Employees", roles.employees), ("Leave requests", roles.leave_requests)):
        typer.echo(f"{label} ({table.table_id})")
        typer.echo(f"  identifier: {table.identifier.name} [{table.identifier.type}]")
        if table.relation is not None:
            suffix = " (fallback)" if table.relation_degraded else ""
            typer.echo(
                f"  relation:   {table.relation.name} -> {table.relation.target_table_id}{suffix}"
            )
        status = f"{table.status.name} [{table.status.type}]" if table.status else "none"
        typer.echo(f"  status:     {status}")


def _build_client(settings: Settings) -> NotionClient:
    return NotionClient(
        access_token=settings.get_notion_api_key(),
        timeout_seconds=settings.request_timeout_seconds,
        notion_version=settings.notion_version,
    )


def _resolve_settings(
    employees_db: Optional[str] = None,
    leave_requests_db: Optional[str] = None,
    relation_field: Optional[str] = None,
    relation_policy: Optional[str] = None,
    only_pending: bool = False,
) -> Settings:
    overrides = {}
    if employees_db:
        overrides["EMPLOYEES_DB_ID"] = employees_db
    if leave_requests_db:
        overrides["LEAVE_REQUESTS_DB_ID"] = leave_requests_db
    if relation_field:
        overrides["RELATION_FIELD_NAME"] = relation_field
    if relation_policy:
        if relation_policy not in ("fill_empty", "overwrite"):
            raise typer.BadParameter(
                "must be 'fill_empty' or 'overwrite'", param_hint="--relation-policy"
            )
        overrides["RELATION_POLICY"] = relation_policy
    if only_pending:
        overrides["ONLY_PENDING"] = True
    return load_settings(**overrides)


def main() -> None:  # pragma: no cover - CLI entrypoint
    app()


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    main()
