"""High-level orchestration of one sync run."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from pydantic import BaseModel, Field

from .applier import ApplyResult, PatchApplier
from .config import Settings
from .exceptions import NotionRateLimitError
from .index_builder import EmployeeIndex, IndexBuilder, KeyCollision
from .models import DatabaseSchema, FieldRoles
from .reconciler import PlanOutcome, Reconciler, RelationPolicy, UpdatePlan, pending_filter
from .retry import with_retry
from .schema_detector import SchemaDetector
from .store import RecordStore, iter_pages

LOGGER = logging.getLogger(__name__)


class RecordError(BaseModel):
    record_id: str
    message: str


class SyncSummary(BaseModel):
    """Counters and diagnostics of one run."""

    updated: int = 0
    skipped: int = 0
    errors: int = 0
    skipped_no_id: int = 0
    skipped_no_employee: int = 0
    skipped_ambiguous: int = 0
    already_reconciled: int = 0
    relation_conflicts: int = 0
    indexed_employees: int = 0
    employees_without_identifier: int = 0
    collisions: List[KeyCollision] = Field(default_factory=list)
    plans: List[UpdatePlan] = Field(default_factory=list)
    failures: List[RecordError] = Field(default_factory=list)
    dry_run: bool = False

    @property
    def processed(self) -> int:
        return self.updated + self.skipped + self.errors


class SyncRoles(BaseModel):
    employees: FieldRoles
    leave_requests: FieldRoles


class LeaveSyncService:
    """Coordinate schema detection, indexing, reconciliation and updates."""

    def __init__(
        self,
        settings: Settings,
        store: RecordStore,
        schema_detector: Optional[SchemaDetector] = None,
        dry_run: bool = False,
        sleep: Optional[Callable[[float], None]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """Create a new sync service."""
        self.settings = settings
        self.store = store
        self.schema_detector = schema_detector or SchemaDetector(
            identifier_field_names=settings.identifier_field_names,
            status_field_name=settings.status_field_name,
            relation_field_name=settings.relation_field_name,
        )
        self.dry_run = dry_run
        self.sleep = sleep
        self.logger = logger or LOGGER
        self.retry_policy = settings.retry_policy()

    def detect_roles(self) -> SyncRoles:
        """Detect the field roles of both databases.

        Raises:
            SchemaDetectionError: If either table lacks a required field.
        """
        employees_schema = self._fetch_schema(self.settings.employees_db_id)
        requests_schema = self._fetch_schema(self.settings.leave_requests_db_id)
        # The employees table only needs an identifier; the requests table links back to it.
        employees = self.schema_detector.detect(employees_schema)
        leave_requests = self.schema_detector.detect(
            requests_schema, counterpart_table_id=self.settings.employees_db_id
        )
        return SyncRoles(employees=employees, leave_requests=leave_requests)

    def _fetch_schema(self, database_id: str) -> DatabaseSchema:
        return with_retry(
            lambda: self.store.get_database_schema(database_id),
            self.retry_policy,
            sleep=self.sleep,
            logger=self.logger,
        )

    def run(self) -> SyncSummary:
        """Execute a full sync pass.

        Returns:
            Counters for the run. Per-record problems are counted, not raised.

        Raises:
            LeaveSyncError: On configuration, schema or unrecoverable API errors.
        """
        self.logger.info("Starting Notion sync")
        roles = self.detect_roles()
        index = self._build_index(roles.employees)
        summary = self._sync_requests(roles.leave_requests, index)
        self.logger.info(
            "Sync finished: %s updated, %s skipped, %s errors",
            summary.updated,
            summary.skipped,
            summary.errors,
        )
        return summary

    def _build_index(self, roles: FieldRoles) -> EmployeeIndex:
        builder = IndexBuilder(
            self.store,
            self.retry_policy,
            page_size=self.settings.page_size,
            sleep=self.sleep,
        )
        return builder.build(self.settings.employees_db_id, roles.identifier.name)

    def _sync_requests(self, roles: FieldRoles, index: EmployeeIndex) -> SyncSummary:
        policy = RelationPolicy(self.settings.relation_policy)
        reconciler = Reconciler(
            roles, default_status=self.settings.default_status, relation_policy=policy
        )
        applier = PatchApplier(
            self.store,
            self.retry_policy,
            write_delay_seconds=self.settings.write_delay_seconds,
            dry_run=self.dry_run,
            sleep=self.sleep,
        )
        summary = SyncSummary(
            indexed_employees=len(index),
            employees_without_identifier=len(index.missing_identifier),
            collisions=list(index.collisions),
            dry_run=self.dry_run,
        )

        query_filter = None
        if self.settings.only_pending:
            if policy is RelationPolicy.OVERWRITE:
                self.logger.warning(
                    "only_pending is ignored with the overwrite policy; scanning all requests."
                )
            else:
                query_filter = pending_filter(roles)

        self.logger.info("Syncing leave requests from %s", self.settings.leave_requests_db_id)
        for page in iter_pages(
            self.store,
            self.settings.leave_requests_db_id,
            self.retry_policy,
            page_size=self.settings.page_size,
            filter=query_filter,
            sleep=self.sleep,
        ):
            plan = reconciler.reconcile(page, index)
            summary.plans.append(plan)
            self._record_outcome(summary, plan)
            if plan.is_empty:
                continue

            try:
                result = applier.apply(plan)
            except NotionRateLimitError as exc:
                self.logger.error("Error updating %s: %s", plan.record_id, exc)
                summary.errors += 1
                summary.failures.append(RecordError(record_id=plan.record_id, message=str(exc)))
                continue

            if result in (ApplyResult.APPLIED, ApplyResult.DRY_RUN):
                summary.updated += 1

        return summary

    def _record_outcome(self, summary: SyncSummary, plan: UpdatePlan) -> None:
        if plan.relation_conflict:
            summary.relation_conflicts += 1
        if plan.outcome is PlanOutcome.UPDATE:
            return

        summary.skipped += 1
        if plan.outcome is PlanOutcome.SKIPPED_NO_ID:
            summary.skipped_no_id += 1
            self.logger.info("Skipping request %s: no valid ID number", plan.record_id)
        elif plan.outcome is PlanOutcome.SKIPPED_NO_EMPLOYEE:
            summary.skipped_no_employee += 1
            self.logger.info("Skipping request %s: %s", plan.record_id, plan.describe())
        elif plan.outcome is PlanOutcome.SKIPPED_AMBIGUOUS:
            summary.skipped_ambiguous += 1
            self.logger.warning("Skipping request %s: %s", plan.record_id, plan.describe())
        else:
            summary.already_reconciled += 1
            self.logger.debug("Request %s: %s", plan.record_id, plan.describe())
