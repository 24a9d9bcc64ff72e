"""Console and markdown rendering of a sync run."""

from __future__ import annotations

import logging
from collections import Counter
from typing import List, Optional

from .reconciler import PlanOutcome
from .service import SyncSummary

LOGGER = logging.getLogger(__name__)

RULE = "=" * 60


class ReportBuilder:
    """Build human-readable summaries of a sync run."""

    OUTCOME_LABELS = {
        PlanOutcome.UPDATE: "Update planned",
        PlanOutcome.ALREADY_RECONCILED: "Already reconciled",
        PlanOutcome.SKIPPED_NO_ID: "Skipped: no identifier",
        PlanOutcome.SKIPPED_NO_EMPLOYEE: "Skipped: no matching employee",
        PlanOutcome.SKIPPED_AMBIGUOUS: "Skipped: identifier shared by several employees",
    }

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or LOGGER

    def build_summary(self, summary: SyncSummary) -> str:
        """Return the console summary printed at the end of a run."""
        title = "Sync Summary (dry run)" if summary.dry_run else "Sync Summary"
        updated_label = "Would update" if summary.dry_run else "Updated"
        lines = [
            RULE,
            title,
            RULE,
            f"  {updated_label}: {summary.updated}",
            f"  Skipped: {summary.skipped}",
            f"    no identifier: {summary.skipped_no_id}",
            f"    no matching employee: {summary.skipped_no_employee}",
            f"    ambiguous employee: {summary.skipped_ambiguous}",
            f"    already reconciled: {summary.already_reconciled}",
            f"  Errors: {summary.errors}",
            f"  Employees indexed: {summary.indexed_employees}",
        ]
        if summary.employees_without_identifier:
            lines.append(
                f"  Employees without identifier: {summary.employees_without_identifier}"
            )
        if summary.collisions:
            lines.append(f"  Colliding identifiers: {len(summary.collisions)}")
        if summary.relation_conflicts:
            lines.append(
                f"  Requests linked to another employee: {summary.relation_conflicts}"
            )
        lines.append(RULE)
        return "\n".join(lines)

    def build_markdown(self, summary: SyncSummary) -> str:
        """Return a markdown report listing every record's outcome."""
        sections: List[str] = ["# Leave Request Sync Report", ""]
        if summary.dry_run:
            sections.extend(["_Dry run: no records were modified._", ""])

        counts = Counter(plan.outcome for plan in summary.plans)
        sections.extend(["## Totals", "", "| Outcome | Records |", "| --- | --- |"])
        for outcome, label in self.OUTCOME_LABELS.items():
            sections.append(f"| {label} | {counts.get(outcome, 0)} |")
        sections.append(f"| Errors | {summary.errors} |")
        sections.append("")

        if summary.collisions:
            sections.extend(["## Colliding Identifiers", ""])
            for collision in summary.collisions:
                sections.append(f"- `{collision.key}`: {', '.join(collision.page_ids)}")
            sections.append("")

        if summary.failures:
            sections.extend(["## Errors", ""])
            for failure in summary.failures:
                sections.append(f"- `{failure.record_id}`: {failure.message}")
            sections.append("")

        sections.extend(["## Records", "", "| Record | Outcome | Details |", "| --- | --- | --- |"])
        for plan in summary.plans:
            label = self.OUTCOME_LABELS[plan.outcome]
            sections.append(f"| `{plan.record_id}` | {label} | {plan.describe()} |")

        self.logger.debug("Built markdown report with %s records", len(summary.plans))
        return "\n".join(sections) + "\n"
