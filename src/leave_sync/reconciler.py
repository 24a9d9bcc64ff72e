"""Compute the minimal update that links a leave request to its employee."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .identifiers import normalize_identifier
from .index_builder import EmployeeIndex
from .models import DatabaseField, FieldKind, FieldRoles, Page, RelationValue
from .properties import extract_property
from .schema_detector import same_notion_id

LOGGER = logging.getLogger(__name__)

DEFAULT_STATUS = "قيد الانتظار"

# Normalized names of Notion's "not started" status group.
_TODO_GROUP_NAMES = {"todo", "notstarted"}


class RelationPolicy(str, Enum):
    """What to do with a request already linked to a different employee."""

    FILL_EMPTY = "fill_empty"
    OVERWRITE = "overwrite"


class PlanOutcome(str, Enum):
    SKIPPED_NO_ID = "skipped_no_id"
    SKIPPED_NO_EMPLOYEE = "skipped_no_employee"
    SKIPPED_AMBIGUOUS = "skipped_ambiguous_employee"
    ALREADY_RECONCILED = "already_reconciled"
    UPDATE = "update"


class UpdatePlan(BaseModel):
    """Field changes for one leave request; no changes means nothing to send."""

    record_id: str
    outcome: PlanOutcome
    identifier: Optional[str] = None
    employee_id: Optional[str] = None
    changes: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    relation_changed: bool = False
    status_changed: bool = False
    relation_conflict: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.changes

    def describe(self) -> str:
        """Return a short human-readable summary of the plan."""
        if self.outcome is PlanOutcome.SKIPPED_NO_ID:
            return "no valid identifier"
        if self.outcome is PlanOutcome.SKIPPED_NO_EMPLOYEE:
            return f"no employee with identifier {self.identifier}"
        if self.outcome is PlanOutcome.SKIPPED_AMBIGUOUS:
            return f"identifier {self.identifier} matches several employees"
        if self.outcome is PlanOutcome.ALREADY_RECONCILED:
            if self.relation_conflict:
                return "linked to a different employee; left unchanged"
            return "already reconciled"
        parts: List[str] = []
        if self.relation_changed:
            parts.append(f"linked to employee (ID: {self.identifier})")
        if self.status_changed:
            for change in self.changes.values():
                option = change.get("status") or change.get("select")
                if option:
                    parts.append(f"status set to {option['name']!r}")
        return ", ".join(parts)


def resolve_default_status(field: DatabaseField, preferred: str) -> Optional[str]:
    """Return the status name to write into an empty ``field``.

    ``select`` fields accept any name. ``status`` options are managed by
    Notion, so the preferred name is only used when it already exists;
    otherwise the first "To-do" option, then the first option overall.
    """
    if field.kind is FieldKind.SELECT:
        return preferred

    options = field.options
    if any(option.name == preferred for option in options):
        return preferred

    by_id = {option.id: option for option in options if option.id}
    for group in field.groups:
        normalized = "".join(ch for ch in group.name.casefold() if ch.isalnum())
        if normalized not in _TODO_GROUP_NAMES:
            continue
        for option_id in group.option_ids:
            if option_id in by_id:
                return by_id[option_id].name

    if options:
        return options[0].name
    return None


def _relation_truncated(page: Page, field_name: str) -> bool:
    value = page.properties.get(field_name)
    return isinstance(value, RelationValue) and value.has_more


def pending_filter(roles: FieldRoles) -> Optional[Dict[str, Any]]:
    """Return a Notion filter for requests with an empty relation or status."""
    conditions: List[Dict[str, Any]] = []
    if roles.relation is not None:
        conditions.append({"property": roles.relation.name, "relation": {"is_empty": True}})
    if roles.status is not None:
        conditions.append({"property": roles.status.name, roles.status.type: {"is_empty": True}})
    if not conditions:
        return None
    if len(conditions) == 1:
        return conditions[0]
    return {"or": conditions}


class Reconciler:
    """Plan relation and status updates for leave requests.

    The status value is resolved once against the field's options when the
    reconciler is created, so every request of a run gets the same default.
    """

    def __init__(
        self,
        roles: FieldRoles,
        default_status: str = DEFAULT_STATUS,
        relation_policy: RelationPolicy = RelationPolicy.FILL_EMPTY,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if roles.identifier is None or roles.relation is None:
            raise ValueError("Reconciler needs identifier and relation roles.")
        self.roles = roles
        self.relation_policy = RelationPolicy(relation_policy)
        self.logger = logger or LOGGER
        self.status_name: Optional[str] = None

        if roles.status is not None:
            self.status_name = resolve_default_status(roles.status, default_status)
            if self.status_name is None:
                self.logger.warning(
                    "Status field %r has no options; status backfill disabled.",
                    roles.status.name,
                )
            elif self.status_name != default_status:
                self.logger.warning(
                    "Status %r is not an option of %r; using %r instead.",
                    default_status,
                    roles.status.name,
                    self.status_name,
                )

    def reconcile(self, page: Page, index: EmployeeIndex) -> UpdatePlan:
        """Return the update plan for one leave request."""
        identifier_field = self.roles.identifier.name
        key = normalize_identifier(extract_property(page, identifier_field))
        if key is None:
            return UpdatePlan(record_id=page.id, outcome=PlanOutcome.SKIPPED_NO_ID)

        employee_id = index.lookup(key)
        if employee_id is None:
            outcome = (
                PlanOutcome.SKIPPED_AMBIGUOUS
                if index.is_ambiguous(key)
                else PlanOutcome.SKIPPED_NO_EMPLOYEE
            )
            return UpdatePlan(record_id=page.id, outcome=outcome, identifier=key)

        changes: Dict[str, Dict[str, Any]] = {}
        relation_field = self.roles.relation.name
        linked: List[str] = extract_property(page, relation_field, FieldKind.RELATION) or []
        already_linked = any(same_notion_id(page_id, employee_id) for page_id in linked)
        # Notion returns at most 25 related pages; the rest of the list is unknown.
        truncated = _relation_truncated(page, relation_field)
        conflict = bool(linked) and not already_linked and not truncated

        if truncated and not already_linked:
            self.logger.warning(
                "Request %s has more related pages than Notion returned; leaving the relation alone.",
                page.id,
            )
        elif not already_linked:
            if not linked or self.relation_policy is RelationPolicy.OVERWRITE:
                changes[relation_field] = {"relation": [{"id": employee_id}]}
            else:
                self.logger.warning(
                    "Request %s is linked to %s, not %s; leaving the relation alone.",
                    page.id,
                    ", ".join(linked),
                    employee_id,
                )

        status_changed = False
        status_field = self.roles.status
        if status_field is not None and self.status_name is not None:
            if extract_property(page, status_field.name) is None:
                changes[status_field.name] = {status_field.type: {"name": self.status_name}}
                status_changed = True

        return UpdatePlan(
            record_id=page.id,
            outcome=PlanOutcome.UPDATE if changes else PlanOutcome.ALREADY_RECONCILED,
            identifier=key,
            employee_id=employee_id,
            changes=changes,
            relation_changed=relation_field in changes,
            status_changed=status_changed,
            relation_conflict=conflict,
        )
