"""Classify database fields into the roles the reconciliation needs."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from .exceptions import SchemaDetectionError
from .models import IDENTIFIER_KINDS, DatabaseField, DatabaseSchema, FieldKind, FieldRoles

LOGGER = logging.getLogger(__name__)

DEFAULT_IDENTIFIER_FIELD_NAMES = ("رقم الهوية", "ID Number", "رقم")
DEFAULT_STATUS_FIELD_NAME = "حالة الطلب"


def same_notion_id(left: Optional[str], right: Optional[str]) -> bool:
    """Compare Notion ids ignoring dashes and case."""
    if not left or not right:
        return False
    return left.replace("-", "").lower() == right.replace("-", "").lower()


class SchemaDetector:
    """Detect identifier, relation and status fields of a database schema.

    Every rule is an ordered preference over field names and kinds; the first
    match wins, so detection is deterministic for a given schema.
    """

    def __init__(
        self,
        identifier_field_names: Sequence[str] = DEFAULT_IDENTIFIER_FIELD_NAMES,
        status_field_name: Optional[str] = DEFAULT_STATUS_FIELD_NAME,
        relation_field_name: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """Create a detector.

        Args:
            identifier_field_names: Accepted identifier labels, most preferred first.
            status_field_name: Preferred label of the status field.
            relation_field_name: Explicit relation field, bypassing auto-detection.
            logger: Optional logger for diagnostics.
        """
        self.identifier_field_names = list(identifier_field_names)
        self.status_field_name = status_field_name
        self.relation_field_name = relation_field_name
        self.logger = logger or LOGGER

    def detect(
        self, schema: DatabaseSchema, counterpart_table_id: Optional[str] = None
    ) -> FieldRoles:
        """Detect the field roles of one table.

        Args:
            schema: Schema of the table to inspect.
            counterpart_table_id: Table the relation field should point at. When
                omitted, no relation field is required.

        Returns:
            The detected roles.

        Raises:
            SchemaDetectionError: If the table has no identifier field, or no
                relation field while a counterpart table was given.
        """
        identifier = self._detect_identifier(schema)
        if identifier is None:
            raise SchemaDetectionError(schema.id, "no usable identifier field")

        relation: Optional[DatabaseField] = None
        degraded = False
        if counterpart_table_id is not None:
            relation, degraded = self._detect_relation(schema, counterpart_table_id)
            if relation is None:
                raise SchemaDetectionError(
                    schema.id, f"no relation field linking to {counterpart_table_id}"
                )

        status = self._detect_status(schema)
        if status is None:
            self.logger.info(
                "No status field found in %s; status backfill disabled.", schema.name
            )

        roles = FieldRoles(
            table_id=schema.id,
            identifier=identifier,
            relation=relation,
            status=status,
            relation_degraded=degraded,
        )
        self.logger.info(
            "Detected roles for %s: identifier=%r relation=%r status=%r",
            schema.name,
            identifier.name,
            relation.name if relation else None,
            status.name if status else None,
        )
        return roles

    def _detect_identifier(self, schema: DatabaseSchema) -> Optional[DatabaseField]:
        for name in self.identifier_field_names:
            field = schema.get_field(name)
            if field is not None and field.kind in IDENTIFIER_KINDS:
                return field
            if field is not None:
                self.logger.debug(
                    "Field %r in %s has unsupported identifier type %s.",
                    name,
                    schema.name,
                    field.type,
                )
        return self._first_of_kinds(schema.fields, IDENTIFIER_KINDS)

    def _detect_relation(
        self, schema: DatabaseSchema, counterpart_table_id: str
    ) -> Tuple[Optional[DatabaseField], bool]:
        relations = [field for field in schema.fields if field.kind is FieldKind.RELATION]

        if self.relation_field_name:
            field = schema.get_field(self.relation_field_name)
            if field is None or field.kind is not FieldKind.RELATION:
                raise SchemaDetectionError(
                    schema.id,
                    f"configured relation field {self.relation_field_name!r} "
                    "is missing or not a relation",
                )
            return field, not same_notion_id(field.target_table_id, counterpart_table_id)

        for field in relations:
            if same_notion_id(field.target_table_id, counterpart_table_id):
                return field, False

        if relations:
            fallback = relations[0]
            self.logger.warning(
                "No relation in %s targets %s; falling back to %r (targets %s).",
                schema.name,
                counterpart_table_id,
                fallback.name,
                fallback.target_table_id,
            )
            return fallback, True

        return None, False

    def _detect_status(self, schema: DatabaseSchema) -> Optional[DatabaseField]:
        status_kinds = {FieldKind.STATUS, FieldKind.SELECT}
        if self.status_field_name:
            field = schema.get_field(self.status_field_name)
            if field is not None and field.kind in status_kinds:
                return field

        return self._first_of_kinds(schema.fields, {FieldKind.STATUS}) or self._first_of_kinds(
            schema.fields, {FieldKind.SELECT}
        )

    def _first_of_kinds(
        self, fields: Iterable[DatabaseField], kinds: Iterable[FieldKind]
    ) -> Optional[DatabaseField]:
        allowed: List[FieldKind] = list(kinds)
        for field in fields:
            if field.kind in allowed:
                return field
        return None
