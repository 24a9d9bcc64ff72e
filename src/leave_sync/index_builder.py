"""Build the canonical-key index of the employees table."""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

from pydantic import BaseModel, Field

from .identifiers import normalize_identifier
from .properties import extract_property
from .retry import RetryPolicy
from .store import RecordStore, iter_pages

LOGGER = logging.getLogger(__name__)


class KeyCollision(BaseModel):
    """Several employees normalizing to the same canonical key."""

    key: str
    page_ids: List[str]


class EmployeeIndex(BaseModel):
    """Canonical key to employee page id, with the diagnostics of the build.

    Keys shared by more than one employee are kept out of ``entries`` and
    listed in ``collisions``, so no request is linked to an arbitrary one of
    them.
    """

    table_id: str
    entries: Dict[str, str] = Field(default_factory=dict)
    collisions: List[KeyCollision] = Field(default_factory=list)
    missing_identifier: List[str] = Field(default_factory=list)
    scanned: int = 0

    def __len__(self) -> int:
        return len(self.entries)

    def lookup(self, key: Optional[str]) -> Optional[str]:
        """Return the employee page id for ``key``, if exactly one employee has it."""
        if key is None:
            return None
        return self.entries.get(key)

    def is_ambiguous(self, key: Optional[str]) -> bool:
        return key is not None and any(collision.key == key for collision in self.collisions)


class IndexBuilder:
    """Stream a table and index its records by normalized identifier."""

    def __init__(
        self,
        store: RecordStore,
        retry_policy: RetryPolicy,
        page_size: int = 100,
        sleep: Optional[Callable[[float], None]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.store = store
        self.retry_policy = retry_policy
        self.page_size = page_size
        self.sleep = sleep
        self.logger = logger or LOGGER

    def build(self, table_id: str, identifier_field: str) -> EmployeeIndex:
        """Read every record of ``table_id`` and index it by ``identifier_field``.

        Args:
            table_id: Database holding the employees.
            identifier_field: Name of the detected identifier field.

        Returns:
            The index. Records without a usable identifier and colliding keys
            are reported on it rather than raised.
        """
        self.logger.info("Building employee index from %s", table_id)
        found: Dict[str, List[str]] = {}
        missing: List[str] = []
        scanned = 0

        for page in iter_pages(
            self.store,
            table_id,
            self.retry_policy,
            page_size=self.page_size,
            sleep=self.sleep,
            logger=self.logger,
        ):
            scanned += 1
            key = normalize_identifier(extract_property(page, identifier_field))
            if key is None:
                self.logger.info("Employee %s has no usable identifier.", page.id)
                missing.append(page.id)
                continue
            found.setdefault(key, []).append(page.id)
            self.logger.debug("Indexed %s -> %s", key, page.id)

        entries: Dict[str, str] = {}
        collisions: List[KeyCollision] = []
        for key, page_ids in found.items():
            if len(page_ids) == 1:
                entries[key] = page_ids[0]
                continue
            ordered = sorted(page_ids)
            self.logger.warning(
                "Identifier %s is shared by %s employees (%s); it will not be matched.",
                key,
                len(ordered),
                ", ".join(ordered),
            )
            collisions.append(KeyCollision(key=key, page_ids=ordered))

        collisions.sort(key=lambda collision: collision.key)
        self.logger.info(
            "Indexed %s employees (%s scanned, %s without identifier, %s colliding keys).",
            len(entries),
            scanned,
            len(missing),
            len(collisions),
        )
        return EmployeeIndex(
            table_id=table_id,
            entries=entries,
            collisions=collisions,
            missing_identifier=missing,
            scanned=scanned,
        )
