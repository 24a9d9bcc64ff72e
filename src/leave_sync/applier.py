"""Send update plans to the record store."""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable, Optional

from .reconciler import UpdatePlan
from .retry import RetryPolicy, with_retry
from .store import RecordStore

LOGGER = logging.getLogger(__name__)


class ApplyResult(str, Enum):
    APPLIED = "applied"
    SKIPPED = "skipped"
    DRY_RUN = "dry_run"


class PatchApplier:
    """Apply one plan per record with a single update call."""

    def __init__(
        self,
        store: RecordStore,
        retry_policy: RetryPolicy,
        write_delay_seconds: float = 0.3,
        dry_run: bool = False,
        sleep: Optional[Callable[[float], None]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """Create an applier.

        Args:
            store: Store receiving the updates.
            retry_policy: Retry policy wrapped around every update.
            write_delay_seconds: Pause after each successful write.
            dry_run: Log plans instead of sending them.
            sleep: Sleep function, replaceable in tests.
            logger: Optional logger for diagnostics.
        """
        self.store = store
        self.retry_policy = retry_policy
        self.write_delay_seconds = write_delay_seconds
        self.dry_run = dry_run
        self.sleep = sleep
        self.logger = logger or LOGGER

    def apply(self, plan: UpdatePlan) -> ApplyResult:
        """Send ``plan`` to the store.

        Empty plans are skipped without a network call. Errors surviving the
        retry policy propagate to the caller.
        """
        if plan.is_empty:
            return ApplyResult.SKIPPED

        if self.dry_run:
            self.logger.info("[dry-run] Would update %s: %s", plan.record_id, plan.describe())
            return ApplyResult.DRY_RUN

        changes = dict(plan.changes)
        with_retry(
            lambda: self.store.update_page(plan.record_id, changes),
            self.retry_policy,
            sleep=self.sleep,
            logger=self.logger,
        )
        self.logger.info("Updated request %s: %s", plan.record_id, plan.describe())

        if self.write_delay_seconds > 0:
            (self.sleep or time.sleep)(self.write_delay_seconds)
        return ApplyResult.APPLIED
