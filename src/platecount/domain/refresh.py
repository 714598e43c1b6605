"""Read side: consistent batch-with-donations snapshots for viewers.

Several ushers look at the same open count while donations are entered.
Each viewer holds a ``PollingBatchView`` that re-reads the count once its
snapshot is older than the refresh interval, or immediately after a change
to the count is published on the ChangeFeed. Totals therefore converge
within one refresh interval.

A snapshot is read as count row plus donation lines in two queries. If a
writer commits between them the cached total disagrees with the lines;
the reader then reads again, so a snapshot it returns for an open count
always satisfies ``cash + check == total == sum(lines)`` unless the count
kept changing for every attempt.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from platecount.database.base import Database
from platecount.domain.attestation import attestation_state
from platecount.domain.changes import ChangeFeed
from platecount.domain.clock import Clock, SystemClock
from platecount.domain.entities import Batch as BatchEntity, BatchPartition, DonationLine, DonationType
from platecount.domain.errors import NotFoundError, batch_not_found
from platecount.domain.ledger import DonationLedger

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_SECONDS = 5.0
READ_ATTEMPTS = 3


def partition_lines(lines: list[DonationLine]) -> BatchPartition:
    """Cash/check split of a set of donation lines."""
    cash = [line.donation.amount for line in lines if line.donation.donation_type == DonationType.CASH]
    checks = [line.donation.amount for line in lines if line.donation.donation_type == DonationType.CHECK]
    return BatchPartition(
        cash_total=sum(cash, Decimal("0.00")),
        check_total=sum(checks, Decimal("0.00")),
        cash_count=len(cash),
        check_count=len(checks),
    )


@dataclass(frozen=True)
class BatchSnapshot:
    """A count and its donations as read at one moment."""

    batch: BatchEntity
    lines: list[DonationLine]
    partition: BatchPartition
    state: str
    taken_at: datetime
    consistent: bool = True

    @property
    def total(self) -> Decimal:
        return self.batch.total_amount


class SnapshotReader:
    """Reads snapshots of a count."""

    def __init__(self, db: Database, ledger: Optional[DonationLedger] = None, clock: Optional[Clock] = None):
        self.db = db
        self.ledger = ledger or DonationLedger(db)
        self.clock = clock or SystemClock()

    def read(self, batch_id: int) -> BatchSnapshot:
        """Read a snapshot of a count.

        Raises:
            NotFoundError: If the count does not exist
        """
        snapshot = None
        for attempt in range(1, READ_ATTEMPTS + 1):
            snapshot = self._read_once(batch_id)
            if snapshot.consistent:
                return snapshot
            logger.debug("Count changed while reading, retrying batch_id=%s attempt=%s", batch_id, attempt)
        logger.info("Returning snapshot taken mid-change batch_id=%s", batch_id)
        return snapshot

    def _read_once(self, batch_id: int) -> BatchSnapshot:
        batch = self.db.get_batch(batch_id)
        if batch is None:
            raise NotFoundError(batch_not_found(batch_id))
        lines = self.ledger.list_with_members(self.db.list_donations(batch_id=batch_id))
        partition = partition_lines(lines)
        # A finalized count's total is locked and its lines can no longer change.
        consistent = batch.is_finalized or partition.total == batch.total_amount
        return BatchSnapshot(
            batch=batch,
            lines=lines,
            partition=partition,
            state=attestation_state(batch).name,
            taken_at=self.clock.now(),
            consistent=consistent,
        )


class PollingBatchView:
    """One viewer's cached view of a count.

    ``current()`` returns the cached snapshot while it is fresh and re-reads
    once it is older than ``interval_seconds`` or has been invalidated.
    Finalized counts never go stale.
    """

    def __init__(
        self,
        reader: SnapshotReader,
        batch_id: int,
        interval_seconds: float = DEFAULT_REFRESH_SECONDS,
        clock: Optional[Clock] = None,
    ):
        if interval_seconds <= 0:
            raise ValueError("Refresh interval must be positive")
        self.reader = reader
        self.batch_id = batch_id
        self.interval_seconds = interval_seconds
        self.clock = clock or reader.clock
        self._snapshot: Optional[BatchSnapshot] = None
        self._invalidated = False

    def invalidate(self) -> None:
        """Force the next ``current()`` to re-read."""
        self._invalidated = True

    def is_stale(self) -> bool:
        if self._snapshot is None or self._invalidated:
            return True
        if self._snapshot.batch.is_finalized:
            return False
        age = (self.clock.now() - self._snapshot.taken_at).total_seconds()
        return age >= self.interval_seconds

    def refresh(self) -> BatchSnapshot:
        """Re-read the count now."""
        self._snapshot = self.reader.read(self.batch_id)
        self._invalidated = False
        return self._snapshot

    def current(self) -> BatchSnapshot:
        if self.is_stale():
            return self.refresh()
        return self._snapshot


class BatchViewRegistry:
    """Hands out views and invalidates them when their count changes."""

    def __init__(
        self,
        reader: SnapshotReader,
        changes: ChangeFeed,
        interval_seconds: float = DEFAULT_REFRESH_SECONDS,
    ):
        self.reader = reader
        self.interval_seconds = interval_seconds
        self._views: dict[int, list[PollingBatchView]] = {}
        self._unsubscribe: Optional[Callable[[], None]] = changes.subscribe(self._on_change)

    def view(self, batch_id: int) -> PollingBatchView:
        """Open a new view of a count."""
        view = PollingBatchView(self.reader, batch_id, interval_seconds=self.interval_seconds)
        self._views.setdefault(batch_id, []).append(view)
        return view

    def release(self, view: PollingBatchView) -> None:
        """Stop tracking a view."""
        views = self._views.get(view.batch_id, [])
        if view in views:
            views.remove(view)
        if not views:
            self._views.pop(view.batch_id, None)

    def _on_change(self, batch_id: int) -> None:
        for view in self._views.get(batch_id, []):
            view.invalidate()

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._views.clear()
