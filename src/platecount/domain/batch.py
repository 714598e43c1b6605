"""Batch (count) domain service."""

import logging
from typing import Optional
from datetime import date
from decimal import Decimal

from platecount.database.base import Database
from platecount.domain.changes import ChangeFeed
from platecount.domain.entities import (
    Batch as BatchEntity,
    BatchEvent,
    BatchEventType,
    BatchPartition,
    BatchStatus,
)
from platecount.domain.errors import (
    BatchFinalizedError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
    batch_finalized,
    batch_not_found,
)
from platecount.domain.service_options import ServiceOptionService

logger = logging.getLogger(__name__)


def format_batch_date(batch_date: date) -> str:
    """Format a count date the way count names show it ("January 7, 2024")."""
    return f"{batch_date:%B} {batch_date.day}, {batch_date.year}"


def derive_batch_name(batch_date: date, service: Optional[str] = None) -> str:
    """Build the display name of a count from its service and date."""
    label = format_batch_date(batch_date)
    if service:
        return f"{service.strip()}, {label}"
    return label


class BatchService:
    """Service for managing counts and their cached totals."""

    def __init__(
        self,
        db: Database,
        changes: Optional[ChangeFeed] = None,
        service_options: Optional[ServiceOptionService] = None,
    ):
        """Initialize batch service.

        Args:
            db: Database instance
            changes: Optional feed notified after every committed change
            service_options: Checks service labels against the church's options
        """
        self.db = db
        self.changes = changes
        self.service_options = service_options

    def _changed(self, batch_id: int) -> None:
        if self.changes is not None:
            self.changes.publish(batch_id)

    def create_batch(
        self,
        batch_date: date,
        tenant_id: str,
        service: Optional[str] = None,
        name: Optional[str] = None,
        notes: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> int:
        """Create a new OPEN count with no donations.

        Args:
            batch_date: Date of the service the count belongs to
            tenant_id: Owning church
            service: Optional service label (e.g. "Sunday Morning"); must match one of
                the church's service options when it has any
            name: Display name; derived from service and date when omitted
            notes: Optional free-text notes
            actor_id: User creating the count, for the audit log

        Returns:
            Batch ID
        """
        if not tenant_id:
            raise ValidationError("A count must belong to a church")
        if service is not None and not service.strip():
            service = None
        if service is not None and self.service_options is not None:
            service = self.service_options.resolve(tenant_id, service)
        if name is None or not name.strip():
            name = derive_batch_name(batch_date, service)

        batch_id = self.db.create_batch(
            name=name.strip(),
            date=batch_date,
            tenant_id=tenant_id,
            service=service,
            notes=notes,
        )
        self.db.record_batch_event(batch_id, BatchEventType.CREATED, actor_id=actor_id, detail=name)
        logger.info("Created count batch_id=%s tenant=%s name=%r", batch_id, tenant_id, name)
        self._changed(batch_id)
        return batch_id

    def get_batch(self, batch_id: int) -> Optional[BatchEntity]:
        """Get count by ID.

        Returns:
            Batch entity or None if not found
        """
        return self.db.get_batch(batch_id)

    def require_batch(self, batch_id: int) -> BatchEntity:
        """Get count by ID or raise NotFoundError."""
        batch = self.db.get_batch(batch_id)
        if batch is None:
            raise NotFoundError(batch_not_found(batch_id))
        return batch

    def list_batches(
        self, tenant_id: Optional[str] = None, status: Optional[BatchStatus] = None
    ) -> list[BatchEntity]:
        """List counts, newest first."""
        return self.db.list_batches(tenant_id=tenant_id, status=status)

    def update_batch(
        self,
        batch_id: int,
        name: Optional[str] = None,
        batch_date: Optional[date] = None,
        service: Optional[str] = None,
        notes: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> BatchEntity:
        """Edit count details.

        Only possible while the count is OPEN and nobody has attested it yet;
        once a primary attestation exists the count is committed to the
        attestation path.

        Raises:
            NotFoundError: If the count does not exist
            BatchFinalizedError: If the count is finalized
            InvalidStateError: If the count already has an attestation
            ValidationError: If nothing would change
        """
        if name is None and batch_date is None and service is None and notes is None:
            raise ValidationError("Nothing to update")
        if name is not None and not name.strip():
            raise ValidationError("Count name cannot be empty")
        if service is not None and service.strip() and self.service_options is not None:
            tenant_id = self.require_batch(batch_id).tenant_id
            service = self.service_options.resolve(tenant_id, service)

        updated = self.db.update_batch_details(
            batch_id,
            name=name.strip() if name is not None else None,
            date=batch_date,
            service=service,
            notes=notes,
        )
        if not updated:
            batch = self.require_batch(batch_id)
            if batch.is_finalized:
                raise BatchFinalizedError(batch_finalized(batch_id))
            raise InvalidStateError(
                f"Count {batch_id} has already been attested by {batch.primary_attestor_name}; "
                "its details can no longer be edited"
            )

        self.db.record_batch_event(batch_id, BatchEventType.UPDATED, actor_id=actor_id)
        self._changed(batch_id)
        return self.require_batch(batch_id)

    def delete_batch(self, batch_id: int, actor_id: Optional[str] = None) -> None:
        """Delete a count together with all of its donations.

        Raises:
            NotFoundError: If the count does not exist
            BatchFinalizedError: If the count is finalized
        """
        self.db.delete_batch(batch_id)
        self.db.record_batch_event(batch_id, BatchEventType.DELETED, actor_id=actor_id)
        logger.info("Deleted count batch_id=%s actor=%s", batch_id, actor_id)
        self._changed(batch_id)

    def recompute_total(self, batch_id: int) -> Decimal:
        """Recompute the cached total from the count's donations.

        Pure sum over the donation set; calling it any number of times gives
        the same result. A finalized count keeps its locked total.

        Returns:
            The count's total
        """
        total = self.db.recompute_batch_total(batch_id)
        self._changed(batch_id)
        return total

    def partition(self, batch_id: int) -> BatchPartition:
        """Split the count's total into cash and check subtotals."""
        self.require_batch(batch_id)
        return self.db.get_batch_partition(batch_id)

    def donation_count(self, batch_id: int) -> int:
        """Number of donations in a count."""
        return self.db.count_batch_donations(batch_id)

    def get_current_batch(self, tenant_id: str, today: Optional[date] = None) -> BatchEntity:
        """Return the church's most recent OPEN count, creating one for today if none exists.

        A created count is named after the church's default service, if any.
        """
        batch = self.db.get_latest_batch(tenant_id, BatchStatus.OPEN)
        if batch is not None:
            return batch
        service = None
        if self.service_options is not None:
            service = self.service_options.resolve(tenant_id)
        batch_id = self.create_batch(
            batch_date=today or date.today(),
            tenant_id=tenant_id,
            service=service,
            notes="Automatically created count",
        )
        return self.require_batch(batch_id)

    def get_latest_finalized_batch(self, tenant_id: str) -> Optional[BatchEntity]:
        """Return the church's most recently dated finalized count, if any."""
        return self.db.get_latest_batch(tenant_id, BatchStatus.FINALIZED)

    def list_events(self, batch_id: int) -> list[BatchEvent]:
        """Return the audit log of a count."""
        return self.db.list_batch_events(batch_id)
