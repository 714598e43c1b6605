"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional
from datetime import date, datetime
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from platecount.domain.entities import (
    Batch,
    BatchEvent,
    BatchEventType,
    BatchPartition,
    BatchStatus,
    Donation,
    DonationType,
    Member,
    ReportRecipient,
    ServiceOption,
    User,
)


class Database(ABC):
    """Abstract database interface for platecount.

    Every method that changes a count or its donations is a single atomic
    unit: guards on the count's status are evaluated inside the same write
    that they protect, never in a separate read beforehand.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def clone(self) -> "Database":
        """Return a new handle on the same database, with its own session."""
        pass

    # User operations
    @abstractmethod
    def create_user(
        self,
        user_id: str,
        display_name: str,
        tenant_id: str,
        email: Optional[str] = None,
        verified: bool = False,
    ) -> str:
        """Create a user. Returns user ID."""
        pass

    @abstractmethod
    def get_user(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        pass

    @abstractmethod
    def list_users(self, tenant_id: Optional[str] = None, verified_only: bool = False) -> list[User]:
        """List users, optionally filtered by tenant and verified flag."""
        pass

    @abstractmethod
    def set_user_verified(self, user_id: str, verified: bool) -> None:
        """Set or clear the verified flag of a user."""
        pass

    # Member operations
    @abstractmethod
    def create_member(
        self,
        first_name: str,
        last_name: str,
        tenant_id: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> int:
        """Create a directory member. Returns member ID."""
        pass

    @abstractmethod
    def get_member(self, member_id: int) -> Optional[Member]:
        """Get member by ID."""
        pass

    @abstractmethod
    def get_members(self, member_ids: list[int]) -> dict[int, Member]:
        """Get several members at once, keyed by ID. Unknown IDs are omitted."""
        pass

    @abstractmethod
    def list_members(self, tenant_id: Optional[str] = None) -> list[Member]:
        """List members ordered by last name, first name."""
        pass

    # Report recipient operations
    @abstractmethod
    def create_report_recipient(
        self, first_name: str, last_name: str, email: str, tenant_id: str
    ) -> int:
        """Create a report recipient. Returns recipient ID."""
        pass

    @abstractmethod
    def list_report_recipients(self, tenant_id: str) -> list[ReportRecipient]:
        """List report recipients for a tenant."""
        pass

    @abstractmethod
    def delete_report_recipient(self, recipient_id: int) -> None:
        """Delete a report recipient."""
        pass

    # Service option operations
    @abstractmethod
    def create_service_option(
        self, name: str, value: str, tenant_id: str, is_default: bool = False
    ) -> int:
        """Create a service option. Returns option ID.

        Making an option the default clears the flag on the tenant's other options.

        Raises:
            ConflictError: If the tenant already has an option with this value
        """
        pass

    @abstractmethod
    def list_service_options(self, tenant_id: str) -> list[ServiceOption]:
        """List a tenant's service options, the default first."""
        pass

    @abstractmethod
    def set_default_service_option(self, option_id: int) -> None:
        """Make an option its tenant's only default."""
        pass

    @abstractmethod
    def delete_service_option(self, option_id: int) -> None:
        """Delete a service option."""
        pass

    # Batch operations
    @abstractmethod
    def create_batch(
        self,
        name: str,
        date: date,
        tenant_id: str,
        service: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> int:
        """Create an OPEN count with a zero total. Returns batch ID."""
        pass

    @abstractmethod
    def get_batch(self, batch_id: int) -> Optional[Batch]:
        """Get batch by ID."""
        pass

    @abstractmethod
    def list_batches(
        self, tenant_id: Optional[str] = None, status: Optional[BatchStatus] = None
    ) -> list[Batch]:
        """List batches, newest first."""
        pass

    @abstractmethod
    def get_latest_batch(self, tenant_id: str, status: BatchStatus) -> Optional[Batch]:
        """Get the most recent batch of a tenant in the given status."""
        pass

    @abstractmethod
    def update_batch_details(
        self,
        batch_id: int,
        name: Optional[str] = None,
        date: Optional[date] = None,
        service: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> bool:
        """Update count metadata while it is OPEN and unattested.

        Returns:
            True if the row was updated, False if the count has left that state
        """
        pass

    @abstractmethod
    def delete_batch(self, batch_id: int) -> None:
        """Delete a count and all of its donations.

        Raises:
            NotFoundError: If the count does not exist
            BatchFinalizedError: If the count is finalized
        """
        pass

    @abstractmethod
    def recompute_batch_total(self, batch_id: int) -> Decimal:
        """Replace the cached total with the sum of the count's donations.

        A finalized count is never written; its locked total is returned.
        """
        pass

    @abstractmethod
    def get_batch_partition(self, batch_id: int) -> BatchPartition:
        """Sum the count's donations by donation type."""
        pass

    @abstractmethod
    def count_batch_donations(self, batch_id: int) -> int:
        """Number of donations assigned to a count."""
        pass

    # Attestation transitions (conditional, single-statement writes)
    @abstractmethod
    def set_primary_attestation(
        self, batch_id: int, attestor_id: str, attestor_name: str, attested_at: datetime
    ) -> bool:
        """Set the primary attestor if the count is OPEN, unattested and non-empty.

        The PRIMARY_ATTESTED event is stored in the same transaction.
        """
        pass

    @abstractmethod
    def set_secondary_attestation(
        self, batch_id: int, attestor_id: str, attestor_name: str, attested_at: datetime
    ) -> bool:
        """Set the secondary attestor if a different primary is set and no secondary exists.

        The SECONDARY_ATTESTED event is stored in the same transaction.
        """
        pass

    @abstractmethod
    def finalize_batch(self, batch_id: int, confirmed_by: str, confirmed_at: datetime) -> bool:
        """Flip an OPEN, fully attested count to FINALIZED.

        The FINALIZED event is stored in the same transaction.

        Returns:
            True only for the call that performed the transition
        """
        pass

    # Donation operations
    @abstractmethod
    def create_donation(
        self,
        date: date,
        amount: Decimal,
        donation_type: DonationType,
        tenant_id: str,
        check_number: Optional[str] = None,
        member_id: Optional[int] = None,
        batch_id: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> int:
        """Create a donation and refresh its count's total. Returns donation ID.

        Raises:
            NotFoundError: If batch_id refers to no count
            BatchFinalizedError: If the count is finalized
        """
        pass

    @abstractmethod
    def get_donation(self, donation_id: int) -> Optional[Donation]:
        """Get donation by ID."""
        pass

    @abstractmethod
    def update_donation(
        self,
        donation_id: int,
        date: date,
        amount: Decimal,
        donation_type: DonationType,
        check_number: Optional[str],
        member_id: Optional[int],
        batch_id: Optional[int],
        notes: Optional[str],
    ) -> None:
        """Replace every editable field of a donation.

        Both the current and the target count are guarded and re-totalled.
        """
        pass

    @abstractmethod
    def delete_donation(self, donation_id: int) -> None:
        """Delete a donation and refresh its count's total."""
        pass

    @abstractmethod
    def list_donations(
        self,
        batch_id: Optional[int] = None,
        tenant_id: Optional[str] = None,
        unassigned: bool = False,
    ) -> list[Donation]:
        """List donations with optional filters.

        Args:
            batch_id: Optional count filter
            tenant_id: Optional tenant filter
            unassigned: If True, only return donations not attached to any count
        """
        pass

    # Audit log
    @abstractmethod
    def record_batch_event(
        self,
        batch_id: int,
        event_type: BatchEventType,
        actor_id: Optional[str] = None,
        detail: Optional[str] = None,
    ) -> int:
        """Append an event to the audit log. Returns event ID."""
        pass

    @abstractmethod
    def list_batch_events(self, batch_id: int) -> list[BatchEvent]:
        """List a count's events in the order they were recorded."""
        pass
