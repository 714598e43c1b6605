"""Domain model entities for platecount.

These are pure data classes representing business concepts, independent of
database schema. Services and the HTTP layer only ever see these; the ORM
rows stay inside the database package.
"""

from dataclasses import dataclass
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional


class BatchStatus(str, Enum):
    """Persisted count status.

    Sub-states of OPEN (primary/secondary attested) are derived from the
    attestor columns, see ``platecount.domain.attestation``.
    """

    OPEN = "OPEN"
    FINALIZED = "FINALIZED"


# Written by older releases; read back as OPEN.
LEGACY_CLOSED_STATUS = "CLOSED"


class DonationType(str, Enum):
    """How a donation was given."""

    CASH = "CASH"
    CHECK = "CHECK"


class BatchEventType(str, Enum):
    """Audit log event kinds."""

    CREATED = "CREATED"
    UPDATED = "UPDATED"
    PRIMARY_ATTESTED = "PRIMARY_ATTESTED"
    SECONDARY_ATTESTED = "SECONDARY_ATTESTED"
    FINALIZED = "FINALIZED"
    REPORT_DISPATCHED = "REPORT_DISPATCHED"
    REPORT_DISPATCH_FAILED = "REPORT_DISPATCH_FAILED"
    DELETED = "DELETED"


@dataclass(frozen=True)
class Batch:
    """A count: the donations collected in one service."""

    id: int
    name: str
    date: date
    service: Optional[str]
    status: BatchStatus
    total_amount: Decimal
    notes: Optional[str]
    tenant_id: str
    created_at: datetime
    updated_at: datetime
    primary_attestor_id: Optional[str] = None
    primary_attestor_name: Optional[str] = None
    primary_attestation_date: Optional[datetime] = None
    secondary_attestor_id: Optional[str] = None
    secondary_attestor_name: Optional[str] = None
    secondary_attestation_date: Optional[datetime] = None
    attestation_confirmed_by: Optional[str] = None
    attestation_confirmation_date: Optional[datetime] = None

    @property
    def is_finalized(self) -> bool:
        return self.status == BatchStatus.FINALIZED


@dataclass(frozen=True)
class Donation:
    """A single cash or check gift."""

    id: int
    date: date
    amount: Decimal
    donation_type: DonationType
    check_number: Optional[str]
    member_id: Optional[int]
    batch_id: Optional[int]
    notes: Optional[str]
    tenant_id: str
    created_at: datetime
    updated_at: datetime

    @property
    def is_anonymous(self) -> bool:
        return self.member_id is None


@dataclass(frozen=True)
class Member:
    """Contributor from the church directory. Read-only for the count workflow."""

    id: int
    first_name: str
    last_name: str
    email: Optional[str]
    phone: Optional[str]
    tenant_id: str
    created_at: datetime

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class User:
    """A system user who can act on counts and attest them."""

    id: str
    display_name: str
    email: Optional[str]
    tenant_id: str
    verified: bool
    created_at: datetime


@dataclass(frozen=True)
class ReportRecipient:
    """Person who receives the count report when a count is finalized."""

    id: int
    first_name: str
    last_name: str
    email: str
    tenant_id: str
    created_at: datetime

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class ServiceOption:
    """A service a church holds; the default one names automatically created counts."""

    id: int
    name: str
    value: str
    is_default: bool
    tenant_id: str
    created_at: datetime


@dataclass(frozen=True)
class BatchEvent:
    """Append-only audit log entry for a count."""

    id: int
    batch_id: int
    event_type: BatchEventType
    actor_id: Optional[str]
    detail: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class BatchPartition:
    """Count totals split by donation type."""

    cash_total: Decimal
    check_total: Decimal
    cash_count: int = 0
    check_count: int = 0

    @property
    def total(self) -> Decimal:
        return self.cash_total + self.check_total

    @property
    def donation_count(self) -> int:
        return self.cash_count + self.check_count


@dataclass(frozen=True)
class DonationLine:
    """Donation joined with the contributor's display name."""

    donation: Donation
    member_name: Optional[str]

    @property
    def contributor(self) -> str:
        return self.member_name or "Anonymous"
