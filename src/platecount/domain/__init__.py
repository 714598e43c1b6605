"""Domain layer for platecount application.

Services live in their own modules (``platecount.domain.batch``,
``platecount.domain.ledger`` ...) and are imported from there; this package
only re-exports the entities, which the database layer depends on.
"""

from platecount.domain.entities import (
    Batch,
    BatchEvent,
    BatchEventType,
    BatchPartition,
    BatchStatus,
    Donation,
    DonationLine,
    DonationType,
    Member,
    ReportRecipient,
    ServiceOption,
    User,
)

__all__ = [
    "Batch",
    "BatchEvent",
    "BatchEventType",
    "BatchPartition",
    "BatchStatus",
    "Donation",
    "DonationLine",
    "DonationType",
    "Member",
    "ReportRecipient",
    "ServiceOption",
    "User",
]
