"""Donation ledger domain service."""

import logging
from typing import Optional, Union
from datetime import date
from decimal import Decimal, InvalidOperation

from platecount.database.base import Database
from platecount.domain.changes import ChangeFeed
from platecount.domain.entities import (
    Batch as BatchEntity,
    Donation as DonationEntity,
    DonationLine,
    DonationType,
)
from platecount.domain.errors import (
    BatchFinalizedError,
    NotFoundError,
    ValidationError,
    batch_finalized,
    batch_not_found,
    donation_not_found,
    member_not_found,
)

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
# Largest value the Numeric(10, 2) amount column holds
MAX_AMOUNT = Decimal("99999999.99")


def coerce_donation_type(value: Union[DonationType, str]) -> DonationType:
    """Accept a DonationType or its name in any case."""
    if isinstance(value, DonationType):
        return value
    try:
        return DonationType(str(value).strip().upper())
    except ValueError:
        raise ValidationError(f"Unknown donation type '{value}'. Use CASH or CHECK")


def validate_amount(amount: Decimal) -> Decimal:
    """Return the amount as a positive 2-decimal Decimal or raise ValidationError."""
    try:
        amount = Decimal(amount)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Invalid amount '{amount}'")
    if not amount.is_finite():
        raise ValidationError(f"Invalid amount '{amount}'")
    if amount <= 0:
        raise ValidationError("Donation amount must be greater than zero")
    if amount > MAX_AMOUNT:
        raise ValidationError(f"Donation amount {amount} is larger than the maximum of {MAX_AMOUNT}")
    if amount != amount.quantize(CENTS):
        raise ValidationError(f"Donation amount {amount} has more than two decimal places")
    return amount.quantize(CENTS)


def normalize_check_number(donation_type: DonationType, check_number: Optional[str]) -> Optional[str]:
    """Check numbers are required for checks and meaningless for cash."""
    check_number = check_number.strip() if check_number else None
    if donation_type == DonationType.CHECK and not check_number:
        raise ValidationError("Check number is required for check donations")
    if donation_type == DonationType.CASH and check_number:
        raise ValidationError("Cash donations cannot have a check number")
    return check_number


class DonationLedger:
    """Service for recording donations against counts.

    Every mutation is refused once the owning count is finalized. The check
    here produces the friendly error; the database repeats it atomically with
    the write, which is the guard that actually holds under concurrency.
    """

    def __init__(self, db: Database, changes: Optional[ChangeFeed] = None):
        """Initialize donation ledger.

        Args:
            db: Database instance
            changes: Optional feed notified after every committed change
        """
        self.db = db
        self.changes = changes

    def _changed(self, *batch_ids: Optional[int]) -> None:
        if self.changes is None:
            return
        for batch_id in {b for b in batch_ids if b is not None}:
            self.changes.publish(batch_id)

    def _open_batch(self, batch_id: int) -> BatchEntity:
        batch = self.db.get_batch(batch_id)
        if batch is None:
            raise NotFoundError(batch_not_found(batch_id))
        if batch.is_finalized:
            raise BatchFinalizedError(batch_finalized(batch_id))
        return batch

    def _check_member(self, member_id: int, tenant_id: str) -> None:
        member = self.db.get_member(member_id)
        if member is None:
            raise NotFoundError(member_not_found(member_id))
        if member.tenant_id != tenant_id:
            raise ValidationError(f"Member {member_id} belongs to a different church")

    def create_donation(
        self,
        donation_date: date,
        amount: Decimal,
        donation_type: Union[DonationType, str],
        tenant_id: Optional[str] = None,
        check_number: Optional[str] = None,
        member_id: Optional[int] = None,
        batch_id: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> int:
        """Record a donation.

        Args:
            donation_date: Date the gift was received
            amount: Positive amount in dollars and cents
            donation_type: CASH or CHECK
            tenant_id: Owning church; defaults to the count's church
            check_number: Required for checks, forbidden for cash
            member_id: Contributor, or None for an anonymous/visitor gift
            batch_id: Count to attach the donation to, or None for unassigned
            notes: Optional notes

        Returns:
            Donation ID

        Raises:
            ValidationError: On invalid amount, type, check number or church
            NotFoundError: If the count or member does not exist
            BatchFinalizedError: If the count is finalized
        """
        donation_type = coerce_donation_type(donation_type)
        amount = validate_amount(amount)
        check_number = normalize_check_number(donation_type, check_number)

        if batch_id is not None:
            batch = self._open_batch(batch_id)
            if tenant_id is None:
                tenant_id = batch.tenant_id
            elif tenant_id != batch.tenant_id:
                raise ValidationError(f"Count {batch_id} belongs to a different church")
        if not tenant_id:
            raise ValidationError("Unassigned donations need a church")
        if member_id is not None:
            self._check_member(member_id, tenant_id)

        donation_id = self.db.create_donation(
            date=donation_date,
            amount=amount,
            donation_type=donation_type,
            tenant_id=tenant_id,
            check_number=check_number,
            member_id=member_id,
            batch_id=batch_id,
            notes=notes,
        )
        logger.info(
            "Recorded donation donation_id=%s batch_id=%s type=%s amount=%s",
            donation_id,
            batch_id,
            donation_type.value,
            amount,
        )
        self._changed(batch_id)
        return donation_id

    def get_donation(self, donation_id: int) -> Optional[DonationEntity]:
        """Get donation by ID.

        Returns:
            Donation entity or None if not found
        """
        return self.db.get_donation(donation_id)

    def require_donation(self, donation_id: int) -> DonationEntity:
        """Get donation by ID or raise NotFoundError."""
        donation = self.db.get_donation(donation_id)
        if donation is None:
            raise NotFoundError(donation_not_found(donation_id))
        return donation

    def update_donation(
        self,
        donation_id: int,
        donation_date: Optional[date] = None,
        amount: Optional[Decimal] = None,
        donation_type: Optional[Union[DonationType, str]] = None,
        check_number: Optional[str] = None,
        notes: Optional[str] = None,
        member_id: Optional[int] = None,
        batch_id: Optional[int] = None,
        clear_member: bool = False,
        unassign: bool = False,
    ) -> DonationEntity:
        """Update donation fields, optionally moving it to another count.

        Only provided fields change. Switching a check to cash drops its
        check number.

        Args:
            donation_id: Donation to update
            clear_member: If True, make the donation anonymous
            unassign: If True, detach the donation from its count

        Raises:
            NotFoundError: If the donation, target count or member does not exist
            BatchFinalizedError: If the current or target count is finalized
            ValidationError: On invalid values or conflicting flags
        """
        if clear_member and member_id is not None:
            raise ValidationError("Cannot set both member_id and clear_member")
        if unassign and batch_id is not None:
            raise ValidationError("Cannot set both batch_id and unassign")

        current = self.require_donation(donation_id)
        if current.batch_id is not None:
            self._open_batch(current.batch_id)

        new_type = coerce_donation_type(donation_type) if donation_type is not None else current.donation_type
        if check_number is not None:
            new_check_number = check_number
        elif new_type == DonationType.CHECK:
            new_check_number = current.check_number
        else:
            new_check_number = None
        new_check_number = normalize_check_number(new_type, new_check_number)
        new_amount = validate_amount(amount) if amount is not None else current.amount

        new_batch_id = current.batch_id
        if unassign:
            new_batch_id = None
        elif batch_id is not None and batch_id != current.batch_id:
            target = self._open_batch(batch_id)
            if target.tenant_id != current.tenant_id:
                raise ValidationError(f"Count {batch_id} belongs to a different church")
            new_batch_id = batch_id

        new_member_id = current.member_id
        if clear_member:
            new_member_id = None
        elif member_id is not None:
            self._check_member(member_id, current.tenant_id)
            new_member_id = member_id

        self.db.update_donation(
            donation_id=donation_id,
            date=donation_date or current.date,
            amount=new_amount,
            donation_type=new_type,
            check_number=new_check_number,
            member_id=new_member_id,
            batch_id=new_batch_id,
            notes=notes if notes is not None else current.notes,
        )
        if new_batch_id != current.batch_id:
            logger.info(
                "Moved donation donation_id=%s from batch_id=%s to batch_id=%s",
                donation_id,
                current.batch_id,
                new_batch_id,
            )
        self._changed(current.batch_id, new_batch_id)
        return self.require_donation(donation_id)

    def delete_donation(self, donation_id: int) -> None:
        """Delete a donation.

        Raises:
            NotFoundError: If the donation does not exist
            BatchFinalizedError: If its count is finalized
        """
        current = self.require_donation(donation_id)
        if current.batch_id is not None:
            self._open_batch(current.batch_id)
        self.db.delete_donation(donation_id)
        logger.info("Deleted donation donation_id=%s batch_id=%s", donation_id, current.batch_id)
        self._changed(current.batch_id)

    def list_by_batch(self, batch_id: int) -> list[DonationEntity]:
        """List the donations of a count, newest first.

        Raises:
            NotFoundError: If the count does not exist
        """
        if self.db.get_batch(batch_id) is None:
            raise NotFoundError(batch_not_found(batch_id))
        return self.db.list_donations(batch_id=batch_id)

    def list_unassigned(self, tenant_id: Optional[str] = None) -> list[DonationEntity]:
        """List donations not attached to any count."""
        return self.db.list_donations(tenant_id=tenant_id, unassigned=True)

    def list_with_members(self, donations: list[DonationEntity]) -> list[DonationLine]:
        """Join donations with their contributors' display names."""
        member_ids = [d.member_id for d in donations if d.member_id is not None]
        members = self.db.get_members(member_ids)
        lines = []
        for donation in donations:
            member = members.get(donation.member_id) if donation.member_id is not None else None
            lines.append(DonationLine(donation=donation, member_name=member.display_name if member else None))
        return lines

    def list_lines(self, batch_id: int) -> list[DonationLine]:
        """List a count's donations joined with contributor names."""
        return self.list_with_members(self.list_by_batch(batch_id))
