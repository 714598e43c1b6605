"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so the nullable attestation
columns and legacy status values never leak past the database package.
"""

from decimal import Decimal

from platecount.domain import entities as domain
from platecount.database.models import (
    Batch as ORMBatch,
    BatchEvent as ORMBatchEvent,
    Donation as ORMDonation,
    Member as ORMMember,
    ReportRecipient as ORMReportRecipient,
    ServiceOption as ORMServiceOption,
    User as ORMUser,
)

CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    """Normalize a stored numeric value to a 2-decimal Decimal."""
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENTS)


def status_to_domain(raw_status: str) -> domain.BatchStatus:
    """Map a stored status string to BatchStatus, folding legacy CLOSED into OPEN."""
    if raw_status == domain.LEGACY_CLOSED_STATUS:
        return domain.BatchStatus.OPEN
    return domain.BatchStatus(raw_status)


def batch_to_domain(orm_batch: ORMBatch) -> domain.Batch:
    """Convert SQLAlchemy Batch model to domain Batch entity."""
    return domain.Batch(
        id=orm_batch.id,
        name=orm_batch.name,
        date=orm_batch.date,
        service=orm_batch.service,
        status=status_to_domain(orm_batch.status),
        total_amount=to_money(orm_batch.total_amount),
        notes=orm_batch.notes,
        tenant_id=orm_batch.tenant_id,
        created_at=orm_batch.created_at,
        updated_at=orm_batch.updated_at,
        primary_attestor_id=orm_batch.primary_attestor_id,
        primary_attestor_name=orm_batch.primary_attestor_name,
        primary_attestation_date=orm_batch.primary_attestation_date,
        secondary_attestor_id=orm_batch.secondary_attestor_id,
        secondary_attestor_name=orm_batch.secondary_attestor_name,
        secondary_attestation_date=orm_batch.secondary_attestation_date,
        attestation_confirmed_by=orm_batch.attestation_confirmed_by,
        attestation_confirmation_date=orm_batch.attestation_confirmation_date,
    )


def donation_to_domain(orm_donation: ORMDonation) -> domain.Donation:
    """Convert SQLAlchemy Donation model to domain Donation entity."""
    return domain.Donation(
        id=orm_donation.id,
        date=orm_donation.date,
        amount=to_money(orm_donation.amount),
        donation_type=domain.DonationType(orm_donation.donation_type),
        check_number=orm_donation.check_number,
        member_id=orm_donation.member_id,
        batch_id=orm_donation.batch_id,
        notes=orm_donation.notes,
        tenant_id=orm_donation.tenant_id,
        created_at=orm_donation.created_at,
        updated_at=orm_donation.updated_at,
    )


def member_to_domain(orm_member: ORMMember) -> domain.Member:
    """Convert SQLAlchemy Member model to domain Member entity."""
    return domain.Member(
        id=orm_member.id,
        first_name=orm_member.first_name,
        last_name=orm_member.last_name,
        email=orm_member.email,
        phone=orm_member.phone,
        tenant_id=orm_member.tenant_id,
        created_at=orm_member.created_at,
    )


def user_to_domain(orm_user: ORMUser) -> domain.User:
    """Convert SQLAlchemy User model to domain User entity."""
    return domain.User(
        id=orm_user.id,
        display_name=orm_user.display_name,
        email=orm_user.email,
        tenant_id=orm_user.tenant_id,
        verified=bool(orm_user.verified),
        created_at=orm_user.created_at,
    )


def report_recipient_to_domain(orm_recipient: ORMReportRecipient) -> domain.ReportRecipient:
    """Convert SQLAlchemy ReportRecipient model to domain ReportRecipient entity."""
    return domain.ReportRecipient(
        id=orm_recipient.id,
        first_name=orm_recipient.first_name,
        last_name=orm_recipient.last_name,
        email=orm_recipient.email,
        tenant_id=orm_recipient.tenant_id,
        created_at=orm_recipient.created_at,
    )


def service_option_to_domain(orm_option: ORMServiceOption) -> domain.ServiceOption:
    """Convert SQLAlchemy ServiceOption model to domain ServiceOption entity."""
    return domain.ServiceOption(
        id=orm_option.id,
        name=orm_option.name,
        value=orm_option.value,
        is_default=bool(orm_option.is_default),
        tenant_id=orm_option.tenant_id,
        created_at=orm_option.created_at,
    )


def batch_event_to_domain(orm_event: ORMBatchEvent) -> domain.BatchEvent:
    """Convert SQLAlchemy BatchEvent model to domain BatchEvent entity."""
    return domain.BatchEvent(
        id=orm_event.id,
        batch_id=orm_event.batch_id,
        event_type=domain.BatchEventType(orm_event.event_type),
        actor_id=orm_event.actor_id,
        detail=orm_event.detail,
        created_at=orm_event.created_at,
    )
