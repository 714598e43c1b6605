"""Request and response bodies of the HTTP API.

JSON keys are camelCase; requests also accept the snake_case names.
"""

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from platecount.domain.entities import Batch, BatchEvent, BatchPartition, DonationLine, User
from platecount.domain.finalization import DispatchOutcome, FinalizationOutcome
from platecount.domain.refresh import BatchSnapshot
from platecount.domain.attestation import attestation_state


def _alias(name: str) -> AliasChoices:
    return AliasChoices(to_camel(name), name)


class AttestPrimaryIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    signature_name: str = Field(validation_alias=_alias("signature_name"), min_length=1)


class AttestSecondaryIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    attestor_id: str = Field(validation_alias=_alias("attestor_id"), min_length=1)
    signature_name: str = Field(validation_alias=_alias("signature_name"), min_length=1)


class BatchIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    date: dt.date
    service: Optional[str] = None
    name: Optional[str] = None
    notes: Optional[str] = None


class BatchPatch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    date: Optional[dt.date] = None
    service: Optional[str] = None
    name: Optional[str] = None
    notes: Optional[str] = None


class DonationIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    date: dt.date
    amount: Decimal
    donation_type: str = Field(validation_alias=_alias("donation_type"))
    check_number: Optional[str] = Field(default=None, validation_alias=_alias("check_number"))
    member_id: Optional[int] = Field(default=None, validation_alias=_alias("member_id"))
    batch_id: Optional[int] = Field(default=None, validation_alias=_alias("batch_id"))
    notes: Optional[str] = None


class DonationPatch(BaseModel):
    """Partial donation update. ``memberId: null`` makes the gift anonymous and
    ``batchId: null`` unassigns it; omitted keys stay as they are."""

    model_config = ConfigDict(extra="forbid")

    date: Optional[dt.date] = None
    amount: Optional[Decimal] = None
    donation_type: Optional[str] = Field(default=None, validation_alias=_alias("donation_type"))
    check_number: Optional[str] = Field(default=None, validation_alias=_alias("check_number"))
    member_id: Optional[int] = Field(default=None, validation_alias=_alias("member_id"))
    batch_id: Optional[int] = Field(default=None, validation_alias=_alias("batch_id"))
    notes: Optional[str] = None


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BatchOut(CamelModel):
    id: int
    name: str
    date: dt.date
    service: Optional[str]
    status: str
    state: str
    total_amount: Decimal
    notes: Optional[str]
    primary_attestor_id: Optional[str]
    primary_attestor_name: Optional[str]
    primary_attestation_date: Optional[dt.datetime]
    secondary_attestor_id: Optional[str]
    secondary_attestor_name: Optional[str]
    secondary_attestation_date: Optional[dt.datetime]
    attestation_confirmed_by: Optional[str]
    attestation_confirmation_date: Optional[dt.datetime]
    created_at: dt.datetime
    updated_at: dt.datetime

    @classmethod
    def from_entity(cls, batch: Batch) -> "BatchOut":
        return cls(
            id=batch.id,
            name=batch.name,
            date=batch.date,
            service=batch.service,
            status=batch.status.value,
            state=attestation_state(batch).name,
            total_amount=batch.total_amount,
            notes=batch.notes,
            primary_attestor_id=batch.primary_attestor_id,
            primary_attestor_name=batch.primary_attestor_name,
            primary_attestation_date=batch.primary_attestation_date,
            secondary_attestor_id=batch.secondary_attestor_id,
            secondary_attestor_name=batch.secondary_attestor_name,
            secondary_attestation_date=batch.secondary_attestation_date,
            attestation_confirmed_by=batch.attestation_confirmed_by,
            attestation_confirmation_date=batch.attestation_confirmation_date,
            created_at=batch.created_at,
            updated_at=batch.updated_at,
        )


class DonationOut(CamelModel):
    id: int
    date: dt.date
    amount: Decimal
    donation_type: str
    check_number: Optional[str]
    member_id: Optional[int]
    member_name: Optional[str]
    contributor: str
    batch_id: Optional[int]
    notes: Optional[str]

    @classmethod
    def from_line(cls, line: DonationLine) -> "DonationOut":
        donation = line.donation
        return cls(
            id=donation.id,
            date=donation.date,
            amount=donation.amount,
            donation_type=donation.donation_type.value,
            check_number=donation.check_number,
            member_id=donation.member_id,
            member_name=line.member_name,
            contributor=line.contributor,
            batch_id=donation.batch_id,
            notes=donation.notes,
        )


class PartitionOut(CamelModel):
    cash_total: Decimal
    check_total: Decimal
    cash_count: int
    check_count: int

    @classmethod
    def from_entity(cls, partition: BatchPartition) -> "PartitionOut":
        return cls(
            cash_total=partition.cash_total,
            check_total=partition.check_total,
            cash_count=partition.cash_count,
            check_count=partition.check_count,
        )


class BatchDetailOut(CamelModel):
    batch: BatchOut
    donations: list[DonationOut]
    partition: PartitionOut
    refreshed_at: dt.datetime

    @classmethod
    def from_snapshot(cls, snapshot: BatchSnapshot) -> "BatchDetailOut":
        return cls(
            batch=BatchOut.from_entity(snapshot.batch),
            donations=[DonationOut.from_line(line) for line in snapshot.lines],
            partition=PartitionOut.from_entity(snapshot.partition),
            refreshed_at=snapshot.taken_at,
        )


class DispatchOut(CamelModel):
    status: str
    recipient_count: int
    detail: Optional[str]

    @classmethod
    def from_outcome(cls, outcome: DispatchOutcome) -> "DispatchOut":
        return cls(
            status=outcome.status.value,
            recipient_count=outcome.recipient_count,
            detail=outcome.detail,
        )


class ConfirmOut(CamelModel):
    batch: BatchOut
    transitioned: bool
    report_dispatch: DispatchOut

    @classmethod
    def from_outcome(cls, outcome: FinalizationOutcome) -> "ConfirmOut":
        return cls(
            batch=BatchOut.from_entity(outcome.batch),
            transitioned=outcome.transitioned,
            report_dispatch=DispatchOut.from_outcome(outcome.dispatch),
        )


class EventOut(CamelModel):
    id: int
    event_type: str
    actor_id: Optional[str]
    detail: Optional[str]
    created_at: dt.datetime

    @classmethod
    def from_entity(cls, event: BatchEvent) -> "EventOut":
        return cls(
            id=event.id,
            event_type=event.event_type.value,
            actor_id=event.actor_id,
            detail=event.detail,
            created_at=event.created_at,
        )


class UserOut(CamelModel):
    id: str
    display_name: str
    verified: bool

    @classmethod
    def from_entity(cls, user: User) -> "UserOut":
        return cls(id=user.id, display_name=user.display_name, verified=user.verified)
