"""Donation routes."""

from fastapi import APIRouter, Depends, Response

from platecount.api.deps import batch_for_actor, get_actor, get_services
from platecount.api.schemas import DonationIn, DonationOut, DonationPatch
from platecount.domain.entities import Donation, User
from platecount.domain.errors import NotFoundError, donation_not_found
from platecount.services import Services

router = APIRouter(prefix="/api/donations", tags=["donations"])


def _donation_for_actor(services: Services, actor: User, donation_id: int) -> Donation:
    donation = services.ledger.get_donation(donation_id)
    if donation is None or donation.tenant_id != actor.tenant_id:
        raise NotFoundError(donation_not_found(donation_id))
    return donation


def _out(services: Services, donation: Donation) -> DonationOut:
    return DonationOut.from_line(services.ledger.list_with_members([donation])[0])


@router.post("", response_model=DonationOut, status_code=201)
def create_donation(
    body: DonationIn,
    actor: User = Depends(get_actor),
    services: Services = Depends(get_services),
):
    if body.batch_id is not None:
        batch_for_actor(services, actor, body.batch_id)
    donation_id = services.ledger.create_donation(
        donation_date=body.date,
        amount=body.amount,
        donation_type=body.donation_type,
        tenant_id=actor.tenant_id,
        check_number=body.check_number,
        member_id=body.member_id,
        batch_id=body.batch_id,
        notes=body.notes,
    )
    return _out(services, services.ledger.require_donation(donation_id))


@router.patch("/{donation_id}", response_model=DonationOut)
def update_donation(
    donation_id: int,
    body: DonationPatch,
    actor: User = Depends(get_actor),
    services: Services = Depends(get_services),
):
    _donation_for_actor(services, actor, donation_id)
    if body.batch_id is not None:
        batch_for_actor(services, actor, body.batch_id)
    sent = body.model_fields_set
    donation = services.ledger.update_donation(
        donation_id,
        donation_date=body.date,
        amount=body.amount,
        donation_type=body.donation_type,
        check_number=body.check_number,
        notes=body.notes,
        member_id=body.member_id,
        batch_id=body.batch_id,
        clear_member="member_id" in sent and body.member_id is None,
        unassign="batch_id" in sent and body.batch_id is None,
    )
    return _out(services, donation)


@router.delete("/{donation_id}", status_code=204)
def delete_donation(
    donation_id: int, actor: User = Depends(get_actor), services: Services = Depends(get_services)
):
    _donation_for_actor(services, actor, donation_id)
    services.ledger.delete_donation(donation_id)
    return Response(status_code=204)
