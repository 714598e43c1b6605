"""Count routes: listing, details, attestation and reports."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from platecount.api.deps import batch_for_actor, get_actor, get_services
from platecount.api.schemas import (
    AttestPrimaryIn,
    AttestSecondaryIn,
    BatchDetailOut,
    BatchIn,
    BatchOut,
    BatchPatch,
    ConfirmOut,
    DispatchOut,
    EventOut,
    UserOut,
)
from platecount.domain.entities import BatchStatus, User
from platecount.domain.errors import NotFoundError, ValidationError
from platecount.services import Services

router = APIRouter(prefix="/api/batches", tags=["batches"])


@router.get("", response_model=list[BatchOut])
def list_batches(
    status: Optional[str] = Query(None),
    actor: User = Depends(get_actor),
    services: Services = Depends(get_services),
):
    batch_status = None
    if status is not None:
        try:
            batch_status = BatchStatus(status.upper())
        except ValueError:
            raise ValidationError(f"Unknown status '{status}'. Use OPEN or FINALIZED")
    batches = services.batches.list_batches(tenant_id=actor.tenant_id, status=batch_status)
    return [BatchOut.from_entity(b) for b in batches]


@router.post("", response_model=BatchOut, status_code=201)
def create_batch(
    body: BatchIn,
    actor: User = Depends(get_actor),
    services: Services = Depends(get_services),
):
    batch_id = services.batches.create_batch(
        batch_date=body.date,
        tenant_id=actor.tenant_id,
        service=body.service,
        name=body.name,
        notes=body.notes,
        actor_id=actor.id,
    )
    return BatchOut.from_entity(services.batches.require_batch(batch_id))


@router.get("/current", response_model=BatchOut)
def current_batch(actor: User = Depends(get_actor), services: Services = Depends(get_services)):
    """The church's open count, created for today if there is none."""
    batch = services.batches.get_current_batch(actor.tenant_id, today=services.clock.now().date())
    return BatchOut.from_entity(batch)


@router.get("/latest-finalized", response_model=BatchOut)
def latest_finalized_batch(actor: User = Depends(get_actor), services: Services = Depends(get_services)):
    batch = services.batches.get_latest_finalized_batch(actor.tenant_id)
    if batch is None:
        raise NotFoundError("No finalized counts yet")
    return BatchOut.from_entity(batch)


@router.get("/{batch_id}", response_model=BatchDetailOut)
def get_batch(batch_id: int, actor: User = Depends(get_actor), services: Services = Depends(get_services)):
    """Count with its donations; polled by every open viewer."""
    batch_for_actor(services, actor, batch_id)
    return BatchDetailOut.from_snapshot(services.reader.read(batch_id))


@router.patch("/{batch_id}", response_model=BatchOut)
def update_batch(
    batch_id: int,
    body: BatchPatch,
    actor: User = Depends(get_actor),
    services: Services = Depends(get_services),
):
    batch_for_actor(services, actor, batch_id)
    batch = services.batches.update_batch(
        batch_id,
        name=body.name,
        batch_date=body.date,
        service=body.service,
        notes=body.notes,
        actor_id=actor.id,
    )
    return BatchOut.from_entity(batch)


@router.delete("/{batch_id}", status_code=204)
def delete_batch(batch_id: int, actor: User = Depends(get_actor), services: Services = Depends(get_services)):
    batch_for_actor(services, actor, batch_id)
    services.batches.delete_batch(batch_id, actor_id=actor.id)
    return Response(status_code=204)


@router.post("/{batch_id}/attest-primary", response_model=BatchOut)
def attest_primary(
    batch_id: int,
    body: AttestPrimaryIn,
    actor: User = Depends(get_actor),
    services: Services = Depends(get_services),
):
    batch_for_actor(services, actor, batch_id)
    batch = services.attestation.attest_primary(batch_id, actor.id, body.signature_name)
    return BatchOut.from_entity(batch)


@router.post("/{batch_id}/attest-secondary", response_model=BatchOut)
def attest_secondary(
    batch_id: int,
    body: AttestSecondaryIn,
    actor: User = Depends(get_actor),
    services: Services = Depends(get_services),
):
    batch_for_actor(services, actor, batch_id)
    batch = services.attestation.attest_secondary(batch_id, body.attestor_id, body.signature_name)
    return BatchOut.from_entity(batch)


@router.post("/{batch_id}/confirm-attestation", response_model=ConfirmOut)
def confirm_attestation(
    batch_id: int, actor: User = Depends(get_actor), services: Services = Depends(get_services)
):
    """Finalize the count. Retrying after a timeout is safe."""
    batch_for_actor(services, actor, batch_id)
    return ConfirmOut.from_outcome(services.finalization.confirm(batch_id, actor.id))


@router.get("/{batch_id}/eligible-attestors", response_model=list[UserOut])
def eligible_attestors(
    batch_id: int, actor: User = Depends(get_actor), services: Services = Depends(get_services)
):
    batch = batch_for_actor(services, actor, batch_id)
    return [UserOut.from_entity(u) for u in services.users.eligible_secondary_attestors(batch)]


@router.get("/{batch_id}/events", response_model=list[EventOut])
def batch_events(batch_id: int, actor: User = Depends(get_actor), services: Services = Depends(get_services)):
    batch_for_actor(services, actor, batch_id)
    return [EventOut.from_entity(e) for e in services.batches.list_events(batch_id)]


@router.get("/{batch_id}/report")
def batch_report(batch_id: int, actor: User = Depends(get_actor), services: Services = Depends(get_services)):
    batch_for_actor(services, actor, batch_id)
    report = services.finalization.render_report(batch_id)
    return Response(
        content=report.document,
        media_type=report.media_type,
        headers={"Content-Disposition": f'attachment; filename="{report.filename}"'},
    )


@router.get("/{batch_id}/report.csv")
def batch_report_csv(
    batch_id: int, actor: User = Depends(get_actor), services: Services = Depends(get_services)
):
    batch_for_actor(services, actor, batch_id)
    report = services.finalization.render_report(batch_id)
    return Response(
        content=report.csv_text,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{report.csv_filename}"'},
    )


@router.post("/{batch_id}/report/resend", response_model=DispatchOut)
def resend_report(batch_id: int, actor: User = Depends(get_actor), services: Services = Depends(get_services)):
    batch_for_actor(services, actor, batch_id)
    return DispatchOut.from_outcome(services.finalization.resend_report(batch_id, actor_id=actor.id))
