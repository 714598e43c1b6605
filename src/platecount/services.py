"""Wiring of the domain services around one database handle."""

from dataclasses import dataclass
from typing import Optional

from platecount.config import Settings
from platecount.database.base import Database
from platecount.domain.attestation import AttestationService
from platecount.domain.batch import BatchService
from platecount.domain.changes import ChangeFeed
from platecount.domain.clock import Clock, SystemClock
from platecount.domain.finalization import FinalizationCoordinator
from platecount.domain.ledger import DonationLedger
from platecount.domain.members import MemberService
from platecount.domain.notifications import NotificationDispatcher
from platecount.domain.recipients import RecipientService
from platecount.domain.refresh import SnapshotReader
from platecount.domain.service_options import ServiceOptionService
from platecount.domain.reports import ReportRenderer
from platecount.domain.users import UserDirectory


@dataclass
class Services:
    db: Database
    changes: ChangeFeed
    clock: Clock
    batches: BatchService
    ledger: DonationLedger
    users: UserDirectory
    members: MemberService
    recipients: RecipientService
    service_options: ServiceOptionService
    attestation: AttestationService
    finalization: FinalizationCoordinator
    reader: SnapshotReader


def build_services(
    db: Database,
    settings: Optional[Settings] = None,
    clock: Optional[Clock] = None,
    renderer: Optional[ReportRenderer] = None,
    dispatcher: Optional[NotificationDispatcher] = None,
    changes: Optional[ChangeFeed] = None,
) -> Services:
    """Build every service over ``db``.

    The report dispatcher comes from ``settings`` unless one is passed in.
    """
    clock = clock or SystemClock()
    changes = changes or ChangeFeed()
    if dispatcher is None and settings is not None:
        dispatcher = settings.build_dispatcher()

    users = UserDirectory(db)
    service_options = ServiceOptionService(db)
    ledger = DonationLedger(db, changes=changes)
    attestation = AttestationService(db, users=users, changes=changes, clock=clock)
    return Services(
        db=db,
        changes=changes,
        clock=clock,
        batches=BatchService(db, changes=changes, service_options=service_options),
        ledger=ledger,
        users=users,
        members=MemberService(db),
        recipients=RecipientService(db),
        service_options=service_options,
        attestation=attestation,
        finalization=FinalizationCoordinator(
            db,
            attestation,
            ledger=ledger,
            renderer=renderer,
            dispatcher=dispatcher,
            clock=clock,
        ),
        reader=SnapshotReader(db, ledger=ledger, clock=clock),
    )
