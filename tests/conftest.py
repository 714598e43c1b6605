"""Shared pytest fixtures for platecount tests."""

import tempfile
import os
from datetime import date
from decimal import Decimal
import pytest
from sqlalchemy.exc import OperationalError

from platecount.database.factories import create_sqlite_database
from platecount.domain.changes import ChangeFeed
from platecount.domain.clock import FixedClock
from platecount.domain.entities import DonationType
from platecount.domain.errors import ReportDispatchError
from platecount.domain.notifications import NotificationDispatcher
from platecount.services import build_services

TENANT = "grace"
OTHER_TENANT = "hope"
SERVICE_DATE = date(2024, 1, 7)


class RecordingDispatcher(NotificationDispatcher):
    """Dispatcher that remembers what it was asked to send."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    def dispatch(self, batch, report, recipients):
        if self.fail:
            raise ReportDispatchError("SMTP server unavailable")
        self.sent.append((batch.id, report, [r.email for r in recipients]))


class AuditLogOutage:
    """Makes audit-log inserts on one database handle fail until repaired."""

    def __init__(self, db, monkeypatch):
        self.db = db
        self.monkeypatch = monkeypatch

    @staticmethod
    def _fail(*args, **kwargs):
        raise OperationalError("INSERT INTO batch_events", {}, Exception("disk I/O error"))

    def start(self):
        self.monkeypatch.setattr(self.db, "_add_event", self._fail)

    def repair(self):
        self.monkeypatch.delattr(self.db, "_add_event")


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def changes():
    return ChangeFeed()


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def services(temp_db, clock, dispatcher, changes):
    """All services over the temporary database, with a fixed clock."""
    return build_services(temp_db, clock=clock, dispatcher=dispatcher, changes=changes)


@pytest.fixture
def users(services):
    """Alice and Bob are verified ushers, Carol is not verified, Olga belongs to another church."""
    services.users.create_user("alice", "Alice Usher", TENANT, verified=True)
    services.users.create_user("bob", "Bob Usher", TENANT, verified=True)
    services.users.create_user("carol", "Carol Newcomer", TENANT, verified=False)
    services.users.create_user("olga", "Olga Other", OTHER_TENANT, verified=True)
    return services.users


@pytest.fixture
def open_batch(services):
    """An empty OPEN count."""
    batch_id = services.batches.create_batch(
        batch_date=SERVICE_DATE, tenant_id=TENANT, service="Sunday Morning"
    )
    return services.batches.require_batch(batch_id)


@pytest.fixture
def member(services):
    member_id = services.members.create_member("Martha", "Giver", TENANT, email="martha@example.org")
    return services.members.get_member(member_id)


@pytest.fixture
def filled_batch(services, open_batch, member):
    """Count with $50 and $75 cash and a $120 check #456 from a member."""
    ledger = services.ledger
    ledger.create_donation(SERVICE_DATE, Decimal("50.00"), DonationType.CASH, batch_id=open_batch.id)
    ledger.create_donation(SERVICE_DATE, Decimal("75.00"), DonationType.CASH, batch_id=open_batch.id)
    ledger.create_donation(
        SERVICE_DATE,
        Decimal("120.00"),
        DonationType.CHECK,
        check_number="456",
        member_id=member.id,
        batch_id=open_batch.id,
    )
    return services.batches.require_batch(open_batch.id)


@pytest.fixture
def attested_batch(services, users, filled_batch):
    """Count attested by Alice and Bob, ready to finalize."""
    services.attestation.attest_primary(filled_batch.id, "alice", "Alice Usher")
    services.attestation.attest_secondary(filled_batch.id, "bob", "Bob Usher")
    return services.batches.require_batch(filled_batch.id)


@pytest.fixture
def recipient(services):
    recipient_id = services.recipients.add_recipient("Terry", "Treasurer", "treasurer@example.org", TENANT)
    return recipient_id


@pytest.fixture
def audit_outage(temp_db, monkeypatch):
    return AuditLogOutage(temp_db, monkeypatch)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
