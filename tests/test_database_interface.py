"""Tests for Database interface returning domain models."""

import pytest
from datetime import date, datetime, UTC
from decimal import Decimal
from sqlalchemy.exc import OperationalError

from platecount.database.factories import create_database, create_sqlite_database
from platecount.database.models import Batch as ORMBatch
from platecount.domain import entities
from platecount.domain.errors import BatchFinalizedError, ConflictError, NotFoundError

SUNDAY = date(2024, 1, 7)
NOON = datetime(2024, 1, 7, 12, 0, tzinfo=UTC)


def make_batch(db, tenant_id="grace"):
    return db.create_batch(name="Sunday Morning", date=SUNDAY, tenant_id=tenant_id)


def add_cash(db, batch_id, amount="50.00"):
    return db.create_donation(
        date=SUNDAY,
        amount=Decimal(amount),
        donation_type=entities.DonationType.CASH,
        tenant_id="grace",
        batch_id=batch_id,
    )


class TestDatabaseInterface:
    """Tests to verify Database interface returns domain models."""

    def test_get_batch_returns_domain_model(self, temp_db):
        batch_id = make_batch(temp_db)

        batch = temp_db.get_batch(batch_id)

        assert isinstance(batch, entities.Batch)
        assert batch.status == entities.BatchStatus.OPEN
        assert batch.total_amount == Decimal("0.00")
        assert isinstance(batch.created_at, datetime)

    def test_get_missing_batch_returns_none(self, temp_db):
        assert temp_db.get_batch(999) is None

    def test_donation_returns_domain_model(self, temp_db):
        batch_id = make_batch(temp_db)
        donation_id = add_cash(temp_db, batch_id)

        donation = temp_db.get_donation(donation_id)

        assert isinstance(donation, entities.Donation)
        assert donation.amount == Decimal("50.00")
        assert donation.donation_type == entities.DonationType.CASH

    def test_users(self, temp_db):
        temp_db.create_user("alice", "Alice Usher", "grace", verified=True)
        temp_db.create_user("carol", "Carol Newcomer", "grace")

        assert isinstance(temp_db.get_user("alice"), entities.User)
        assert [u.id for u in temp_db.list_users(tenant_id="grace", verified_only=True)] == ["alice"]
        with pytest.raises(ConflictError):
            temp_db.create_user("alice", "Alice Again", "grace")

    def test_set_user_verified_unknown(self, temp_db):
        with pytest.raises(NotFoundError):
            temp_db.set_user_verified("nobody", True)


class TestTotals:
    def test_writes_keep_total_in_sync(self, temp_db):
        batch_id = make_batch(temp_db)
        first = add_cash(temp_db, batch_id, "50.00")
        add_cash(temp_db, batch_id, "75.00")
        assert temp_db.get_batch(batch_id).total_amount == Decimal("125.00")

        temp_db.delete_donation(first)

        assert temp_db.get_batch(batch_id).total_amount == Decimal("75.00")

    def test_recompute_batch_total(self, temp_db):
        batch_id = make_batch(temp_db)
        add_cash(temp_db, batch_id, "10.00")
        add_cash(temp_db, batch_id, "0.05")

        assert temp_db.recompute_batch_total(batch_id) == Decimal("10.05")
        assert temp_db.recompute_batch_total(batch_id) == Decimal("10.05")


class TestConditionalTransitions:
    """Each transition reports whether this call made the change."""

    def test_primary_requires_donations(self, temp_db):
        batch_id = make_batch(temp_db)

        assert temp_db.set_primary_attestation(batch_id, "alice", "Alice Usher", NOON) is False

        add_cash(temp_db, batch_id)
        assert temp_db.set_primary_attestation(batch_id, "alice", "Alice Usher", NOON) is True

    def test_primary_only_once(self, temp_db):
        batch_id = make_batch(temp_db)
        add_cash(temp_db, batch_id)

        assert temp_db.set_primary_attestation(batch_id, "alice", "Alice Usher", NOON) is True
        assert temp_db.set_primary_attestation(batch_id, "bob", "Bob Usher", NOON) is False
        assert temp_db.get_batch(batch_id).primary_attestor_id == "alice"

    def test_secondary_rules(self, temp_db):
        batch_id = make_batch(temp_db)
        add_cash(temp_db, batch_id)

        assert temp_db.set_secondary_attestation(batch_id, "bob", "Bob Usher", NOON) is False
        temp_db.set_primary_attestation(batch_id, "alice", "Alice Usher", NOON)
        assert temp_db.set_secondary_attestation(batch_id, "alice", "Alice Usher", NOON) is False
        assert temp_db.set_secondary_attestation(batch_id, "bob", "Bob Usher", NOON) is True
        assert temp_db.set_secondary_attestation(batch_id, "dave", "Dave Deacon", NOON) is False

    def test_finalize_once(self, temp_db):
        batch_id = make_batch(temp_db)
        add_cash(temp_db, batch_id)
        assert temp_db.finalize_batch(batch_id, "alice", NOON) is False

        temp_db.set_primary_attestation(batch_id, "alice", "Alice Usher", NOON)
        temp_db.set_secondary_attestation(batch_id, "bob", "Bob Usher", NOON)

        assert temp_db.finalize_batch(batch_id, "alice", NOON) is True
        assert temp_db.finalize_batch(batch_id, "bob", NOON) is False
        batch = temp_db.get_batch(batch_id)
        assert batch.status == entities.BatchStatus.FINALIZED
        assert batch.attestation_confirmed_by == "alice"

    def test_transitions_write_their_events(self, temp_db):
        batch_id = make_batch(temp_db)
        add_cash(temp_db, batch_id)

        temp_db.set_primary_attestation(batch_id, "alice", "Alice Usher", NOON)
        temp_db.set_primary_attestation(batch_id, "bob", "Bob Usher", NOON)
        temp_db.set_secondary_attestation(batch_id, "bob", "Bob Usher", NOON)
        temp_db.finalize_batch(batch_id, "alice", NOON)
        temp_db.finalize_batch(batch_id, "bob", NOON)

        events = temp_db.list_batch_events(batch_id)
        assert [(e.event_type, e.actor_id) for e in events] == [
            (entities.BatchEventType.PRIMARY_ATTESTED, "alice"),
            (entities.BatchEventType.SECONDARY_ATTESTED, "bob"),
            (entities.BatchEventType.FINALIZED, "alice"),
        ]
        assert events[0].detail == "Alice Usher"

    def test_failed_event_insert_undoes_finalize(self, temp_db, audit_outage):
        batch_id = make_batch(temp_db)
        add_cash(temp_db, batch_id)
        temp_db.set_primary_attestation(batch_id, "alice", "Alice Usher", NOON)
        temp_db.set_secondary_attestation(batch_id, "bob", "Bob Usher", NOON)

        audit_outage.start()
        with pytest.raises(OperationalError):
            temp_db.finalize_batch(batch_id, "alice", NOON)

        assert temp_db.get_batch(batch_id).status == entities.BatchStatus.OPEN
        audit_outage.repair()
        assert temp_db.finalize_batch(batch_id, "alice", NOON) is True
        assert temp_db.list_batch_events(batch_id)[-1].event_type == entities.BatchEventType.FINALIZED

    def test_details_locked_after_primary(self, temp_db):
        batch_id = make_batch(temp_db)
        add_cash(temp_db, batch_id)

        assert temp_db.update_batch_details(batch_id, notes="first") is True
        temp_db.set_primary_attestation(batch_id, "alice", "Alice Usher", NOON)
        assert temp_db.update_batch_details(batch_id, notes="second") is False
        assert temp_db.get_batch(batch_id).notes == "first"


class TestFinalizedGuard:
    @pytest.fixture
    def finalized_id(self, temp_db):
        batch_id = make_batch(temp_db)
        add_cash(temp_db, batch_id)
        temp_db.set_primary_attestation(batch_id, "alice", "Alice Usher", NOON)
        temp_db.set_secondary_attestation(batch_id, "bob", "Bob Usher", NOON)
        temp_db.finalize_batch(batch_id, "alice", NOON)
        return batch_id

    def test_create_donation_rejected(self, temp_db, finalized_id):
        with pytest.raises(BatchFinalizedError):
            add_cash(temp_db, finalized_id)
        assert temp_db.count_batch_donations(finalized_id) == 1

    def test_delete_batch_rejected(self, temp_db, finalized_id):
        with pytest.raises(BatchFinalizedError):
            temp_db.delete_batch(finalized_id)

    def test_stale_handle_cannot_write(self, temp_db, finalized_id):
        """A handle that read the count before finalization still hits the guard."""
        stale = temp_db.clone()
        donation = stale.list_donations(batch_id=finalized_id)[0]

        with pytest.raises(BatchFinalizedError):
            stale.delete_donation(donation.id)

        assert temp_db.get_batch(finalized_id).total_amount == Decimal("50.00")
        stale.disconnect()

    def test_missing_batch_is_not_found(self, temp_db):
        with pytest.raises(NotFoundError):
            add_cash(temp_db, 999)


class TestLegacyStatus:
    def test_closed_rows_behave_as_open(self, temp_db):
        batch_id = make_batch(temp_db)
        session = temp_db._get_session()
        session.query(ORMBatch).filter(ORMBatch.id == batch_id).update({ORMBatch.status: "CLOSED"})
        session.commit()

        assert temp_db.get_batch(batch_id).status == entities.BatchStatus.OPEN
        assert [b.id for b in temp_db.list_batches(status=entities.BatchStatus.OPEN)] == [batch_id]
        add_cash(temp_db, batch_id)
        assert temp_db.get_batch(batch_id).total_amount == Decimal("50.00")


class TestClone:
    def test_clone_sees_committed_writes(self, temp_db):
        other = temp_db.clone()
        batch_id = make_batch(temp_db)
        assert other.get_batch(batch_id).total_amount == Decimal("0.00")

        add_cash(temp_db, batch_id)

        assert other.get_batch(batch_id).total_amount == Decimal("50.00")
        other.disconnect()


class TestFactories:
    def test_create_database_prefers_url(self, tmp_path):
        db = create_database(database_url=f"sqlite:///{tmp_path / 'url.db'}")
        assert db.database_url.endswith("url.db")

    def test_create_sqlite_database_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PLATECOUNT_DB_PATH", str(tmp_path / "env.db"))
        db = create_sqlite_database()
        assert db.database_url == f"sqlite:///{tmp_path / 'env.db'}"
