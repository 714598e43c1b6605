"""Tests for the donation ledger."""

import pytest
from datetime import date
from decimal import Decimal

from platecount.domain.entities import DonationType
from platecount.domain.errors import (
    BatchFinalizedError,
    NotFoundError,
    ValidationError,
)
from platecount.domain.ledger import MAX_AMOUNT, coerce_donation_type, normalize_check_number, validate_amount

SUNDAY = date(2024, 1, 7)


class TestValidation:
    def test_coerce_donation_type(self):
        assert coerce_donation_type("check") == DonationType.CHECK
        assert coerce_donation_type(" Cash ") == DonationType.CASH
        assert coerce_donation_type(DonationType.CASH) == DonationType.CASH
        with pytest.raises(ValidationError):
            coerce_donation_type("crypto")

    def test_validate_amount(self):
        assert validate_amount(Decimal("50")) == Decimal("50.00")
        assert validate_amount(Decimal("0.01")) == Decimal("0.01")

    def test_amount_fits_the_amount_column(self):
        assert validate_amount(Decimal("99999999.99")) == MAX_AMOUNT
        with pytest.raises(ValidationError, match="larger than the maximum"):
            validate_amount(Decimal("100000000.00"))

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5.00"), Decimal("1.005"), "abc", Decimal("NaN")])
    def test_invalid_amounts(self, amount):
        with pytest.raises(ValidationError):
            validate_amount(amount)

    def test_check_number_rules(self):
        assert normalize_check_number(DonationType.CHECK, " 456 ") == "456"
        assert normalize_check_number(DonationType.CASH, None) is None
        with pytest.raises(ValidationError, match="required"):
            normalize_check_number(DonationType.CHECK, "")
        with pytest.raises(ValidationError):
            normalize_check_number(DonationType.CASH, "123")


class TestCreateDonation:
    def test_cash_and_check(self, services, filled_batch, member):
        donations = services.ledger.list_by_batch(filled_batch.id)
        checks = [d for d in donations if d.donation_type == DonationType.CHECK]

        assert len(donations) == 3
        assert checks[0].check_number == "456"
        assert checks[0].member_id == member.id
        assert all(d.tenant_id == "grace" for d in donations)

    def test_anonymous_by_default(self, services, open_batch):
        donation_id = services.ledger.create_donation(
            SUNDAY, Decimal("20.00"), "cash", batch_id=open_batch.id
        )
        assert services.ledger.get_donation(donation_id).is_anonymous

    def test_unassigned_donation(self, services):
        donation_id = services.ledger.create_donation(SUNDAY, Decimal("20.00"), "cash", tenant_id="grace")

        unassigned = services.ledger.list_unassigned(tenant_id="grace")

        assert [d.id for d in unassigned] == [donation_id]

    def test_unassigned_requires_church(self, services):
        with pytest.raises(ValidationError):
            services.ledger.create_donation(SUNDAY, Decimal("20.00"), "cash")

    def test_unknown_batch(self, services):
        with pytest.raises(NotFoundError):
            services.ledger.create_donation(SUNDAY, Decimal("20.00"), "cash", batch_id=999)

    def test_unknown_member(self, services, open_batch):
        with pytest.raises(NotFoundError):
            services.ledger.create_donation(SUNDAY, Decimal("20.00"), "cash", member_id=999, batch_id=open_batch.id)

    def test_member_from_other_church(self, services, open_batch):
        outsider = services.members.create_member("Oscar", "Outsider", "hope")
        with pytest.raises(ValidationError):
            services.ledger.create_donation(
                SUNDAY, Decimal("20.00"), "cash", member_id=outsider, batch_id=open_batch.id
            )

    def test_batch_of_other_church(self, services, open_batch):
        with pytest.raises(ValidationError):
            services.ledger.create_donation(
                SUNDAY, Decimal("20.00"), "cash", tenant_id="hope", batch_id=open_batch.id
            )

    def test_invalid_donation_leaves_total_alone(self, services, filled_batch):
        with pytest.raises(ValidationError):
            services.ledger.create_donation(SUNDAY, Decimal("20.00"), "check", batch_id=filled_batch.id)

        assert services.batches.require_batch(filled_batch.id).total_amount == Decimal("245.00")


class TestUpdateDonation:
    def test_update_amount_updates_total(self, services, filled_batch):
        cash = [d for d in services.ledger.list_by_batch(filled_batch.id) if d.amount == Decimal("50.00")][0]

        updated = services.ledger.update_donation(cash.id, amount=Decimal("60.00"))

        assert updated.amount == Decimal("60.00")
        assert services.batches.require_batch(filled_batch.id).total_amount == Decimal("255.00")

    def test_switch_check_to_cash_drops_check_number(self, services, filled_batch):
        check = [d for d in services.ledger.list_by_batch(filled_batch.id) if d.donation_type == DonationType.CHECK][0]

        updated = services.ledger.update_donation(check.id, donation_type="cash")

        assert updated.donation_type == DonationType.CASH
        assert updated.check_number is None
        partition = services.batches.partition(filled_batch.id)
        assert partition.cash_total == Decimal("245.00")
        assert partition.check_total == Decimal("0.00")

    def test_switch_cash_to_check_needs_number(self, services, filled_batch):
        cash = [d for d in services.ledger.list_by_batch(filled_batch.id) if d.donation_type == DonationType.CASH][0]

        with pytest.raises(ValidationError):
            services.ledger.update_donation(cash.id, donation_type="check")

    def test_clear_member(self, services, filled_batch):
        check = [d for d in services.ledger.list_by_batch(filled_batch.id) if d.member_id is not None][0]

        updated = services.ledger.update_donation(check.id, clear_member=True)

        assert updated.member_id is None

    def test_conflicting_flags(self, services, filled_batch, member):
        donation = services.ledger.list_by_batch(filled_batch.id)[0]
        with pytest.raises(ValidationError):
            services.ledger.update_donation(donation.id, member_id=member.id, clear_member=True)
        with pytest.raises(ValidationError):
            services.ledger.update_donation(donation.id, batch_id=filled_batch.id, unassign=True)

    def test_move_between_batches(self, services, filled_batch):
        other_id = services.batches.create_batch(batch_date=SUNDAY, tenant_id="grace", service="Evening")
        cash = [d for d in services.ledger.list_by_batch(filled_batch.id) if d.amount == Decimal("75.00")][0]

        services.ledger.update_donation(cash.id, batch_id=other_id)

        assert services.batches.require_batch(filled_batch.id).total_amount == Decimal("170.00")
        assert services.batches.require_batch(other_id).total_amount == Decimal("75.00")

    def test_unassign(self, services, filled_batch):
        cash = [d for d in services.ledger.list_by_batch(filled_batch.id) if d.amount == Decimal("75.00")][0]

        updated = services.ledger.update_donation(cash.id, unassign=True)

        assert updated.batch_id is None
        assert services.batches.require_batch(filled_batch.id).total_amount == Decimal("170.00")

    def test_cannot_move_into_finalized_batch(self, services, attested_batch):
        services.attestation.confirm_finalization(attested_batch.id, "alice")
        loose = services.ledger.create_donation(SUNDAY, Decimal("20.00"), "cash", tenant_id="grace")

        with pytest.raises(BatchFinalizedError):
            services.ledger.update_donation(loose, batch_id=attested_batch.id)

        assert services.batches.require_batch(attested_batch.id).total_amount == Decimal("245.00")

    def test_unknown_donation(self, services):
        with pytest.raises(NotFoundError):
            services.ledger.update_donation(999, amount=Decimal("1.00"))


class TestFinalizedLock:
    """Donations of a finalized count cannot change in any way."""

    @pytest.fixture
    def finalized(self, services, attested_batch):
        services.attestation.confirm_finalization(attested_batch.id, "alice")
        return services.batches.require_batch(attested_batch.id)

    def test_create_rejected(self, services, finalized):
        with pytest.raises(BatchFinalizedError):
            services.ledger.create_donation(SUNDAY, Decimal("10.00"), "cash", batch_id=finalized.id)

    def test_update_rejected(self, services, finalized):
        donation = services.ledger.list_by_batch(finalized.id)[0]
        with pytest.raises(BatchFinalizedError):
            services.ledger.update_donation(donation.id, amount=Decimal("1.00"))

    def test_move_out_rejected(self, services, finalized):
        donation = services.ledger.list_by_batch(finalized.id)[0]
        with pytest.raises(BatchFinalizedError):
            services.ledger.update_donation(donation.id, unassign=True)

    def test_delete_rejected(self, services, finalized):
        donation = services.ledger.list_by_batch(finalized.id)[0]
        with pytest.raises(BatchFinalizedError):
            services.ledger.delete_donation(donation.id)

    def test_total_unchanged(self, services, finalized):
        for donation in services.ledger.list_by_batch(finalized.id):
            with pytest.raises(BatchFinalizedError):
                services.ledger.delete_donation(donation.id)

        batch = services.batches.require_batch(finalized.id)
        assert batch.total_amount == Decimal("245.00")
        assert services.batches.donation_count(finalized.id) == 3

    def test_database_guard_holds_without_service_check(self, services, finalized):
        """A writer that skipped the service-level check still cannot add to a finalized count."""
        with pytest.raises(BatchFinalizedError):
            services.db.create_donation(
                date=SUNDAY,
                amount=Decimal("10.00"),
                donation_type=DonationType.CASH,
                tenant_id="grace",
                batch_id=finalized.id,
            )
        assert services.batches.donation_count(finalized.id) == 3


class TestDeleteAndList:
    def test_delete_updates_total(self, services, filled_batch):
        check = [d for d in services.ledger.list_by_batch(filled_batch.id) if d.donation_type == DonationType.CHECK][0]

        services.ledger.delete_donation(check.id)

        assert services.ledger.get_donation(check.id) is None
        assert services.batches.require_batch(filled_batch.id).total_amount == Decimal("125.00")

    def test_delete_unknown(self, services):
        with pytest.raises(NotFoundError):
            services.ledger.delete_donation(999)

    def test_list_by_unknown_batch(self, services):
        with pytest.raises(NotFoundError):
            services.ledger.list_by_batch(999)

    def test_lines_carry_contributor_names(self, services, filled_batch):
        lines = services.ledger.list_lines(filled_batch.id)
        by_type = {line.donation.donation_type: line for line in lines}

        assert by_type[DonationType.CHECK].contributor == "Martha Giver"
        assert by_type[DonationType.CASH].contributor == "Anonymous"
