"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from platecount.api import create_app
from platecount.config import Settings


def as_user(user_id):
    return {"X-User-Id": user_id}


ALICE = as_user("alice")
BOB = as_user("bob")
OLGA = as_user("olga")


@pytest.fixture
def client(temp_db, clock, dispatcher, users):
    app = create_app(database=temp_db, settings=Settings(), clock=clock, dispatcher=dispatcher)
    with TestClient(app) as client:
        yield client


def create_count(client, headers=ALICE, **body):
    body.setdefault("date", "2024-01-07")
    body.setdefault("service", "Sunday Morning")
    response = client.post("/api/batches", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def add_donation(client, batch_id, amount="50.00", donation_type="CASH", headers=ALICE, **extra):
    body = {"date": "2024-01-07", "amount": amount, "donationType": donation_type, "batchId": batch_id}
    body.update(extra)
    return client.post("/api/donations", json=body, headers=headers)


@pytest.fixture
def count(client):
    batch = create_count(client)
    add_donation(client, batch["id"], "50.00")
    add_donation(client, batch["id"], "75.00")
    add_donation(client, batch["id"], "120.00", "CHECK", checkNumber="456")
    return batch


def attest_both(client, batch_id):
    response = client.post(f"/api/batches/{batch_id}/attest-primary", json={"signatureName": "Alice Usher"}, headers=ALICE)
    assert response.status_code == 200, response.text
    response = client.post(
        f"/api/batches/{batch_id}/attest-secondary",
        json={"attestorId": "bob", "signatureName": "Bob Usher"},
        headers=BOB,
    )
    assert response.status_code == 200, response.text


class TestAuth:
    def test_health_needs_no_user(self, client):
        assert client.get("/api/health").json()["status"] == "ok"

    def test_missing_header(self, client):
        assert client.get("/api/batches").status_code == 401

    def test_unknown_user(self, client):
        assert client.get("/api/batches", headers=as_user("mallory")).status_code == 401

    def test_other_church_sees_not_found(self, client, count):
        assert client.get(f"/api/batches/{count['id']}", headers=OLGA).status_code == 404
        assert client.get("/api/batches", headers=OLGA).json() == []


class TestBatches:
    def test_create_and_list(self, client):
        batch = create_count(client)

        assert batch["name"] == "Sunday Morning, January 7, 2024"
        assert batch["status"] == "OPEN"
        assert batch["state"] == "OPEN"
        assert batch["totalAmount"] == "0.00"
        assert batch["primaryAttestorId"] is None
        assert [b["id"] for b in client.get("/api/batches", headers=ALICE).json()] == [batch["id"]]

    def test_unknown_field_rejected(self, client):
        response = client.post("/api/batches", json={"date": "2024-01-07", "colour": "red"}, headers=ALICE)
        assert response.status_code == 422

    def test_detail_has_donations_and_partition(self, client, count):
        detail = client.get(f"/api/batches/{count['id']}", headers=ALICE).json()

        assert detail["batch"]["totalAmount"] == "245.00"
        assert detail["partition"]["cashTotal"] == "125.00"
        assert detail["partition"]["checkTotal"] == "120.00"
        assert len(detail["donations"]) == 3
        assert "refreshedAt" in detail

    def test_unknown_batch(self, client):
        response = client.get("/api/batches/999", headers=ALICE)
        assert response.status_code == 404
        assert response.json()["error"] == "NotFoundError"

    def test_bad_status_filter(self, client):
        assert client.get("/api/batches?status=closed", headers=ALICE).status_code == 422

    def test_update(self, client, count):
        response = client.patch(f"/api/batches/{count['id']}", json={"notes": "Two plates"}, headers=ALICE)
        assert response.status_code == 200
        assert response.json()["notes"] == "Two plates"

    def test_delete(self, client, count):
        assert client.delete(f"/api/batches/{count['id']}", headers=ALICE).status_code == 204
        assert client.get(f"/api/batches/{count['id']}", headers=ALICE).status_code == 404

    def test_current_creates_one(self, client):
        current = client.get("/api/batches/current", headers=ALICE).json()
        assert current["date"] == "2024-01-07"
        assert client.get("/api/batches/current", headers=ALICE).json()["id"] == current["id"]

    def test_latest_finalized(self, client, count):
        assert client.get("/api/batches/latest-finalized", headers=ALICE).status_code == 404

        attest_both(client, count["id"])
        client.post(f"/api/batches/{count['id']}/confirm-attestation", headers=ALICE)

        assert client.get("/api/batches/latest-finalized", headers=ALICE).json()["id"] == count["id"]


class TestDonations:
    def test_create(self, client):
        batch = create_count(client)
        response = add_donation(client, batch["id"], "120.00", "check", checkNumber="456")

        assert response.status_code == 201
        body = response.json()
        assert body["donationType"] == "CHECK"
        assert body["checkNumber"] == "456"
        assert body["contributor"] == "Anonymous"

    def test_snake_case_accepted(self, client):
        batch = create_count(client)
        response = client.post(
            "/api/donations",
            json={"date": "2024-01-07", "amount": "20.00", "donation_type": "CASH", "batch_id": batch["id"]},
            headers=ALICE,
        )
        assert response.status_code == 201

    def test_validation_error(self, client):
        batch = create_count(client)
        assert add_donation(client, batch["id"], "-5").status_code == 422
        assert add_donation(client, batch["id"], "10.00", "CHECK").status_code == 422
        assert add_donation(client, batch["id"], "100000000.00").status_code == 422

    def test_update_and_unassign(self, client, count):
        donation = client.get(f"/api/batches/{count['id']}", headers=ALICE).json()["donations"][0]

        response = client.patch(f"/api/donations/{donation['id']}", json={"batchId": None}, headers=ALICE)

        assert response.status_code == 200
        assert response.json()["batchId"] is None
        total = client.get(f"/api/batches/{count['id']}", headers=ALICE).json()["batch"]["totalAmount"]
        assert total != "245.00"

    def test_delete(self, client, count):
        donation = client.get(f"/api/batches/{count['id']}", headers=ALICE).json()["donations"][0]
        assert client.delete(f"/api/donations/{donation['id']}", headers=ALICE).status_code == 204

    def test_other_church_cannot_touch(self, client, count):
        donation = client.get(f"/api/batches/{count['id']}", headers=ALICE).json()["donations"][0]
        assert client.delete(f"/api/donations/{donation['id']}", headers=OLGA).status_code == 404
        assert add_donation(client, count["id"], headers=OLGA).status_code == 404


class TestAttestationFlow:
    def test_empty_count_conflict(self, client):
        batch = create_count(client)
        response = client.post(
            f"/api/batches/{batch['id']}/attest-primary", json={"signatureName": "Alice Usher"}, headers=ALICE
        )
        assert response.status_code == 409
        assert response.json()["error"] == "EmptyBatchError"

    def test_primary_records_actor(self, client, count):
        response = client.post(
            f"/api/batches/{count['id']}/attest-primary", json={"signatureName": "Alice Usher"}, headers=ALICE
        )
        body = response.json()
        assert body["primaryAttestorId"] == "alice"
        assert body["state"] == "PRIMARY_ATTESTED"

    def test_blank_signature(self, client, count):
        response = client.post(f"/api/batches/{count['id']}/attest-primary", json={"signatureName": ""}, headers=ALICE)
        assert response.status_code == 422

    def test_self_attestation(self, client, count):
        client.post(f"/api/batches/{count['id']}/attest-primary", json={"signatureName": "Alice Usher"}, headers=ALICE)
        response = client.post(
            f"/api/batches/{count['id']}/attest-secondary",
            json={"attestorId": "alice", "signatureName": "Alice Usher"},
            headers=ALICE,
        )
        assert response.status_code == 409
        assert response.json()["error"] == "SelfAttestationError"

    def test_unverified_attestor(self, client, count):
        client.post(f"/api/batches/{count['id']}/attest-primary", json={"signatureName": "Alice Usher"}, headers=ALICE)
        response = client.post(
            f"/api/batches/{count['id']}/attest-secondary",
            json={"attestorId": "carol", "signatureName": "Carol Newcomer"},
            headers=ALICE,
        )
        assert response.status_code == 409
        assert response.json()["error"] == "UnverifiedAttestorError"

    def test_eligible_attestors(self, client, count):
        client.post(f"/api/batches/{count['id']}/attest-primary", json={"signatureName": "Alice Usher"}, headers=ALICE)
        users = client.get(f"/api/batches/{count['id']}/eligible-attestors", headers=ALICE).json()
        assert [u["id"] for u in users] == ["bob"]

    def test_confirm_finalizes_and_locks(self, client, count, dispatcher, services, recipient):
        attest_both(client, count["id"])

        response = client.post(f"/api/batches/{count['id']}/confirm-attestation", headers=ALICE)

        body = response.json()
        assert response.status_code == 200
        assert body["transitioned"] is True
        assert body["batch"]["status"] == "FINALIZED"
        assert body["batch"]["attestationConfirmedBy"] == "alice"
        assert body["reportDispatch"] == {"status": "SENT", "recipientCount": 1, "detail": None}
        assert len(dispatcher.sent) == 1

        locked = add_donation(client, count["id"], "10.00")
        assert locked.status_code == 423
        assert locked.json()["error"] == "BatchFinalizedError"
        assert client.get(f"/api/batches/{count['id']}", headers=ALICE).json()["batch"]["totalAmount"] == "245.00"

    def test_confirm_is_idempotent(self, client, count, dispatcher, recipient):
        attest_both(client, count["id"])

        first = client.post(f"/api/batches/{count['id']}/confirm-attestation", headers=ALICE)
        second = client.post(f"/api/batches/{count['id']}/confirm-attestation", headers=BOB)

        assert first.json()["transitioned"] is True
        assert second.status_code == 200
        assert second.json()["transitioned"] is False
        assert second.json()["reportDispatch"]["status"] == "NOT_ATTEMPTED"
        assert len(dispatcher.sent) == 1

    def test_confirm_too_early(self, client, count):
        response = client.post(f"/api/batches/{count['id']}/confirm-attestation", headers=ALICE)
        assert response.status_code == 409

    def test_dispatch_failure_still_finalizes(self, client, count, dispatcher, recipient):
        dispatcher.fail = True
        attest_both(client, count["id"])

        body = client.post(f"/api/batches/{count['id']}/confirm-attestation", headers=ALICE).json()

        assert body["batch"]["status"] == "FINALIZED"
        assert body["reportDispatch"]["status"] == "FAILED"

    def test_events(self, client, count):
        attest_both(client, count["id"])
        events = client.get(f"/api/batches/{count['id']}/events", headers=ALICE).json()
        assert [e["eventType"] for e in events] == ["CREATED", "PRIMARY_ATTESTED", "SECONDARY_ATTESTED"]
        assert events[1]["actorId"] == "alice"


class TestReports:
    def test_report_requires_finalized(self, client, count):
        assert client.get(f"/api/batches/{count['id']}/report", headers=ALICE).status_code == 409

    def test_report_downloads(self, client, count):
        attest_both(client, count["id"])
        client.post(f"/api/batches/{count['id']}/confirm-attestation", headers=ALICE)

        report = client.get(f"/api/batches/{count['id']}/report", headers=ALICE)
        export = client.get(f"/api/batches/{count['id']}/report.csv", headers=ALICE)

        assert report.status_code == 200
        assert report.headers["content-type"].startswith("text/plain")
        assert "Count total:" in report.text
        assert f"count-{count['id']}-2024-01-07.txt" in report.headers["content-disposition"]
        assert export.headers["content-type"].startswith("text/csv")
        assert export.text.startswith("date,contributor,type,check_number,amount,notes")

    def test_resend(self, client, count, dispatcher, recipient):
        attest_both(client, count["id"])
        client.post(f"/api/batches/{count['id']}/confirm-attestation", headers=ALICE)

        response = client.post(f"/api/batches/{count['id']}/report/resend", headers=ALICE)

        assert response.json()["status"] == "SENT"
        assert len(dispatcher.sent) == 2
