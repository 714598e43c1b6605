"""Tests for report rendering and delivery."""

import email
import smtplib
from datetime import date
from decimal import Decimal

import pytest

from platecount.domain.errors import ReportDispatchError
from platecount.domain.notifications import (
    OutboxNotificationDispatcher,
    SMTPNotificationDispatcher,
    build_report_message,
)
from platecount.domain.reports import CSV_COLUMNS, format_money, render_csv, report_stem


@pytest.fixture
def finalized(services, attested_batch):
    services.attestation.confirm_finalization(attested_batch.id, "alice")
    return services.batches.require_batch(attested_batch.id)


@pytest.fixture
def report(services, finalized):
    return services.finalization.render_report(finalized.id)


def test_format_money():
    assert format_money(Decimal("1234")) == "$1,234.00"
    assert format_money(Decimal("0.5")) == "$0.50"


def test_report_stem(finalized):
    assert report_stem(finalized) == f"count-{finalized.id}-2024-01-07"


class TestCSV:
    def test_columns_and_rows(self, services, finalized):
        csv_text = render_csv(services.finalization.build_report(finalized))
        rows = [line.split(",") for line in csv_text.strip().split("\n")]

        assert rows[0] == CSV_COLUMNS
        assert len(rows) == 4
        check_row = [r for r in rows[1:] if r[2] == "CHECK"][0]
        assert check_row == ["2024-01-07", "Martha Giver", "CHECK", "456", "120.00", ""]

    def test_amounts_sum_to_total(self, services, finalized):
        csv_text = render_csv(services.finalization.build_report(finalized))
        amounts = [Decimal(line.split(",")[4]) for line in csv_text.strip().split("\n")[1:]]

        assert sum(amounts) == finalized.total_amount


class TestTextReport:
    def test_sections(self, report):
        text = report.document.decode("utf-8")

        assert text.startswith("Count Report: Sunday Morning, January 7, 2024")
        assert "Cash (2)" in text
        assert "Checks (1)" in text
        assert "#456" in text
        assert "Status:    FINALIZED" in text
        assert report.media_type == "text/plain"

    def test_empty_section(self, services, users, open_batch):
        services.ledger.create_donation(date(2024, 1, 7), Decimal("20.00"), "cash", batch_id=open_batch.id)
        services.attestation.attest_primary(open_batch.id, "alice", "Alice Usher")
        services.attestation.attest_secondary(open_batch.id, "bob", "Bob Usher")
        services.attestation.confirm_finalization(open_batch.id, "alice")

        text = services.finalization.render_report(open_batch.id).document.decode("utf-8")

        assert "Checks (0)" in text
        assert "(none)" in text


class TestReportMessage:
    def test_message(self, services, finalized, report, recipient):
        recipients = services.recipients.list_recipients("grace")

        message = build_report_message(finalized, report, recipients, "counts@example.org")

        assert message["Subject"] == "Finalized count: Sunday Morning, January 7, 2024 ($245.00)"
        assert message["To"] == "Terry Treasurer <treasurer@example.org>"
        filenames = [part.get_filename() for part in message.iter_attachments()]
        assert filenames == [report.filename, report.csv_filename]


class TestOutbox:
    def test_writes_eml(self, services, finalized, report, recipient, tmp_path):
        dispatcher = OutboxNotificationDispatcher(tmp_path / "outbox")
        recipients = services.recipients.list_recipients("grace")

        dispatcher.dispatch(finalized, report, recipients)
        dispatcher.dispatch(finalized, report, recipients)

        files = sorted(p.name for p in (tmp_path / "outbox").iterdir())
        stem = report_stem(finalized)
        assert files == [f"{stem}-2.eml", f"{stem}.eml"]
        message = email.message_from_bytes((tmp_path / "outbox" / f"{stem}.eml").read_bytes())
        assert "treasurer@example.org" in message["To"]

    def test_unwritable_outbox(self, services, finalized, report, recipient, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        dispatcher = OutboxNotificationDispatcher(blocker / "outbox")

        with pytest.raises(ReportDispatchError):
            dispatcher.dispatch(finalized, report, services.recipients.list_recipients("grace"))


class TestSMTP:
    def test_connection_failure_becomes_dispatch_error(self, services, finalized, report, recipient, monkeypatch):
        def refuse(*args, **kwargs):
            raise ConnectionRefusedError("connection refused")

        monkeypatch.setattr(smtplib, "SMTP", refuse)
        dispatcher = SMTPNotificationDispatcher("smtp.example.org")

        with pytest.raises(ReportDispatchError, match="connection refused"):
            dispatcher.dispatch(finalized, report, services.recipients.list_recipients("grace"))

    def test_sends_message(self, services, finalized, report, recipient, monkeypatch):
        sent = []

        class FakeSMTP:
            def __init__(self, host, port, timeout):
                self.host = host

            def __enter__(self):
                return self

            def __exit__(self, *exc):
                return False

            def starttls(self):
                sent.append("starttls")

            def login(self, username, password):
                sent.append(("login", username))

            def send_message(self, message):
                sent.append(message["To"])

        monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
        dispatcher = SMTPNotificationDispatcher("smtp.example.org", username="counter", password="secret")

        dispatcher.dispatch(finalized, report, services.recipients.list_recipients("grace"))

        assert sent == ["starttls", ("login", "counter"), "Terry Treasurer <treasurer@example.org>"]
