"""Delivery of count reports to their recipients."""

import logging
import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage
from pathlib import Path
from typing import Optional

from platecount.domain.entities import Batch as BatchEntity, ReportRecipient
from platecount.domain.errors import ReportDispatchError
from platecount.domain.reports import RenderedReport, format_money

logger = logging.getLogger(__name__)


class NotificationDispatcher(ABC):
    """Sends a rendered report to a list of recipients.

    Implementations raise ReportDispatchError when delivery fails.
    """

    @abstractmethod
    def dispatch(
        self, batch: BatchEntity, report: RenderedReport, recipients: list[ReportRecipient]
    ) -> None:
        """Deliver the report."""
        ...


def build_report_message(
    batch: BatchEntity,
    report: RenderedReport,
    recipients: list[ReportRecipient],
    sender: str,
) -> EmailMessage:
    """Build the email carrying a count report and its CSV export."""
    message = EmailMessage()
    message["Subject"] = f"Finalized count: {batch.name} ({format_money(batch.total_amount)})"
    message["From"] = sender
    message["To"] = ", ".join(f"{r.display_name} <{r.email}>" for r in recipients)
    message.set_content(
        f"The count \"{batch.name}\" was finalized.\n\n"
        f"Counted by {batch.primary_attestor_name} and verified by "
        f"{batch.secondary_attestor_name}.\n"
        f"Total: {format_money(batch.total_amount)}\n\n"
        "The count sheet and the donation export are attached.\n"
    )
    maintype, _, subtype = report.media_type.partition("/")
    message.add_attachment(
        report.document, maintype=maintype, subtype=subtype or "octet-stream", filename=report.filename
    )
    message.add_attachment(report.csv_text, subtype="csv", filename=report.csv_filename)
    return message


class SMTPNotificationDispatcher(NotificationDispatcher):
    """Sends reports through an SMTP server."""

    def __init__(
        self,
        host: str,
        port: int = 587,
        sender: str = "platecount@localhost",
        username: Optional[str] = None,
        password: Optional[str] = None,
        starttls: bool = True,
        timeout: float = 30.0,
    ):
        self.host = host
        self.port = port
        self.sender = sender
        self.username = username
        self.password = password
        self.starttls = starttls
        self.timeout = timeout

    def dispatch(
        self, batch: BatchEntity, report: RenderedReport, recipients: list[ReportRecipient]
    ) -> None:
        message = build_report_message(batch, report, recipients, self.sender)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.starttls:
                    smtp.starttls()
                if self.username:
                    smtp.login(self.username, self.password or "")
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise ReportDispatchError(f"Could not email the report for count {batch.id}: {e}") from e
        logger.info(
            "Report emailed batch_id=%s recipients=%s host=%s", batch.id, len(recipients), self.host
        )


class OutboxNotificationDispatcher(NotificationDispatcher):
    """Writes each report email as an ``.eml`` file into a directory.

    For deployments without an SMTP relay; another process (or a person)
    picks the files up.
    """

    def __init__(self, outbox_dir: Path | str, sender: str = "platecount@localhost"):
        self.outbox_dir = Path(outbox_dir)
        self.sender = sender

    def dispatch(
        self, batch: BatchEntity, report: RenderedReport, recipients: list[ReportRecipient]
    ) -> None:
        message = build_report_message(batch, report, recipients, self.sender)
        stem = report.filename.rsplit(".", 1)[0]
        try:
            self.outbox_dir.mkdir(parents=True, exist_ok=True)
            path = self.outbox_dir / f"{stem}.eml"
            counter = 1
            while path.exists():
                counter += 1
                path = self.outbox_dir / f"{stem}-{counter}.eml"
            path.write_bytes(message.as_bytes())
        except OSError as e:
            raise ReportDispatchError(f"Could not write the report for count {batch.id}: {e}") from e
        logger.info("Report written to outbox batch_id=%s path=%s", batch.id, path)
