"""Report recipient domain service."""

import re

from platecount.database.base import Database
from platecount.domain.entities import ReportRecipient as ReportRecipientEntity
from platecount.domain.errors import ConflictError, ValidationError

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class RecipientService:
    """Service for managing who receives finalized count reports."""

    def __init__(self, db: Database):
        """Initialize recipient service.

        Args:
            db: Database instance
        """
        self.db = db

    def add_recipient(self, first_name: str, last_name: str, email: str, tenant_id: str) -> int:
        """Add a report recipient.

        Returns:
            Recipient ID

        Raises:
            ValidationError: If the email address is malformed
            ConflictError: If the church already sends reports to that address
        """
        email = email.strip()
        if not EMAIL_RE.match(email):
            raise ValidationError(f"Invalid email address '{email}'")
        for existing in self.db.list_report_recipients(tenant_id):
            if existing.email.lower() == email.lower():
                raise ConflictError(f"'{email}' already receives count reports")
        return self.db.create_report_recipient(
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            email=email,
            tenant_id=tenant_id,
        )

    def list_recipients(self, tenant_id: str) -> list[ReportRecipientEntity]:
        """List report recipients of a church."""
        return self.db.list_report_recipients(tenant_id)

    def remove_recipient(self, recipient_id: int) -> None:
        """Remove a report recipient."""
        self.db.delete_report_recipient(recipient_id)
