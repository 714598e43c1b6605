"""Member directory domain service.

Directory maintenance and imports live elsewhere; counts only need to add a
contributor now and then and to look names up for display.
"""

from typing import Optional

from platecount.database.base import Database
from platecount.domain.entities import Member as MemberEntity
from platecount.domain.errors import ValidationError


class MemberService:
    """Service for looking up and adding contributors."""

    def __init__(self, db: Database):
        self.db = db

    def create_member(
        self,
        first_name: str,
        last_name: str,
        tenant_id: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> int:
        """Add a member to the directory. Returns member ID."""
        if not first_name.strip() and not last_name.strip():
            raise ValidationError("A member needs a first or last name")
        return self.db.create_member(
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            tenant_id=tenant_id,
            email=email,
            phone=phone,
        )

    def get_member(self, member_id: int) -> Optional[MemberEntity]:
        return self.db.get_member(member_id)

    def list_members(self, tenant_id: Optional[str] = None) -> list[MemberEntity]:
        return self.db.list_members(tenant_id=tenant_id)
