"""User directory: the identities that act on and attest counts."""

import logging
from typing import Optional

from platecount.database.base import Database
from platecount.domain.entities import Batch as BatchEntity, User as UserEntity
from platecount.domain.errors import NotFoundError, ValidationError, user_not_found

logger = logging.getLogger(__name__)


class UserDirectory:
    """Service for managing users and their attestor eligibility."""

    def __init__(self, db: Database):
        """Initialize user directory.

        Args:
            db: Database instance
        """
        self.db = db

    def create_user(
        self,
        user_id: str,
        display_name: str,
        tenant_id: str,
        email: Optional[str] = None,
        verified: bool = False,
    ) -> str:
        """Create a user.

        Returns:
            User ID

        Raises:
            ValidationError: If the ID or name is blank
            ConflictError: If the ID is taken
        """
        if not user_id or not user_id.strip():
            raise ValidationError("User ID cannot be empty")
        if not display_name or not display_name.strip():
            raise ValidationError("Display name cannot be empty")
        return self.db.create_user(
            user_id=user_id.strip(),
            display_name=display_name.strip(),
            tenant_id=tenant_id,
            email=email,
            verified=verified,
        )

    def get_user(self, user_id: str) -> Optional[UserEntity]:
        """Get user by ID."""
        return self.db.get_user(user_id)

    def require_user(self, user_id: str) -> UserEntity:
        """Get user by ID or raise NotFoundError."""
        user = self.db.get_user(user_id)
        if user is None:
            raise NotFoundError(user_not_found(user_id))
        return user

    def set_verified(self, user_id: str, verified: bool = True) -> None:
        """Mark a user as (un)verified for second attestations."""
        self.db.set_user_verified(user_id, verified)
        logger.info("User verification changed user_id=%s verified=%s", user_id, verified)

    def list_users(self, tenant_id: Optional[str] = None, verified_only: bool = False) -> list[UserEntity]:
        """List users of a church."""
        return self.db.list_users(tenant_id=tenant_id, verified_only=verified_only)

    def is_eligible_secondary(self, user: Optional[UserEntity], batch: BatchEntity) -> bool:
        """A second attestor must be a verified user of the count's church, other than the primary."""
        return (
            user is not None
            and user.verified
            and user.tenant_id == batch.tenant_id
            and user.id != batch.primary_attestor_id
        )

    def eligible_secondary_attestors(self, batch: BatchEntity) -> list[UserEntity]:
        """List the users who could give the second attestation for a count."""
        candidates = self.db.list_users(tenant_id=batch.tenant_id, verified_only=True)
        return [u for u in candidates if self.is_eligible_secondary(u, batch)]
