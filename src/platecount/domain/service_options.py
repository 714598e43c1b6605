"""Service option domain service.

A church lists the services it holds (Sunday Morning, Wednesday Night ...)
so counts are named consistently. One option may be the default; it names
the counts created automatically for the current service.
"""

import logging
import re
from typing import Optional

from platecount.database.base import Database
from platecount.domain.entities import ServiceOption
from platecount.domain.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 100
MAX_VALUE_LENGTH = 50

DEFAULT_SERVICE_OPTIONS = [
    ("Sunday Morning", "sunday-morning", True),
    ("Sunday Evening", "sunday-evening", False),
    ("Wednesday Night", "wednesday-night", False),
    ("Special Event", "special-event", False),
]


def slugify(name: str) -> str:
    """Turn a service name into its stored value ("Sunday Morning" -> "sunday-morning")."""
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


class ServiceOptionService:
    """Service for managing the services a church holds."""

    def __init__(self, db: Database):
        """Initialize service option service.

        Args:
            db: Database instance
        """
        self.db = db

    def add_option(
        self,
        name: str,
        tenant_id: str,
        value: Optional[str] = None,
        is_default: bool = False,
    ) -> int:
        """Add a service option.

        Args:
            name: Display name, used in count names
            tenant_id: Owning church
            value: Stable identifier; derived from the name when omitted
            is_default: Make this the church's default service

        Returns:
            Option ID

        Raises:
            ValidationError: If the name or value is empty or too long
            ConflictError: If the church already has an option with that value
        """
        name = name.strip()
        if not name:
            raise ValidationError("Service name cannot be empty")
        if len(name) > MAX_NAME_LENGTH:
            raise ValidationError(f"Service name must be at most {MAX_NAME_LENGTH} characters")
        value = slugify(value if value is not None else name)
        if not value:
            raise ValidationError(f"Cannot derive a service value from '{name}'")
        if len(value) > MAX_VALUE_LENGTH:
            raise ValidationError(f"Service value must be at most {MAX_VALUE_LENGTH} characters")

        option_id = self.db.create_service_option(name, value, tenant_id, is_default=is_default)
        logger.info("Added service option option_id=%s tenant=%s value=%s", option_id, tenant_id, value)
        return option_id

    def list_options(self, tenant_id: str) -> list[ServiceOption]:
        """List a church's service options, the default first."""
        return self.db.list_service_options(tenant_id)

    def remove_option(self, option_id: int) -> None:
        """Remove a service option. Existing counts keep their service label."""
        self.db.delete_service_option(option_id)

    def set_default(self, option_id: int) -> None:
        """Make an option the church's default service."""
        self.db.set_default_service_option(option_id)

    def get_default(self, tenant_id: str) -> Optional[ServiceOption]:
        """Return the church's default service option, if it has one."""
        for option in self.db.list_service_options(tenant_id):
            if option.is_default:
                return option
        return None

    def find(self, tenant_id: str, service: str) -> ServiceOption:
        """Look up an option by name (case-insensitive) or value.

        Raises:
            NotFoundError: If no option matches
        """
        wanted = service.strip().lower()
        for option in self.db.list_service_options(tenant_id):
            if option.name.lower() == wanted or option.value == wanted:
                return option
        raise NotFoundError(f"Service option '{service}' not found")

    def resolve(self, tenant_id: str, service: Optional[str] = None) -> Optional[str]:
        """Return the service label a new count should carry.

        Without a service the church's default is used. A church that has not
        configured any options accepts any label as given.

        Raises:
            ValidationError: If options exist and none matches ``service``
        """
        options = self.db.list_service_options(tenant_id)
        if service is None or not service.strip():
            for option in options:
                if option.is_default:
                    return option.name
            return None
        if not options:
            return service.strip()
        wanted = service.strip().lower()
        for option in options:
            if option.name.lower() == wanted or option.value == wanted:
                return option.name
        names = ", ".join(o.name for o in options)
        raise ValidationError(f"Unknown service '{service.strip()}'. Choose one of: {names}")

    def install_defaults(self, tenant_id: str) -> int:
        """Create the standard service options for a church that has none.

        Returns:
            Number of options created (0 if the church already had options)
        """
        if self.db.list_service_options(tenant_id):
            return 0
        for name, value, is_default in DEFAULT_SERVICE_OPTIONS:
            self.db.create_service_option(name, value, tenant_id, is_default=is_default)
        logger.info("Installed default service options tenant=%s", tenant_id)
        return len(DEFAULT_SERVICE_OPTIONS)
