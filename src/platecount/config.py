"""Runtime configuration read from the environment.

Every setting has a ``PLATECOUNT_*`` variable; the CLI exposes the most
common ones as options that override the environment.
"""

import os
from pathlib import Path
from typing import Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from platecount.domain.notifications import (
    NotificationDispatcher,
    OutboxNotificationDispatcher,
    SMTPNotificationDispatcher,
)

DEFAULT_TENANT = "default"
DEFAULT_REFRESH_SECONDS = 5.0
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Settings field -> environment variable
ENV_VARS = {
    "database_url": "PLATECOUNT_DATABASE_URL",
    "db_path": "PLATECOUNT_DB_PATH",
    "tenant_id": "PLATECOUNT_TENANT",
    "refresh_seconds": "PLATECOUNT_REFRESH_SECONDS",
    "log_level": "PLATECOUNT_LOG_LEVEL",
    "log_format": "PLATECOUNT_LOG_FORMAT",
    "smtp_host": "PLATECOUNT_SMTP_HOST",
    "smtp_port": "PLATECOUNT_SMTP_PORT",
    "smtp_username": "PLATECOUNT_SMTP_USERNAME",
    "smtp_password": "PLATECOUNT_SMTP_PASSWORD",
    "smtp_sender": "PLATECOUNT_SMTP_FROM",
    "smtp_starttls": "PLATECOUNT_SMTP_STARTTLS",
    "outbox_dir": "PLATECOUNT_OUTBOX_DIR",
}


class Settings(BaseModel):
    """Application settings."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    database_url: Optional[str] = None
    db_path: Optional[str] = None
    tenant_id: str = DEFAULT_TENANT
    refresh_seconds: float = Field(DEFAULT_REFRESH_SECONDS, gt=0)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    log_format: Literal["text", "json"] = "text"
    smtp_host: Optional[str] = None
    smtp_port: int = Field(587, gt=0, lt=65536)
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_sender: str = "platecount@localhost"
    smtp_starttls: bool = True
    outbox_dir: Optional[str] = None

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value):
        return value.strip().upper() if isinstance(value, str) else value

    @field_validator("log_format", mode="before")
    @classmethod
    def _lower_format(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Load settings from environment variables.

        Unset and empty variables keep their defaults.

        Raises:
            ValueError: If a variable holds an unusable value
        """
        env = os.environ if environ is None else environ
        values = {}
        for field, variable in ENV_VARS.items():
            raw = env.get(variable)
            if raw is not None and raw.strip() != "":
                values[field] = raw

        try:
            return cls.model_validate(values)
        except ValidationError as e:
            problems = [
                f"{ENV_VARS.get(str(error['loc'][0]), error['loc'][0])}: {error['msg']}"
                for error in e.errors()
            ]
            raise ValueError("Invalid configuration: " + "; ".join(problems)) from None

    def build_dispatcher(self) -> Optional[NotificationDispatcher]:
        """Report dispatcher for these settings: SMTP, then outbox, else none."""
        if self.smtp_host:
            return SMTPNotificationDispatcher(
                host=self.smtp_host,
                port=self.smtp_port,
                sender=self.smtp_sender,
                username=self.smtp_username,
                password=self.smtp_password,
                starttls=self.smtp_starttls,
            )
        if self.outbox_dir:
            return OutboxNotificationDispatcher(Path(self.outbox_dir).expanduser(), sender=self.smtp_sender)
        return None
