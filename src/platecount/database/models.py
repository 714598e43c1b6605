"""SQLAlchemy models for the platecount database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    Index,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(UTC)


class User(Base):
    """System user (usher, treasurer) who can attest counts."""

    __tablename__ = "users"

    id = Column(String, primary_key=True)
    display_name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    tenant_id = Column(String, nullable=False, index=True)
    verified = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


class Member(Base):
    """Church directory member."""

    __tablename__ = "members"

    id = Column(Integer, primary_key=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    tenant_id = Column(String, nullable=False, index=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    donations = relationship("Donation", back_populates="member")


class Batch(Base):
    """Count model. Attestation sub-states live in the nullable attestor columns."""

    __tablename__ = "batches"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    date = Column(Date, nullable=False)
    service = Column(String(100), nullable=True)
    status = Column(String(20), default="OPEN", nullable=False)
    total_amount = Column(Numeric(10, 2), default=0, nullable=False)
    notes = Column(Text, nullable=True)
    tenant_id = Column(String, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, nullable=False)

    primary_attestor_id = Column(String, ForeignKey("users.id"), nullable=True)
    primary_attestor_name = Column(String, nullable=True)
    primary_attestation_date = Column(DateTime, nullable=True)
    secondary_attestor_id = Column(String, ForeignKey("users.id"), nullable=True)
    secondary_attestor_name = Column(String, nullable=True)
    secondary_attestation_date = Column(DateTime, nullable=True)
    attestation_confirmed_by = Column(String, ForeignKey("users.id"), nullable=True)
    attestation_confirmation_date = Column(DateTime, nullable=True)

    __table_args__ = (Index("ix_batches_tenant_status", "tenant_id", "status"),)

    # Relationships
    donations = relationship("Donation", back_populates="batch")


class Donation(Base):
    """Donation model."""

    __tablename__ = "donations"

    id = Column(Integer, primary_key=True)
    date = Column(Date, nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    donation_type = Column(String(10), nullable=False)
    check_number = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)
    member_id = Column(Integer, ForeignKey("members.id"), nullable=True)
    batch_id = Column(Integer, ForeignKey("batches.id"), nullable=True, index=True)
    tenant_id = Column(String, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    batch = relationship("Batch", back_populates="donations")
    member = relationship("Member", back_populates="donations")


class ReportRecipient(Base):
    """Configured recipient of finalized count reports."""

    __tablename__ = "report_recipients"

    id = Column(Integer, primary_key=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    tenant_id = Column(String, nullable=False, index=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


class ServiceOption(Base):
    """A service the church holds, e.g. Sunday Morning. Counts are named after one."""

    __tablename__ = "service_options"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    value = Column(String(50), nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)
    tenant_id = Column(String, nullable=False, index=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, nullable=False)

    __table_args__ = (UniqueConstraint("tenant_id", "value", name="uq_service_options_tenant_value"),)


class BatchEvent(Base):
    """Append-only audit log of count lifecycle events.

    batch_id carries no foreign key; entries outlive deleted counts.
    """

    __tablename__ = "batch_events"

    id = Column(Integer, primary_key=True)
    batch_id = Column(Integer, nullable=False, index=True)
    event_type = Column(String(40), nullable=False)
    actor_id = Column(String, nullable=True)
    detail = Column(Text, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Sessions are handed to request threads by the HTTP layer
        connect_args["check_same_thread"] = False
    engine = create_engine(database_url, echo=False, connect_args=connect_args)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
