"""Count attestation state machine.

A count moves through four states::

    Open -> PrimaryAttested -> SecondaryAttested -> Finalized

Only ``status`` (OPEN/FINALIZED) is stored; the two middle states are read
off the nullable attestor columns. ``attestation_state`` turns a stored row
into exactly one of the state classes below and refuses combinations that
cannot arise through the transitions, so every transition works from a
known state.

Each transition is written as one conditional update whose WHERE clause
repeats the precondition, and the audit event is stored in the same
transaction. The reads beforehand only choose the error message; when two
ushers race, the database decides and the loser is told the count has
moved on.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import ClassVar, Optional, Union

from platecount.database.base import Database
from platecount.domain.changes import ChangeFeed
from platecount.domain.clock import Clock, SystemClock
from platecount.domain.entities import Batch as BatchEntity
from platecount.domain.errors import (
    EmptyBatchError,
    InvalidStateError,
    NotFoundError,
    SelfAttestationError,
    UnverifiedAttestorError,
    ValidationError,
    batch_not_found,
    empty_batch,
    self_attestation,
    unverified_attestor,
)
from platecount.domain.users import UserDirectory

logger = logging.getLogger(__name__)

MAX_SIGNATURE_LENGTH = 120


@dataclass(frozen=True)
class Attestation:
    """A recorded claim by a named, identified person that the count is right."""

    attestor_id: str
    attestor_name: str
    attested_at: Optional[datetime]


@dataclass(frozen=True)
class Open:
    name: ClassVar[str] = "OPEN"


@dataclass(frozen=True)
class PrimaryAttested:
    primary: Attestation

    name: ClassVar[str] = "PRIMARY_ATTESTED"


@dataclass(frozen=True)
class SecondaryAttested:
    primary: Attestation
    secondary: Attestation

    name: ClassVar[str] = "SECONDARY_ATTESTED"


@dataclass(frozen=True)
class Finalized:
    primary: Attestation
    secondary: Attestation
    confirmed_by: Optional[str]
    confirmed_at: Optional[datetime]

    name: ClassVar[str] = "FINALIZED"


AttestationState = Union[Open, PrimaryAttested, SecondaryAttested, Finalized]


def _attestation(attestor_id, attestor_name, attested_at) -> Optional[Attestation]:
    if attestor_id is None:
        return None
    return Attestation(attestor_id=attestor_id, attestor_name=attestor_name or "", attested_at=attested_at)


def attestation_state(batch: BatchEntity) -> AttestationState:
    """Derive the attestation state of a stored count.

    Raises:
        InvalidStateError: If the stored columns describe an impossible count
    """
    primary = _attestation(
        batch.primary_attestor_id, batch.primary_attestor_name, batch.primary_attestation_date
    )
    secondary = _attestation(
        batch.secondary_attestor_id, batch.secondary_attestor_name, batch.secondary_attestation_date
    )

    if secondary is not None and primary is None:
        raise InvalidStateError(f"Count {batch.id} has a second attestation without a first")
    if primary is not None and secondary is not None and primary.attestor_id == secondary.attestor_id:
        raise InvalidStateError(f"Count {batch.id} was attested twice by the same person")

    if batch.is_finalized:
        if primary is None or secondary is None:
            raise InvalidStateError(f"Count {batch.id} is finalized without two attestations")
        return Finalized(
            primary=primary,
            secondary=secondary,
            confirmed_by=batch.attestation_confirmed_by,
            confirmed_at=batch.attestation_confirmation_date,
        )

    if batch.attestation_confirmation_date is not None:
        raise InvalidStateError(f"Count {batch.id} has a confirmation date but is not finalized")
    if secondary is not None:
        return SecondaryAttested(primary=primary, secondary=secondary)
    if primary is not None:
        return PrimaryAttested(primary=primary)
    return Open()


@dataclass(frozen=True)
class FinalizationResult:
    """Outcome of a confirm call.

    ``transitioned`` is True only for the call that moved the count to
    FINALIZED; a repeated or losing concurrent call gets False.
    """

    batch: BatchEntity
    transitioned: bool


def _signature(signature_name: str) -> str:
    signature_name = (signature_name or "").strip()
    if not signature_name:
        raise ValidationError("Please type your name to sign the attestation")
    if len(signature_name) > MAX_SIGNATURE_LENGTH:
        raise ValidationError(f"Signature is longer than {MAX_SIGNATURE_LENGTH} characters")
    return signature_name


class AttestationService:
    """The only component that records attestations and finalizes counts."""

    def __init__(
        self,
        db: Database,
        users: Optional[UserDirectory] = None,
        changes: Optional[ChangeFeed] = None,
        clock: Optional[Clock] = None,
    ):
        """Initialize attestation service.

        Args:
            db: Database instance
            users: Directory used to check second-attestor eligibility
            changes: Optional feed notified after every committed transition
            clock: Source of attestation timestamps
        """
        self.db = db
        self.users = users or UserDirectory(db)
        self.changes = changes
        self.clock = clock or SystemClock()

    def _changed(self, batch_id: int) -> None:
        if self.changes is not None:
            self.changes.publish(batch_id)

    def _require_batch(self, batch_id: int) -> BatchEntity:
        batch = self.db.get_batch(batch_id)
        if batch is None:
            raise NotFoundError(batch_not_found(batch_id))
        return batch

    def state(self, batch_id: int) -> AttestationState:
        """Current attestation state of a count."""
        return attestation_state(self._require_batch(batch_id))

    def attest_primary(self, batch_id: int, actor_id: str, signature_name: str) -> BatchEntity:
        """Record the first attestation, by the user performing the action.

        Raises:
            NotFoundError: If the count does not exist
            InvalidStateError: If the count is finalized or already has a primary attestor
            EmptyBatchError: If the count has no donations
            ValidationError: If the signature is blank
        """
        signature_name = _signature(signature_name)
        batch = self._require_batch(batch_id)
        state = attestation_state(batch)
        if isinstance(state, Finalized):
            raise InvalidStateError(f"Count {batch_id} is already finalized")
        if not isinstance(state, Open):
            raise InvalidStateError(
                f"Count {batch_id} was already attested by {state.primary.attestor_name}"
            )
        if self.db.count_batch_donations(batch_id) == 0:
            raise EmptyBatchError(empty_batch(batch_id))

        attested = self.db.set_primary_attestation(
            batch_id, actor_id, signature_name, self.clock.now()
        )
        if not attested:
            self._raise_lost_primary(batch_id)

        logger.info("Primary attestation batch_id=%s attestor=%s", batch_id, actor_id)
        self._changed(batch_id)
        return self._require_batch(batch_id)

    def _raise_lost_primary(self, batch_id: int) -> None:
        batch = self._require_batch(batch_id)
        state = attestation_state(batch)
        if isinstance(state, Open) and self.db.count_batch_donations(batch_id) == 0:
            raise EmptyBatchError(empty_batch(batch_id))
        if isinstance(state, Finalized):
            raise InvalidStateError(f"Count {batch_id} is already finalized")
        logger.warning("Primary attestation lost a race batch_id=%s", batch_id)
        raise InvalidStateError(f"Count {batch_id} was attested by someone else in the meantime")

    def attest_secondary(self, batch_id: int, attestor_id: str, signature_name: str) -> BatchEntity:
        """Record the second attestation.

        The second attestor must be a different, verified user of the same
        church, so that no single usher can certify a count alone.

        Raises:
            NotFoundError: If the count does not exist
            InvalidStateError: If there is no primary attestation yet, a second
                one already exists, or the count is finalized
            SelfAttestationError: If the attestor is the primary attestor
            UnverifiedAttestorError: If the attestor is unknown, unverified or
                from another church
            ValidationError: If the signature is blank
        """
        signature_name = _signature(signature_name)
        batch = self._require_batch(batch_id)
        state = attestation_state(batch)
        if isinstance(state, Finalized):
            raise InvalidStateError(f"Count {batch_id} is already finalized")
        if isinstance(state, Open):
            raise InvalidStateError(f"Count {batch_id} needs a primary attestation first")
        if isinstance(state, SecondaryAttested):
            raise InvalidStateError(
                f"Count {batch_id} was already attested by {state.secondary.attestor_name}"
            )
        if attestor_id == state.primary.attestor_id:
            raise SelfAttestationError(self_attestation())
        attestor = self.users.get_user(attestor_id)
        if not self.users.is_eligible_secondary(attestor, batch):
            raise UnverifiedAttestorError(unverified_attestor(attestor_id))

        attested = self.db.set_secondary_attestation(
            batch_id, attestor_id, signature_name, self.clock.now()
        )
        if not attested:
            latest = self._require_batch(batch_id)
            logger.warning("Secondary attestation lost a race batch_id=%s", batch_id)
            if latest.is_finalized:
                raise InvalidStateError(f"Count {batch_id} is already finalized")
            raise InvalidStateError(
                f"Count {batch_id} was attested by {latest.secondary_attestor_name} in the meantime"
            )

        logger.info("Secondary attestation batch_id=%s attestor=%s", batch_id, attestor_id)
        self._changed(batch_id)
        return self._require_batch(batch_id)

    def confirm_finalization(self, batch_id: int, actor_id: str) -> FinalizationResult:
        """Finalize a fully attested count.

        Idempotent: confirming a count that is already finalized succeeds
        without doing anything, and reports ``transitioned=False``.

        Raises:
            NotFoundError: If the count does not exist
            InvalidStateError: If the count lacks one of its two attestations
        """
        batch = self._require_batch(batch_id)
        state = attestation_state(batch)
        if isinstance(state, Finalized):
            logger.info("Count already finalized, nothing to do batch_id=%s", batch_id)
            return FinalizationResult(batch=batch, transitioned=False)
        if not isinstance(state, SecondaryAttested):
            raise InvalidStateError(
                f"Count {batch_id} needs two attestations before it can be finalized"
            )

        finalized = self.db.finalize_batch(batch_id, actor_id, self.clock.now())
        latest = self._require_batch(batch_id)
        if not finalized:
            if latest.is_finalized:
                logger.info("Count finalized by a concurrent call batch_id=%s", batch_id)
                return FinalizationResult(batch=latest, transitioned=False)
            raise InvalidStateError(f"Count {batch_id} can no longer be finalized")

        logger.info(
            "Count finalized batch_id=%s total=%s confirmed_by=%s",
            batch_id,
            latest.total_amount,
            actor_id,
        )
        self._changed(batch_id)
        return FinalizationResult(batch=latest, transitioned=True)
