"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested batch, donation or other entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class InvalidStateError(DomainError):
    """Attestation transition attempted out of order or twice."""


class EmptyBatchError(DomainError):
    """Attestation attempted on a count with no donations."""


class SelfAttestationError(DomainError):
    """Secondary attestor is the same person as the primary attestor."""


class UnverifiedAttestorError(DomainError):
    """Secondary attestor is not eligible to attest."""


class BatchFinalizedError(DomainError):
    """Mutation attempted against a finalized count or its donations."""


class ReportDispatchError(DomainError):
    """Report rendering or delivery failed. Never fatal to finalization."""


def batch_not_found(batch_id: int) -> str:
    """Return message for missing batch."""
    return f"Count {batch_id} not found"


def donation_not_found(donation_id: int) -> str:
    """Return message for missing donation."""
    return f"Donation {donation_id} not found"


def member_not_found(member_id: int) -> str:
    """Return message for missing member."""
    return f"Member {member_id} not found"


def user_not_found(user_id: str) -> str:
    """Return message for missing user."""
    return f"User '{user_id}' not found"


def batch_finalized(batch_id: int) -> str:
    """Return message when a finalized count is the target of a mutation."""
    return f"Count {batch_id} is finalized and permanently locked; it cannot be changed"


def empty_batch(batch_id: int) -> str:
    """Return message when attesting a count without donations."""
    return f"Count {batch_id} has no donations yet; add donations before attesting"


def self_attestation() -> str:
    """Return message when the primary attestor tries to attest twice."""
    return "The primary attestor cannot also be the second attestor; select a different second attestor"


def unverified_attestor(user_id: str) -> str:
    """Return message for an ineligible second attestor."""
    return (
        f"User '{user_id}' is not a verified user of this church; "
        "select a different second attestor"
    )
