"""Finalization coordinator.

Confirming a count is two things with very different guarantees: the
FINALIZED transition, which must either happen or fail cleanly, and the
report fan-out, which is best-effort. This module runs the transition
through the attestation state machine and then, only when that very call
caused the transition, renders the report and hands it to the dispatcher.
A dispatch failure is logged, written to the audit log and returned in the
outcome; the count stays finalized.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from platecount.database.base import Database
from platecount.domain.attestation import AttestationService
from platecount.domain.clock import Clock, SystemClock
from platecount.domain.entities import Batch as BatchEntity, BatchEventType
from platecount.domain.errors import (
    InvalidStateError,
    NotFoundError,
    ReportDispatchError,
    batch_not_found,
)
from platecount.domain.ledger import DonationLedger
from platecount.domain.notifications import NotificationDispatcher
from platecount.domain.reports import CountReport, RenderedReport, ReportRenderer, TextReportRenderer

logger = logging.getLogger(__name__)


class DispatchStatus(str, Enum):
    SENT = "SENT"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"
    NOT_ATTEMPTED = "NOT_ATTEMPTED"


@dataclass(frozen=True)
class DispatchOutcome:
    status: DispatchStatus
    recipient_count: int = 0
    detail: Optional[str] = None


@dataclass(frozen=True)
class FinalizationOutcome:
    """Result of confirming a count.

    ``transitioned`` is True only for the call that finalized the count; a
    retried or concurrent confirm gets False and NOT_ATTEMPTED dispatch.
    """

    batch: BatchEntity
    transitioned: bool
    dispatch: DispatchOutcome


class FinalizationCoordinator:
    """Runs the finalize transition and the report side effects that follow it."""

    def __init__(
        self,
        db: Database,
        attestation: AttestationService,
        ledger: Optional[DonationLedger] = None,
        renderer: Optional[ReportRenderer] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
        clock: Optional[Clock] = None,
    ):
        """Initialize finalization coordinator.

        Args:
            db: Database instance
            attestation: State machine that performs the FINALIZED transition
            ledger: Ledger used to read the count's donation lines
            renderer: Report renderer; plain text when omitted
            dispatcher: Report delivery; reports are not sent when omitted
            clock: Source of report timestamps
        """
        self.db = db
        self.attestation = attestation
        self.ledger = ledger or DonationLedger(db)
        self.renderer = renderer or TextReportRenderer()
        self.dispatcher = dispatcher
        self.clock = clock or SystemClock()

    def confirm(self, batch_id: int, actor_id: str) -> FinalizationOutcome:
        """Finalize a fully attested count and send its report.

        Safe to retry: a count that is already finalized is returned as-is
        and no second report goes out.

        Raises:
            NotFoundError: If the count does not exist
            InvalidStateError: If the count lacks one of its two attestations
        """
        result = self.attestation.confirm_finalization(batch_id, actor_id)
        if not result.transitioned:
            return FinalizationOutcome(
                batch=result.batch,
                transitioned=False,
                dispatch=DispatchOutcome(DispatchStatus.NOT_ATTEMPTED),
            )
        dispatch = self._dispatch(result.batch, actor_id)
        return FinalizationOutcome(batch=result.batch, transitioned=True, dispatch=dispatch)

    def build_report(self, batch: BatchEntity) -> CountReport:
        """Gather a count, its partition and its donation lines."""
        return CountReport(
            batch=batch,
            partition=self.db.get_batch_partition(batch.id),
            lines=self.ledger.list_lines(batch.id),
            generated_at=self.clock.now(),
        )

    def _require_finalized(self, batch_id: int) -> BatchEntity:
        batch = self.db.get_batch(batch_id)
        if batch is None:
            raise NotFoundError(batch_not_found(batch_id))
        if not batch.is_finalized:
            raise InvalidStateError(
                f"Count {batch_id} is not finalized yet; reports are issued for finalized counts"
            )
        return batch

    def render_report(self, batch_id: int) -> RenderedReport:
        """Render the report of a finalized count. Read-only and repeatable.

        Raises:
            NotFoundError: If the count does not exist
            InvalidStateError: If the count is not finalized
        """
        batch = self._require_finalized(batch_id)
        return self.renderer.render(self.build_report(batch))

    def resend_report(self, batch_id: int, actor_id: Optional[str] = None) -> DispatchOutcome:
        """Send the report of a finalized count again, e.g. after a failed dispatch.

        Raises:
            NotFoundError: If the count does not exist
            InvalidStateError: If the count is not finalized
        """
        batch = self._require_finalized(batch_id)
        return self._dispatch(batch, actor_id)

    def _dispatch(self, batch: BatchEntity, actor_id: Optional[str]) -> DispatchOutcome:
        recipients = self.db.list_report_recipients(batch.tenant_id)
        if not recipients:
            logger.info("No report recipients configured, report not sent batch_id=%s", batch.id)
            return DispatchOutcome(DispatchStatus.SKIPPED, detail="No report recipients configured")
        if self.dispatcher is None:
            logger.warning("No report dispatcher configured, report not sent batch_id=%s", batch.id)
            return DispatchOutcome(DispatchStatus.SKIPPED, detail="Report delivery is not configured")

        try:
            report = self.renderer.render(self.build_report(batch))
            self.dispatcher.dispatch(batch, report, recipients)
        except ReportDispatchError as e:
            logger.warning("Report dispatch failed batch_id=%s: %s", batch.id, e)
            return self._failed(batch, actor_id, str(e))
        except Exception as e:
            logger.exception("Unexpected error sending report batch_id=%s", batch.id)
            return self._failed(batch, actor_id, f"Unexpected error sending the report: {e}")

        self.db.record_batch_event(
            batch.id,
            BatchEventType.REPORT_DISPATCHED,
            actor_id=actor_id,
            detail=", ".join(r.email for r in recipients),
        )
        logger.info("Report sent batch_id=%s recipients=%s", batch.id, len(recipients))
        return DispatchOutcome(DispatchStatus.SENT, recipient_count=len(recipients))

    def _failed(self, batch: BatchEntity, actor_id: Optional[str], detail: str) -> DispatchOutcome:
        self.db.record_batch_event(
            batch.id, BatchEventType.REPORT_DISPATCH_FAILED, actor_id=actor_id, detail=detail
        )
        return DispatchOutcome(DispatchStatus.FAILED, detail=detail)
