"""Count reports.

A finalized count produces a report: a human-readable count sheet plus a
row-per-donation CSV export. Rendering is behind ``ReportRenderer`` so a
PDF layout can replace the bundled plain-text sheet without touching the
finalization flow.
"""

import csv
import io
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from platecount.domain.entities import Batch as BatchEntity, BatchPartition, DonationLine, DonationType

CSV_COLUMNS = ["date", "contributor", "type", "check_number", "amount", "notes"]


@dataclass(frozen=True)
class CountReport:
    """Everything a report needs about a count, gathered in one read."""

    batch: BatchEntity
    partition: BatchPartition
    lines: list[DonationLine]
    generated_at: datetime

    @property
    def total(self) -> Decimal:
        return self.batch.total_amount

    @property
    def cash_lines(self) -> list[DonationLine]:
        return [line for line in self.lines if line.donation.donation_type == DonationType.CASH]

    @property
    def check_lines(self) -> list[DonationLine]:
        return [line for line in self.lines if line.donation.donation_type == DonationType.CHECK]


@dataclass(frozen=True)
class RenderedReport:
    """A rendered report document and its tabular export."""

    document: bytes
    media_type: str
    filename: str
    csv_text: str

    @property
    def csv_filename(self) -> str:
        stem = self.filename.rsplit(".", 1)[0]
        return f"{stem}.csv"


class ReportRenderer(ABC):
    """Turns a CountReport into a document."""

    @abstractmethod
    def render(self, report: CountReport) -> RenderedReport:
        """Render a report."""
        ...


def report_stem(batch: BatchEntity) -> str:
    """File name stem for a count's report, e.g. ``count-12-2024-01-07``."""
    return f"count-{batch.id}-{batch.date.isoformat()}"


def format_money(amount: Decimal) -> str:
    return f"${amount:,.2f}"


def _format_timestamp(value: Optional[datetime]) -> str:
    if value is None:
        return "-"
    return value.strftime("%Y-%m-%d %H:%M %Z").strip()


def render_csv(report: CountReport) -> str:
    """Row-per-donation CSV export of a count."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for line in report.lines:
        donation = line.donation
        writer.writerow(
            [
                donation.date.isoformat(),
                line.contributor,
                donation.donation_type.value,
                donation.check_number or "",
                f"{donation.amount:.2f}",
                donation.notes or "",
            ]
        )
    return buffer.getvalue()


class TextReportRenderer(ReportRenderer):
    """Plain-text count sheet, suitable for printing or an email body."""

    media_type = "text/plain"

    def render(self, report: CountReport) -> RenderedReport:
        text = self.render_text(report)
        return RenderedReport(
            document=text.encode("utf-8"),
            media_type=self.media_type,
            filename=f"{report_stem(report.batch)}.txt",
            csv_text=render_csv(report),
        )

    def render_text(self, report: CountReport) -> str:
        batch = report.batch
        out = [
            f"Count Report: {batch.name}",
            "=" * 60,
            f"Date:      {batch.date.isoformat()}",
        ]
        if batch.service:
            out.append(f"Service:   {batch.service}")
        out.append(f"Status:    {batch.status.value}")
        out.append("")

        for title, lines in (("Cash", report.cash_lines), ("Checks", report.check_lines)):
            out.append(f"{title} ({len(lines)})")
            out.append("-" * 60)
            if not lines:
                out.append("  (none)")
            for line in lines:
                donation = line.donation
                check = f"#{donation.check_number}" if donation.check_number else ""
                out.append(
                    f"  {donation.date.isoformat()}  {line.contributor[:28]:<28} {check:<8} "
                    f"{format_money(donation.amount):>12}"
                )
            out.append("")

        out.append(f"Cash total:   {format_money(report.partition.cash_total):>14}")
        out.append(f"Check total:  {format_money(report.partition.check_total):>14}")
        out.append(f"Count total:  {format_money(report.total):>14}")
        out.append("")
        out.append("Attestation")
        out.append("-" * 60)
        out.append(
            f"  Counted by:   {batch.primary_attestor_name or '-'}  "
            f"({_format_timestamp(batch.primary_attestation_date)})"
        )
        out.append(
            f"  Verified by:  {batch.secondary_attestor_name or '-'}  "
            f"({_format_timestamp(batch.secondary_attestation_date)})"
        )
        out.append(f"  Finalized:    {_format_timestamp(batch.attestation_confirmation_date)}")
        out.append("")
        out.append(f"Generated {_format_timestamp(report.generated_at)}")
        return "\n".join(out) + "\n"
