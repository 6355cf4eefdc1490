"""
Job edit drafts.

A JobDraft is the immutable value behind the job edit form. Every field
change produces a new draft; nothing is mutated in place. Saving turns the
draft into the full set of persisted job fields, computed totals included.
"""

from dataclasses import dataclass, fields, replace
from datetime import date, datetime
from typing import Optional, Union

from .cost_calculator import (
    Amount,
    CostBreakdown,
    compute_breakdown,
    default_day_rate_for_new_job,
    derive_quote_valid_until,
    parse_amount_or_zero,
    resolve_labour_mode,
)
from .models import JobStatus, LabourMode

DateValue = Union[date, datetime, None]


def _or_none(value: float) -> Optional[float]:
    """Zero amounts are stored as NULL."""
    return value or None


@dataclass(frozen=True)
class JobDraft:
    customer_id: Optional[int] = None
    title: str = ""
    description: Optional[str] = None
    notes: Optional[str] = None
    status: JobStatus = JobStatus.DRAFT
    job_address: Optional[str] = None

    # Dates
    quote_date: DateValue = None
    quote_valid_until: DateValue = None
    start_date: DateValue = None
    end_date: DateValue = None
    invoice_date: DateValue = None
    paid_date: DateValue = None

    # Materials
    materials_cost: Amount = None
    materials_notes: Optional[str] = None

    # Labour
    labour_mode: LabourMode = LabourMode.DAYS
    labour_days: Amount = None
    labour_day_rate: Amount = None
    labour_fixed_cost: Amount = None

    # Other
    other_costs: Amount = None
    other_costs_notes: Optional[str] = None

    # Invoice
    invoice_number: Optional[int] = None
    payment_reference: Optional[str] = None

    @classmethod
    def new(cls, settings=None, customer_id: Optional[int] = None) -> "JobDraft":
        """Blank draft for a new job, day rate pre-filled from settings."""
        return cls(
            customer_id=customer_id,
            labour_day_rate=default_day_rate_for_new_job(settings),
        )

    @classmethod
    def from_job(cls, job) -> "JobDraft":
        """Draft for editing a stored job."""
        mode = resolve_labour_mode(job.labour_mode, job.labour_days, job.labour_day_rate)
        return cls(
            customer_id=job.customer_id,
            title=job.title or "",
            description=job.description,
            notes=job.notes,
            status=job.status or JobStatus.DRAFT,
            job_address=job.job_address,
            quote_date=job.quote_date,
            quote_valid_until=job.quote_valid_until,
            start_date=job.start_date,
            end_date=job.end_date,
            invoice_date=job.invoice_date,
            paid_date=job.paid_date,
            materials_cost=job.materials_cost,
            materials_notes=job.materials_notes,
            labour_mode=mode,
            labour_days=job.labour_days,
            labour_day_rate=job.labour_day_rate,
            labour_fixed_cost=job.labour_cost if mode == LabourMode.FIXED else None,
            other_costs=job.other_costs,
            other_costs_notes=job.other_costs_notes,
            invoice_number=job.invoice_number,
            payment_reference=job.payment_reference,
        )

    def update(self, validity_days: Optional[int] = None, **changes) -> "JobDraft":
        """
        Return a new draft with `changes` applied.

        A changed quote_date fills an empty quote_valid_until with
        quote_date + validity_days. Unknown field names raise TypeError.
        """
        draft = replace(self, **changes)
        if "quote_date" in changes and changes["quote_date"] != self.quote_date:
            draft = replace(
                draft,
                quote_valid_until=derive_quote_valid_until(
                    draft.quote_date, draft.quote_valid_until, validity_days,
                ),
            )
        return draft

    def breakdown(self, vat_registered: bool) -> CostBreakdown:
        return compute_breakdown(
            self.materials_cost,
            self.labour_mode,
            self.labour_days,
            self.labour_day_rate,
            self.labour_fixed_cost,
            self.other_costs,
            vat_registered,
        )

    def to_record(self, vat_registered: bool) -> dict:
        """
        Every persisted job field for a save.

        Fields belonging to the labour mode not in use are cleared, and the
        computed totals are always replaced.
        """
        costs = self.breakdown(vat_registered)
        days_mode = LabourMode(self.labour_mode) == LabourMode.DAYS

        record = {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name not in _COMPUTED_INPUTS
        }
        record.update(
            materials_cost=_or_none(costs.materials_total),
            labour_mode=LabourMode(self.labour_mode),
            labour_days=_or_none(parse_amount_or_zero(self.labour_days)) if days_mode else None,
            labour_day_rate=_or_none(parse_amount_or_zero(self.labour_day_rate)) if days_mode else None,
            labour_cost=_or_none(costs.labour_total),
            other_costs=_or_none(costs.other_total),
            subtotal=costs.subtotal,
            vat_amount=costs.vat_amount,
            total=costs.total,
        )
        return record


# Raw form inputs that are replaced by parsed or computed values on save
_COMPUTED_INPUTS = {
    "materials_cost",
    "labour_mode",
    "labour_days",
    "labour_day_rate",
    "labour_fixed_cost",
    "other_costs",
}
