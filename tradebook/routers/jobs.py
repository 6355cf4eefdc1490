"""
Job endpoints.

Saving a job always goes through a JobDraft: the form values are applied to
a draft (new, or loaded from the stored job), and the draft's record
replaces every cost and total field on the row.
"""

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user
from ..cost_calculator import compute_breakdown
from ..database import get_db
from ..drafts import JobDraft
from ..repository import CustomerRepository, JobRepository, SettingsRepository

router = APIRouter(prefix="/jobs", tags=["jobs"])


class JobContext:
    """Repositories for the signed-in user."""

    def __init__(self, db: Session, user: models.User):
        self.db = db
        self.jobs = JobRepository(db, user.id)
        self.customers = CustomerRepository(db, user.id)
        self.settings = SettingsRepository(db, user.id)

    def job_or_404(self, job_id: int, with_customer: bool = False) -> models.Job:
        job = self.jobs.get_with_customer(job_id) if with_customer else self.jobs.get(job_id)
        if not job:
            raise HTTPException(status_code=404, detail="Job not found")
        return job

    def check_customer(self, customer_id: int):
        if not self.customers.get(customer_id):
            raise HTTPException(status_code=404, detail="Customer not found")


def get_context(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> JobContext:
    return JobContext(db, current_user)


def _save_record(draft: JobDraft, business) -> dict:
    vat_registered = bool(business and business.vat_registered)
    return draft.to_record(vat_registered)


def _validity_days(business) -> Optional[int]:
    return business.default_quote_validity_days if business else None


@router.post("/breakdown", response_model=schemas.Breakdown)
def preview_breakdown(request: schemas.BreakdownRequest, ctx: JobContext = Depends(get_context)):
    """Live cost breakdown for the edit form. Nothing is stored."""
    vat_registered = request.vat_registered
    if vat_registered is None:
        business = ctx.settings.get()
        vat_registered = bool(business and business.vat_registered)
    return compute_breakdown(
        request.materials_cost,
        request.labour_mode,
        request.labour_days,
        request.labour_day_rate,
        request.labour_fixed_cost,
        request.other_costs,
        vat_registered,
    )


@router.get("/status-counts", response_model=Dict[str, int])
def status_counts(ctx: JobContext = Depends(get_context)):
    return ctx.jobs.status_counts()


@router.post("/", response_model=schemas.Job)
def create_job(payload: schemas.JobWrite, ctx: JobContext = Depends(get_context)):
    ctx.check_customer(payload.customer_id)
    business = ctx.settings.get()

    # New jobs start with the business's default day rate unless one is sent
    draft = JobDraft.new(business, payload.customer_id).update(
        validity_days=_validity_days(business),
        **payload.model_dump(exclude_unset=True),
    )
    return ctx.jobs.add(**_save_record(draft, business))


@router.get("/", response_model=List[schemas.Job])
def list_jobs(status: Optional[models.JobStatus] = None, ctx: JobContext = Depends(get_context)):
    """Newest first, optionally only one status."""
    return ctx.jobs.list(status)


@router.get("/{job_id}", response_model=schemas.Job)
def get_job(job_id: int, ctx: JobContext = Depends(get_context)):
    return ctx.job_or_404(job_id, with_customer=True)


@router.put("/{job_id}", response_model=schemas.Job)
def save_job(job_id: int, payload: schemas.JobWrite, ctx: JobContext = Depends(get_context)):
    """Save the edit form. Cost, labour and total fields are all rewritten."""
    job = ctx.job_or_404(job_id)
    ctx.check_customer(payload.customer_id)
    business = ctx.settings.get()

    draft = JobDraft.from_job(job).update(
        validity_days=_validity_days(business),
        **payload.model_dump(exclude_unset=True),
    )
    return ctx.jobs.replace(job, _save_record(draft, business))


@router.patch("/{job_id}/status", response_model=schemas.Job)
def change_status(job_id: int, update: schemas.StatusUpdate, ctx: JobContext = Depends(get_context)):
    """Set any status — there is no enforced order."""
    job = ctx.job_or_404(job_id)
    return ctx.jobs.replace(job, {"status": update.status})


@router.delete("/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_job(job_id: int, ctx: JobContext = Depends(get_context)):
    ctx.jobs.delete(ctx.job_or_404(job_id))
