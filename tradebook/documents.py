"""
Quote and invoice generation.

Ties the composer and renderer to stored jobs:
- quote generation first stamps the quote date/expiry and moves draft or
  quoting jobs to "quoted", persisting that before the document is built
- invoice generation only reads the job
- the business logo is optional; a missing or broken file falls back to
  the business name in the header
- one generation per job at a time
"""

import logging
import os
import re
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from io import BytesIO
from typing import Optional

from PIL import Image as PILImage
from sqlalchemy.orm import Session

from . import models
from .document_composer import (
    DocumentGenerationError,
    Logo,
    compose_invoice,
    compose_quote,
)
from .pdf_renderer import FpdfTextMetrics, render_pdf

logger = logging.getLogger(__name__)

DEFAULT_QUOTE_VALIDITY_DAYS = 30
QUOTE_PENDING_STATUSES = (models.JobStatus.DRAFT, models.JobStatus.QUOTING)


@dataclass
class GeneratedDocument:
    filename: str
    content: bytes
    media_type: str = "application/pdf"


class GenerationInProgress(Exception):
    """A document for this job is already being generated."""


class GenerationGuard:
    """Job ids with a generation running. Overlapping requests are refused."""

    def __init__(self):
        self._lock = threading.Lock()
        self._active = set()

    def acquire(self, job_id: int):
        with self._lock:
            if job_id in self._active:
                raise GenerationInProgress(f"Job {job_id} is already generating a document")
            self._active.add(job_id)

    def release(self, job_id: int):
        with self._lock:
            self._active.discard(job_id)

    def is_active(self, job_id: int) -> bool:
        with self._lock:
            return job_id in self._active


generation_guard = GenerationGuard()


def load_logo(path: Optional[str]) -> Optional[Logo]:
    """Read and measure the logo image. Returns None (and logs) if unusable."""
    if not path:
        return None
    try:
        with open(path, "rb") as f:
            data = f.read()
        with PILImage.open(BytesIO(data)) as img:
            img.verify()
        with PILImage.open(BytesIO(data)) as img:
            width, height = img.size
    except (OSError, ValueError) as e:
        logger.warning("Logo unavailable at %s, using business name instead: %s", path, e)
        return None
    if not width or not height:
        logger.warning("Logo at %s has no size, using business name instead", path)
        return None
    return Logo(data=data, width_px=width, height_px=height)


def prepare_quote(job, settings, now: datetime) -> dict:
    """
    Field updates to apply to `job` before its quote is generated.

    Empty when the job already has a quote date and is past draft/quoting.
    Otherwise the quote date is kept (or set to `now`), the expiry is the
    quote date plus the configured validity window, and draft/quoting jobs
    move to "quoted".
    """
    pending = job.status in QUOTE_PENDING_STATUSES
    if job.quote_date and not pending:
        return {}

    validity_days = DEFAULT_QUOTE_VALIDITY_DAYS
    if settings is not None and settings.default_quote_validity_days:
        validity_days = settings.default_quote_validity_days

    quote_date = job.quote_date or now
    updates = {
        "quote_date": quote_date,
        "quote_valid_until": quote_date + timedelta(days=validity_days),
    }
    if pending:
        updates["status"] = models.JobStatus.QUOTED
    return updates


_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/"\r\n]')


def document_filename(kind: str, job) -> str:
    """Quote-<invoice number or job id>-<customer name>.pdf"""
    prefix = "Quote" if kind == "quote" else "Invoice"
    reference = job.invoice_number or job.id
    customer_name = _UNSAFE_FILENAME_CHARS.sub("", job.customer.name)
    return f"{prefix}-{reference}-{customer_name}.pdf"


def generate_quote(db: Session, job: models.Job, settings, logo: Optional[Logo] = None) -> GeneratedDocument:
    """
    Stamp the quote fields on `job`, commit them, then build the quote PDF.

    The job update is kept even if rendering fails afterwards.
    """
    updates = prepare_quote(job, settings, datetime.utcnow())
    if updates:
        previous_status = job.status
        for field, value in updates.items():
            setattr(job, field, value)
        db.commit()
        db.refresh(job)
        if job.status != previous_status:
            logger.info("Job %s moved from %s to %s on quote generation",
                        job.id, previous_status.value, job.status.value)

    return _build("quote", job, settings, logo)


def generate_invoice(job: models.Job, settings, logo: Optional[Logo] = None) -> GeneratedDocument:
    """Build the invoice PDF for `job` as stored."""
    return _build("invoice", job, settings, logo)


def _build(kind: str, job, settings, logo) -> GeneratedDocument:
    compose = compose_quote if kind == "quote" else compose_invoice
    document = compose(job, settings, FpdfTextMetrics(), logo)
    try:
        content = render_pdf(document)
    except Exception as e:
        if logo is None:
            raise DocumentGenerationError(f"Could not render {kind} for job {job.id}: {e}") from e
        # The logo passed Pillow but fpdf2 could not embed it
        logger.warning("Logo could not be drawn on %s for job %s, using business name instead: %s",
                       kind, job.id, e)
        return _build(kind, job, settings, None)
    return GeneratedDocument(filename=document_filename(kind, job), content=content)


def default_logo_path(configured: str) -> str:
    """Relative logo paths are resolved against the repository root."""
    if os.path.isabs(configured):
        return configured
    return os.path.join(os.path.dirname(__file__), "..", configured)
