"""
Quote / invoice downloads and cover messages.

GET /api/jobs/{job_id}/quote.pdf   — stamps quote date/expiry/status first
GET /api/jobs/{job_id}/invoice.pdf — read-only
GET /api/jobs/{job_id}/messages/{kind}
"""

import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from .. import schemas
from ..config import settings as app_settings
from ..document_composer import DocumentGenerationError
from ..documents import (
    GenerationInProgress,
    default_logo_path,
    generate_invoice,
    generate_quote,
    generation_guard,
    load_logo,
)
from ..messages import invoice_message, quote_message
from .jobs import JobContext, get_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["documents"])


def _job_with_customer(ctx: JobContext, job_id: int):
    job = ctx.job_or_404(job_id, with_customer=True)
    if job.customer is None:
        raise HTTPException(status_code=404, detail="Customer not found for this job")
    return job


def _content_disposition(filename: str) -> str:
    """ASCII filename for old clients, the exact UTF-8 name for the rest."""
    fallback = filename.encode("ascii", "ignore").decode("ascii")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


def _download(ctx: JobContext, job_id: int, kind: str) -> Response:
    job = _job_with_customer(ctx, job_id)
    business = ctx.settings.get()

    try:
        generation_guard.acquire(job.id)
    except GenerationInProgress:
        raise HTTPException(status_code=409, detail=f"A document for job {job.id} is already being generated")

    try:
        logo = load_logo(default_logo_path(app_settings.LOGO_PATH))
        if kind == "quote":
            document = generate_quote(ctx.db, job, business, logo)
        else:
            document = generate_invoice(job, business, logo)
    except DocumentGenerationError:
        logger.exception("Failed to generate %s for job %s", kind, job.id)
        raise HTTPException(status_code=500, detail=f"Failed to generate {kind} PDF")
    finally:
        generation_guard.release(job.id)

    return Response(
        content=document.content,
        media_type=document.media_type,
        headers={
            "Content-Disposition": _content_disposition(document.filename),
        },
    )


@router.get("/{job_id}/quote.pdf")
def download_quote(job_id: int, ctx: JobContext = Depends(get_context)):
    return _download(ctx, job_id, "quote")


@router.get("/{job_id}/invoice.pdf")
def download_invoice(job_id: int, ctx: JobContext = Depends(get_context)):
    return _download(ctx, job_id, "invoice")


@router.get("/{job_id}/messages/quote", response_model=schemas.Message)
def get_quote_message(job_id: int, ctx: JobContext = Depends(get_context)):
    job = _job_with_customer(ctx, job_id)
    return {"message": quote_message(job, ctx.settings.get())}


@router.get("/{job_id}/messages/invoice", response_model=schemas.Message)
def get_invoice_message(job_id: int, ctx: JobContext = Depends(get_context)):
    job = _job_with_customer(ctx, job_id)
    return {"message": invoice_message(job, ctx.settings.get())}
