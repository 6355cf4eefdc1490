"""
Quote / invoice generation tests — quote stamping, filenames, the
per-job generation guard and logo loading.
"""

from datetime import datetime, timedelta

import pytest
from PIL import Image as PILImage

from tradebook import models
from tradebook.document_composer import DocumentGenerationError, Logo
from tradebook.documents import (
    GenerationGuard,
    GenerationInProgress,
    default_logo_path,
    document_filename,
    generate_invoice,
    generate_quote,
    load_logo,
    prepare_quote,
)

from conftest import make_customer, make_job, make_settings

NOW = datetime(2026, 10, 17, 10, 30)


# --- prepare_quote ---

@pytest.mark.parametrize("status", [models.JobStatus.DRAFT, models.JobStatus.QUOTING])
def test_first_quote_stamps_dates_and_status(status):
    updates = prepare_quote(make_job(status=status), make_settings(), NOW)
    assert updates == {
        "quote_date": NOW,
        "quote_valid_until": NOW + timedelta(days=30),
        "status": models.JobStatus.QUOTED,
    }


def test_validity_window_from_settings():
    updates = prepare_quote(make_job(), make_settings(default_quote_validity_days=14), NOW)
    assert updates["quote_valid_until"] == NOW + timedelta(days=14)


def test_validity_window_defaults_without_settings():
    updates = prepare_quote(make_job(), None, NOW)
    assert updates["quote_valid_until"] == NOW + timedelta(days=30)


def test_requote_of_pending_job_keeps_quote_date():
    quoted_on = datetime(2026, 9, 1, 8, 0)
    updates = prepare_quote(make_job(status=models.JobStatus.QUOTING, quote_date=quoted_on), make_settings(), NOW)
    assert updates["quote_date"] == quoted_on
    assert updates["quote_valid_until"] == quoted_on + timedelta(days=30)
    assert updates["status"] == models.JobStatus.QUOTED


def test_accepted_job_with_quote_date_is_untouched():
    job = make_job(status=models.JobStatus.ACCEPTED, quote_date=datetime(2026, 9, 1))
    assert prepare_quote(job, make_settings(), NOW) == {}


def test_later_status_without_quote_date_gets_dates_but_keeps_status():
    job = make_job(status=models.JobStatus.COMPLETE)
    updates = prepare_quote(job, make_settings(), NOW)
    assert updates["quote_date"] == NOW
    assert "status" not in updates


# --- Filenames ---

def test_quote_filename_uses_job_id():
    assert document_filename("quote", make_job()) == "Quote-42-Jane Smith.pdf"


def test_invoice_filename_prefers_invoice_number():
    assert document_filename("invoice", make_job(invoice_number=1007)) == "Invoice-1007-Jane Smith.pdf"


def test_filename_strips_header_breaking_characters():
    job = make_job(customer=make_customer(name='A/B "Builders"\r\nLtd'))
    assert document_filename("quote", job) == "Quote-42-AB BuildersLtd.pdf"


# --- Generation guard ---

def test_guard_refuses_overlapping_generation():
    guard = GenerationGuard()
    guard.acquire(1)
    assert guard.is_active(1)
    with pytest.raises(GenerationInProgress):
        guard.acquire(1)
    guard.acquire(2)
    guard.release(1)
    assert not guard.is_active(1)
    guard.acquire(1)


def test_guard_release_is_idempotent():
    guard = GenerationGuard()
    guard.release(5)
    assert not guard.is_active(5)


# --- Logo ---

def test_load_logo_measures_image(tmp_path):
    path = tmp_path / "logo.png"
    PILImage.new("RGB", (400, 100), (0, 0, 0)).save(path)
    logo = load_logo(str(path))
    assert (logo.width_px, logo.height_px) == (400, 100)
    assert logo.data == path.read_bytes()


def test_missing_logo_is_none(tmp_path, caplog):
    assert load_logo(str(tmp_path / "missing.png")) is None
    assert "Logo unavailable" in caplog.text


def test_corrupt_logo_is_none(tmp_path):
    path = tmp_path / "logo.png"
    path.write_bytes(b"definitely not an image")
    assert load_logo(str(path)) is None


def test_no_logo_path():
    assert load_logo("") is None
    assert load_logo(None) is None


def test_relative_logo_path_resolved_from_repo_root():
    assert default_logo_path("/srv/logo.png") == "/srv/logo.png"
    assert default_logo_path("static/logo.png").endswith("static/logo.png")


# --- Generation against the data store ---

def _stored_job(db, **overrides):
    user = models.User(email="gen@test.test", password_hash="x")
    db.add(user)
    db.commit()
    customer = models.Customer(user_id=user.id, name="Jane Smith", address="12 High St")
    db.add(customer)
    db.commit()
    fields = {
        "user_id": user.id,
        "customer_id": customer.id,
        "title": "Kitchen refit",
        "status": models.JobStatus.DRAFT,
        "materials_cost": 100.0,
        "labour_cost": 300.0,
        "subtotal": 400.0,
        "vat_amount": 0.0,
        "total": 400.0,
    }
    fields.update(overrides)
    job = models.Job(**fields)
    db.add(job)
    db.commit()
    db.refresh(job)
    return job


def test_generate_quote_persists_before_building(db):
    job = _stored_job(db)
    document = generate_quote(db, job, None)

    assert document.content.startswith(b"%PDF-")
    assert document.filename == f"Quote-{job.id}-Jane Smith.pdf"
    assert document.media_type == "application/pdf"

    db.expire_all()
    stored = db.get(models.Job, job.id)
    assert stored.status == models.JobStatus.QUOTED
    assert stored.quote_date is not None
    assert stored.quote_valid_until - stored.quote_date == timedelta(days=30)


def test_generate_quote_leaves_accepted_job_alone(db):
    quoted_on = datetime(2026, 9, 1, 9, 0)
    job = _stored_job(db, status=models.JobStatus.ACCEPTED, quote_date=quoted_on)
    generate_quote(db, job, None)

    db.expire_all()
    stored = db.get(models.Job, job.id)
    assert stored.status == models.JobStatus.ACCEPTED
    assert stored.quote_date == quoted_on
    assert stored.quote_valid_until is None


def test_generate_invoice_is_read_only(db):
    job = _stored_job(db, invoice_number=88)
    document = generate_invoice(job, None)

    assert document.filename == "Invoice-88-Jane Smith.pdf"
    assert document.content.startswith(b"%PDF-")
    db.expire_all()
    stored = db.get(models.Job, job.id)
    assert stored.status == models.JobStatus.DRAFT
    assert stored.quote_date is None


def test_undrawable_logo_falls_back_to_business_name(caplog):
    job = make_job(invoice_number=5)
    broken = Logo(data=b"passes a header check, not an image", width_px=300, height_px=100)

    document = generate_invoice(job, make_settings(), broken)

    assert document.content.startswith(b"%PDF-")
    assert b"/Subtype /Image" not in document.content
    assert "Logo could not be drawn" in caplog.text


def test_render_failure_without_logo_is_an_error(monkeypatch):
    def failing_render(document):
        raise RuntimeError("disk full")

    monkeypatch.setattr("tradebook.documents.render_pdf", failing_render)
    with pytest.raises(DocumentGenerationError):
        generate_invoice(make_job(), make_settings(), None)
