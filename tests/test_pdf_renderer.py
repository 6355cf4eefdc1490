"""
PDF renderer tests — bytes out of composed documents, logo drawing,
and the text metrics used for wrapping.
"""

from io import BytesIO

import pytest
from PIL import Image as PILImage

from tradebook.document_composer import (
    Document,
    Logo,
    Page,
    TextRun,
    compose_invoice,
    compose_quote,
)
from tradebook.pdf_renderer import _safe, render_pdf

from conftest import make_customer, make_job, make_settings


def _png(width=300, height=100):
    buf = BytesIO()
    PILImage.new("RGB", (width, height), (200, 30, 30)).save(buf, format="PNG")
    return buf.getvalue()


def test_quote_renders_to_pdf(metrics):
    content = render_pdf(compose_quote(make_job(), make_settings(), metrics))
    assert content.startswith(b"%PDF-")
    assert len(content) > 1000


def test_invoice_renders_to_pdf(metrics):
    content = render_pdf(compose_invoice(make_job(invoice_number=12), make_settings(), metrics))
    assert content.startswith(b"%PDF-")


def test_logo_is_embedded(metrics):
    logo = Logo(data=_png(), width_px=300, height_px=100)
    without_logo = render_pdf(compose_quote(make_job(), make_settings(), metrics))
    with_logo = render_pdf(compose_quote(make_job(), make_settings(), metrics, logo=logo))
    assert b"/Subtype /Image" in with_logo
    assert b"/Subtype /Image" not in without_logo


def test_multi_page_document(metrics):
    address = "\n".join(f"Line {i}" for i in range(80))
    document = compose_quote(make_job(customer=make_customer(address=address)), make_settings(), metrics)
    content = render_pdf(document)
    assert len(document.pages) >= 2
    assert content.startswith(b"%PDF-")


def test_unicode_text_is_rendered_safely():
    document = Document(kind="quote", pages=[Page(ops=[
        TextRun(20, 20, "Fit “new” boiler — ASAP • 日本", 12),
    ])])
    assert render_pdf(document).startswith(b"%PDF-")


def test_unknown_primitive_rejected():
    document = Document(kind="quote", pages=[Page(ops=[object()])])
    with pytest.raises(TypeError):
        render_pdf(document)


def test_safe_replaces_typographic_characters():
    assert _safe("A — B – C • “D” ‘E’") == 'A  -  B - C - "D" \'E\''
    assert _safe("£540.00") == "£540.00"
    assert _safe("") == ""
    assert _safe(None) == ""


# --- Text metrics ---

def test_split_keeps_short_text_on_one_line(metrics):
    assert metrics.split_to_width("Boiler service", 170, 12) == ["Boiler service"]


def test_split_breaks_on_newlines(metrics):
    assert metrics.split_to_width("one\n\ntwo", 170, 12) == ["one", "", "two"]


def test_split_respects_width(metrics):
    text = " ".join(["replace"] * 40)
    lines = metrics.split_to_width(text, 60, 10)
    assert len(lines) > 1
    assert all(metrics.string_width(line, 10) <= 60 for line in lines)
    assert " ".join(lines) == text


def test_split_breaks_overlong_words(metrics):
    word = "x" * 200
    lines = metrics.split_to_width(word, 40, 10)
    assert len(lines) > 1
    assert "".join(lines) == word
    assert all(metrics.string_width(line, 10) <= 40 for line in lines)


def test_bold_text_is_wider(metrics):
    assert metrics.string_width("TOTAL DUE:", 14, "B") > metrics.string_width("TOTAL DUE:", 14)
