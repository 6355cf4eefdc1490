"""
Document Composer — quote and invoice layouts.

Turns a job (with its customer and stored totals) plus the business
settings into a Document: pages of drawing primitives positioned on an A4
page in millimetres. Nothing here touches the database or produces bytes;
pdf_renderer.render_pdf() does the drawing.

Both document kinds share one page system and one set of primitives so they
look the same. They differ on purpose:
- quotes print the job location, per-line notes and the labour day rate
- invoices print the invoice number/date and the bank details instead
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional, Tuple

from .cost_calculator import format_money

logger = logging.getLogger(__name__)

# --- Page system (mm, origin top-left, text on its baseline) ---
PAGE_WIDTH = 210.0
PAGE_HEIGHT = 297.0
MARGIN_X = 20.0
CONTENT_RIGHT = 190.0
CONTENT_WIDTH = CONTENT_RIGHT - MARGIN_X
LABEL_X = 25.0
AMOUNT_X = 185.0
AMOUNT_HEADER_X = 160.0
NOTES_X = 30.0
DESCRIPTION_WRAP = 170.0
NOTES_WRAP = 140.0
BOTTOM_LIMIT = 277.0
CONTINUATION_TOP = 20.0

# --- Header band ---
HEADER_HEIGHT = 50.0
GRADIENT_STEPS = 15
LOGO_X = 20.0
LOGO_Y = 15.0
LOGO_WIDTH = 60.0

BLACK = (0, 0, 0)
WHITE = (255, 255, 255)
MUTED = (100, 100, 100)
SHADE = (240, 240, 240)

QUOTE_VALIDITY_DAYS_PHRASE = 30
QUOTE_TERMS = "Payment terms and conditions apply upon acceptance."
INVOICE_THANKS = "Thank you for your business!"

Color = Tuple[int, int, int]


class DocumentGenerationError(Exception):
    """Composing or rendering a document failed; nothing should be delivered."""


# --- Drawing primitives ---

@dataclass(frozen=True)
class FillRect:
    x: float
    y: float
    width: float
    height: float
    color: Color


@dataclass(frozen=True)
class Line:
    x1: float
    y1: float
    x2: float
    y2: float
    color: Color = BLACK


@dataclass(frozen=True)
class TextRun:
    x: float
    y: float
    text: str
    size: float
    style: str = ""  # "", "B" or "I"
    color: Color = BLACK
    align: str = "left"  # "left" | "center" | "right"
    tag: Optional[str] = None


@dataclass(frozen=True)
class Image:
    x: float
    y: float
    width: float
    height: float
    data: bytes


@dataclass
class Page:
    ops: list = field(default_factory=list)


@dataclass
class Document:
    kind: str  # "quote" | "invoice"
    pages: List[Page] = field(default_factory=list)

    def text_runs(self) -> List[TextRun]:
        return [op for page in self.pages for op in page.ops if isinstance(op, TextRun)]

    def text_lines(self) -> List[str]:
        """Every text run's text, in drawing order."""
        return [run.text for run in self.text_runs()]

    def amount(self, tag: str) -> Optional[float]:
        """Read back a printed amount ("£540.00" -> 540.0) by its tag."""
        for run in self.text_runs():
            if run.tag == tag:
                return float(run.text.lstrip("£").replace(",", ""))
        return None


@dataclass(frozen=True)
class Logo:
    data: bytes
    width_px: int
    height_px: int

    def height_for(self, width_mm: float) -> float:
        """Height that keeps the image's aspect ratio at `width_mm` wide."""
        return width_mm * self.height_px / self.width_px


# --- Formatting helpers ---

def format_date(value) -> str:
    """dd/mm/yyyy for dates, datetimes and ISO strings."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if isinstance(value, (date, datetime)):
        return value.strftime("%d/%m/%Y")
    return str(value)


def format_quantity(value: float) -> str:
    """2.0 -> "2", 2.5 -> "2.5"."""
    return f"{float(value):g}"


def split_lines(text: Optional[str]) -> List[str]:
    """Split on newlines only — blank lines stay as empty rows."""
    if not text:
        return []
    return text.split("\n")


# --- Layout state ---

class _Canvas:
    """Current page and vertical position while laying out a document."""

    def __init__(self, metrics):
        self.metrics = metrics
        self.pages = [Page()]
        self.y = LOGO_Y

    def _check_page(self):
        if self.y > BOTTOM_LIMIT:
            self.pages.append(Page())
            self.y = CONTINUATION_TOP

    def move(self, dy: float):
        self.y += dy

    def draw(self, op):
        self.pages[-1].ops.append(op)

    def text(self, x, text, size, style="", color=BLACK, align="left", tag=None):
        self._check_page()
        self.draw(TextRun(x, self.y, text, size, style, color, align, tag))

    def band(self, x, dy, width, height, color):
        """Filled rectangle positioned relative to the current line."""
        self._check_page()
        self.draw(FillRect(x, self.y + dy, width, height, color))

    def rule(self, x1, x2, color=BLACK):
        self._check_page()
        self.draw(Line(x1, self.y, x2, self.y, color))

    def text_block(self, x, lines, size, style="", color=BLACK, pitch=5.0):
        """Draw lines `pitch` mm apart and move below them."""
        for line in lines:
            self.text(x, line, size, style, color)
            self.move(pitch)

    def wrapped(self, x, text, width, size, style="", color=BLACK, pitch=5.0) -> int:
        lines = self.metrics.split_to_width(text, width, size, style)
        self.text_block(x, lines, size, style, color, pitch)
        return len(lines)


# --- Shared sections ---

def _draw_header(canvas: _Canvas, settings, logo: Optional[Logo]):
    canvas.draw(FillRect(0, 0, PAGE_WIDTH, HEADER_HEIGHT, BLACK))
    for i in range(GRADIENT_STEPS):
        gray = int(i / GRADIENT_STEPS * 255)
        canvas.draw(FillRect(0, HEADER_HEIGHT + i, PAGE_WIDTH, 1, (gray, gray, gray)))

    if logo is not None:
        canvas.draw(Image(LOGO_X, canvas.y, LOGO_WIDTH, logo.height_for(LOGO_WIDTH), logo.data))
        canvas.move(50)
    else:
        name = (settings.business_name if settings else None) or "Business Name"
        canvas.text(LOGO_X, name, 20, "B", WHITE)
        canvas.move(10)


def _draw_title(canvas: _Canvas, title: str):
    canvas.move(15)
    canvas.text(PAGE_WIDTH / 2, title, 24, "B", align="center")


def _draw_customer(canvas: _Canvas, label: str, customer):
    canvas.text(MARGIN_X, label, 12, "B")
    canvas.move(7)
    canvas.text(MARGIN_X, customer.name, 12)
    for line in split_lines(customer.address):
        canvas.move(5)
        canvas.text(MARGIN_X, line, 12)


def _draw_description(canvas: _Canvas, description: Optional[str], gap: float):
    if not description:
        return
    canvas.move(gap)
    canvas.wrapped(MARGIN_X, description, DESCRIPTION_WRAP, 12)


def _draw_table_header(canvas: _Canvas, heading: str):
    canvas.text(MARGIN_X, heading, 14, "B")
    canvas.move(10)
    canvas.band(MARGIN_X, -5, CONTENT_WIDTH, 8, SHADE)
    canvas.text(LABEL_X, "Item", 10, "B")
    canvas.text(AMOUNT_HEADER_X, "Amount", 10, "B", align="right")
    canvas.move(10)


def _draw_cost_row(canvas: _Canvas, label: str, amount: float, tag: str):
    canvas.text(LABEL_X, label, 10)
    canvas.text(AMOUNT_X, format_money(amount), 10, align="right", tag=tag)


def _draw_row_note(canvas: _Canvas, notes: Optional[str]):
    if not notes:
        return
    canvas.wrapped(NOTES_X, notes, NOTES_WRAP, 8, color=MUTED, pitch=4.0)


def _draw_totals(canvas: _Canvas, job, total_label: str, total_size: float):
    canvas.move(5)
    canvas.rule(MARGIN_X, CONTENT_RIGHT)
    canvas.move(8)
    canvas.text(LABEL_X, "Subtotal:", 10, "B")
    canvas.text(AMOUNT_X, format_money(job.subtotal), 10, "B", align="right", tag="subtotal")

    if job.vat_amount and job.vat_amount > 0:
        canvas.move(7)
        canvas.text(LABEL_X, "VAT (20%):", 10)
        canvas.text(AMOUNT_X, format_money(job.vat_amount), 10, align="right", tag="vat")

    canvas.move(10)
    canvas.band(MARGIN_X, -5, CONTENT_WIDTH, 10, SHADE)
    canvas.text(LABEL_X, total_label, total_size, "B")
    canvas.text(AMOUNT_X, format_money(job.total), total_size, "B", align="right", tag="total")


def _vat_number_line(settings) -> Optional[str]:
    if settings is not None and settings.vat_registered and settings.vat_number:
        return f"VAT Registration Number: {settings.vat_number}"
    return None


def _positive(value) -> bool:
    return bool(value) and value > 0


# --- Document kinds ---

def compose_quote(job, settings, metrics, logo: Optional[Logo] = None) -> Document:
    """
    Lay out the QUOTATION document for `job`.

    `job.customer` must be loaded. Totals are printed as stored on the job.
    Raises DocumentGenerationError on anything unexpected.
    """
    try:
        return _compose_quote(job, settings, metrics, logo)
    except DocumentGenerationError:
        raise
    except Exception as e:
        raise DocumentGenerationError(f"Could not compose quote for job {job.id}: {e}") from e


def _compose_quote(job, settings, metrics, logo) -> Document:
    customer = _require_customer(job)
    canvas = _Canvas(metrics)
    _draw_header(canvas, settings, logo)
    _draw_title(canvas, "QUOTATION")

    canvas.move(15)
    _draw_customer(canvas, "Customer:", customer)

    # Job
    canvas.move(10)
    canvas.text(MARGIN_X, "Job:", 12, "B")
    canvas.move(7)
    canvas.text(MARGIN_X, job.title, 12)
    _draw_description(canvas, job.description, 7)

    if job.job_address:
        canvas.move(7)
        canvas.text(MARGIN_X, "Location:", 12, "B")
        canvas.move(5)
        for line in split_lines(job.job_address):
            canvas.move(5)
            canvas.text(MARGIN_X, line, 12)

    canvas.move(10)
    if job.quote_date:
        canvas.text(MARGIN_X, f"Quote Date: {format_date(job.quote_date)}", 12)
        canvas.move(5)

    # Cost breakdown with per-line notes
    canvas.move(10)
    _draw_table_header(canvas, "Cost Breakdown")

    if _positive(job.materials_cost):
        _draw_cost_row(canvas, "Materials", job.materials_cost, "materials")
        canvas.move(6)
        _draw_row_note(canvas, job.materials_notes)

    if _positive(job.labour_cost):
        canvas.move(3)
        _draw_cost_row(canvas, "Labour", job.labour_cost, "labour")
        canvas.move(6)
        if job.labour_days and job.labour_day_rate:
            caption = (
                f"{format_quantity(job.labour_days)} days @ "
                f"{format_money(job.labour_day_rate)}/day"
            )
            canvas.text(NOTES_X, caption, 8, color=MUTED)
            canvas.move(4)

    if _positive(job.other_costs):
        canvas.move(3)
        _draw_cost_row(canvas, "Other Costs", job.other_costs, "other")
        canvas.move(6)
        _draw_row_note(canvas, job.other_costs_notes)

    _draw_totals(canvas, job, "TOTAL:", 12)

    # Trailer
    vat_line = _vat_number_line(settings)
    if vat_line:
        canvas.move(15)
        canvas.text(MARGIN_X, vat_line, 8)

    canvas.move(10)
    if job.quote_date:
        canvas.text(
            MARGIN_X,
            f"Valid for {QUOTE_VALIDITY_DAYS_PHRASE} days from {format_date(job.quote_date)}",
            9, "I",
        )
        canvas.move(5)
    canvas.text(MARGIN_X, QUOTE_TERMS, 9, "I")

    return Document(kind="quote", pages=canvas.pages)


def compose_invoice(job, settings, metrics, logo: Optional[Logo] = None) -> Document:
    """
    Lay out the INVOICE document for `job`.

    Reads the job exactly as stored. Raises DocumentGenerationError on
    anything unexpected.
    """
    try:
        return _compose_invoice(job, settings, metrics, logo)
    except DocumentGenerationError:
        raise
    except Exception as e:
        raise DocumentGenerationError(f"Could not compose invoice for job {job.id}: {e}") from e


def _compose_invoice(job, settings, metrics, logo) -> Document:
    customer = _require_customer(job)
    canvas = _Canvas(metrics)
    _draw_header(canvas, settings, logo)
    _draw_title(canvas, "INVOICE")

    canvas.move(10)
    if job.invoice_number:
        canvas.text(PAGE_WIDTH / 2, f"Invoice #{job.invoice_number}", 12, "B", align="center")

    canvas.move(15)
    _draw_customer(canvas, "Bill To:", customer)

    canvas.move(10)
    if job.invoice_date:
        canvas.text(MARGIN_X, f"Invoice Date: {format_date(job.invoice_date)}", 12)
        canvas.move(6)

    canvas.text(MARGIN_X, "For:", 12, "B")
    canvas.move(6)
    canvas.text(MARGIN_X, job.title, 12)
    _draw_description(canvas, job.description, 6)

    canvas.move(15)
    _draw_table_header(canvas, "Invoice Details")

    rows = [
        ("Materials", job.materials_cost, "materials"),
        ("Labour", job.labour_cost, "labour"),
        ("Other Costs", job.other_costs, "other"),
    ]
    for label, amount, tag in rows:
        if _positive(amount):
            _draw_cost_row(canvas, label, amount, tag)
            canvas.move(7)

    _draw_totals(canvas, job, "TOTAL DUE:", 14)

    # Payment details
    canvas.move(20)
    canvas.text(MARGIN_X, "Payment Details", 12, "B")
    canvas.move(8)
    canvas.text_block(MARGIN_X, split_lines(settings.bank_details if settings else None), 10)

    vat_line = _vat_number_line(settings)
    if vat_line:
        canvas.move(10)
        canvas.text(MARGIN_X, vat_line, 8)

    canvas.move(10)
    canvas.text(MARGIN_X, INVOICE_THANKS, 9, "I")

    return Document(kind="invoice", pages=canvas.pages)


def _require_customer(job):
    if job.customer is None:
        raise DocumentGenerationError(f"Job {job.id} has no customer")
    return job.customer
