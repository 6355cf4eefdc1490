"""
PDF rendering for composed documents.

Draws a document_composer.Document onto A4 pages with fpdf2 (pure Python,
no system dependencies) and returns the PDF bytes. Also supplies the font
metrics the composer needs to word-wrap text to a column width.
"""

from io import BytesIO
from typing import List

from fpdf import FPDF

from .document_composer import (
    PAGE_HEIGHT,
    PAGE_WIDTH,
    Document,
    FillRect,
    Image,
    Line,
    TextRun,
)

FONT_FAMILY = "Helvetica"


def _safe(text: str) -> str:
    """Replace Unicode chars that can't be rendered by built-in PDF fonts (latin-1)."""
    if not text:
        return ""
    return (
        text
        .replace("•", "-")    # bullet
        .replace("—", " - ")  # em dash
        .replace("–", "-")    # en dash
        .replace("“", '"')    # left double quote
        .replace("”", '"')    # right double quote
        .replace("‘", "'")    # left single quote
        .replace("’", "'")    # right single quote
        .encode("latin-1", errors="replace")
        .decode("latin-1")
    )


class DocumentPDF(FPDF):
    """A4, millimetre units, no automatic page breaks — the composer paginates."""

    def __init__(self):
        super().__init__(orientation="P", unit="mm", format=(PAGE_WIDTH, PAGE_HEIGHT))
        self.set_auto_page_break(auto=False)
        self.set_margins(0, 0, 0)

    def header(self):
        pass  # Headers are part of the composed page content

    def footer(self):
        pass

    def draw_text(self, run: TextRun):
        text = _safe(run.text)
        if not text:
            return
        self.set_font(FONT_FAMILY, run.style, run.size)
        self.set_text_color(*run.color)
        x = run.x
        if run.align == "center":
            x -= self.get_string_width(text) / 2
        elif run.align == "right":
            x -= self.get_string_width(text)
        self.text(x, run.y, text)

    def draw_fill(self, rect: FillRect):
        self.set_fill_color(*rect.color)
        self.rect(rect.x, rect.y, rect.width, rect.height, style="F")

    def draw_line(self, line: Line):
        self.set_draw_color(*line.color)
        self.line(line.x1, line.y1, line.x2, line.y2)

    def draw_image(self, image: Image):
        self.image(BytesIO(image.data), x=image.x, y=image.y, w=image.width, h=image.height)


def render_pdf(document: Document) -> bytes:
    """Draw every page of `document` and return the PDF bytes."""
    pdf = DocumentPDF()
    pdf.set_title(document.kind.title())

    for page in document.pages:
        pdf.add_page()
        for op in page.ops:
            if isinstance(op, TextRun):
                pdf.draw_text(op)
            elif isinstance(op, FillRect):
                pdf.draw_fill(op)
            elif isinstance(op, Line):
                pdf.draw_line(op)
            elif isinstance(op, Image):
                pdf.draw_image(op)
            else:
                raise TypeError(f"Unknown drawing primitive: {type(op).__name__}")

    return bytes(pdf.output())


class FpdfTextMetrics:
    """Word wrapping measured with the same fonts render_pdf() draws with."""

    def __init__(self):
        self._pdf = DocumentPDF()

    def string_width(self, text: str, size: float, style: str = "") -> float:
        self._pdf.set_font(FONT_FAMILY, style, size)
        return self._pdf.get_string_width(_safe(text))

    def split_to_width(self, text: str, width: float, size: float, style: str = "") -> List[str]:
        """
        Split `text` into lines no wider than `width` mm.

        Explicit newlines always break. Words wider than a whole line are
        broken between characters.
        """
        lines = []
        for paragraph in text.split("\n"):
            lines.extend(self._wrap_paragraph(paragraph, width, size, style))
        return lines

    def _wrap_paragraph(self, paragraph, width, size, style) -> List[str]:
        words = paragraph.split(" ")
        lines = []
        current = ""
        for word in words:
            candidate = f"{current} {word}" if current else word
            if self.string_width(candidate, size, style) <= width:
                current = candidate
                continue
            if current:
                lines.append(current)
            current = ""
            # Break over-long words
            while self.string_width(word, size, style) > width:
                cut = len(word) - 1
                while cut > 1 and self.string_width(word[:cut], size, style) > width:
                    cut -= 1
                lines.append(word[:cut])
                word = word[cut:]
            current = word
        lines.append(current)
        return lines
