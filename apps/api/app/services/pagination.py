"""Cursor-based pagination over a reportlab canvas.

Callers work in top-down page coordinates (y grows downward from the top edge);
the conversion to reportlab's bottom-up space happens here.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from reportlab.lib.colors import HexColor
from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas as pdf_canvas

FOOTER_DIVIDER_OFFSET = 50
FOOTER_DIVIDER_COLOR = "#cccccc"
FOOTER_TEXT_COLOR = "#666666"


@dataclass(frozen=True)
class Placement:
    page_number: int
    top: float
    bottom: float


def estimate_text_height(
    text: str, *, chars_per_line: int, line_height: float, padding: float = 0.0
) -> float:
    """ceil(len / chars_per_line) lines of line_height plus padding."""
    lines = max(1, math.ceil(len(text) / chars_per_line)) if text else 0
    return lines * line_height + padding


def split_overlong_line(line: str, *, font: str, size: float, width: float) -> list[str]:
    """Break a line with no usable spaces into chunks that each fit within width."""
    if stringWidth(line, font, size) <= width:
        return [line]
    chunks: list[str] = []
    current = ""
    for char in line:
        if current and stringWidth(current + char, font, size) > width:
            chunks.append(current)
            current = char
        else:
            current += char
    if current:
        chunks.append(current)
    return chunks


class CanvasSurface:
    """Chart surface adapter: top-down clockwise geometry onto a reportlab canvas."""

    def __init__(self, canvas: pdf_canvas.Canvas, page_height: float) -> None:
        self._canvas = canvas
        self._page_height = page_height

    def _y(self, y: float) -> float:
        return self._page_height - y

    def fill_sector(
        self,
        cx: float,
        cy: float,
        radius: float,
        start_degrees: float,
        sweep_degrees: float,
        color: str,
    ) -> None:
        y = self._y(cy)
        path = self._canvas.beginPath()
        path.moveTo(cx, y)
        # Mirroring the y axis turns clockwise angles into reportlab's counter-clockwise ones.
        path.arcTo(
            cx - radius,
            y - radius,
            cx + radius,
            y + radius,
            startAng=-start_degrees,
            extent=-sweep_degrees,
        )
        path.close()
        self._canvas.setFillColor(HexColor(color))
        self._canvas.drawPath(path, stroke=0, fill=1)

    def fill_circle(self, cx: float, cy: float, radius: float, color: str) -> None:
        self._canvas.setFillColor(HexColor(color))
        self._canvas.circle(cx, self._y(cy), radius, stroke=0, fill=1)

    def draw_centred_text(
        self,
        x: float,
        y: float,
        text: str,
        *,
        font: str,
        size: float,
        color: str,
    ) -> None:
        self._canvas.setFont(font, size)
        self._canvas.setFillColor(HexColor(color))
        # Shift the baseline so the glyphs sit vertically centred on y.
        self._canvas.drawCentredString(x, self._y(y) - size * 0.35, text)


class ReportPaginator:
    """Single running cursor; blocks that would cross bottom_limit start a new page."""

    def __init__(
        self,
        canvas: pdf_canvas.Canvas,
        *,
        page_height: float,
        top_margin: float,
        bottom_limit: float,
        start_cursor: float | None = None,
    ) -> None:
        if bottom_limit <= top_margin:
            raise ValueError("bottom_limit must be below top_margin")
        self.canvas = canvas
        self.page_height = page_height
        self.top_margin = top_margin
        self.bottom_limit = bottom_limit
        self.page_number = 1
        self._cursor = top_margin if start_cursor is None else start_cursor
        self.placements: list[Placement] = []
        self.surface = CanvasSurface(canvas, page_height)

    @property
    def cursor(self) -> float:
        return self._cursor

    @property
    def usable_height(self) -> float:
        return self.bottom_limit - self.top_margin

    def pdf_y(self, y: float) -> float:
        return self.page_height - y

    def fits(self, height: float) -> bool:
        return self._cursor + height <= self.bottom_limit

    def page_break(self) -> None:
        self.canvas.showPage()
        self.page_number += 1
        self._cursor = self.top_margin

    def ensure_space(self, height: float) -> bool:
        """Break the page when the block would not fit; True when a break happened."""
        if self.fits(height) or self._cursor <= self.top_margin:
            return False
        self.page_break()
        return True

    def reserve(self, height: float) -> float:
        """Make room for a block, record it and return its top coordinate."""
        self.ensure_space(height)
        top = self._cursor
        self.placements.append(
            Placement(page_number=self.page_number, top=top, bottom=top + height)
        )
        return top

    def advance(self, dy: float) -> None:
        self._cursor += dy

    def set_font(self, font: str, size: float, color: str) -> None:
        self.canvas.setFont(font, size)
        self.canvas.setFillColor(HexColor(color))

    def draw_text(
        self,
        text: str,
        *,
        x: float,
        top: float,
        font: str,
        size: float,
        color: str,
        align: str = "left",
    ) -> None:
        """Draw one line whose glyph tops sit at `top`."""
        self.set_font(font, size, color)
        baseline = self.pdf_y(top + size * 0.8)
        if align == "right":
            self.canvas.drawRightString(x, baseline, text)
        elif align == "center":
            self.canvas.drawCentredString(x, baseline, text)
        else:
            self.canvas.drawString(x, baseline, text)

    def wrap(self, text: str, *, font: str, size: float, width: float) -> list[str]:
        lines: list[str] = []
        for paragraph in text.splitlines() or [""]:
            for line in simpleSplit(paragraph, font, size, width) or [""]:
                lines.extend(split_overlong_line(line, font=font, size=size, width=width))
        return lines

    def write_paragraph(
        self,
        text: str,
        *,
        x: float,
        width: float,
        font: str,
        size: float,
        color: str,
        leading: float,
        padding: float = 0.0,
    ) -> int:
        """Wrap and draw text line by line, breaking pages as needed; returns line count."""
        lines = self.wrap(text, font=font, size=size, width=width)
        for line in lines:
            top = self.reserve(leading)
            self.draw_text(line, x=x, top=top, font=font, size=size, color=color)
            self.advance(leading)
        self.advance(padding)
        return len(lines)


class FooterCanvas(pdf_canvas.Canvas):
    """Defers page emission so every footer can show the final page total."""

    def __init__(
        self,
        *args: Any,
        product_name: str = "",
        report_id: str = "",
        footer_margin: float = 50,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self._saved_page_states: list[dict[str, Any]] = []
        self.product_name = product_name
        self.report_id = report_id
        self.footer_margin = footer_margin
        self.footer_labels: list[str] = []

    def showPage(self) -> None:  # noqa: N802 - reportlab API name
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self) -> None:
        total_pages = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self.draw_footer(total_pages)
            super().showPage()
        super().save()

    def draw_footer(self, total_pages: int) -> None:
        width = self._pagesize[0]
        margin = self.footer_margin
        label = f"Page {self._pageNumber} of {total_pages}"
        divider_y = FOOTER_DIVIDER_OFFSET

        self.saveState()
        self.setStrokeColor(HexColor(FOOTER_DIVIDER_COLOR))
        self.setLineWidth(0.5)
        self.line(margin, divider_y, width - margin, divider_y)

        self.setFont("Helvetica", 9)
        self.setFillColor(HexColor(FOOTER_TEXT_COLOR))
        self.drawString(margin, divider_y - 14, f"Generated by {self.product_name}")
        self.drawRightString(width - margin, divider_y - 14, label)
        self.drawRightString(width - margin, divider_y - 27, f"Report ID: {self.report_id}")
        self.restoreState()
        self.footer_labels.append(label)
