"""
b3_certificate_renderer.py — Certificate Renderer (Block 3)
===========================================================
Lays out a paginated A4 PDF certificate from a ``GradedResult``.

---------------------------------------------------------------------------
Document sections (top → bottom)
---------------------------------------------------------------------------
  1. Header band          full-width, blue when passed / red when not
  2. Candidate block      name, date, attempt id (+ job title, department,
                          email when supplied)
  3. Environment details  only when at least one ExtraDetails field is present;
                          each field is drawn independently, absent ones skipped
  4. Score summary        score, percentage, threshold, verdict
  5. Category breakdown   fixed-width columns, coloured header cells, plain rows
  6. Category selection   selected vs. available category ids
  7. Footer               attribution (bank title, licence, sources)

---------------------------------------------------------------------------
Pagination — LayoutFlow
---------------------------------------------------------------------------
  A vertical cursor measured from the top edge.  Before every line / row
  the renderer calls ``flow.request_space(height)``; if the cursor would
  pass ``page_height - margin - reserve`` a new page starts and the cursor
  resets to the top margin.  The footer goes through the same check, so
  it moves to a fresh page instead of overlapping the last table row.
  Wrapped text (candidate fields, user agent, attribution) requests
  ``lines × leading``, never a fixed height, and is never truncated.
  A block taller than a whole page raises RenderingOverflowError.

Output is deterministic for identical inputs (``invariant`` canvas and an
explicit ``issued_at`` timestamp).
"""

from __future__ import annotations

import io
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Mapping, Optional

from reportlab.lib.colors import HexColor, white
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from cert_quiz.errors import RenderingOverflowError
from cert_quiz.models import (
    PASS_THRESHOLD_PCT,
    BankMeta,
    CandidateInfo,
    ExtraDetails,
    GradedResult,
)

logger = logging.getLogger(__name__)


# ─── Palette ──────────────────────────────────────────────────────────────────

PASS_COLOUR = HexColor("#2196F3")
FAIL_COLOUR = HexColor("#F44336")
TEXT_COLOUR = HexColor("#000000")
MUTED       = HexColor("#646464")
RULE_GREY   = HexColor("#DDDDDD")

FONT       = "Helvetica"
FONT_BOLD  = "Helvetica-Bold"
FONT_ITAL  = "Helvetica-Oblique"


# ─── Layout flow ──────────────────────────────────────────────────────────────

class LayoutFlow:
    """
    Vertical cursor with an overflow policy, independent of any PDF library.

    ``cursor`` is the distance from the top edge of the current page.
    ``on_new_page`` is called every time a page break happens.
    """

    def __init__(
        self,
        page_height: float,
        margin: float,
        reserve: float = 0.0,
        on_new_page: Optional[Callable[[], None]] = None,
        start: Optional[float] = None,
    ):
        self.page_height = page_height
        self.margin = margin
        self.reserve = reserve
        self.on_new_page = on_new_page
        self.cursor = margin if start is None else start
        self.page_count = 1

    @property
    def limit(self) -> float:
        """Lowest cursor position content may reach on a page."""
        return self.page_height - self.margin - self.reserve

    @property
    def capacity(self) -> float:
        """Usable height of an empty page."""
        return self.limit - self.margin

    def fits(self, height: float) -> bool:
        return self.cursor + height <= self.limit

    def request_space(self, height: float) -> bool:
        """Make room for *height*; return True if a new page was started."""
        if height > self.capacity:
            raise RenderingOverflowError(
                f"Block of height {height:.1f} exceeds page capacity {self.capacity:.1f}"
            )
        if self.fits(height):
            return False
        self.new_page()
        return True

    def advance(self, height: float) -> None:
        self.cursor += height

    def new_page(self) -> None:
        self.page_count += 1
        self.cursor = self.margin
        if self.on_new_page is not None:
            self.on_new_page()


# ─── Layout + output records ──────────────────────────────────────────────────

@dataclass(frozen=True)
class PageLayout:
    page_width:   float = A4[0]
    page_height:  float = A4[1]
    margin:       float = 15 * mm
    reserve:      float = 10 * mm
    band_height:  float = 50 * mm
    row_height:   float = 5 * mm
    # Category | Name | Correct | Total | %
    col_widths:   tuple[float, ...] = (25 * mm, 85 * mm, 22 * mm, 22 * mm, 26 * mm)

    @property
    def content_width(self) -> float:
        return self.page_width - 2 * self.margin


@dataclass(frozen=True)
class Certificate:
    content:   bytes
    filename:  str
    page_count: int
    mime_type: str = "application/pdf"


def certificate_filename(candidate_name: str, issued_at: datetime) -> str:
    """``certificate_<name>_<YYYY-MM-DD>.pdf`` with whitespace / unsafe chars collapsed."""
    safe = re.sub(r"[^A-Za-z0-9_-]+", "_", candidate_name.strip()).strip("_") or "Candidate"
    return f"certificate_{safe}_{issued_at.strftime('%Y-%m-%d')}.pdf"


def _line_leading(size: float) -> float:
    return size * 0.5 * mm + 1 * mm


def _wrap(text: str, font: str, size: float, width: float) -> list[str]:
    """Split *text* into lines no wider than *width*; words too long for a line are broken."""
    lines: list[str] = []
    for line in simpleSplit(text, font, size, width) or [""]:
        while stringWidth(line, font, size) > width:
            cut = len(line) - 1
            while cut > 1 and stringWidth(line[:cut], font, size) > width:
                cut -= 1
            lines.append(line[:cut])
            line = line[cut:]
        lines.append(line)
    return lines


def _fit(text: str, font: str, size: float, width: float) -> str:
    """Truncate *text* with an ellipsis so it fits in *width* (table cells, title band)."""
    if stringWidth(text, font, size) <= width:
        return text
    while text and stringWidth(text + "...", font, size) > width:
        text = text[:-1]
    return text + "..."


# ─── Renderer ─────────────────────────────────────────────────────────────────

class CertificateRenderer:
    """
    Block 3 — Certificate Renderer.

    Usage::

        cert = CertificateRenderer().render(result, "Ada Lovelace")
        open(cert.filename, "wb").write(cert.content)
    """

    def __init__(self, layout: Optional[PageLayout] = None, title: str = "Security Quiz Certificate"):
        self.layout = layout or PageLayout()
        self.title = title

    def render(
        self,
        result: GradedResult,
        candidate_name: str,
        category_names: Optional[Mapping[str, str]] = None,
        extra_details: Optional[ExtraDetails] = None,
        candidate: Optional[CandidateInfo] = None,
        meta: Optional[BankMeta] = None,
        issued_at: Optional[datetime] = None,
    ) -> Certificate:
        lay = self.layout
        issued_at = issued_at or datetime.now()
        name = candidate_name.strip() or "Candidate"
        names = dict(result.category_names)
        names.update(category_names or {})
        extra = extra_details or ExtraDetails()
        meta = meta or BankMeta()
        header_colour = PASS_COLOUR if result.passed else FAIL_COLOUR

        buf = io.BytesIO()
        c = canvas.Canvas(buf, pagesize=(lay.page_width, lay.page_height), invariant=1)
        c.setTitle(f"{meta.title or self.title} - {name}")
        c.setAuthor("cert_quiz")
        c.setSubject("Quiz completion certificate")

        flow = LayoutFlow(
            lay.page_height, lay.margin, lay.reserve,
            on_new_page=c.showPage, start=lay.band_height + 10 * mm,
        )

        self._header_band(c, header_colour, result.passed, meta)

        # ── Candidate ────────────────────────────────────────────────────────
        self._heading(c, flow, "Candidate Information", 12)
        self._wrapped(c, flow, f"Name: {name}", leading=_line_leading(10))
        self._line(c, flow, f"Date: {issued_at.strftime('%Y-%m-%d')}")
        if candidate is not None:
            for label, value in (("Job Title", candidate.job_title),
                                 ("Department", candidate.department),
                                 ("Email", candidate.email)):
                if value and value.strip():
                    self._wrapped(c, flow, f"{label}: {value.strip()}", leading=_line_leading(10))
        if result.attempt_id:
            self._line(c, flow, f"Attempt ID: {result.attempt_id}")
        flow.advance(4 * mm)

        # ── Environment details ──────────────────────────────────────────────
        if extra.has_any:
            self._heading(c, flow, "Environment Details", 11)
            if extra.local_time is not None:
                self._line(c, flow, f"Local Time: {extra.local_time}", size=9)
            if extra.utc_time is not None:
                self._line(c, flow, f"UTC Time: {extra.utc_time}", size=9)
            if extra.time_zone is not None:
                self._line(c, flow, f"Timezone: {extra.time_zone}", size=9)
            if extra.user_agent is not None:
                self._wrapped(c, flow, f"Browser/Device: {extra.user_agent}", size=9)
            if extra.location is not None:
                loc = extra.location
                acc = f" (±{round(loc.accuracy)}m)" if loc.accuracy is not None else ""
                self._line(c, flow, f"Location: {loc.latitude:.5f}, {loc.longitude:.5f}{acc}", size=9)
            flow.advance(4 * mm)

        # ── Score summary ────────────────────────────────────────────────────
        self._heading(c, flow, "Score Summary", 12)
        self._line(c, flow, f"Total Score: {result.score}/{result.total} ({result.percentage}%)")
        self._line(c, flow, f"Passing Threshold: >= {PASS_THRESHOLD_PCT}%")
        self._line(c, flow, f"Result: {'PASSED' if result.passed else 'NOT PASSED'}", font=FONT_BOLD)
        flow.advance(4 * mm)

        # ── Category table ───────────────────────────────────────────────────
        if result.per_category:
            self._heading(c, flow, "Category Breakdown", 11)
            self._table_header(c, flow, header_colour)
            for cat_id, cs in result.per_category.items():
                if flow.request_space(lay.row_height):
                    self._table_header(c, flow, header_colour)
                self._table_row(c, flow, [
                    cat_id,
                    names.get(cat_id, cat_id),
                    str(cs.correct),
                    str(cs.total),
                    f"{cs.percentage}%",
                ])
            flow.advance(4 * mm)

        # ── Selected vs. available ───────────────────────────────────────────
        selected = ", ".join(result.selected_categories) or "(all)"
        available = ", ".join(result.all_categories) or "-"
        self._wrapped(c, flow, f"Selected categories: {selected}", size=8, colour=MUTED)
        self._wrapped(c, flow, f"Available categories: {available}", size=8, colour=MUTED)
        flow.advance(4 * mm)

        # ── Footer ───────────────────────────────────────────────────────────
        self._footer(c, flow, meta)

        c.showPage()
        c.save()
        logger.debug("Rendered certificate for %r: %d page(s)", name, flow.page_count)

        return Certificate(
            content=buf.getvalue(),
            filename=certificate_filename(name, issued_at),
            page_count=flow.page_count,
        )

    # ── drawing primitives ──────────────────────────────────────────────────

    def _y(self, flow: LayoutFlow, offset: float = 0.0) -> float:
        """Convert the flow cursor to a reportlab baseline (origin bottom-left)."""
        return self.layout.page_height - flow.cursor + offset

    def _header_band(self, c, colour, passed: bool, meta: BankMeta) -> None:
        lay = self.layout
        c.setFillColor(colour)
        c.rect(0, lay.page_height - lay.band_height, lay.page_width, lay.band_height,
               stroke=0, fill=1)
        c.setFillColor(white)
        c.setFont(FONT_BOLD, 26)
        c.drawCentredString(lay.page_width / 2, lay.page_height - 20 * mm,
                            _fit(meta.title or self.title, FONT_BOLD, 26, lay.content_width))
        c.setFont(FONT, 12)
        c.drawCentredString(lay.page_width / 2, lay.page_height - 35 * mm,
                            "PASSED" if passed else "NOT PASSED")

    def _heading(self, c, flow: LayoutFlow, text: str, size: float) -> None:
        # keep a heading together with the first line that follows it
        leading = size * 0.35 * mm + 4 * mm
        flow.request_space(leading + self.layout.row_height)
        flow.advance(leading)
        c.setFillColor(TEXT_COLOUR)
        c.setFont(FONT_BOLD, size)
        c.drawString(self.layout.margin, self._y(flow, 1.5 * mm), text)

    def _line(self, c, flow: LayoutFlow, text: str, size: float = 10,
              font: str = FONT, colour=TEXT_COLOUR) -> None:
        """Single line for short fixed-format text (dates, scores, ids)."""
        leading = _line_leading(size)
        flow.request_space(leading)
        flow.advance(leading)
        c.setFillColor(colour)
        c.setFont(font, size)
        c.drawString(self.layout.margin, self._y(flow, 1.5 * mm),
                     _fit(text, font, size, self.layout.content_width))

    def _wrapped(self, c, flow: LayoutFlow, text: str, size: float = 10,
                 font: str = FONT, colour=TEXT_COLOUR,
                 leading: Optional[float] = None) -> int:
        """Draw *text* wrapped to the content width; return the number of lines."""
        lines = _wrap(text, font, size, self.layout.content_width)
        leading = leading or size * 0.4 * mm + 0.5 * mm
        flow.request_space(leading * len(lines))
        c.setFillColor(colour)
        c.setFont(font, size)
        for line in lines:
            flow.advance(leading)
            c.drawString(self.layout.margin, self._y(flow, 1 * mm), line)
        return len(lines)

    def _table_header(self, c, flow: LayoutFlow, colour) -> None:
        lay = self.layout
        h = lay.row_height + 1 * mm
        flow.request_space(h + lay.row_height)
        flow.advance(h)
        x = lay.margin
        c.setFont(FONT_BOLD, 9)
        for label, width in zip(("Category", "Name", "Correct", "Total", "%"), lay.col_widths):
            c.setFillColor(colour)
            c.rect(x, self._y(flow), width, h, stroke=0, fill=1)
            c.setFillColor(white)
            c.drawString(x + 1 * mm, self._y(flow, 1.8 * mm), label)
            x += width

    def _table_row(self, c, flow: LayoutFlow, cells: list[str]) -> None:
        lay = self.layout
        flow.advance(lay.row_height)
        x = lay.margin
        c.setFillColor(TEXT_COLOUR)
        c.setFont(FONT, 8)
        for text, width in zip(cells, lay.col_widths):
            c.drawString(x + 1 * mm, self._y(flow, 1.5 * mm), _fit(text, FONT, 8, width - 2 * mm))
            x += width
        c.setStrokeColor(RULE_GREY)
        c.setLineWidth(0.3)
        c.line(lay.margin, self._y(flow), lay.margin + sum(lay.col_widths), self._y(flow))

    def _footer(self, c, flow: LayoutFlow, meta: BankMeta) -> None:
        size = 8
        source_text = meta.title or self.title
        texts = [f"This certificate is generated from the {source_text}."]
        licence = " | ".join(p for p in (meta.license, ", ".join(meta.sources)) if p)
        if licence:
            texts.append(f"Content: {licence}")

        width = self.layout.content_width
        lines = [ln for t in texts for ln in _wrap(t, FONT_ITAL, size, width)]
        leading = size * 0.4 * mm + 0.5 * mm
        # rule + lines move to a new page together
        flow.request_space(2 * mm + leading * len(lines))
        flow.advance(2 * mm)
        c.setStrokeColor(RULE_GREY)
        c.setLineWidth(0.5)
        c.line(self.layout.margin, self._y(flow), self.layout.margin + width, self._y(flow))
        c.setFillColor(MUTED)
        c.setFont(FONT_ITAL, size)
        for line in lines:
            flow.advance(leading)
            c.drawString(self.layout.margin, self._y(flow, 1 * mm), line)


def render(
    result: GradedResult,
    candidate_name: str,
    category_names: Optional[Mapping[str, str]] = None,
    extra_details: Optional[ExtraDetails] = None,
    **kwargs,
) -> Certificate:
    """Functional shortcut for ``CertificateRenderer().render(...)``."""
    return CertificateRenderer().render(
        result, candidate_name, category_names, extra_details, **kwargs,
    )
