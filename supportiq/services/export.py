"""Plain-text and PDF exports of an analysis result."""

import io
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfgen.canvas import Canvas

from supportiq.errors import ChartRenderError
from supportiq.models.analysis import AnalysisResult
from supportiq.models.views import SentimentChart
from supportiq.services.chart import render_sentiment_chart_png
from supportiq.services.presentation import build_sentiment_chart

logger = logging.getLogger(__name__)

TRANSCRIPT_FILENAME = "support-call-transcript.txt"
PDF_FILENAME = "coaching-insights.pdf"

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 56.0
CONTENT_WIDTH = PAGE_WIDTH - 2 * MARGIN
TOP = PAGE_HEIGHT - MARGIN

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
TITLE_SIZE = 18
HEADING_SIZE = 13
BODY_SIZE = 10
LEADING = 14.0
HEADER_LEADING = 16.0
ENTRY_GAP = 10.0
SECTION_GAP = 12.0

CHART_HEIGHT = CONTENT_WIDTH * 3 / 8

ChartRenderer = Callable[[SentimentChart], bytes]


def format_score(score: float) -> str:
    return str(int(score)) if float(score).is_integer() else str(score)


def export_transcript_text(result: AnalysisResult) -> str:
    """One ``[speaker] (score/10): text`` block per turn, blank line between."""
    return "\n\n".join(
        f"[{segment.speaker}] ({format_score(segment.sentiment_score)}/10): {segment.text}"
        for segment in result.transcript
    )


def wrap_text(text: str, font: str = FONT, size: float = BODY_SIZE, width: float = CONTENT_WIDTH) -> list[str]:
    return simpleSplit(text, font, size, width) or [""]


def entry_height(body_lines: int) -> float:
    """Height of one transcript entry: bold header, wrapped body, trailing gap."""
    return HEADER_LEADING + body_lines * LEADING + ENTRY_GAP


def needs_page_break(cursor_y: float, height: float, bottom: float = MARGIN) -> bool:
    return cursor_y - height < bottom


@dataclass
class PdfReport:
    pdf: bytes
    page_count: int
    chart_included: bool
    entry_pages: list[int] = field(default_factory=list)


class _PdfWriter:
    """Canvas wrapper that tracks the vertical cursor and the page number."""

    def __init__(self, buffer: io.BytesIO) -> None:
        self.canvas = Canvas(buffer, pagesize=A4)
        self.canvas.setTitle("Coaching Insights")
        self.y = TOP
        self.page = 1

    def new_page(self) -> None:
        self.canvas.showPage()
        self.y = TOP
        self.page += 1

    def ensure_space(self, height: float) -> None:
        if needs_page_break(self.y, height) and self.y < TOP:
            self.new_page()

    def text_line(self, text: str, font: str = FONT, size: float = BODY_SIZE, leading: float = LEADING) -> None:
        self.ensure_space(leading)
        self.y -= leading
        self.canvas.setFont(font, size)
        self.canvas.drawString(MARGIN, self.y, text)

    def paragraph(self, text: str, font: str = FONT, size: float = BODY_SIZE, leading: float = LEADING) -> None:
        for line in wrap_text(text, font, size):
            self.text_line(line, font, size, leading)

    def numbered(self, items: list[str]) -> None:
        for number, item in enumerate(items, start=1):
            self.paragraph(f"{number}. {item}")
            self.y -= 4

    def gap(self, height: float) -> None:
        self.y -= height

    def image(self, png: bytes, height: float) -> None:
        self.canvas.drawImage(
            ImageReader(io.BytesIO(png)),
            MARGIN,
            self.y - height,
            width=CONTENT_WIDTH,
            height=height,
            preserveAspectRatio=True,
            anchor="n",
        )
        self.y -= height

    def finish(self) -> None:
        self.canvas.save()


def render_coaching_pdf(
    result: AnalysisResult,
    chart_renderer: ChartRenderer = render_sentiment_chart_png,
) -> PdfReport:
    buffer = io.BytesIO()
    writer = _PdfWriter(buffer)
    coaching = result.coaching

    writer.text_line("Support Call Coaching Insights", FONT_BOLD, TITLE_SIZE, 24)
    writer.gap(SECTION_GAP)
    writer.text_line(
        f"Overall Engagement Score: {format_score(result.overall_engagement_score)}/100",
        FONT_BOLD,
        HEADING_SIZE,
        HEADER_LEADING,
    )
    writer.gap(SECTION_GAP)

    writer.text_line("Summary", FONT_BOLD, HEADING_SIZE, HEADER_LEADING)
    writer.paragraph(coaching.summary)
    writer.gap(SECTION_GAP)

    writer.text_line("What Went Well", FONT_BOLD, HEADING_SIZE, HEADER_LEADING)
    writer.numbered(coaching.strengths)
    writer.gap(SECTION_GAP)

    writer.text_line("Missed Opportunities", FONT_BOLD, HEADING_SIZE, HEADER_LEADING)
    writer.numbered(coaching.missed_opportunities)
    writer.gap(SECTION_GAP)

    chart_included = False
    try:
        png = chart_renderer(build_sentiment_chart(result.transcript))
    except ChartRenderError as exc:
        logger.warning("Exporting PDF without sentiment chart: %s", exc)
    else:
        if needs_page_break(writer.y, CHART_HEIGHT):
            writer.new_page()
        writer.image(png, CHART_HEIGHT)
        chart_included = True

    writer.new_page()
    writer.text_line("Full Transcript", FONT_BOLD, HEADING_SIZE, HEADER_LEADING)
    writer.gap(SECTION_GAP)

    entry_pages: list[int] = []
    for segment in result.transcript:
        lines = wrap_text(segment.text)
        # Break before the entry so its header and body share a page
        writer.ensure_space(entry_height(len(lines)))
        entry_pages.append(writer.page)
        writer.text_line(
            f"{segment.speaker} ({format_score(segment.sentiment_score)}/10)",
            FONT_BOLD,
            BODY_SIZE + 1,
            HEADER_LEADING,
        )
        for line in lines:
            writer.text_line(line)
        writer.gap(ENTRY_GAP)

    page_count = writer.page
    writer.finish()
    logger.info("Built coaching PDF: %d pages, chart=%s", page_count, chart_included)
    return PdfReport(
        pdf=buffer.getvalue(),
        page_count=page_count,
        chart_included=chart_included,
        entry_pages=entry_pages,
    )


def build_coaching_pdf(
    result: AnalysisResult,
    chart_renderer: ChartRenderer = render_sentiment_chart_png,
) -> bytes:
    return render_coaching_pdf(result, chart_renderer).pdf
