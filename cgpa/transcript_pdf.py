"""
Printable transcript.

The layout is computed first as a list of pages of simple drawing primitives
(positions in millimetres, y measured down from the top edge of an A4 sheet)
and only then drawn onto a reportlab canvas. Keeping the two apart means the
pagination can be inspected without reading a PDF back.
"""
import io
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from cgpa.backend_logic import (
    DEGREE_CLASSES,
    GRADE_DESCRIPTORS,
    GRADE_POINTS,
    TABLE_COLUMNS,
    UNCLASSIFIED,
    Course,
    convert_average,
    courses_frame,
    valid_courses,
)
from cgpa.config import (
    GRADE_OPTIONS,
    INSTITUTION_NAME,
    INSTITUTION_SHORT,
    TRANSCRIPT_FILE_PREFIX,
)
from cgpa.errors import NothingToRender

logger = logging.getLogger(__name__)

RGB = Tuple[int, int, int]

# ------------------------
# Page geometry (mm)
# ------------------------
PAGE_WIDTH = 210
PAGE_HEIGHT = 297
LEFT_MARGIN = 20
RIGHT_EDGE = 190
CENTRE_X = PAGE_WIDTH / 2
TOP_MARGIN = 20
BOTTOM_LIMIT = 275
FOOTER_Y = 287

TABLE_START_Y = 135
TABLE_X = 30
COLUMN_WIDTHS = (15, 35, 20, 25, 25, 30)
ROW_HEIGHT = 10
TEXT_OFFSET = 6.5

LEGEND_GAP = 20
LEGEND_LINE = 8
LEGEND_FIRST_ENTRY = 10
LEGEND_COLUMN_X = 110
# heading plus the last of six entries
LEGEND_HEIGHT = LEGEND_FIRST_ENTRY + 5 * LEGEND_LINE

HEADER_FILL: RGB = (41, 128, 185)
STRIPE_FILL: RGB = (245, 245, 245)
WHITE: RGB = (255, 255, 255)
BLACK: RGB = (0, 0, 0)

FOOTER_TEXT = f"This is a computer-generated transcript from {INSTITUTION_SHORT} CGPA Calculator"


# ------------------------
# Page model
# ------------------------
@dataclass(frozen=True)
class Text:
    x: float
    y: float
    text: str
    size: float = 12
    bold: bool = False
    align: str = "left"
    color: RGB = BLACK


@dataclass(frozen=True)
class Line:
    x1: float
    y1: float
    x2: float
    y2: float


@dataclass(frozen=True)
class Cell:
    x: float
    y: float
    width: float
    height: float
    fill: Optional[RGB] = None


@dataclass
class Page:
    items: list = field(default_factory=list)

    def texts(self) -> List[str]:
        return [item.text for item in self.items if isinstance(item, Text)]

    def cells(self) -> List[Cell]:
        return [item for item in self.items if isinstance(item, Cell)]


@dataclass
class Transcript:
    pages: List[Page]
    filename: str
    generated_on: date

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def to_pdf(self) -> bytes:
        buffer = io.BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=A4)
        pdf.setTitle(f"{INSTITUTION_SHORT} Academic Transcript")
        for page in self.pages:
            for item in page.items:
                _draw(pdf, item)
            pdf.showPage()
        pdf.save()
        return buffer.getvalue()


def _draw(pdf: canvas.Canvas, item) -> None:
    if isinstance(item, Text):
        pdf.setFont("Helvetica-Bold" if item.bold else "Helvetica", item.size)
        pdf.setFillColorRGB(*(c / 255 for c in item.color))
        x, y = item.x * mm, (PAGE_HEIGHT - item.y) * mm
        if item.align == "center":
            pdf.drawCentredString(x, y, item.text)
        elif item.align == "right":
            pdf.drawRightString(x, y, item.text)
        else:
            pdf.drawString(x, y, item.text)
    elif isinstance(item, Line):
        pdf.setStrokeColorRGB(0, 0, 0)
        pdf.line(item.x1 * mm, (PAGE_HEIGHT - item.y1) * mm,
                 item.x2 * mm, (PAGE_HEIGHT - item.y2) * mm)
    elif isinstance(item, Cell):
        pdf.setStrokeColorRGB(0.8, 0.8, 0.8)
        if item.fill is not None:
            pdf.setFillColorRGB(*(c / 255 for c in item.fill))
        pdf.rect(item.x * mm, (PAGE_HEIGHT - item.y - item.height) * mm,
                 item.width * mm, item.height * mm,
                 stroke=1, fill=1 if item.fill is not None else 0)
    else:
        raise TypeError(f"Cannot draw {item!r}")


# ------------------------
# Layout
# ------------------------
class _Flow:
    """Tracks the current page and vertical position while emitting rows."""

    def __init__(self):
        self.pages: List[Page] = [Page()]
        self.y = TOP_MARGIN

    @property
    def page(self) -> Page:
        return self.pages[-1]

    def add(self, item) -> None:
        self.page.items.append(item)

    def new_page(self) -> None:
        self.pages.append(Page())
        self.y = TOP_MARGIN

    def fits(self, height: float) -> bool:
        return self.y + height <= BOTTOM_LIMIT

    def row(self, values: Sequence[str], *, fill: Optional[RGB] = None,
            bold: bool = False, color: RGB = BLACK) -> None:
        x = TABLE_X
        for value, width in zip(values, COLUMN_WIDTHS):
            self.add(Cell(x, self.y, width, ROW_HEIGHT, fill))
            self.add(Text(x + width / 2, self.y + TEXT_OFFSET, value,
                          size=10, bold=bold, align="center", color=color))
            x += width
        self.y += ROW_HEIGHT


def _header_row(flow: _Flow) -> None:
    flow.row(TABLE_COLUMNS, fill=HEADER_FILL, bold=True, color=WHITE)


def _table_rows(courses: Iterable[Course], scale: str) -> List[Tuple[List[str], bool]]:
    frame = courses_frame(courses, scale)
    rows = [
        ([
            str(r["S/N"]),
            r["Course Code"],
            r["Grade"],
            str(r["Credit Hours"]),
            f"{r['Grade Points']:.1f}",
            f"{r['Quality Points']:.1f}",
        ], False)
        for r in frame.to_dict("records")
    ]
    total_credits = int(frame["Credit Hours"].sum())
    total_points = float(frame["Quality Points"].sum())
    rows.append((["", "TOTAL", "", str(total_credits), "", f"{total_points:.1f}"], True))
    return rows


def _legend_entries(scale: str) -> Tuple[List[str], List[str]]:
    grades = [
        f"{g} = {GRADE_POINTS[scale][g]:.1f} ({GRADE_DESCRIPTORS[g]})"
        for g in GRADE_OPTIONS
    ]
    classes = [f"{label}: {lo:.2f} - {hi:.2f}" for label, lo, hi in DEGREE_CLASSES]
    classes.append(f"{UNCLASSIFIED}: below {DEGREE_CLASSES[-1][1]:.2f}")
    return grades, classes


def layout_transcript(courses: Sequence[Course], scale: str, aggregate: float,
                      generated_on: date) -> List[Page]:
    valid = valid_courses(courses)
    total_credits = sum(c.credit_hours for c in valid)
    flow = _Flow()

    flow.add(Text(CENTRE_X, 20, INSTITUTION_NAME, size=20, bold=True, align="center"))
    flow.add(Text(CENTRE_X, 30, "ACADEMIC TRANSCRIPT", size=16, bold=True, align="center"))

    flow.add(Text(LEFT_MARGIN, 50, f"Generated: {generated_on.strftime('%d/%m/%Y')}"))
    flow.add(Text(LEFT_MARGIN, 60, f"Total Courses: {len(valid)}"))
    flow.add(Text(LEFT_MARGIN, 70, f"Total Credits: {total_credits}"))

    flow.add(Text(LEFT_MARGIN, 85, "CUMULATIVE GRADE POINT AVERAGE (CGPA)", size=14, bold=True))
    flow.add(Line(LEFT_MARGIN, 87, RIGHT_EDGE, 87))
    flow.add(Text(LEFT_MARGIN, 100, f"CGPA: {aggregate:.2f} / {scale}", size=16, bold=True))
    if scale == "5.0":
        equivalent = convert_average(valid, "4.0")
        flow.add(Text(LEFT_MARGIN, 110, f"Equivalent 4.0 Scale: {equivalent:.2f} / 4.0", bold=True))

    flow.add(Text(LEFT_MARGIN, 125, "COURSE DETAILS", bold=True))
    flow.add(Line(LEFT_MARGIN, 127, RIGHT_EDGE, 127))

    flow.y = TABLE_START_Y
    _header_row(flow)
    for idx, (values, is_total) in enumerate(_table_rows(valid, scale)):
        if not flow.fits(ROW_HEIGHT):
            flow.new_page()
            _header_row(flow)
        stripe = STRIPE_FILL if idx % 2 == 1 and not is_total else None
        flow.row(values, fill=stripe, bold=is_total)

    flow.y += LEGEND_GAP
    if not flow.fits(LEGEND_HEIGHT):
        flow.new_page()
    grades, classes = _legend_entries(scale)
    flow.add(Text(LEFT_MARGIN, flow.y, f"GRADING SCALE ({scale}):", size=10, bold=True))
    flow.add(Text(LEGEND_COLUMN_X, flow.y, "CLASS OF DEGREE GUIDE:", size=10, bold=True))
    for i, entry in enumerate(grades):
        flow.add(Text(LEFT_MARGIN, flow.y + LEGEND_FIRST_ENTRY + i * LEGEND_LINE, entry, size=10))
    for i, entry in enumerate(classes):
        flow.add(Text(LEGEND_COLUMN_X, flow.y + LEGEND_FIRST_ENTRY + i * LEGEND_LINE, entry, size=10))

    total_pages = len(flow.pages)
    for number, page in enumerate(flow.pages, start=1):
        page.items.append(Text(CENTRE_X, FOOTER_Y, FOOTER_TEXT, size=8, align="center"))
        page.items.append(Text(RIGHT_EDGE, FOOTER_Y, f"Page {number} of {total_pages}",
                               size=8, align="right"))
    return flow.pages


def transcript_filename(today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"{TRANSCRIPT_FILE_PREFIX}_{today.isoformat()}.pdf"


def render_transcript(courses: Sequence[Course], scale: str, aggregate: float,
                      generated_on: Optional[date] = None) -> Transcript:
    """
    Lay out a transcript for the valid courses. Raises NothingToRender when
    the list is empty or no course is complete.
    """
    courses = list(courses)
    if not courses:
        raise NothingToRender("Please add some courses before generating PDF.")
    if not valid_courses(courses):
        raise NothingToRender("Please complete at least one course before generating PDF.")

    generated_on = generated_on or date.today()
    pages = layout_transcript(courses, scale, aggregate, generated_on)
    logger.info("Rendered transcript: %d courses over %d pages",
                len(valid_courses(courses)), len(pages))
    return Transcript(pages=pages, filename=transcript_filename(generated_on), generated_on=generated_on)
