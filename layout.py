# layout.py
"""
Layout primitives shared by the invoice and receipt composers.

Coordinates are points measured from the top-left corner of the page; text
``y`` values are baselines. A vertical cursor is a plain float that every
function takes and returns, so no position state lives outside a render call.
Drawing goes through a :class:`Surface`; the grid's pagination is planned by
:func:`plan_grid` without any surface at all.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional, Protocol, Sequence

from reportlab.lib.pagesizes import A4, LETTER
from reportlab.lib.units import mm
from reportlab.pdfbase.pdfmetrics import stringWidth

# -----------------------------
# Palette / text styles
# -----------------------------
BLACK = "#000000"
MUTED = "#646464"
ACCENT_GREEN = "#00A651"
ACCENT_ORANGE = "#FF6B00"
RULE = "#C8C8C8"


@dataclass(frozen=True)
class TextStyle:
    font: str = "Helvetica"
    size: float = 10
    color: str = BLACK


BODY = TextStyle()
BODY_BOLD = TextStyle("Helvetica-Bold", 10)
BODY_MUTED = TextStyle(size=10, color=MUTED)
LABEL = TextStyle(size=12)
NOTE = TextStyle("Helvetica-Oblique", 9, MUTED)
SUPERSCRIPT = TextStyle(size=7, color=MUTED)
SECTION_TITLE = TextStyle(size=12, color=ACCENT_GREEN)
SUBSECTION_TITLE = TextStyle(size=11, color=ACCENT_ORANGE)


class PanelKind(Enum):
    # (fill, border)
    INFORMATIONAL = ("#FFF4EE", "#FEDFCA")
    NEUTRAL = ("#FFFFFF", "#E5E7EB")
    STRUCTURAL = ("#F5F5F5", "#E5E7EB")

    @property
    def fill(self) -> str:
        return self.value[0]

    @property
    def border(self) -> str:
        return self.value[1]


SECTION_GAP = 20 * mm
PANEL_RADIUS = 3 * mm
BLOCK_TITLE_GAP = 10 * mm
BLOCK_LINE_PITCH = 6 * mm

CELL_PADDING = 6.0
CELL_LINE_PITCH = 12.0


# -----------------------------
# Page geometry
# -----------------------------
@dataclass(frozen=True)
class PageGeometry:
    width: float
    height: float
    margin_x: float = 20 * mm
    margin_top: float = 20 * mm
    margin_bottom: float = 20 * mm

    @property
    def left(self) -> float:
        return self.margin_x

    @property
    def right(self) -> float:
        return self.width - self.margin_x

    @property
    def top(self) -> float:
        return self.margin_top

    @property
    def bottom(self) -> float:
        return self.height - self.margin_bottom

    @property
    def usable_width(self) -> float:
        return self.width - 2 * self.margin_x

    @property
    def center_x(self) -> float:
        return self.width / 2.0


PAGE_SIZES = {"A4": A4, "LETTER": LETTER}


def text_width(text: str, style: TextStyle) -> float:
    return stringWidth(str(text), style.font, style.size)


def wrap_text(text, style: TextStyle, max_width: float) -> list[str]:
    """
    Greedy word wrap measured with the style's font metrics.
    Words wider than ``max_width`` (long references, e-mails) are broken into chunks.
    """
    words = str(text or "").split()
    if max_width <= 0:
        return [" ".join(words)]

    def split_long_token(token: str) -> list[str]:
        if text_width(token, style) <= max_width:
            return [token]
        chunks = []
        remaining = token
        while remaining:
            lo, hi = 1, len(remaining)
            fit = 1
            while lo <= hi:
                mid = (lo + hi) // 2
                if text_width(remaining[:mid], style) <= max_width:
                    fit = mid
                    lo = mid + 1
                else:
                    hi = mid - 1
            chunks.append(remaining[:fit])
            remaining = remaining[fit:]
        return chunks

    lines: list[str] = []
    current = ""
    for token in words:
        for w in split_long_token(token):
            test = current + (" " if current else "") + w
            if text_width(test, style) <= max_width:
                current = test
            else:
                if current:
                    lines.append(current)
                current = w
    if current:
        lines.append(current)
    return lines or [""]


def page_geometry(page_size: str = "A4") -> PageGeometry:
    key = (page_size or "A4").strip().upper()
    if key not in PAGE_SIZES:
        raise ValueError(f"Unknown page size: {page_size!r}")
    width, height = PAGE_SIZES[key]
    return PageGeometry(width=width, height=height)


# -----------------------------
# Drawing surface
# -----------------------------
class Surface(Protocol):
    geometry: PageGeometry

    @property
    def page_index(self) -> int: ...

    @property
    def page_count(self) -> int: ...

    def begin_section(self, name: str) -> None: ...

    def text(self, x: float, y: float, text: str, style: TextStyle = BODY, align: str = "left") -> None: ...

    def rect(self, x: float, y: float, width: float, height: float, *,
             fill: Optional[str] = None, stroke: Optional[str] = None, radius: float = 0.0) -> None: ...

    def line(self, x1: float, y1: float, x2: float, y2: float, *, color: str = RULE, width: float = 0.5) -> None: ...

    def image(self, asset, x: float, y: float, width: float, height: float, *, opacity: float = 1.0) -> None: ...

    def checkbox(self, x: float, y: float, size: float, *, checked: bool) -> None: ...

    def new_page(self) -> None: ...

    def use_page(self, index: int) -> None: ...


# -----------------------------
# Panels / columns / blocks
# -----------------------------
def bounded_panel(surface: Surface, geometry: PageGeometry, y: float, height: float, kind: PanelKind) -> float:
    """Full-width rounded panel at ``y``. Returns the cursor for the next section."""
    surface.rect(
        geometry.left, y, geometry.usable_width, height,
        fill=kind.fill, stroke=kind.border, radius=PANEL_RADIUS,
    )
    return y + height + SECTION_GAP


class Columns(NamedTuple):
    left: float
    right: float
    width: float


def two_column_split(x: float, width: float, gutter: float = 20 * mm) -> Columns:
    col_w = (width - gutter) / 2.0
    return Columns(left=x, right=x + col_w + gutter, width=col_w)


def titled_block(
    surface: Surface,
    x: float,
    y: float,
    title: str,
    lines: Sequence[str],
    *,
    title_style: TextStyle = SUBSECTION_TITLE,
    body_style: TextStyle = BODY_MUTED,
    title_gap: float = BLOCK_TITLE_GAP,
    pitch: float = BLOCK_LINE_PITCH,
) -> float:
    """Accent title then body lines at a fixed pitch. Returns the offset below the last line."""
    surface.text(x, y, title, title_style)
    line_y = y + title_gap
    for ln in lines:
        surface.text(x, line_y, ln, body_style)
        line_y += pitch
    return line_y


def ensure_room(surface: Surface, geometry: PageGeometry, y: float, height: float,
                bottom: Optional[float] = None) -> float:
    """
    Fixed-height sections are never split: if one would cross the bottom
    margin it starts at the top of a new page instead.
    """
    limit = geometry.bottom if bottom is None else bottom
    if y + height > limit and y > geometry.top:
        surface.new_page()
        return geometry.top
    return y


# -----------------------------
# Paginated grid
# -----------------------------
@dataclass(frozen=True)
class GridColumn:
    label: str
    width: float
    align: str = "left"


@dataclass(frozen=True)
class CellLine:
    text: str
    style: TextStyle = BODY


@dataclass(frozen=True)
class GridCell:
    lines: tuple[CellLine, ...] = ()
    span: int = 1
    align: Optional[str] = None
    # Small raised text pinned to the right edge of the first line
    aside: Optional[CellLine] = None

    @classmethod
    def of(cls, text: str, style: TextStyle = BODY, **kwargs) -> "GridCell":
        return cls(lines=(CellLine(str(text), style),), **kwargs)


GridRow = Sequence[GridCell]


# Minimum space between a cell's first line and its aside
ASIDE_GAP = 8.0


def _cell_spans(row: GridRow, columns: Sequence[GridColumn]):
    """Yields (cell, first column index, spanned width) for each cell."""
    col = 0
    for cell in row:
        span = max(1, cell.span)
        yield cell, col, sum(c.width for c in columns[col:col + span])
        col += span


def fit_cell(cell: GridCell, width: Optional[float]) -> tuple[list[CellLine], Optional[CellLine]]:
    """
    Wraps the cell's lines to the cell's inner width. Returns the wrapped lines
    and the aside when it still fits beside the first line; otherwise the
    aside becomes a line of its own at the end of the cell and None is returned.
    """
    if width is None:
        return list(cell.lines), cell.aside

    inner = width - 2 * CELL_PADDING
    lines = [
        CellLine(part, ln.style)
        for ln in cell.lines
        for part in wrap_text(ln.text, ln.style, inner)
    ]
    aside = cell.aside
    if aside is None:
        return lines, None

    first = text_width(lines[0].text, lines[0].style) if lines else 0.0
    if first + ASIDE_GAP + text_width(aside.text, aside.style) <= inner:
        return lines, aside
    lines.extend(CellLine(part, aside.style) for part in wrap_text(aside.text, aside.style, inner))
    return lines, None


def row_height(row: GridRow, columns: Optional[Sequence[GridColumn]] = None) -> float:
    """Padding plus one pitch per line; with ``columns``, lines are counted after wrapping."""
    if columns is None:
        counts = [len(cell.lines) for cell in row]
    else:
        counts = [len(fit_cell(cell, width)[0]) for cell, _, width in _cell_spans(row, columns)]
    line_count = max(counts + [1])
    return 2 * CELL_PADDING + line_count * CELL_LINE_PITCH


class GridState(Enum):
    """
    ACCUMULATING_ROWS -> PAGE_FULL when the next row would cross the bottom
    margin. For the last row, the footer height counts as part of the row, so
    a last row that fits alone but not with the footer is carried to the next
    page together with it.
    PAGE_FULL -> ACCUMULATING_ROWS after the header is re-emitted on the new page.
    ACCUMULATING_ROWS -> EMITTING_FOOTER once every row is placed, then DONE.
    """
    ACCUMULATING_ROWS = "accumulating_rows"
    PAGE_FULL = "page_full"
    EMITTING_FOOTER = "emitting_footer"
    DONE = "done"


@dataclass(frozen=True)
class GridPlacement:
    kind: str               # header | body | footer
    index: Optional[int]    # body row index
    page: int               # pages after the one the grid started on
    y: float
    height: float


@dataclass(frozen=True)
class GridPlan:
    placements: list[GridPlacement]
    final_y: float
    page_breaks: int


def plan_grid(
    top: float,
    geometry: PageGeometry,
    header_height: float,
    row_heights: Sequence[float],
    footer_height: Optional[float] = None,
) -> GridPlan:
    """
    Pagination state machine for the items grid.

    The header is re-emitted at the top of every continuation page. The footer
    is placed once, directly after the last body row; when the two do not fit
    together the last row moves to the next page with the footer.
    """
    bottom = geometry.bottom
    count = len(row_heights)

    def needed(i: int) -> float:
        h = row_heights[i]
        if i == count - 1 and footer_height is not None:
            h += footer_height
        return h

    placements: list[GridPlacement] = []
    page = 0
    y = top

    # Do not leave a lone header at the bottom of the starting page.
    first = needed(0) if count else (footer_height or 0.0)
    if y > geometry.top and y + header_height + first > bottom:
        page += 1
        y = geometry.top

    placements.append(GridPlacement("header", None, page, y, header_height))
    y += header_height
    rows_on_page = 0
    index = 0
    state = GridState.ACCUMULATING_ROWS

    while state is not GridState.DONE:
        if state is GridState.ACCUMULATING_ROWS:
            if index >= count:
                state = GridState.EMITTING_FOOTER
            elif rows_on_page and y + needed(index) > bottom:
                state = GridState.PAGE_FULL
            else:
                placements.append(GridPlacement("body", index, page, y, row_heights[index]))
                y += row_heights[index]
                index += 1
                rows_on_page += 1

        elif state is GridState.PAGE_FULL:
            page += 1
            y = geometry.top
            placements.append(GridPlacement("header", None, page, y, header_height))
            y += header_height
            rows_on_page = 0
            state = GridState.ACCUMULATING_ROWS

        elif state is GridState.EMITTING_FOOTER:
            if footer_height is not None:
                placements.append(GridPlacement("footer", None, page, y, footer_height))
                y += footer_height
            state = GridState.DONE

    return GridPlan(placements=placements, final_y=y, page_breaks=page)


def _draw_row(surface: Surface, x0: float, y: float, height: float,
              columns: Sequence[GridColumn], row: GridRow, fill: Optional[str]) -> None:
    border = PanelKind.STRUCTURAL.border
    cx = x0
    for cell, col, width in _cell_spans(row, columns):
        align = cell.align or columns[col].align
        surface.rect(cx, y, width, height, fill=fill, stroke=border)

        if align == "right":
            tx = cx + width - CELL_PADDING
        elif align == "center":
            tx = cx + width / 2.0
        else:
            tx = cx + CELL_PADDING

        lines, aside = fit_cell(cell, width)
        for k, ln in enumerate(lines):
            baseline = y + CELL_PADDING + (k + 1) * CELL_LINE_PITCH - 3
            surface.text(tx, baseline, ln.text, ln.style, align=align)
        if aside is not None:
            raised = y + CELL_PADDING + CELL_LINE_PITCH - 6
            surface.text(cx + width - CELL_PADDING, raised, aside.text, aside.style, align="right")

        cx += width


def draw_grid(
    surface: Surface,
    geometry: PageGeometry,
    y: float,
    columns: Sequence[GridColumn],
    rows: Sequence[GridRow],
    *,
    header: Optional[GridRow] = None,
    footer: Optional[GridRow] = None,
) -> float:
    """
    Draws header, body rows and optional footer from ``y`` down, breaking
    pages as planned by :func:`plan_grid`. Returns the cursor just below the
    last row drawn.
    """
    if header is None:
        header = [GridCell.of(c.label, BODY_BOLD) for c in columns]
    plan = plan_grid(
        y,
        geometry,
        row_height(header, columns),
        [row_height(r, columns) for r in rows],
        row_height(footer, columns) if footer is not None else None,
    )

    start_page = surface.page_index
    structural = PanelKind.STRUCTURAL.fill
    for placement in plan.placements:
        while surface.page_index < start_page + placement.page:
            surface.new_page()
        if placement.kind == "header":
            _draw_row(surface, geometry.left, placement.y, placement.height, columns, header, structural)
        elif placement.kind == "footer":
            _draw_row(surface, geometry.left, placement.y, placement.height, columns, footer, structural)
        else:
            _draw_row(surface, geometry.left, placement.y, placement.height, columns, rows[placement.index], None)
    return plan.final_y
