# invoice_layout.py
from __future__ import annotations

from typing import Sequence

from reportlab.lib.units import mm

from config import Business
from formatting import format_currency, format_date
from layout import (
    ACCENT_GREEN,
    ACCENT_ORANGE,
    BODY_BOLD,
    BODY_MUTED,
    CELL_PADDING,
    LABEL,
    NOTE,
    SECTION_GAP,
    SECTION_TITLE,
    SUPERSCRIPT,
    CellLine,
    GridCell,
    GridColumn,
    PageGeometry,
    PanelKind,
    Surface,
    TextStyle,
    bounded_panel,
    draw_grid,
    ensure_room,
    text_width,
    titled_block,
    two_column_split,
)
from totals import document_total, extended_amount

INVOICE_SECTIONS = ("header", "bill_to", "items", "payment_details", "footer")

HEADER_BAND_H = 40 * mm
LOGO_SIZE = 24 * mm
BILL_TO_H = 50 * mm
PAYMENT_H = 80 * mm
FOOTER_H = 40 * mm
PANEL_PAD = 10 * mm

CATEGORY_STYLE = TextStyle("Helvetica-Bold", 10, ACCENT_GREEN)
HEADING_STYLE = TextStyle("Helvetica-Bold", 20, ACCENT_ORANGE)
THANK_YOU_STYLE = TextStyle(size=14)


def header_band(surface: Surface, geometry: PageGeometry, y: float, logo=None) -> float:
    """Contact text left and right, logo centered. A missing logo is skipped."""
    surface.begin_section("header")
    for i, ln in enumerate(Business.CONTACT_LEFT):
        surface.text(geometry.left, y + i * 6 * mm, ln, BODY_MUTED)
    for i, ln in enumerate(Business.CONTACT_RIGHT):
        surface.text(geometry.right, y + i * 6 * mm, ln, BODY_MUTED, align="right")
    if logo is not None:
        surface.image(logo, geometry.center_x - LOGO_SIZE / 2, y - 10 * mm, LOGO_SIZE, LOGO_SIZE)
    return y + HEADER_BAND_H


def _bill_to_panel(surface: Surface, geometry: PageGeometry, y: float, document) -> float:
    surface.begin_section("bill_to")
    top = y
    next_y = bounded_panel(surface, geometry, top, BILL_TO_H, PanelKind.INFORMATIONAL)
    x = geometry.left + PANEL_PAD
    right = geometry.right - PANEL_PAD

    surface.text(x, top + 15 * mm, "Bill To:", SECTION_TITLE)
    surface.text(x, top + 25 * mm, document.client_name or "", LABEL)
    surface.text(x, top + 35 * mm, f"Invoice Date: {format_date(document.created_at)}", BODY_MUTED)
    if document.due_date is not None:
        surface.text(x, top + 42 * mm, f"Due Date: {format_date(document.due_date)}", BODY_MUTED)

    surface.text(right, top + 15 * mm, "INVOICE", HEADING_STYLE, align="right")
    if document.id:
        surface.text(right, top + 25 * mm, f"No. {document.id}", BODY_MUTED, align="right")
    return next_y


# Minimum widths of the fixed columns; each grows to fit its widest value
NUMBER_W, QTY_W, RATE_W, AMOUNT_W = 24, 40, 80, 85
MIN_DETAILS_W = 120


def _widest(cells: Sequence[GridCell]) -> float:
    return max((text_width(ln.text, ln.style) for cell in cells for ln in cell.lines), default=0.0)


def item_columns(geometry: PageGeometry, rows: Sequence = (), footer: Sequence[GridCell] = ()) -> list[GridColumn]:
    """
    Service Details takes whatever the fixed columns leave. When fitted amounts
    would squeeze it below MIN_DETAILS_W, the fixed columns keep their minimum
    widths and long values wrap inside their cells.
    """
    def fitted(index: int, base: float, extra: Sequence[GridCell] = ()) -> float:
        cells = [row[index] for row in rows] + list(extra)
        return max(base, _widest(cells) + 2 * CELL_PADDING)

    widths = [fitted(0, NUMBER_W), fitted(2, QTY_W), fitted(3, RATE_W), fitted(4, AMOUNT_W, footer[-1:])]
    if geometry.usable_width - sum(widths) < MIN_DETAILS_W:
        widths = [NUMBER_W, QTY_W, RATE_W, AMOUNT_W]
    number, qty, rate, amount = widths
    return [
        GridColumn("#", number),
        GridColumn("Service Details", geometry.usable_width - sum(widths)),
        GridColumn("Qty", qty, "center"),
        GridColumn("Rate", rate, "right"),
        GridColumn("Amount", amount, "right"),
    ]


def item_rows(items: Sequence, currency: str) -> list[list[GridCell]]:
    rows = []
    for n, item in enumerate(items, start=1):
        details = [CellLine(item.category or "", CATEGORY_STYLE)]
        if item.annotation:
            details.append(CellLine(item.annotation, NOTE))
        period = f"{format_date(item.start_date)} To {format_date(item.end_date)}"
        rows.append([
            GridCell.of(str(n)),
            GridCell(lines=tuple(details), aside=CellLine(period, SUPERSCRIPT)),
            GridCell.of(str(item.quantity)),
            GridCell.of(format_currency(item.unit_price, currency)),
            GridCell.of(format_currency(extended_amount(item), currency)),
        ])
    return rows


def _items_grid(surface: Surface, geometry: PageGeometry, y: float, document, items: Sequence) -> float:
    surface.begin_section("items")
    rows = item_rows(items, document.currency)
    footer = [
        GridCell.of("Total:", BODY_BOLD, span=4, align="right"),
        GridCell.of(format_currency(document_total(items), document.currency), BODY_BOLD),
    ]
    columns = item_columns(geometry, rows, footer)
    end = draw_grid(surface, geometry, y, columns, rows, footer=footer)
    return end + SECTION_GAP


def _payment_panel(surface: Surface, geometry: PageGeometry, y: float) -> float:
    y = ensure_room(surface, geometry, y, PAYMENT_H)
    surface.begin_section("payment_details")
    top = y
    next_y = bounded_panel(surface, geometry, top, PAYMENT_H, PanelKind.NEUTRAL)
    x = geometry.left + PANEL_PAD
    surface.text(x, top + 15 * mm, "Payment Details", SECTION_TITLE)

    cols = two_column_split(x, geometry.usable_width - 2 * PANEL_PAD)
    titled_block(surface, cols.left, top + 30 * mm, Business.BANK_TRANSFER_TITLE, Business.BANK_TRANSFER_LINES)
    titled_block(surface, cols.right, top + 30 * mm, Business.MOBILE_MONEY_TITLE, Business.MOBILE_MONEY_LINES)
    return next_y


def _footer_panel(surface: Surface, geometry: PageGeometry, y: float) -> float:
    y = ensure_room(surface, geometry, y, FOOTER_H)
    surface.begin_section("footer")
    top = y
    next_y = bounded_panel(surface, geometry, top, FOOTER_H, PanelKind.NEUTRAL)
    surface.text(geometry.center_x, top + 15 * mm, Business.THANK_YOU, THANK_YOU_STYLE, align="center")
    surface.text(geometry.center_x, top + 25 * mm, Business.CONTACT_LINE, BODY_MUTED, align="center")
    return next_y


def compose_invoice(surface: Surface, document, items: Sequence, logo=None) -> float:
    """
    Header band, bill-to panel, items grid, payment details, footer; each
    placed below the previous one. Returns the final cursor.
    """
    geometry = surface.geometry
    items = list(items)
    y = geometry.top
    y = header_band(surface, geometry, y, logo)
    y = _bill_to_panel(surface, geometry, y, document)
    y = _items_grid(surface, geometry, y, document, items)
    y = _payment_panel(surface, geometry, y)
    y = _footer_panel(surface, geometry, y)
    return y
