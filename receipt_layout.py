# receipt_layout.py
from __future__ import annotations

from enum import Enum
from typing import Optional, Sequence

from reportlab.lib.units import mm

from config import Business
from formatting import format_currency, format_date
from layout import (
    BODY,
    BODY_MUTED,
    LABEL,
    RULE,
    Columns,
    PageGeometry,
    Surface,
    TextStyle,
    ensure_room,
    two_column_split,
    wrap_text,
)
from totals import document_total

RECEIPT_SECTIONS = (
    "title", "date", "received_from", "amount", "for", "received_by",
    "payment_method", "balance", "disclaimer",
)

TITLE_STYLE = TextStyle(size=24)
WATERMARK_SIZE = 64 * mm
WATERMARK_OPACITY = 0.15

BLOCK_H = 30 * mm
FOR_LINE_PITCH = 10 * mm
CHECKLIST_PITCH = 15 * mm
CHECKBOX_SIZE = 4 * mm
BALANCE_PITCH = 15 * mm
VALUE_LINE_PITCH = 6 * mm


class PaymentMethod(Enum):
    # (label, accepted spellings of Document.payment_mode)
    CASH = ("Cash", ("cash",))
    CHEQUE = ("Cheque", ("cheque", "check"))
    MOBILE_MONEY = ("M-PESA", ("m-pesa", "mpesa", "mobile-money", "mobile money"))
    BANK = ("Bank", ("bank", "bank transfer"))

    @property
    def label(self) -> str:
        return self.value[0]

    @classmethod
    def match(cls, mode: Optional[str]) -> Optional["PaymentMethod"]:
        key = (mode or "").strip().lower()
        if not key:
            return None
        for method in cls:
            if key in method.value[1]:
                return method
        return None


def _field_label(surface: Surface, cols: Columns, y: float, label: str) -> None:
    """Label with a rule under it. Always drawn, even when the value is absent."""
    surface.text(cols.left, y, label, LABEL)
    surface.line(cols.left, y + 5 * mm, cols.left + cols.width, y + 5 * mm, color=RULE, width=0.3)


def _field_block(surface: Surface, cols: Columns, y: float, section: str, label: str, value: Optional[str]) -> float:
    surface.begin_section(section)
    _field_label(surface, cols, y, label)
    if not value:
        return y + BLOCK_H
    lines = wrap_text(value, BODY, cols.width)
    for i, ln in enumerate(lines):
        surface.text(cols.left, y + 15 * mm + i * VALUE_LINE_PITCH, ln, BODY)
    return y + BLOCK_H + (len(lines) - 1) * VALUE_LINE_PITCH


def _for_block(surface: Surface, geometry: PageGeometry, cols: Columns, y: float,
               items: Sequence, limit: float) -> float:
    y = ensure_room(surface, geometry, y, 15 * mm + FOR_LINE_PITCH, bottom=limit)
    surface.begin_section("for")
    start_page = surface.page_index
    _field_label(surface, cols, y, "For")

    line_y = y + 15 * mm
    for item in items:
        period = f"{format_date(item.start_date)} - {format_date(item.end_date)}"
        category = item.category or ""
        entry = f"{category} ({period})" if category else f"({period})"
        # continuation lines of one entry sit closer than separate entries
        for i, ln in enumerate(wrap_text(entry, BODY, cols.width)):
            if i:
                line_y += VALUE_LINE_PITCH - FOR_LINE_PITCH
            line_y = ensure_room(surface, geometry, line_y, 0, bottom=limit)
            surface.text(cols.left, line_y, ln, BODY)
            line_y += FOR_LINE_PITCH

    if surface.page_index != start_page:
        return line_y
    return max(y + BLOCK_H, line_y)


def _left_column(surface: Surface, geometry: PageGeometry, cols: Columns, y: float,
                 document, items: Sequence, total, limit: float) -> float:
    y = _field_block(surface, cols, y, "date", "Date", format_date(document.created_at))
    y = _field_block(surface, cols, y, "received_from", "Received From", document.client_name)
    y = _field_block(surface, cols, y, "amount", "Amount", format_currency(total, document.currency))
    y = _for_block(surface, geometry, cols, y, items, limit)
    y = ensure_room(surface, geometry, y, 15 * mm, bottom=limit)
    return _field_block(surface, cols, y, "received_by", "Received By", document.received_by)


def _right_column(surface: Surface, cols: Columns, y: float, document, total) -> float:
    x = cols.right
    surface.begin_section("payment_method")
    surface.text(x, y, "Paid By", LABEL)
    y += 20 * mm

    selected = PaymentMethod.match(document.payment_mode)
    for i, method in enumerate(PaymentMethod):
        row_y = y + i * CHECKLIST_PITCH
        checked = method is selected
        surface.checkbox(x, row_y - CHECKBOX_SIZE, CHECKBOX_SIZE, checked=checked)
        surface.text(x + 10 * mm, row_y, method.label, BODY)
        if checked and document.payment_reference:
            ref_lines = wrap_text(f"({document.payment_reference})", BODY, cols.width - 50 * mm)
            for k, ln in enumerate(ref_lines):
                surface.text(x + 50 * mm, row_y + k * VALUE_LINE_PITCH, ln, BODY)
    y += 80 * mm

    surface.begin_section("balance")
    right = x + cols.width
    surface.line(x, y, right, y, color=RULE, width=0.3)
    balance = document.balance if document.balance is not None else 0
    # "Balance Due" repeats the stored balance rather than balance - payment.
    rows = [
        ("Current Balance:", format_currency(balance, document.currency)),
        ("Payment Amount:", format_currency(total, document.currency)),
        ("Balance Due:", format_currency(balance, document.currency)),
    ]
    for i, (label, value) in enumerate(rows, start=1):
        row_y = y + i * BALANCE_PITCH
        surface.text(x, row_y, label, BODY)
        surface.text(right, row_y, value, BODY, align="right")
    return y + len(rows) * BALANCE_PITCH


def compose_receipt(surface: Surface, document, items: Sequence, logo=None) -> float:
    """
    Title and watermark, then two independent columns from the same origin:
    received-from details on the left, payment method and balance on the
    right. The disclaimer sits at the foot of the last page.
    """
    geometry = surface.geometry
    items = list(items)
    total = document_total(items)

    surface.begin_section("title")
    surface.text(geometry.center_x, geometry.top, "RECEIPT", TITLE_STYLE, align="center")
    if logo is not None:
        surface.image(
            logo,
            geometry.center_x - WATERMARK_SIZE / 2,
            60 * mm,
            WATERMARK_SIZE,
            WATERMARK_SIZE,
            opacity=WATERMARK_OPACITY,
        )

    cols = two_column_split(geometry.left, geometry.usable_width, 10 * mm)
    origin = geometry.top + 40 * mm
    disclaimer_y = geometry.height - 20 * mm
    first_page = surface.page_index

    left_y = _left_column(surface, geometry, cols, origin, document, items, total, disclaimer_y - 8 * mm)
    last_page = surface.page_index

    surface.use_page(first_page)
    right_y = _right_column(surface, cols, origin, document, total)

    surface.use_page(last_page)
    surface.begin_section("disclaimer")
    surface.text(geometry.center_x, disclaimer_y, Business.RECEIPT_DISCLAIMER, BODY_MUTED, align="center")
    return left_y if last_page != first_page else max(left_y, right_y)
