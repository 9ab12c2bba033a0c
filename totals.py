# totals.py
from __future__ import annotations

from typing import Iterable


def extended_amount(item) -> float:
    return item.quantity * item.unit_price


def document_total(items: Iterable) -> float:
    """
    Sum of quantity * unit_price over the items, 0 for an empty list.
    Recomputed on every render, never stored.
    """
    return sum((extended_amount(item) for item in items), 0)
