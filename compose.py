# compose.py
from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from assets import load_logo
from config import Config
from invoice_layout import compose_invoice
from layout import page_geometry
from layout_tree import LayoutRecorder, LayoutTree
from receipt_layout import compose_receipt

logger = logging.getLogger(__name__)

COMPOSERS = {
    "invoice": compose_invoice,
    "receipt": compose_receipt,
}


def build_layout(
    document,
    items: Optional[Sequence] = None,
    *,
    page_size: Optional[str] = None,
    logo_loader: Callable = load_logo,
) -> LayoutTree:
    """
    One composition pass for one document. The PDF export and the preview
    both render the tree returned here.
    """
    kind = (document.kind or "").strip().lower()
    composer = COMPOSERS.get(kind)
    if composer is None:
        raise ValueError(f"Unknown document kind: {document.kind!r}")

    items = list(document.items if items is None else items)
    surface = LayoutRecorder(kind, page_geometry(page_size or Config.PAGE_SIZE))
    composer(surface, document, items, logo_loader())
    logger.debug(
        "Composed %s %s: %d item(s), %d page(s)",
        kind, document.id, len(items), surface.page_count,
    )
    return surface.tree
