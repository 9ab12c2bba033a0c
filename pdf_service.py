# pdf_service.py
import io
import logging
import re
from datetime import datetime
from pathlib import Path

from reportlab.pdfgen import canvas
from reportlab.lib import colors

from config import Config
from compose import build_layout
from layout_tree import LayoutTree
from models import Document

logger = logging.getLogger(__name__)


def _safe_filename(name: str) -> str:
    # strip characters not allowed on Windows/mac paths
    return re.sub(r'[\\/*?:"<>|]', "", (name or "")).strip() or "Document"


def _color(value):
    return colors.HexColor(value) if value else None


class PdfPainter:
    """
    Draws a LayoutTree on a reportlab canvas.
    Tree coordinates are top-down; reportlab's origin is bottom-left.
    """

    def __init__(self, pdf: canvas.Canvas, tree: LayoutTree):
        self.pdf = pdf
        self.tree = tree
        self.page_h = tree.geometry.height
        self._readers = {}

    def _y(self, y: float) -> float:
        return self.page_h - y

    def text(self, el) -> None:
        pdf = self.pdf
        pdf.setFont(el.style.font, el.style.size)
        pdf.setFillColor(colors.HexColor(el.style.color))
        y = self._y(el.y)
        if el.align == "right":
            pdf.drawRightString(el.x, y, el.text)
        elif el.align == "center":
            pdf.drawCentredString(el.x, y, el.text)
        else:
            pdf.drawString(el.x, y, el.text)

    def rect(self, el) -> None:
        pdf = self.pdf
        fill = _color(el.fill)
        stroke = _color(el.stroke)
        if fill is not None:
            pdf.setFillColor(fill)
        if stroke is not None:
            pdf.setStrokeColor(stroke)
            pdf.setLineWidth(0.5)
        y = self._y(el.y + el.height)
        kwargs = {"stroke": 1 if stroke is not None else 0, "fill": 1 if fill is not None else 0}
        if el.radius:
            pdf.roundRect(el.x, y, el.width, el.height, el.radius, **kwargs)
        else:
            pdf.rect(el.x, y, el.width, el.height, **kwargs)

    def line(self, el) -> None:
        self.pdf.setStrokeColor(colors.HexColor(el.color))
        self.pdf.setLineWidth(el.width)
        self.pdf.line(el.x1, self._y(el.y1), el.x2, self._y(el.y2))

    def image(self, el) -> None:
        asset = self.tree.assets.get(el.asset)
        if asset is None:
            return
        reader = self._readers.get(el.asset)
        if reader is None:
            reader = self._readers[el.asset] = asset.reader()
        pdf = self.pdf
        pdf.saveState()
        if el.opacity < 1.0:
            pdf.setFillAlpha(el.opacity)
        pdf.drawImage(
            reader,
            el.x,
            self._y(el.y + el.height),
            width=el.width,
            height=el.height,
            preserveAspectRatio=True,
            anchor="c",
            mask="auto",
        )
        pdf.restoreState()

    def checkbox(self, el) -> None:
        pdf = self.pdf
        pdf.setStrokeColor(colors.black)
        pdf.setLineWidth(0.5)
        bottom = self._y(el.y + el.size)
        pdf.rect(el.x, bottom, el.size, el.size, stroke=1, fill=0)
        if el.checked:
            s = el.size
            pdf.setLineWidth(1)
            pdf.line(el.x + s * 0.2, bottom + s * 0.5, el.x + s * 0.42, bottom + s * 0.2)
            pdf.line(el.x + s * 0.42, bottom + s * 0.2, el.x + s * 0.85, bottom + s * 0.85)

    def paint(self) -> None:
        for i, page in enumerate(self.tree.pages):
            if i:
                self.pdf.showPage()
            for node in page.sections:
                for el in node.elements:
                    getattr(self, el.kind)(el)


def render_pdf(document: Document, items=None, *, page_size: str | None = None, logo_loader=None) -> bytes:
    """Compose the document and return the PDF bytes."""
    kwargs = {"page_size": page_size}
    if logo_loader is not None:
        kwargs["logo_loader"] = logo_loader
    tree = build_layout(document, items, **kwargs)

    buf = io.BytesIO()
    pdf = canvas.Canvas(buf, pagesize=(tree.geometry.width, tree.geometry.height))
    pdf.setTitle(f"{tree.kind.title()} - {document.id or ''}")
    pdf.setAuthor(document.client_name or "")
    PdfPainter(pdf, tree).paint()
    pdf.save()
    return buf.getvalue()


def pdf_filename(document: Document) -> str:
    return f"{_safe_filename(document.kind.title())}_{_safe_filename(document.client_name)}_{document.id}.pdf"


def generate_and_store_pdf(
    session,
    document_id: str,
    *,
    exports_dir: str | None = None,
    page_size: str | None = None,
    logo_loader=None,
) -> str:
    """
    Generates (or regenerates) a PDF for the given document id.
    Saves to EXPORTS_DIR and updates document.pdf_path + document.pdf_generated_at.

    Returns: absolute pdf path on disk.
    """
    doc = session.get(Document, document_id)
    if not doc:
        raise ValueError(f"Document not found: id={document_id}")

    exports = Path(exports_dir or Config.EXPORTS_DIR)
    exports.mkdir(parents=True, exist_ok=True)
    pdf_path = (exports / pdf_filename(doc)).resolve()
    pdf_path.write_bytes(render_pdf(doc, doc.items, page_size=page_size, logo_loader=logo_loader))

    doc.pdf_path = str(pdf_path)
    doc.pdf_generated_at = datetime.utcnow()
    session.add(doc)
    session.commit()
    logger.info("Stored %s PDF for %s at %s", doc.kind, doc.id, pdf_path)
    return str(pdf_path)
