# app.py
import io
import logging
from functools import partial
from pathlib import Path

from flask import (
    Flask, redirect, url_for,
    send_file, send_from_directory, abort, jsonify
)
from sqlalchemy.orm import selectinload

from assets import load_logo
from config import Config
from models import Base, Document, make_engine, make_session_factory
from pdf_service import generate_and_store_pdf, pdf_filename, render_pdf
from preview import build_preview, render_preview_html

logger = logging.getLogger(__name__)


# -----------------------------
# Helpers
# -----------------------------
def _ensure_dirs(config_object):
    if config_object.SQLALCHEMY_DATABASE_URI.startswith("sqlite"):
        Path("instance").mkdir(parents=True, exist_ok=True)
    Path(config_object.EXPORTS_DIR).mkdir(parents=True, exist_ok=True)


def _document_or_404(session, document_id: str) -> Document:
    doc = (
        session.query(Document)
        .options(selectinload(Document.items))
        .filter(Document.id == document_id)
        .first()
    )
    if not doc:
        abort(404)
    return doc


# -----------------------------
# App factory
# -----------------------------
def create_app(config_object=Config):
    logging.basicConfig(
        level=getattr(logging, str(config_object.LOG_LEVEL), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    _ensure_dirs(config_object)

    app = Flask(__name__)
    app.config.from_object(config_object)

    engine = make_engine(config_object.SQLALCHEMY_DATABASE_URI, echo=config_object.SQLALCHEMY_ECHO)
    Base.metadata.create_all(engine)

    SessionLocal = make_session_factory(engine)
    app.session_factory = SessionLocal

    def db_session():
        return SessionLocal()

    logo_loader = partial(load_logo, config_object.ASSETS_DIR, config_object.LOGO_FILE)

    def _layout(doc):
        return build_preview(doc, doc.items, page_size=config_object.PAGE_SIZE, logo_loader=logo_loader)

    @app.route("/healthz")
    def healthz():
        return jsonify({"ok": True})

    @app.route("/")
    def index():
        return redirect(url_for("documents"))

    @app.route("/documents")
    def documents():
        with db_session() as s:
            rows = s.query(Document).order_by(Document.created_at.desc()).all()
            return jsonify([
                {
                    "id": d.id,
                    "kind": d.kind,
                    "client_name": d.client_name,
                    "created_at": d.created_at.isoformat() if d.created_at else None,
                    "links": {
                        "preview": url_for("document_preview", document_id=d.id),
                        "layout": url_for("document_layout", document_id=d.id),
                        "pdf": url_for("document_pdf", document_id=d.id),
                    },
                }
                for d in rows
            ])

    # -----------------------------
    # Preview (interactive)
    # -----------------------------
    @app.route("/documents/<document_id>/preview")
    def document_preview(document_id):
        with db_session() as s:
            doc = _document_or_404(s, document_id)
            return render_preview_html(_layout(doc), doc)

    @app.route("/documents/<document_id>/layout.json")
    def document_layout(document_id):
        with db_session() as s:
            doc = _document_or_404(s, document_id)
            return jsonify(_layout(doc).to_dict())

    # -----------------------------
    # PDF routes
    # -----------------------------
    @app.route("/documents/<document_id>/pdf")
    def document_pdf(document_id):
        with db_session() as s:
            doc = _document_or_404(s, document_id)
            data = render_pdf(doc, doc.items, page_size=config_object.PAGE_SIZE, logo_loader=logo_loader)
            return send_file(
                io.BytesIO(data),
                mimetype="application/pdf",
                as_attachment=True,
                download_name=pdf_filename(doc),
            )

    @app.route("/documents/<document_id>/pdf/generate", methods=["POST"])
    def document_pdf_generate(document_id):
        with db_session() as s:
            _document_or_404(s, document_id)
            path = generate_and_store_pdf(
                s,
                document_id,
                exports_dir=config_object.EXPORTS_DIR,
                page_size=config_object.PAGE_SIZE,
                logo_loader=logo_loader,
            )
        return jsonify({"id": document_id, "pdf_path": path}), 201

    # -----------------------------
    # Assets (same logical logo the PDF embeds)
    # -----------------------------
    @app.route("/assets/<path:name>")
    def asset(name):
        return send_from_directory(config_object.ASSETS_DIR, name)

    return app


if __name__ == "__main__":
    create_app().run(debug=True)
