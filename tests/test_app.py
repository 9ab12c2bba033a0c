from datetime import date, datetime
from pathlib import Path

import pytest

from app import create_app
from config import Config
from models import Document, LineItem
from preview import build_preview, render_preview_html


@pytest.fixture
def app(tmp_path, monkeypatch, assets_dir):
    monkeypatch.chdir(tmp_path)

    class TestConfig(Config):
        TESTING = True
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{(tmp_path / 'test.db').as_posix()}"
        SQLALCHEMY_ECHO = False
        EXPORTS_DIR = (tmp_path / "exports").as_posix()
        ASSETS_DIR = assets_dir.as_posix()
        PAGE_SIZE = "A4"

    app = create_app(TestConfig)
    with app.session_factory() as s:
        invoice = Document(id="inv1", kind="invoice", client_name="Jane Doe",
                           created_at=datetime(2024, 1, 5), currency="USD")
        invoice.items.append(LineItem(position=1, category="Safari Van", start_date=date(2024, 1, 5),
                                      end_date=date(2024, 1, 8), quantity=3, unit_price=100.0))
        receipt = Document(id="rec1", kind="receipt", client_name="John Roe",
                           created_at=datetime(2024, 1, 6), currency="USD", balance=500,
                           payment_mode="M-Pesa", payment_reference="XYZ123")
        receipt.items.append(LineItem(position=1, category="Land Cruiser", start_date=date(2024, 1, 6),
                                      end_date=date(2024, 1, 9), quantity=2, unit_price=100.0))
        s.add_all([invoice, receipt])
        s.commit()
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def test_healthz(client):
    assert client.get("/healthz").get_json() == {"ok": True}


def test_index_redirects_to_documents(client):
    resp = client.get("/")
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/documents")


def test_documents_list(client):
    rows = client.get("/documents").get_json()
    assert [r["id"] for r in rows] == ["rec1", "inv1"]
    assert rows[1]["links"]["preview"] == "/documents/inv1/preview"
    assert rows[1]["links"]["pdf"] == "/documents/inv1/pdf"


def test_invoice_preview(client):
    resp = client.get("/documents/inv1/preview")
    assert resp.status_code == 200
    html = resp.get_data(as_text=True)
    assert "Jane Doe" in html
    assert "$300.00" in html
    assert "/assets/Logo.png" in html
    assert "/documents/inv1/pdf" in html


def test_receipt_preview_marks_selected_method(client):
    html = client.get("/documents/rec1/preview").get_data(as_text=True)
    assert html.count("&#10003;") == 1
    assert "(XYZ123)" in html


def test_layout_json(client):
    tree = client.get("/documents/inv1/layout.json").get_json()
    assert tree["kind"] == "invoice"
    sections = [s for page in tree["pages"] for s in page["sections"]]
    assert [s["name"] for s in sections] == ["header", "bill_to", "items", "payment_details", "footer"]
    texts = [
        el["text"]
        for s in sections if s["name"] == "items"
        for el in s["elements"] if el["type"] == "text"
    ]
    assert texts[-2:] == ["Total:", "$300.00"]


def test_pdf_download(client):
    resp = client.get("/documents/rec1/pdf")
    assert resp.status_code == 200
    assert resp.mimetype == "application/pdf"
    assert "attachment" in resp.headers["Content-Disposition"]
    assert resp.data.startswith(b"%PDF")


@pytest.mark.parametrize("url", ["/documents/nope/preview", "/documents/nope/pdf", "/documents/nope/layout.json"])
def test_unknown_document_is_404(client, url):
    assert client.get(url).status_code == 404


def test_generate_stores_pdf(client, app):
    resp = client.post("/documents/inv1/pdf/generate")
    assert resp.status_code == 201
    path = Path(resp.get_json()["pdf_path"])
    assert path.exists()
    assert path.read_bytes().startswith(b"%PDF")

    with app.session_factory() as s:
        assert s.get(Document, "inv1").pdf_path == str(path)


def test_logo_asset_served(client):
    resp = client.get("/assets/Logo.png")
    assert resp.status_code == 200
    assert resp.mimetype == "image/png"
    resp.close()


def test_preview_route_renders_through_preview_adapter(client, monkeypatch):
    import app as app_module

    seen = []
    original = app_module.render_preview_html

    def spy(tree, document, *args, **kwargs):
        seen.append((tree.kind, document.id))
        return original(tree, document, *args, **kwargs)

    monkeypatch.setattr(app_module, "render_preview_html", spy)
    resp = client.get("/documents/rec1/preview")
    assert resp.status_code == 200
    assert seen == [("receipt", "rec1")]


def test_render_preview_html_outside_routes(app, make_document, make_item, no_logo):
    doc = make_document(id="inv1")
    items = [make_item(quantity=3)]
    with app.test_request_context():
        html = render_preview_html(build_preview(doc, items, logo_loader=no_logo), doc)
    assert 'data-page="1"' in html
    assert "$300.00" in html
    assert "/documents/inv1/pdf" in html
    assert 'data-section="items"' in html
