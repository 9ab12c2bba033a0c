from datetime import date, datetime
from itertools import count
from pathlib import Path

import pytest

from layout import page_geometry
from layout_tree import LayoutRecorder
from models import Document, LineItem


@pytest.fixture
def make_document():
    def _make(**overrides) -> Document:
        fields = dict(
            id="doc001",
            kind="invoice",
            client_name="Jane Doe",
            created_at=datetime(2024, 1, 5, 9, 30),
            due_date=None,
            currency="USD",
            balance=None,
            payment_mode=None,
            payment_reference=None,
            received_by=None,
        )
        fields.update(overrides)
        return Document(**fields)

    return _make


@pytest.fixture
def make_item():
    ids = count(1)

    def _make(**overrides) -> LineItem:
        n = next(ids)
        fields = dict(
            id=f"item{n:03d}",
            position=n,
            category="Safari Van",
            start_date=date(2024, 1, 5),
            end_date=date(2024, 1, 8),
            quantity=1,
            unit_price=100.0,
            annotation=None,
        )
        fields.update(overrides)
        return LineItem(**fields)

    return _make


@pytest.fixture
def recorder():
    def _make(kind: str = "invoice", page_size: str = "A4") -> LayoutRecorder:
        return LayoutRecorder(kind, page_geometry(page_size))

    return _make


@pytest.fixture
def no_logo():
    return lambda: None


@pytest.fixture
def assets_dir(tmp_path) -> Path:
    from PIL import Image

    folder = tmp_path / "static"
    folder.mkdir()
    Image.new("RGB", (32, 32), (0, 166, 81)).save(folder / "Logo.png")
    return folder
