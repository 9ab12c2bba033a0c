from datetime import date

import pytest

from assets import LogoAsset
from compose import build_layout
from invoice_layout import CATEGORY_STYLE, INVOICE_SECTIONS, compose_invoice
from layout import text_width


def _items_node_texts(node):
    return [el.text for el in node.elements if el.kind == "text"]


def test_scenario_a_single_row_and_total(make_document, make_item, no_logo):
    doc = make_document(client_name="Jane Doe", currency="USD", due_date=None)
    items = [make_item(category="Safari Van", quantity=3, unit_price=100)]

    tree = build_layout(doc, items, logo_loader=no_logo)
    texts = tree.texts("items")

    assert texts[:5] == ["#", "Service Details", "Qty", "Rate", "Amount"]
    assert texts[5:11] == ["1", "Safari Van", "Jan 5, 2024 To Jan 8, 2024", "3", "$100.00", "$300.00"]
    assert texts[11:] == ["Total:", "$300.00"]
    assert not any(t.startswith("Due Date") for t in tree.texts())


def test_sections_in_fixed_order(make_document, make_item, no_logo):
    tree = build_layout(make_document(), [make_item()], logo_loader=no_logo)
    assert tree.section_names() == list(INVOICE_SECTIONS)


def test_due_date_line_directly_below_invoice_date(make_document, make_item, no_logo):
    doc = make_document(due_date=date(2024, 2, 4))
    tree = build_layout(doc, [make_item()], logo_loader=no_logo)

    lines = tree.elements("bill_to", "text")
    texts = [t.text for t in lines]
    due = [t for t in lines if t.text.startswith("Due Date:")]
    assert len(due) == 1
    assert due[0].text == "Due Date: Feb 4, 2024"

    date_idx = texts.index("Invoice Date: Jan 5, 2024")
    assert texts[date_idx + 1] == due[0].text
    assert due[0].x == lines[date_idx].x
    assert due[0].y > lines[date_idx].y


def test_absent_due_date_renders_no_placeholder(make_document, make_item, no_logo):
    tree = build_layout(make_document(due_date=None), [make_item()], logo_loader=no_logo)
    texts = tree.texts()
    assert not any("Due Date" in t for t in texts)
    assert not any("None" in t or "undefined" in t for t in texts)


def test_rows_numbered_in_received_order(make_document, make_item, no_logo):
    items = [make_item(category=c) for c in ("Land Cruiser", "Safari Van", "Minibus")]
    tree = build_layout(make_document(), items, logo_loader=no_logo)
    texts = tree.texts("items")
    for n, category in enumerate(("Land Cruiser", "Safari Van", "Minibus"), start=1):
        assert texts[texts.index(category) - 1] == str(n)


def test_annotation_and_reversed_range_rendered_as_given(make_document, make_item, no_logo):
    item = make_item(
        annotation="Driver included",
        start_date=date(2024, 3, 9),
        end_date=date(2024, 3, 2),
    )
    texts = build_layout(make_document(), [item], logo_loader=no_logo).texts("items")
    assert "Driver included" in texts
    assert "Mar 9, 2024 To Mar 2, 2024" in texts


def test_long_item_list_paginates_grid(make_document, make_item, no_logo):
    items = [make_item() for _ in range(60)]
    tree = build_layout(make_document(), items, logo_loader=no_logo)

    grid_nodes = [node for page in tree.pages for node in page.sections if node.name == "items"]
    assert len(grid_nodes) > 1
    # header re-emitted on each page the grid touches
    for node in grid_nodes:
        assert _items_node_texts(node)[:5] == ["#", "Service Details", "Qty", "Rate", "Amount"]

    texts = tree.texts("items")
    assert texts.count("Total:") == 1
    assert "Total:" in _items_node_texts(grid_nodes[-1])
    assert texts[-2:] == ["Total:", "$6,000.00"]

    last = grid_nodes[-1]
    assert "60" in _items_node_texts(last)
    rects = [el for el in last.elements if el.kind == "rect"]
    footer_rect, last_body_rect = rects[-2], rects[-3]
    assert footer_rect.y == pytest.approx(last_body_rect.y + last_body_rect.height)


def test_sections_never_overlap(make_document, make_item, no_logo):
    tree = build_layout(make_document(), [make_item() for _ in range(5)], logo_loader=no_logo)
    page = tree.pages[0]
    spans = []
    for node in page.sections:
        rects = [el for el in node.elements if el.kind == "rect"]
        if rects:
            spans.append((min(r.y for r in rects), max(r.y + r.height for r in rects)))
    for (_, prev_end), (next_start, _) in zip(spans, spans[1:]):
        assert next_start >= prev_end


def test_trailing_panels_move_whole_to_next_page(make_document, make_item, no_logo):
    tree = build_layout(make_document(), [make_item() for _ in range(14)], logo_loader=no_logo)
    bottom = tree.geometry.bottom
    for name in ("payment_details", "footer"):
        rects = tree.elements(name, "rect")
        assert len(rects) == 1
        assert rects[0].y + rects[0].height <= bottom


def test_logo_drawn_when_available(make_document, make_item, recorder):
    logo = LogoAsset(name="Logo.png", data=b"", width=10, height=10)
    surface = recorder()
    compose_invoice(surface, make_document(), [make_item()], logo)
    (image,) = surface.tree.elements("header", "image")
    assert image.asset == "Logo.png"
    assert surface.tree.assets["Logo.png"] is logo


def test_missing_logo_keeps_header_text(make_document, make_item, recorder):
    surface = recorder()
    compose_invoice(surface, make_document(), [make_item()], None)
    assert surface.tree.elements("header", "image") == []
    assert "Kefan Building, Woodavenue Road" in surface.tree.texts("header")


def test_unknown_kind_is_rejected(make_document, no_logo):
    with pytest.raises(ValueError):
        build_layout(make_document(kind="quote"), [], logo_loader=no_logo)


def _text_extent(el):
    w = text_width(el.text, el.style)
    if el.align == "right":
        return el.x - w, el.x
    if el.align == "center":
        return el.x - w / 2, el.x + w / 2
    return el.x, el.x + w


def _texts_outside_cells(tree):
    """Grid texts whose drawn extent leaves the cell rect drawn just before them."""
    outside = []
    for page in tree.pages:
        for node in page.sections:
            if node.name != "items":
                continue
            cell = None
            for el in node.elements:
                if el.kind == "rect":
                    cell = el
                    continue
                left, right = _text_extent(el)
                inside_x = cell.x <= left + 0.01 and right <= cell.x + cell.width + 0.01
                inside_y = cell.y < el.y < cell.y + cell.height
                if not (inside_x and inside_y):
                    outside.append((el.text, round(left), round(right), [round(cell.x), round(cell.x + cell.width)]))
    return outside


def test_long_values_stay_inside_their_cells(make_document, make_item, no_logo):
    doc = make_document(currency="KES")
    items = [
        make_item(
            category="Toyota Land Cruiser Prado TX Extended",
            quantity=12,
            unit_price=250000,
            annotation="Includes driver, fuel, park fees, bottled water and a pop-up roof for game viewing",
        ),
        make_item(),
    ]
    tree = build_layout(doc, items, logo_loader=no_logo)

    assert _texts_outside_cells(tree) == []
    texts = tree.texts("items")
    assert texts.count("KES 3,000,000.00") == 1
    assert texts[-2:] == ["Total:", "KES 3,000,100.00"]
    assert "Jan 5, 2024 To Jan 8, 2024" in texts


def test_wrapped_cell_grows_its_row(make_document, make_item, no_logo):
    short = build_layout(make_document(), [make_item()], logo_loader=no_logo)
    long = build_layout(
        make_document(),
        [make_item(annotation="Airport pickup, " * 20)],
        logo_loader=no_logo,
    )
    # header rects then the body row rects
    short_row = short.elements("items", "rect")[5]
    long_row = long.elements("items", "rect")[5]
    assert long_row.height > short_row.height
    assert _texts_outside_cells(long) == []


def test_aside_moves_below_when_category_is_long(make_document, make_item, no_logo):
    item = make_item(category="Toyota Land Cruiser Prado TX Extended Roof Safari Edition")
    tree = build_layout(make_document(), [item], logo_loader=no_logo)

    by_text = {el.text: el for el in tree.elements("items", "text")}
    aside = by_text["Jan 5, 2024 To Jan 8, 2024"]
    category_lines = [el for el in tree.elements("items", "text") if el.style is CATEGORY_STYLE]
    assert aside.y > max(el.y for el in category_lines)
    assert _texts_outside_cells(tree) == []


def test_short_category_keeps_aside_beside_it(make_document, make_item, no_logo):
    tree = build_layout(make_document(), [make_item()], logo_loader=no_logo)
    by_text = {el.text: el for el in tree.elements("items", "text")}
    assert by_text["Jan 5, 2024 To Jan 8, 2024"].y < by_text["Safari Van"].y
    assert by_text["Jan 5, 2024 To Jan 8, 2024"].align == "right"
