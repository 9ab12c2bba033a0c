# preview.py
"""
On-screen preview: the same LayoutTree the PDF export paints, turned into
absolutely positioned HTML boxes (1pt -> 1px).
"""
from __future__ import annotations

from typing import Callable, Optional, Sequence

from flask import render_template, url_for

from compose import build_layout
from layout import TextStyle
from layout_tree import LayoutTree

# Baseline -> top of the text box, as a fraction of the font size
ASCENT = 0.8


def build_preview(document, items: Optional[Sequence] = None, **kwargs) -> LayoutTree:
    """Layout tree for the on-screen preview; the same composition the PDF export paints."""
    return build_layout(document, items, **kwargs)


def _font_css(style: TextStyle) -> str:
    font = style.font.lower()
    weight = "bold" if "bold" in font else "normal"
    slant = "italic" if ("oblique" in font or "italic" in font) else "normal"
    if font.startswith("times"):
        family = "'Times New Roman', Times, serif"
    elif font.startswith("courier"):
        family = "'Courier New', Courier, monospace"
    else:
        family = "Helvetica, Arial, sans-serif"
    return (
        f"font-family:{family};font-size:{style.size:g}px;font-weight:{weight};"
        f"font-style:{slant};color:{style.color};"
    )


def _element_view(el, asset_url: Callable[[str], str]) -> dict:
    if el.kind == "text":
        shift = {"right": "-100%", "center": "-50%"}.get(el.align, "0")
        top = el.y - el.style.size * ASCENT
        css = f"left:{el.x:.2f}px;top:{top:.2f}px;transform:translateX({shift});white-space:pre;" + _font_css(el.style)
        return {"type": "text", "css": css, "text": el.text}

    if el.kind == "rect":
        css = f"left:{el.x:.2f}px;top:{el.y:.2f}px;width:{el.width:.2f}px;height:{el.height:.2f}px;"
        css += f"background:{el.fill or 'transparent'};"
        if el.stroke:
            css += f"border:0.5px solid {el.stroke};"
        if el.radius:
            css += f"border-radius:{el.radius:.2f}px;"
        return {"type": "rect", "css": css}

    if el.kind == "line":
        left, top = min(el.x1, el.x2), min(el.y1, el.y2)
        width = max(abs(el.x2 - el.x1), el.width)
        height = max(abs(el.y2 - el.y1), el.width)
        css = f"left:{left:.2f}px;top:{top:.2f}px;width:{width:.2f}px;height:{height:.2f}px;background:{el.color};"
        return {"type": "line", "css": css}

    if el.kind == "image":
        css = (
            f"left:{el.x:.2f}px;top:{el.y:.2f}px;width:{el.width:.2f}px;height:{el.height:.2f}px;"
            f"opacity:{el.opacity:g};object-fit:contain;"
        )
        return {"type": "image", "css": css, "src": asset_url(el.asset), "alt": "Company Logo"}

    if el.kind == "checkbox":
        css = f"left:{el.x:.2f}px;top:{el.y:.2f}px;width:{el.size:.2f}px;height:{el.size:.2f}px;"
        return {"type": "checkbox", "css": css, "checked": el.checked}

    raise ValueError(f"Unknown element kind: {el.kind!r}")


def html_context(tree: LayoutTree, asset_url: Callable[[str], str]) -> dict:
    """Template context for templates/preview.html."""
    pages = []
    for page in tree.pages:
        sections = []
        for node in page.sections:
            sections.append({
                "name": node.name,
                "elements": [_element_view(el, asset_url) for el in node.elements],
            })
        pages.append({"number": page.number, "sections": sections})
    return {
        "kind": tree.kind,
        "page_width": f"{tree.geometry.width:.2f}",
        "page_height": f"{tree.geometry.height:.2f}",
        "pages": pages,
    }


def render_preview_html(tree: LayoutTree, document, asset_url: Optional[Callable[[str], str]] = None) -> str:
    """
    Renders templates/preview.html for ``tree``. Needs a Flask app or request
    context; logo URLs default to the app's ``asset`` route.
    """
    if asset_url is None:
        def asset_url(name):
            return url_for("asset", name=name)
    return render_template("preview.html", document=document, **html_context(tree, asset_url))
