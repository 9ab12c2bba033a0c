# layout_tree.py
"""
The composed document: pages -> sections -> absolutely positioned elements.

Composers draw into a :class:`LayoutRecorder`; the PDF export and the HTML
preview both render the resulting :class:`LayoutTree`.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Optional, Union

from layout import BODY, RULE, PageGeometry, TextStyle


@dataclass(frozen=True)
class TextElement:
    x: float
    y: float
    text: str
    style: TextStyle = BODY
    align: str = "left"
    kind = "text"


@dataclass(frozen=True)
class RectElement:
    x: float
    y: float
    width: float
    height: float
    fill: Optional[str] = None
    stroke: Optional[str] = None
    radius: float = 0.0
    kind = "rect"


@dataclass(frozen=True)
class LineElement:
    x1: float
    y1: float
    x2: float
    y2: float
    color: str = RULE
    width: float = 0.5
    kind = "line"


@dataclass(frozen=True)
class ImageElement:
    asset: str
    x: float
    y: float
    width: float
    height: float
    opacity: float = 1.0
    kind = "image"


@dataclass(frozen=True)
class CheckboxElement:
    x: float
    y: float
    size: float
    checked: bool = False
    kind = "checkbox"


Element = Union[TextElement, RectElement, LineElement, ImageElement, CheckboxElement]


@dataclass
class SectionNode:
    name: str
    elements: list = field(default_factory=list)

    def texts(self) -> list[str]:
        return [el.text for el in self.elements if el.kind == "text"]


@dataclass
class Page:
    number: int
    sections: list[SectionNode] = field(default_factory=list)

    def section(self, name: str) -> Optional[SectionNode]:
        for node in self.sections:
            if node.name == name:
                return node
        return None


@dataclass
class LayoutTree:
    kind: str
    geometry: PageGeometry
    pages: list[Page] = field(default_factory=list)
    # logical asset name -> LogoAsset
    assets: dict = field(default_factory=dict)

    def section_names(self) -> list[str]:
        names: list[str] = []
        for page in self.pages:
            for node in page.sections:
                if node.name not in names:
                    names.append(node.name)
        return names

    def elements(self, section: Optional[str] = None, kind: Optional[str] = None) -> list:
        out = []
        for page in self.pages:
            for node in page.sections:
                if section is not None and node.name != section:
                    continue
                out.extend(el for el in node.elements if kind is None or el.kind == kind)
        return out

    def texts(self, section: Optional[str] = None) -> list[str]:
        return [el.text for el in self.elements(section, "text")]

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "page": {"width": self.geometry.width, "height": self.geometry.height},
            "pages": [
                {
                    "number": page.number,
                    "sections": [
                        {
                            "name": node.name,
                            "elements": [{"type": el.kind, **asdict(el)} for el in node.elements],
                        }
                        for node in page.sections
                    ],
                }
                for page in self.pages
            ],
        }


class LayoutRecorder:
    """Surface that records drawing calls into a LayoutTree."""

    def __init__(self, kind: str, geometry: PageGeometry):
        self.geometry = geometry
        self.tree = LayoutTree(kind=kind, geometry=geometry, pages=[Page(number=1)])
        self._page = 0
        self._section = "body"

    @property
    def page_index(self) -> int:
        return self._page

    @property
    def page_count(self) -> int:
        return len(self.tree.pages)

    def begin_section(self, name: str) -> None:
        self._section = name

    def new_page(self) -> None:
        if self._page + 1 >= len(self.tree.pages):
            self.tree.pages.append(Page(number=len(self.tree.pages) + 1))
        self._page += 1

    def use_page(self, index: int) -> None:
        if not 0 <= index < len(self.tree.pages):
            raise IndexError(f"No page at index {index}")
        self._page = index

    def _add(self, element) -> None:
        page = self.tree.pages[self._page]
        if not page.sections or page.sections[-1].name != self._section:
            page.sections.append(SectionNode(self._section))
        page.sections[-1].elements.append(element)

    def text(self, x, y, text, style=BODY, align="left") -> None:
        self._add(TextElement(x, y, str(text), style, align))

    def rect(self, x, y, width, height, *, fill=None, stroke=None, radius=0.0) -> None:
        self._add(RectElement(x, y, width, height, fill, stroke, radius))

    def line(self, x1, y1, x2, y2, *, color=RULE, width=0.5) -> None:
        self._add(LineElement(x1, y1, x2, y2, color, width))

    def image(self, asset, x, y, width, height, *, opacity=1.0) -> None:
        self.tree.assets[asset.name] = asset
        self._add(ImageElement(asset.name, x, y, width, height, opacity))

    def checkbox(self, x, y, size, *, checked) -> None:
        self._add(CheckboxElement(x, y, size, bool(checked)))
