"""HTML parsing into the generic element tree using BeautifulSoup + lxml.

The engine itself only consumes ElementNode trees; this adapter is the thin
seam that turns exported HTML into one. Script/style/comment nodes are
dropped and namespaced authoring-tool elements (`MadCap:xref`, ...) are
unwrapped so their content survives as plain children.
"""

from bs4 import BeautifulSoup, Comment, Doctype, NavigableString, Tag
from bs4.element import CData, ProcessingInstruction

from docmigrate.converter.markup.models import TEXT_KIND, ElementNode

DROPPED_TAGS = frozenset({"script", "style", "noscript", "head", "title", "meta", "link"})

_SKIPPED_STRINGS = (Comment, Doctype, CData, ProcessingInstruction)


def _attributes(tag: Tag) -> dict[str, str]:
    attrs: dict[str, str] = {}
    for name, value in tag.attrs.items():
        # bs4 returns multi-valued attributes (class, rel) as lists
        attrs[name.lower()] = " ".join(value) if isinstance(value, list) else str(value)
    return attrs


def _convert(tag: Tag) -> list[ElementNode]:
    children: list[ElementNode] = []
    for child in tag.children:
        if isinstance(child, _SKIPPED_STRINGS):
            continue
        if isinstance(child, NavigableString):
            if str(child):
                children.append(ElementNode(kind=TEXT_KIND, text=str(child)))
            continue
        if not isinstance(child, Tag):
            continue
        name = child.name.lower()
        if name in DROPPED_TAGS:
            continue
        if ":" in name:
            children.extend(_convert(child))
            continue
        children.append(ElementNode(kind=name, attributes=_attributes(child), children=tuple(_convert(child))))
    return children


def parse_html(markup: str | bytes) -> ElementNode:
    """Parse an HTML document (or fragment) into a `body` rooted element tree."""
    soup = BeautifulSoup(markup, "lxml")
    root = soup.body or soup
    attrs = _attributes(root) if isinstance(root, Tag) and root is not soup else {}
    return ElementNode(kind="body", attributes=attrs, children=tuple(_convert(root)))
