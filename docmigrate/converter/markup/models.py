"""Data models for the conversion engine.

The core abstraction is ElementNode - a read-only node of the parsed source
document. The classifier maps every node onto one SemanticRole variant, and
the emitters switch on that variant to produce target markup.
"""

from collections.abc import Iterator
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

TEXT_KIND = "#text"

# === ELEMENT TREE ===


class ElementNode(BaseModel):
    """One source element or text run."""

    model_config = ConfigDict(frozen=True)

    kind: str
    attributes: dict[str, str] = Field(default_factory=dict)
    children: tuple["ElementNode", ...] = ()
    text: str = ""

    @property
    def is_text(self) -> bool:
        return self.kind == TEXT_KIND

    @property
    def classes(self) -> list[str]:
        return self.attributes.get("class", "").split()

    def attr(self, name: str, default: str = "") -> str:
        return self.attributes.get(name, default)

    def style(self) -> dict[str, str]:
        """Parse the inline style attribute into a property map."""
        props: dict[str, str] = {}
        for declaration in self.attributes.get("style", "").split(";"):
            name, sep, value = declaration.partition(":")
            if sep and name.strip():
                props[name.strip().lower()] = value.strip().lower()
        return props

    def element_children(self) -> list["ElementNode"]:
        return [child for child in self.children if not child.is_text]

    def text_content(self) -> str:
        """Concatenated text of this node and all descendants."""
        if self.is_text:
            return self.text
        return "".join(child.text_content() for child in self.children)

    def iter_descendants(self) -> Iterator["ElementNode"]:
        for child in self.children:
            yield child
            yield from child.iter_descendants()

    def find(self, *kinds: str) -> "ElementNode | None":
        """First descendant (pre-order) whose kind is one of `kinds`."""
        return next((node for node in self.iter_descendants() if node.kind in kinds), None)

    def with_children(self, children: list["ElementNode"] | tuple["ElementNode", ...]) -> "ElementNode":
        return self.model_copy(update={"children": tuple(children)})


def text(value: str) -> ElementNode:
    """Build a text run."""
    return ElementNode(kind=TEXT_KIND, text=value)


def element(kind: str, *children: "ElementNode | str", **attributes: str) -> ElementNode:
    """Build an element; string children become text runs.

    Attribute names use a trailing underscore for Python keywords
    (`class_="note"`) and underscores for dashes (`data_variable` -> `data-variable`).
    """
    attrs = {name.rstrip("_").replace("_", "-"): value for name, value in attributes.items()}
    nodes = tuple(text(child) if isinstance(child, str) else child for child in children)
    return ElementNode(kind=kind, attributes=attrs, children=nodes)


# === SEMANTIC ROLES ===


class ListOrdering(StrEnum):
    NUMERIC = "numeric"
    ALPHA = "alpha"
    ROMAN = "roman"
    UNORDERED = "unordered"


class AdmonitionKind(StrEnum):
    NOTE = "note"
    TIP = "tip"
    WARNING = "warning"
    IMPORTANT = "important"


class LinkTarget(StrEnum):
    INTERNAL = "internal"
    EXTERNAL = "external"
    ANCHOR = "anchor"


class _Role(BaseModel):
    model_config = ConfigDict(frozen=True)


class HeadingRole(_Role):
    type: Literal["heading"] = "heading"
    level: int = Field(ge=1, le=6)


class ParagraphRole(_Role):
    type: Literal["paragraph"] = "paragraph"


class ListRole(_Role):
    type: Literal["list"] = "list"
    ordering: ListOrdering
    depth: int = Field(ge=0)
    start: int | None = None


class DefinitionListRole(_Role):
    type: Literal["definition_list"] = "definition_list"


class ListItemRole(_Role):
    type: Literal["list_item"] = "list_item"


class AdmonitionRole(_Role):
    type: Literal["admonition"] = "admonition"
    kind: AdmonitionKind
    # Set when a paragraph holds only the label and the body is its next sibling
    label_only: bool = False


class TableRole(_Role):
    type: Literal["table"] = "table"


class ImageRole(_Role):
    type: Literal["image"] = "image"
    inline: bool


class LinkRole(_Role):
    type: Literal["link"] = "link"
    target: LinkTarget
    href: str


class AnchorRole(_Role):
    type: Literal["anchor"] = "anchor"
    name: str


class CodeBlockRole(_Role):
    type: Literal["code_block"] = "code_block"
    language: str | None = None


class InlineEmphasisRole(_Role):
    type: Literal["emphasis"] = "emphasis"
    style: Literal["strong", "italic", "code"]


class LineBreakRole(_Role):
    type: Literal["line_break"] = "line_break"


class RuleRole(_Role):
    type: Literal["rule"] = "rule"


class QuoteRole(_Role):
    type: Literal["quote"] = "quote"


class CollapsibleRole(_Role):
    type: Literal["collapsible"] = "collapsible"
    title: str


class OpaqueRole(_Role):
    type: Literal["opaque"] = "opaque"
    inline: bool


SemanticRole = (
    HeadingRole
    | ParagraphRole
    | ListRole
    | DefinitionListRole
    | ListItemRole
    | AdmonitionRole
    | TableRole
    | ImageRole
    | LinkRole
    | AnchorRole
    | CodeBlockRole
    | InlineEmphasisRole
    | LineBreakRole
    | RuleRole
    | QuoteRole
    | CollapsibleRole
    | OpaqueRole
)


# === RESULT ===


class ConversionWarning(BaseModel):
    """Non-fatal issue recorded during a conversion."""

    code: str
    message: str
    severity: Literal["info", "warning", "error"] = "warning"


class ConversionResult(BaseModel):
    text: str
    warnings: list[ConversionWarning] = Field(default_factory=list)

    def warning_codes(self) -> list[str]:
        return [warning.code for warning in self.warnings]


ElementNode.model_rebuild()
