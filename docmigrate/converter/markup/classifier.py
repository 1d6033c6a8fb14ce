"""Structural classifier: element node + ancestor context -> SemanticRole.

Resolution order, first match wins:
1. explicit role attributes set upstream (`data-role`, `admonition`, ...)
2. tag defaults (headings, paragraphs, lists, tables, images, links, code)
3. class-name heuristics against the admonition vocabulary, including a
   leading label span ("Note:") on paragraphs
4. image geometry (inline icon vs. block figure)

Anything else is Opaque and only forwards its children.
"""

import re
from dataclasses import dataclass
from urllib.parse import urlparse

from docmigrate.converter.markup.models import (
    AdmonitionKind,
    AdmonitionRole,
    AnchorRole,
    CodeBlockRole,
    CollapsibleRole,
    DefinitionListRole,
    ElementNode,
    HeadingRole,
    ImageRole,
    InlineEmphasisRole,
    LineBreakRole,
    LinkRole,
    LinkTarget,
    ListItemRole,
    ListOrdering,
    ListRole,
    OpaqueRole,
    ParagraphRole,
    QuoteRole,
    RuleRole,
    SemanticRole,
    TableRole,
)
from docmigrate.converter.markup.numbering import declared_ordering
from docmigrate.converter.markup.profiles import Heuristics
from docmigrate.converter.markup.resolver import ResolvedTree

INLINE_KINDS = frozenset(
    {
        "#text",
        "a",
        "abbr",
        "acronym",
        "b",
        "big",
        "br",
        "cite",
        "code",
        "del",
        "dfn",
        "em",
        "font",
        "i",
        "img",
        "ins",
        "kbd",
        "label",
        "mark",
        "nobr",
        "q",
        "s",
        "samp",
        "small",
        "span",
        "strike",
        "strong",
        "sub",
        "sup",
        "time",
        "tt",
        "u",
        "var",
        "wbr",
    }
)

# Containers whose class may mark them as a callout
_ADMONITION_CONTAINERS = frozenset({"div", "section", "aside", "blockquote", "p"})
_LABEL_CARRIERS = frozenset({"span", "b", "strong", "em", "i", "label"})
_IMAGE_WRAPPERS = frozenset({"p", "div", "figure", "center"})
_EXTERNAL_SCHEMES = frozenset({"http", "https", "mailto", "ftp", "ftps", "tel", "news"})
_SCRIPT_SCHEMES = frozenset({"javascript", "vbscript", "data"})
_PIXELS_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(?:px)?\s*$")
_LANGUAGE_CLASS_RE = re.compile(r"^(?:language|lang|brush)[-:]?(?P<lang>[\w+#.-]+)$", re.IGNORECASE)


@dataclass(frozen=True)
class AncestorContext:
    """What the classifier may know about a node's surroundings."""

    parent: ElementNode | None = None
    ancestors: tuple[str, ...] = ()
    list_ancestors: int = 0
    # list_ancestors value where marker depth restarts (delimited blocks)
    list_offset: int = 0

    @property
    def list_depth(self) -> int:
        """Depth a list would get if it started here."""
        return self.list_ancestors - self.list_offset

    def inside(self, *kinds: str) -> bool:
        return any(kind in self.ancestors for kind in kinds)

    def child(self, node: ElementNode, *, restart_lists: bool = False) -> "AncestorContext":
        lists = self.list_ancestors + (1 if node.kind in ("ol", "ul") else 0)
        return AncestorContext(
            parent=node,
            ancestors=(*self.ancestors, node.kind),
            list_ancestors=lists,
            list_offset=lists if restart_lists else self.list_offset,
        )


class StructuralClassifier:
    """Pure, deterministic node classification."""

    def __init__(self, heuristics: Heuristics, resolution: ResolvedTree | None = None):
        self.heuristics = heuristics
        self.resolution = resolution
        self._vocabulary = {word.lower(): kind for word, kind in heuristics.admonition_vocabulary.items()}
        words = "|".join(sorted((re.escape(word) for word in self._vocabulary), key=len, reverse=True))
        self._label_re = re.compile(rf"^\s*(?P<word>{words})\s*:?\s*$", re.IGNORECASE)
        self._leading_label_re = re.compile(rf"^\s*(?P<word>{words})\s*:", re.IGNORECASE)
        self._icon_res = [re.compile(pattern, re.IGNORECASE) for pattern in heuristics.icon_path_patterns]

    def classify(self, node: ElementNode, context: AncestorContext) -> SemanticRole:
        if node.is_text:
            return OpaqueRole(inline=True)
        role = self._explicit_role(node)
        if role is None:
            role = self._tag_role(node, context)
        if role is None:
            role = self._class_role(node)
        if role is None:
            role = OpaqueRole(inline=node.kind in INLINE_KINDS)
        return role

    # === VOCABULARY ===

    def admonition_kind(self, word: str) -> AdmonitionKind:
        """Canonical kind for a source word, Note when unknown."""
        return self._vocabulary.get(word.strip().rstrip(":").lower(), AdmonitionKind.NOTE)

    def label_word(self, value: str) -> str | None:
        """The vocabulary word if `value` is exactly a label like "Note:"."""
        if len(value.strip()) > self.heuristics.admonition_label_max_chars:
            return None
        match = self._label_re.match(value)
        return match.group("word") if match else None

    def leading_label(self, value: str) -> str | None:
        """The vocabulary word if `value` starts with "Word:"."""
        match = self._leading_label_re.match(value)
        return match.group("word") if match else None

    def class_kind(self, node: ElementNode) -> AdmonitionKind | None:
        for cls in node.classes:
            lowered = cls.lower()
            for prefix in self.heuristics.admonition_class_prefixes:
                lowered = lowered.removeprefix(prefix)
            for token in [lowered, *re.split(r"[-_]", lowered)]:
                for suffix in ("", *self.heuristics.admonition_class_suffixes):
                    word = token.removesuffix(suffix) if suffix else token
                    if word in self._vocabulary:
                        return self._vocabulary[word]
        return None

    # === RESOLUTION STEPS ===

    def _explicit_role(self, node: ElementNode) -> SemanticRole | None:
        for attribute in ("admonition", "data-admonition"):
            value = node.attr(attribute)
            if value:
                return AdmonitionRole(kind=self.admonition_kind(value))
        role = node.attr("data-role").strip().lower() or node.attr("role").strip().lower()
        if not role:
            return None
        if role in self._vocabulary:
            return AdmonitionRole(kind=self._vocabulary[role])
        match role:
            case "collapsible" | "dropdown":
                return CollapsibleRole(title=node.attr("data-title") or node.attr("title"))
            case "quote":
                return QuoteRole()
            case "code":
                return CodeBlockRole(language=node.attr("data-language") or None)
            case "heading":
                level = node.attr("aria-level")
                return HeadingRole(level=int(level) if level.isdigit() and 1 <= int(level) <= 6 else 2)
        return None

    def _tag_role(self, node: ElementNode, context: AncestorContext) -> SemanticRole | None:
        kind = node.kind
        match kind:
            case "h1" | "h2" | "h3" | "h4" | "h5" | "h6":
                return HeadingRole(level=int(kind[1]))
            case "p":
                return self._paragraph_role(node)
            case "ol" | "ul":
                return self._list_role(node, context)
            case "dl":
                return DefinitionListRole()
            case "li":
                return ListItemRole()
            case "table":
                return TableRole()
            case "img":
                return self._image_role(node, context)
            case "a":
                return self._link_role(node)
            case "pre":
                return CodeBlockRole(language=self._code_language(node))
            case "code" | "kbd" | "samp" | "tt":
                return InlineEmphasisRole(style="code")
            case "strong" | "b":
                return InlineEmphasisRole(style="strong")
            case "em" | "i" | "cite" | "dfn":
                return InlineEmphasisRole(style="italic")
            case "br":
                return LineBreakRole()
            case "hr":
                return RuleRole()
            case "details":
                summary = node.find("summary")
                return CollapsibleRole(title=" ".join(summary.text_content().split()) if summary else "")
            case "blockquote":
                callout = self.class_kind(node)
                return AdmonitionRole(kind=callout) if callout else QuoteRole()
        return None

    def _class_role(self, node: ElementNode) -> SemanticRole | None:
        if node.kind not in _ADMONITION_CONTAINERS:
            return None
        kind = self.class_kind(node)
        if kind is not None:
            return AdmonitionRole(kind=kind)
        return self._label_role(node)

    # === PARAGRAPHS AND LABELS ===

    def _paragraph_role(self, node: ElementNode) -> SemanticRole:
        kind = self.class_kind(node)
        if kind is not None:
            return AdmonitionRole(kind=kind)
        return self._label_role(node) or ParagraphRole()

    def _label_role(self, node: ElementNode) -> AdmonitionRole | None:
        """Admonition role when the node opens with a label ("Note:")."""
        meaningful = [child for child in node.children if not (child.is_text and not child.text.strip())]
        if not meaningful:
            return None
        first = meaningful[0]
        if first.kind in _LABEL_CARRIERS:
            word = self.label_word(first.text_content())
            if word is not None:
                return AdmonitionRole(kind=self.admonition_kind(word), label_only=len(meaningful) == 1)
        if first.is_text:
            word = self.label_word(first.text) if len(meaningful) == 1 else None
            if word is not None:
                return AdmonitionRole(kind=self.admonition_kind(word), label_only=True)
            word = self.leading_label(first.text)
            if word is not None:
                return AdmonitionRole(kind=self.admonition_kind(word))
        return None

    # === LISTS ===

    def _list_role(self, node: ElementNode, context: AncestorContext) -> ListRole:
        info = self.resolution.info(node) if self.resolution is not None else None
        if info is not None:
            depth = max(info.depth - context.list_offset, 0)
            return ListRole(ordering=info.ordering, depth=depth, start=info.start)
        ordering = declared_ordering(node) or ListOrdering.NUMERIC
        start = node.attr("start")
        return ListRole(
            ordering=ordering,
            depth=context.list_depth,
            start=int(start) if start.isdigit() and ordering != ListOrdering.UNORDERED else None,
        )

    # === LINKS ===

    def _link_role(self, node: ElementNode) -> SemanticRole:
        href = node.attr("href").strip()
        if not href:
            name = node.attr("name") or node.attr("id")
            if name:
                return AnchorRole(name=name)
            return OpaqueRole(inline=True)
        if href.startswith("#"):
            return LinkRole(target=LinkTarget.ANCHOR, href=href[1:])
        parsed = urlparse(href)
        if parsed.scheme.lower() in _SCRIPT_SCHEMES:
            # Only the link text survives
            return OpaqueRole(inline=True)
        if parsed.scheme.lower() in _EXTERNAL_SCHEMES or href.startswith("//"):
            return LinkRole(target=LinkTarget.EXTERNAL, href=href)
        return LinkRole(target=LinkTarget.INTERNAL, href=href)

    # === CODE ===

    def _code_language(self, node: ElementNode) -> str | None:
        if node.attr("data-language"):
            return node.attr("data-language")
        inner = node.find("code")
        for candidate in (node, inner) if inner is not None else (node,):
            for cls in candidate.classes:
                match = _LANGUAGE_CLASS_RE.match(cls)
                if match:
                    return match.group("lang").lower()
        return None

    # === IMAGES ===

    def _image_role(self, node: ElementNode, context: AncestorContext) -> ImageRole:
        classes = [cls.lower() for cls in node.classes]
        if any(marker in cls for cls in classes for marker in self.heuristics.inline_icon_classes):
            return ImageRole(inline=True)
        is_icon = any(pattern.search(node.attr("src")) for pattern in self._icon_res)
        alone = context.parent is not None and self.image_alone(context.parent)
        if alone and not is_icon:
            return ImageRole(inline=False)
        size = self._pixel_size(node)
        if is_icon or (size is not None and size <= self.heuristics.inline_image_max_px):
            return ImageRole(inline=True)
        parent = context.parent
        if parent is None:
            return ImageRole(inline=False)
        # Inline when it flows with text rather than standing between blocks
        flows_with_text = parent.kind in INLINE_KINDS or any(
            child.is_text and child.text.strip() for child in parent.children
        )
        return ImageRole(inline=flows_with_text)

    def image_alone(self, parent: ElementNode) -> bool:
        """Whether `parent` is a paragraph-like wrapper holding one image and
        (almost) no text."""
        if parent.kind not in _IMAGE_WRAPPERS:
            return False
        images = [node for node in parent.iter_descendants() if node.kind == "img"]
        if len(images) != 1:
            return False
        return len(parent.text_content().strip()) <= self.heuristics.image_alone_slack_chars

    def _pixel_size(self, node: ElementNode) -> float | None:
        style = node.style()
        sizes = []
        for raw in (node.attr("width"), node.attr("height"), style.get("width", ""), style.get("height", "")):
            match = _PIXELS_RE.match(raw)
            if match:
                sizes.append(float(match.group(1)))
        return max(sizes) if sizes else None
