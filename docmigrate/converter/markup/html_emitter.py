"""Sanitized HTML emitter for help-center (ticketing platform) articles.

Same walk as the text emitters, but the output is a fresh BeautifulSoup
tree restricted to a safe tag/attribute allow-list: styles, classes and
event handlers are dropped, callouts become classed blockquotes, and list
ordering is carried by `type`/`start` attributes.
"""

from bs4 import BeautifulSoup, NavigableString, Tag
from loguru import logger

from docmigrate.converter.markup.admonitions import strip_label
from docmigrate.converter.markup.classifier import AncestorContext, StructuralClassifier
from docmigrate.converter.markup.inline import InlineRenderer, collapse_whitespace
from docmigrate.converter.markup.lists import overflow_lines
from docmigrate.converter.markup.models import (
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
    TableRole,
)
from docmigrate.converter.markup.profiles import TargetGrammarProfile
from docmigrate.converter.markup.state import EmissionState

SAFE_TAGS = frozenset(
    {
        "a",
        "blockquote",
        "br",
        "caption",
        "code",
        "dd",
        "details",
        "dl",
        "dt",
        "em",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "hr",
        "img",
        "li",
        "ol",
        "p",
        "pre",
        "s",
        "strong",
        "sub",
        "summary",
        "sup",
        "table",
        "tbody",
        "td",
        "tfoot",
        "th",
        "thead",
        "tr",
        "u",
        "ul",
    }
)

SAFE_ATTRIBUTES: dict[str, frozenset[str]] = {
    "a": frozenset({"href", "id", "title"}),
    "img": frozenset({"src", "alt", "title", "width", "height"}),
    "td": frozenset({"colspan", "rowspan"}),
    "th": frozenset({"colspan", "rowspan"}),
    "ol": frozenset({"start", "type"}),
}

_HEADING_IDS = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})
_ORDERING_TYPES = {ListOrdering.ALPHA: "a", ListOrdering.ROMAN: "i"}
_UNSAFE_SCHEMES = ("javascript:", "vbscript:", "data:text")


def _safe_attributes(node: ElementNode, kind: str) -> dict[str, str]:
    allowed = SAFE_ATTRIBUTES.get(kind, frozenset())
    attrs = {name: value for name, value in node.attributes.items() if name in allowed}
    if kind in _HEADING_IDS and node.attr("id"):
        attrs["id"] = node.attr("id")
    for name in ("href", "src"):
        if attrs.get(name, "").strip().lower().startswith(_UNSAFE_SCHEMES):
            logger.warning(f"Dropped unsafe {name} on <{kind}>")
            del attrs[name]
    return attrs


class HtmlEmitter:
    def __init__(self, profile: TargetGrammarProfile, classifier: StructuralClassifier):
        self.profile = profile
        self.classifier = classifier
        self.inline = InlineRenderer(profile, classifier)
        self._soup = BeautifulSoup("", "html.parser")

    def emit_document(self, root: ElementNode, state: EmissionState) -> str:
        context = AncestorContext().child(root)
        blocks = self._blocks(root.children, state, context)
        return "\n".join(str(block) for block in blocks)

    # === BUILDING ===

    def _tag(self, name: str, attrs: dict[str, str] | None = None, children: list | None = None) -> Tag:
        tag = self._soup.new_tag(name, attrs=attrs or {})
        for child in children or []:
            tag.append(child)
        return tag

    def _blocks(self, nodes, state: EmissionState, context: AncestorContext) -> list:
        """Convert siblings at block level, wrapping loose inline runs in <p>."""
        nodes = list(nodes)
        result: list = []
        run: list = []

        def flush() -> None:
            if any(not isinstance(item, NavigableString) or item.strip() for item in run):
                result.append(self._tag("p", children=list(run)))
            run.clear()

        i = 0
        while i < len(nodes):
            node = nodes[i]
            i += 1
            if node.is_text:
                run.append(NavigableString(collapse_whitespace(node.text)))
                continue
            role = self.classifier.classify(node, context)
            if self._is_inline(role):
                run.extend(self._convert(node, role, state, context))
                continue
            flush()
            if isinstance(role, AdmonitionRole) and role.label_only:
                while i < len(nodes) and nodes[i].is_text and not nodes[i].text.strip():
                    i += 1
                if i < len(nodes) and not nodes[i].is_text:
                    body = self._blocks([nodes[i]], state, context.child(node, restart_lists=True))
                    result.append(self._callout(role, body))
                    i += 1
                    continue
            result.extend(self._convert(node, role, state, context))
        flush()
        return result

    def _inline(self, node: ElementNode, state: EmissionState, context: AncestorContext) -> list:
        inner = context.child(node)
        converted: list = []
        for child in node.children:
            if child.is_text:
                converted.append(NavigableString(collapse_whitespace(child.text)))
            else:
                converted.extend(self._convert(child, self.classifier.classify(child, inner), state, inner))
        return converted

    def _is_inline(self, role) -> bool:
        match role:
            case InlineEmphasisRole() | LineBreakRole() | LinkRole() | AnchorRole():
                return True
            case ImageRole(inline=inline):
                return inline
            case OpaqueRole(inline=inline):
                return inline
        return False

    def _callout(self, role: AdmonitionRole, body: list) -> Tag:
        name = self.profile.admonition_name(role.kind)
        return self._tag("blockquote", {"class": f"zendesk-callout zendesk-{name}"}, body)

    # === DISPATCH ===

    def _convert(self, node: ElementNode, role, state: EmissionState, context: AncestorContext) -> list:
        inner = context.child(node)
        match role:
            case HeadingRole(level=level):
                state.enter_section(level)
                return [self._tag(f"h{level}", _safe_attributes(node, f"h{level}"), self._inline(node, state, context))]
            case ParagraphRole():
                return self._blocks(node.children, state, inner)
            case ListRole():
                return [self._list(node, role, state, context)]
            case ListItemRole():
                return [self._tag("li", children=self._blocks(node.children, state, inner))]
            case DefinitionListRole():
                parts = []
                for child in node.element_children():
                    if child.kind in ("dt", "dd"):
                        parts.append(self._tag(child.kind, children=self._blocks(child.children, state, inner)))
                return [self._tag("dl", children=parts)]
            case AdmonitionRole():
                stripped = strip_label(node, self.classifier)
                body = self._blocks(stripped.children, state, context.child(node, restart_lists=True))
                return [self._callout(role, body)] if body else []
            case TableRole():
                return [self._table(node, state, context)]
            case ImageRole(inline=inline):
                image = self._tag("img", _safe_attributes(node, "img"))
                return [image] if inline else [self._tag("p", children=[image])]
            case LinkRole(target=target, href=href):
                attrs = _safe_attributes(node, "a")
                if target == LinkTarget.INTERNAL and "href" in attrs:
                    path, sep, fragment = href.partition("#")
                    if path.lower().endswith((".htm", ".html")):
                        attrs["href"] = path.rsplit(".", 1)[0] + self.profile.document_extension + sep + fragment
                children = self._inline(node, state, context)
                if not any(str(child).strip() for child in children):
                    children = [NavigableString(href)]
                return [self._tag("a", attrs, children)]
            case AnchorRole(name=name):
                return [self._tag("a", {"id": name}), *self._inline(node, state, context)]
            case InlineEmphasisRole(style=style):
                tag = {"strong": "strong", "italic": "em", "code": "code"}[style]
                return [self._tag(tag, children=self._inline(node, state, context))]
            case LineBreakRole():
                return [self._tag("br")]
            case RuleRole():
                return [self._tag("hr")]
            case CodeBlockRole(language=language):
                code_attrs = {"class": f"language-{language}"} if language else {}
                code = self._tag("code", code_attrs, [NavigableString(node.text_content().strip("\n"))])
                return [self._tag("pre", children=[code])]
            case QuoteRole():
                return [self._tag("blockquote", children=self._blocks(node.children, state, inner))]
            case CollapsibleRole(title=title):
                body = [child for child in node.children if child.kind != "summary"]
                summary = self._tag("summary", children=[NavigableString(title or "Details")])
                return [self._tag("details", children=[summary, *self._blocks(body, state, inner)])]
            case OpaqueRole(inline=inline):
                if node.kind in SAFE_TAGS:
                    return [self._tag(node.kind, children=self._inline(node, state, context))]
                if inline:
                    return self._inline(node, state, context)
                return self._blocks(node.children, state, inner)
        return []

    # === LISTS ===

    def _list(self, node: ElementNode, role: ListRole, state: EmissionState, context: AncestorContext) -> Tag:
        if state.consume_section_reset() or role.depth == 0 or not state.list_depth_stack:
            depth = 0
        else:
            depth = state.list_depth_stack[-1] + 1
        state.push_list(depth)
        if depth >= self.profile.max_list_depth:
            state.warn(
                "list-depth-exceeded",
                f"list nested deeper than {self.profile.max_list_depth} levels rendered as a fallback block",
            )
            lines = overflow_lines(self.inline, node, role, 0, state, context)
            result = self._tag("pre", {"class": "list-overflow"}, [NavigableString("\n".join(lines))])
        else:
            attrs = {}
            if role.ordering in _ORDERING_TYPES:
                attrs["type"] = _ORDERING_TYPES[role.ordering]
            if role.start is not None and role.start != 1:
                attrs["start"] = str(role.start)
            tag = "ul" if role.ordering == ListOrdering.UNORDERED else "ol"
            inner = context.child(node)
            items = [
                self._tag("li", children=self._blocks(item.children, state, inner.child(item)))
                for item in node.children
                if item.kind == "li"
            ]
            result = self._tag(tag, attrs, items)
        state.pop_list()
        return result

    # === TABLES ===

    def _table(self, node: ElementNode, state: EmissionState, context: AncestorContext) -> Tag:
        inner = context.child(node, restart_lists=True)
        children = []
        for child in node.element_children():
            if child.kind in ("caption", "thead", "tbody", "tfoot", "tr"):
                children.append(self._table_part(child, state, inner))
        return self._tag("table", children=children)

    def _table_part(self, node: ElementNode, state: EmissionState, context: AncestorContext) -> Tag:
        inner = context.child(node)
        if node.kind in ("td", "th"):
            return self._tag(node.kind, _safe_attributes(node, node.kind), self._cell(node, state, inner))
        if node.kind == "caption":
            return self._tag("caption", children=self._inline(node, state, context))
        parts = [
            self._table_part(child, state, inner)
            for child in node.element_children()
            if child.kind in ("tr", "td", "th")
        ]
        return self._tag(node.kind, children=parts)

    def _cell(self, node: ElementNode, state: EmissionState, context: AncestorContext) -> list:
        blocks = self._blocks(node.children, state, context)
        # A single paragraph in a cell is unwrapped
        if len(blocks) == 1 and isinstance(blocks[0], Tag) and blocks[0].name == "p":
            return list(blocks[0].contents)
        return blocks
