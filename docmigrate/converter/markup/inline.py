"""Inline content rendering (text runs, emphasis, links, inline images)."""

import posixpath
import re
from collections.abc import Iterable

from docmigrate.converter.markup.classifier import AncestorContext, StructuralClassifier
from docmigrate.converter.markup.models import (
    AnchorRole,
    ElementNode,
    ImageRole,
    InlineEmphasisRole,
    LineBreakRole,
    LinkRole,
    LinkTarget,
    OpaqueRole,
)
from docmigrate.converter.markup.profiles import TargetGrammarProfile

# Placeholder for <br> until edges are trimmed; never present in source text
_BREAK = "\x00"
_SOURCE_EXTENSIONS = (".htm", ".html")
_WHITESPACE_RE = re.compile(r"\s+")


def collapse_whitespace(value: str) -> str:
    return _WHITESPACE_RE.sub(" ", value)


class InlineRenderer:
    """Renders inline node sequences into a single line of target text
    (line breaks included)."""

    def __init__(self, profile: TargetGrammarProfile, classifier: StructuralClassifier):
        self.profile = profile
        self.classifier = classifier

    def render(self, nodes: Iterable[ElementNode], context: AncestorContext) -> str:
        raw = "".join(self._render_node(node, context) for node in nodes)
        return self._tidy(raw)

    def render_children(self, node: ElementNode, context: AncestorContext) -> str:
        return self.render(node.children, context.child(node))

    def _tidy(self, raw: str) -> str:
        value = re.sub(r" {2,}", " ", raw)
        value = re.sub(rf" *{_BREAK}[ {_BREAK}]*", _BREAK, value)
        value = value.strip(f" \n{_BREAK}")
        return value.replace(_BREAK, self.profile.line_break)

    # === NODES ===

    def _render_node(self, node: ElementNode, context: AncestorContext) -> str:
        if node.is_text:
            return self.profile.escape_text(collapse_whitespace(node.text))
        role = self.classifier.classify(node, context)
        inner_context = context.child(node)
        match role:
            case LineBreakRole():
                return _BREAK
            case InlineEmphasisRole(style="code"):
                code = collapse_whitespace(node.text_content())
                return self._wrap(code, self.profile.code_template) if code.strip() else code
            case InlineEmphasisRole(style="strong"):
                return self._wrap(self._raw_children(node, inner_context), self.profile.strong_template)
            case InlineEmphasisRole(style="italic"):
                return self._wrap(self._raw_children(node, inner_context), self.profile.italic_template)
            case LinkRole():
                return self.link(node, role, self._tidy(self._raw_children(node, inner_context)))
            case AnchorRole(name=name):
                return self.profile.anchor_def_template.format(name=name) + self._raw_children(node, inner_context)
            case ImageRole():
                return self.image(node, block=False)
            case OpaqueRole(inline=True):
                return self._raw_children(node, inner_context)
        # Block content flattened into a line keeps a word boundary
        return f" {self._raw_children(node, inner_context)} "

    def _raw_children(self, node: ElementNode, context: AncestorContext) -> str:
        return "".join(self._render_node(child, context) for child in node.children)

    def _wrap(self, content: str, template: str) -> str:
        """Apply an emphasis template, keeping edge whitespace outside the markers."""
        core = content.strip(" ")
        if not core.strip(f" \n{_BREAK}"):
            return content
        leading = content[: len(content) - len(content.lstrip(" "))]
        trailing = content[len(content.rstrip(" ")) :]
        return f"{leading}{template.format(content=core)}{trailing}"

    # === LINKS ===

    def rewrite_href(self, href: str) -> str:
        """Point links to source documents at their converted counterparts."""
        path, sep, fragment = href.partition("#")
        root, ext = posixpath.splitext(path)
        if ext.lower() in _SOURCE_EXTENSIONS:
            path = root + self.profile.document_extension
        return f"{path}{sep}{fragment}"

    def link(self, node: ElementNode, role: LinkRole, label: str) -> str:
        label = label.strip()
        match role.target:
            case LinkTarget.ANCHOR:
                anchor = role.href
                return self.profile.anchor_ref_template.format(anchor=anchor, text=self._link_text(label or anchor))
            case LinkTarget.INTERNAL:
                href = self.rewrite_href(role.href)
                if not label:
                    path = href.partition("#")[0]
                    label = posixpath.splitext(posixpath.basename(path))[0] or href
                return self.profile.xref_template.format(href=href, text=self._link_text(label))
            case LinkTarget.EXTERNAL:
                return self.profile.link_template.format(href=role.href, text=self._link_text(label or role.href))

    def _link_text(self, label: str) -> str:
        if self.profile.syntax == "asciidoc":
            return label.replace("]", "\\]")
        return label.replace("[", "\\[").replace("]", "\\]")

    # === IMAGES ===

    def image(self, node: ElementNode, *, block: bool) -> str:
        src = node.attr("src")
        alt = collapse_whitespace(node.attr("alt") or node.attr("title")).strip()
        if self.profile.syntax == "asciidoc":
            alt = alt.replace("]", "\\]")
            if "," in alt:
                alt = '"' + alt.replace('"', '\\"') + '"'
        else:
            alt = alt.replace("[", "\\[").replace("]", "\\]")
        template = self.profile.image_block_template if block else self.profile.image_inline_template
        return template.format(src=src, alt=alt)
