"""Block emitter: single pre-order walk from classified nodes to target text.

Role-specific work is delegated to the list, admonition and table
sub-emitters; this module owns block grouping (inline runs become implicit
paragraphs), heading bookkeeping and the list depth stack.
"""

from loguru import logger

from docmigrate.converter.markup.admonitions import AdmonitionEmitter
from docmigrate.converter.markup.classifier import AncestorContext, StructuralClassifier
from docmigrate.converter.markup.inline import InlineRenderer
from docmigrate.converter.markup.lists import ListEmitter
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
    ListItemRole,
    ListRole,
    OpaqueRole,
    ParagraphRole,
    QuoteRole,
    RuleRole,
    SemanticRole,
    TableRole,
)
from docmigrate.converter.markup.profiles import TargetGrammarProfile
from docmigrate.converter.markup.state import EmissionState, EmittedBlock, prefix_lines
from docmigrate.converter.markup.tables import TableEmitter

_HEADING_KINDS = ("h1", "h2", "h3", "h4", "h5", "h6")
_CARD_BODY_KINDS = frozenset({*_HEADING_KINDS, "p", "div"})


def _is_blank(node: ElementNode) -> bool:
    return node.is_text and not node.text.strip()


class BlockEmitter:
    """Converts a resolved element tree into target markup."""

    def __init__(self, profile: TargetGrammarProfile, classifier: StructuralClassifier):
        self.profile = profile
        self.classifier = classifier
        self.inline = InlineRenderer(profile, classifier)
        self.lists = ListEmitter(profile, self)
        self.admonitions = AdmonitionEmitter(profile, self)
        self.tables = TableEmitter(profile, self)

    def emit_document(self, root: ElementNode, state: EmissionState) -> str:
        return self.emit_blocks(root.children, state, AncestorContext().child(root))

    # === BLOCK GROUPING ===

    def emit_blocks(
        self,
        nodes: tuple[ElementNode, ...] | list[ElementNode],
        state: EmissionState,
        context: AncestorContext,
    ) -> str:
        return self.join_blocks(self.block_list(nodes, state, context))

    def join_blocks(self, blocks: list[EmittedBlock]) -> str:
        """Join sibling blocks with blank lines, separating adjacent lists."""
        parts: list[str] = []
        for position, block in enumerate(blocks):
            if position and block.is_list and blocks[position - 1].is_list and self.profile.list_separator:
                parts.append(self.profile.list_separator)
            parts.append(block.text)
        return "\n\n".join(parts)

    def block_list(
        self,
        nodes: tuple[ElementNode, ...] | list[ElementNode],
        state: EmissionState,
        context: AncestorContext,
    ) -> list[EmittedBlock]:
        """Emit sibling nodes as separate blocks; consecutive inline nodes form one paragraph."""
        nodes = list(nodes)
        blocks: list[EmittedBlock] = []
        run: list[ElementNode] = []

        def flush() -> None:
            if run:
                paragraph = self.inline.render(run, context)
                if paragraph:
                    blocks.append(EmittedBlock(paragraph))
                run.clear()

        i = 0
        while i < len(nodes):
            node = nodes[i]
            role = None if node.is_text else self.classifier.classify(node, context)
            if node.is_text or self._is_inline(node, role):
                run.append(node)
                i += 1
                continue
            flush()
            i += 1
            sections = state.sections_entered
            if isinstance(role, AdmonitionRole) and role.label_only:
                j = i
                while j < len(nodes) and _is_blank(nodes[j]):
                    j += 1
                if j < len(nodes) and self._can_be_admonition_body(nodes[j], context):
                    text = self.admonitions.emit(node, role, state, context, body=nodes[j])
                    i = j + 1
                else:
                    text = self.inline.render_children(node, context)
            else:
                match role:
                    case ParagraphRole() | ListItemRole() | OpaqueRole():
                        # Wrappers contribute their child blocks one by one
                        blocks.extend(self.block_list(node.children, state, context.child(node)))
                        continue
                    case LinkRole() if self._is_composite_link(node):
                        blocks.extend(self._card(node, role, state, context))
                        continue
                text = self.emit(node, state, context, role=role)
            if text.strip():
                ends_item = state.sections_entered != sections
                blocks.append(EmittedBlock(text, is_list=isinstance(role, ListRole), ends_item=ends_item))
        flush()
        return blocks

    def split_content(
        self,
        node: ElementNode,
        state: EmissionState,
        context: AncestorContext,
        *,
        restart_lists: bool = False,
    ) -> tuple[str, list[EmittedBlock]]:
        """Split an item-like node into primary inline text and following blocks.

        The primary text is the leading inline run, or the first paragraph
        when the node opens with one.
        """
        inner = context.child(node, restart_lists=restart_lists)
        children = list(node.children)
        i = 0
        lead: list[ElementNode] = []
        while i < len(children):
            child = children[i]
            if not child.is_text and not self._is_inline(child, self.classifier.classify(child, inner)):
                break
            lead.append(child)
            i += 1
        primary = self.inline.render(lead, inner)
        rest = children[i:]
        if not primary:
            while rest and _is_blank(rest[0]):
                rest = rest[1:]
            if rest and self._is_plain_paragraph(rest[0], inner):
                primary = self.inline.render_children(rest[0], inner)
                rest = rest[1:]
        return primary, self.block_list(rest, state, inner)

    def _is_inline(self, node: ElementNode, role: SemanticRole | None) -> bool:
        match role:
            case InlineEmphasisRole() | LineBreakRole() | AnchorRole():
                return True
            case ImageRole(inline=inline):
                return inline
            case LinkRole():
                return not self._is_composite_link(node)
            case OpaqueRole(inline=True):
                return not self._has_block_content(node)
        return False

    def _has_block_content(self, node: ElementNode) -> bool:
        context = AncestorContext(parent=node)
        for child in node.children:
            if child.is_text:
                continue
            role = self.classifier.classify(child, context)
            if not self._is_inline(child, role) or self._has_block_content(child):
                return True
        return False

    def _is_plain_paragraph(self, node: ElementNode, context: AncestorContext) -> bool:
        if node.is_text or not isinstance(self.classifier.classify(node, context), ParagraphRole):
            return False
        inner = context.child(node)
        return all(
            child.is_text or self._is_inline(child, self.classifier.classify(child, inner)) for child in node.children
        )

    def _can_be_admonition_body(self, node: ElementNode, context: AncestorContext) -> bool:
        if node.is_text:
            return False
        role = self.classifier.classify(node, context)
        return isinstance(role, ParagraphRole | ListRole | OpaqueRole | TableRole | ImageRole | CodeBlockRole)

    # === DISPATCH ===

    def emit(
        self,
        node: ElementNode,
        state: EmissionState,
        context: AncestorContext,
        role: SemanticRole | None = None,
    ) -> str:
        if role is None:
            role = self.classifier.classify(node, context)
        match role:
            case HeadingRole(level=level):
                return self._heading(node, level, state, context)
            case ParagraphRole():
                return self.emit_blocks(node.children, state, context.child(node))
            case ListRole():
                return self._list(node, role, state, context)
            case DefinitionListRole():
                return self.lists.emit_definition_list(node, state, context)
            case ListItemRole():
                return self.emit_blocks(node.children, state, context.child(node))
            case AdmonitionRole():
                return self.admonitions.emit(node, role, state, context)
            case TableRole():
                return self.tables.emit(node, state, context)
            case ImageRole(inline=inline):
                return self.inline.image(node, block=not inline)
            case LinkRole():
                if self._is_composite_link(node):
                    return "\n\n".join(block.text for block in self._card(node, role, state, context))
                return self.inline.render([node], context)
            case AnchorRole() | InlineEmphasisRole() | LineBreakRole():
                return self.inline.render([node], context)
            case CodeBlockRole(language=language):
                return self._code_block(node, language)
            case RuleRole():
                return self.profile.rule
            case QuoteRole():
                return self._quote(node, state, context)
            case CollapsibleRole(title=title):
                return self._collapsible(node, title, state, context)
            case OpaqueRole():
                return self.emit_blocks(node.children, state, context.child(node))

    # === HEADINGS ===

    def _heading(self, node: ElementNode, level: int, state: EmissionState, context: AncestorContext) -> str:
        state.enter_section(level)
        title = self.inline.render_children(node, context)
        if not title:
            return ""
        line = f"{self.profile.heading_marker * level} {title}"
        anchor = node.attr("id")
        if anchor:
            return f"{self.profile.anchor_def_template.format(name=anchor)}\n{line}"
        return line

    # === LISTS ===

    def _list(self, node: ElementNode, role: ListRole, state: EmissionState, context: AncestorContext) -> str:
        if state.consume_section_reset() or role.depth == 0 or not state.list_depth_stack:
            depth = 0
        else:
            depth = state.list_depth_stack[-1] + 1
        state.push_list(depth)
        if depth >= self.profile.max_list_depth:
            logger.debug(f"List depth {depth} exceeds {self.profile.name} maximum, using fallback block")
            text = self.lists.emit_overflow(node, role, state, context)
        else:
            text = self.lists.emit(node, role, depth, state, context)
        state.pop_list()
        return text

    # === COMPOSITE LINKS ===

    def _is_composite_link(self, node: ElementNode) -> bool:
        return node.kind == "a" and any(child.kind in _CARD_BODY_KINDS for child in node.iter_descendants())

    def _card(
        self, node: ElementNode, role: LinkRole, state: EmissionState, context: AncestorContext
    ) -> list[EmittedBlock]:
        """Link wrapping an image, a title and a description."""
        image = node.find("img")
        heading = node.find(*_HEADING_KINDS)
        inner = context.child(node)
        descriptions = [
            child
            for child in node.iter_descendants()
            if child.kind == "p" and child.find("img") is None and child.text_content().strip()
        ]
        if image is None or (heading is None and not descriptions):
            state.warn(
                "composite-link-unresolved",
                f"link to {role.href!r} wraps block content without image and title; forwarded as plain content",
            )
            return self.block_list(node.children, state, inner)

        parts = [self.inline.image(image, block=True)]
        title_source = heading if heading is not None else descriptions.pop(0)
        title = self.inline.render_children(title_source, inner)
        if title:
            parts.append(self.profile.strong_template.format(content=self.inline.link(node, role, title)))
        for description in descriptions:
            text = self.inline.render_children(description, inner)
            if text:
                parts.append(text)
        return [EmittedBlock(part) for part in parts]

    # === OTHER BLOCKS ===

    def _code_block(self, node: ElementNode, language: str | None) -> str:
        code = node.text_content().strip("\n").rstrip()
        if language:
            return self.profile.code_block_template.format(language=language, code=code)
        return self.profile.code_block_plain_template.format(code=code)

    def _quote(self, node: ElementNode, state: EmissionState, context: AncestorContext) -> str:
        content = self.emit_blocks(node.children, state, context.child(node, restart_lists=True))
        if not content:
            return ""
        if self.profile.quote_line_prefix:
            content = prefix_lines(content, self.profile.quote_line_prefix)
        return self.profile.quote_template.format(content=content)

    def _collapsible(self, node: ElementNode, title: str, state: EmissionState, context: AncestorContext) -> str:
        body = [child for child in node.children if child.kind != "summary"]
        content = self.emit_blocks(body, state, context.child(node, restart_lists=True))
        return self.profile.collapsible_template.format(title=title or "Details", content=content)
