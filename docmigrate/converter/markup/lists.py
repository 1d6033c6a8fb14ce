"""List sub-emitter: markers, ordering directives, continuation blocks."""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from docmigrate.converter.markup.classifier import AncestorContext
from docmigrate.converter.markup.inline import InlineRenderer, collapse_whitespace
from docmigrate.converter.markup.models import ElementNode, ImageRole, ListOrdering, ListRole
from docmigrate.converter.markup.numbering import ordinal_label
from docmigrate.converter.markup.profiles import TargetGrammarProfile
from docmigrate.converter.markup.resolver import ITEM_KIND, LIST_KINDS
from docmigrate.converter.markup.state import EmissionState, EmittedBlock, prefix_lines

if TYPE_CHECKING:
    from docmigrate.converter.markup.emitter import BlockEmitter


@dataclass(frozen=True)
class ListMarkerScheme:
    """(ordering, depth) -> marker string for one profile.

    Repeating grammars (AsciiDoc) grow the marker with depth; indenting
    grammars (Markdown) keep it fixed and rely on indentation.
    """

    profile: TargetGrammarProfile

    def marker(self, ordering: ListOrdering, depth: int, number: int = 1) -> str:
        profile = self.profile
        depth = min(depth, profile.max_list_depth - 1)
        if ordering == ListOrdering.UNORDERED:
            glyphs = profile.unordered_markers
            if profile.repeat_marker_per_depth:
                return glyphs[0] * (depth + 1)
            return glyphs[depth % len(glyphs)]
        if profile.repeat_marker_per_depth:
            return profile.ordered_marker * (depth + 1)
        if profile.numbered_marker_template is not None:
            return profile.numbered_marker_template.format(n=number)
        return profile.ordered_marker

    def directive(self, ordering: ListOrdering, start: int | None) -> str | None:
        """Block attribute announcing a non-default ordering or start, if the grammar has one."""
        profile = self.profile
        if profile.ordering_directive_template is None or ordering == ListOrdering.UNORDERED:
            return None
        attrs = []
        if ordering in profile.ordering_directives:
            attrs.append(profile.ordering_directives[ordering])
        if start not in (None, 1) and profile.start_attribute_template is not None:
            attrs.append(profile.start_attribute_template.format(start=start))
        if not attrs:
            return None
        return profile.ordering_directive_template.format(attrs=",".join(attrs))


_OVERFLOW_BREAKS = frozenset({"p", "div", "br", "li", "tr", "td", "th", "pre", "h1", "h2", "h3", "h4", "h5", "h6"})
_OVERFLOW_MEDIA = frozenset({"img", "table", "pre"})


def _overflow_text(inline: InlineRenderer, node: ElementNode, context: AncestorContext) -> str:
    """Plain text of an item's non-list content; images keep their inline macro."""
    if node.is_text:
        return node.text
    if isinstance(inline.classifier.classify(node, context), ImageRole):
        return f" {inline.image(node, block=False)} "
    inner = context.child(node)
    content = "".join(_overflow_text(inline, child, inner) for child in node.children)
    return f" {content} " if node.kind in _OVERFLOW_BREAKS else content


def overflow_lines(
    inline: InlineRenderer,
    node: ElementNode,
    role: ListRole,
    level: int,
    state: EmissionState,
    context: AncestorContext,
) -> list[str]:
    """Plain indented lines ("a. text") for a list the grammar cannot nest any deeper.

    Nested lists still go through the depth stack so its bookkeeping
    matches the tree. Images, tables and code are flattened into the line
    and reported.
    """
    classifier = inline.classifier
    list_context = context.child(node)
    items = [child for child in node.children if child.kind == ITEM_KIND]
    lines = []
    for number, item in enumerate(items, start=role.start or 1):
        item_context = list_context.child(item)
        text_parts, nested = [], []
        for child in item.children:
            if child.kind in LIST_KINDS:
                nested.append(child)
                continue
            text_parts.append(_overflow_text(inline, child, item_context))
            if not child.is_text and (child.kind in _OVERFLOW_MEDIA or child.find(*_OVERFLOW_MEDIA) is not None):
                state.warn(
                    "list-overflow-flattened",
                    f"{child.kind} inside a list nested too deep for {inline.profile.name} kept as plain text",
                )
        label = ordinal_label(role.ordering, number)
        lines.append(f"{'  ' * level}{label} {collapse_whitespace(''.join(text_parts)).strip()}".rstrip())
        for child in nested:
            child_role = classifier.classify(child, item_context)
            if not isinstance(child_role, ListRole):
                child_role = ListRole(ordering=ListOrdering.NUMERIC, depth=role.depth + 1)
            state.push_list(state.list_depth_stack[-1] + 1 if state.list_depth_stack else 0)
            lines.extend(overflow_lines(inline, child, child_role, level + 1, state, item_context))
            state.pop_list()
    return lines


def _split_at_section(blocks: list[EmittedBlock]) -> tuple[list[EmittedBlock], list[EmittedBlock]]:
    """Blocks that stay in the item, and the ones from the first new section on."""
    for position, block in enumerate(blocks):
        if block.ends_item:
            return blocks[:position], blocks[position:]
    return blocks, []


class ListEmitter:
    def __init__(self, profile: TargetGrammarProfile, blocks: "BlockEmitter"):
        self.profile = profile
        self.blocks = blocks
        self.scheme = ListMarkerScheme(profile)

    def emit(
        self,
        node: ElementNode,
        role: ListRole,
        depth: int,
        state: EmissionState,
        context: AncestorContext,
    ) -> str:
        """Emit a resolved list at `depth`; the caller owns the depth stack."""
        list_context = context.child(node)
        items = [child for child in node.children if child.kind == ITEM_KIND]
        if not items:
            return ""
        first_number = role.start if role.start is not None else 1
        rendered = []
        for index, item in enumerate(items):
            marker = self.scheme.marker(role.ordering, depth, first_number + index)
            primary, blocks = self.blocks.split_content(item, state, list_context)
            rendered.append(self._item(marker, primary, blocks))
        body = "\n".join(rendered)

        directive = self.scheme.directive(role.ordering, role.start)
        if directive is None:
            return body
        if self.profile.ordering_directive_placement == "after":
            return f"{body}\n{directive}"
        return f"{directive}\n{body}"

    def _item(self, marker: str, primary: str, blocks: list[EmittedBlock]) -> str:
        if primary:
            head = f"{marker} {primary}"
        elif self.profile.empty_item_placeholder:
            head = f"{marker} {self.profile.empty_item_placeholder}"
        else:
            head = marker

        attached, detached = _split_at_section(blocks)
        if self.profile.uses_continuation:
            parts = [head]
            for block in attached:
                parts.append(f"{self.profile.continuation}\n{block.text}")
            result = "\n".join(parts)
        else:
            # Indentation grammars: continuation content sits under the item text
            indent = " " * (len(marker) + 1)
            result = head
            for position, block in enumerate(attached):
                tight = block.is_list or (position == 0 and not primary)
                result += ("\n" if tight else "\n\n") + prefix_lines(block.text, indent)
        return self._append_detached(result, detached)

    def _append_detached(self, text: str, detached: list[EmittedBlock]) -> str:
        if not detached:
            return text
        return f"{text}\n\n{self.blocks.join_blocks(detached)}"

    # === DEPTH OVERFLOW ===

    def emit_overflow(self, node: ElementNode, role: ListRole, state: EmissionState, context: AncestorContext) -> str:
        """Render a list nested beyond the grammar's maximum as a flagged plain-text block."""
        state.warn(
            "list-depth-exceeded",
            f"list nested deeper than {self.profile.max_list_depth} levels rendered as a fallback block",
        )
        lines = overflow_lines(self.blocks.inline, node, role, 0, state, context)
        return self.profile.list_overflow_template.format(content="\n".join(lines))

    # === DEFINITION LISTS ===

    def emit_definition_list(self, node: ElementNode, state: EmissionState, context: AncestorContext) -> str:
        dl_context = context.child(node)
        entries: list[str] = []
        for child in self._definition_parts(node):
            if child.kind == "dt":
                term = self.blocks.inline.render_children(child, dl_context)
                entries.append(self.profile.definition_term_template.format(term=term))
            elif child.kind == "dd":
                description = self._description(child, state, dl_context)
                if entries:
                    entries[-1] = f"{entries[-1]}\n{description}"
                else:
                    entries.append(description)
        separator = "\n" if self.profile.uses_continuation else "\n\n"
        return separator.join(entries)

    def _definition_parts(self, node: ElementNode) -> list[ElementNode]:
        parts = []
        for child in node.element_children():
            # HTML allows dt/dd groups wrapped in a div
            if child.kind == "div":
                parts.extend(child.element_children())
            else:
                parts.append(child)
        return parts

    def _description(self, node: ElementNode, state: EmissionState, context: AncestorContext) -> str:
        primary, blocks = self.blocks.split_content(node, state, context)
        prefix = self.profile.definition_description_prefix
        if not primary:
            primary = self.profile.empty_item_placeholder
        head = f"{prefix}{primary}"
        attached, detached = _split_at_section(blocks)
        if self.profile.uses_continuation:
            text = "\n".join([head, *(f"{self.profile.continuation}\n{block.text}" for block in attached)])
            return self._append_detached(text, detached)
        indent = " " * max(len(prefix), 2)
        for block in attached:
            head += ("\n" if block.is_list else "\n\n") + prefix_lines(block.text, indent)
        return self._append_detached(head, detached)
