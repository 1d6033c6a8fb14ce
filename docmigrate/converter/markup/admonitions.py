"""Admonition sub-emitter.

Strips the leading label ("Note:", a label span, a bold "Warning:") so it
is never duplicated inside the emitted callout, then chooses the compact
single-line form or the block form.
"""

import re
from typing import TYPE_CHECKING

from docmigrate.converter.markup.classifier import AncestorContext, StructuralClassifier
from docmigrate.converter.markup.models import AdmonitionRole, ElementNode, text
from docmigrate.converter.markup.profiles import TargetGrammarProfile
from docmigrate.converter.markup.state import EmissionState, prefix_lines

if TYPE_CHECKING:
    from docmigrate.converter.markup.emitter import BlockEmitter

_LABEL_CARRIERS = frozenset({"span", "b", "strong", "em", "i", "label", "p"})


def strip_label(node: ElementNode, classifier: StructuralClassifier) -> ElementNode:
    """Remove a leading label span or "Word:" prefix from the node's first content."""
    children = list(node.children)
    for index, child in enumerate(children):
        if child.is_text:
            if not child.text.strip():
                continue
            if classifier.leading_label(child.text) is None and classifier.label_word(child.text) is None:
                return node
            remainder = re.sub(r"^\s*\w+\s*:?\s*", "", child.text, count=1)
            children[index] = text(remainder)
            return node.with_children(children)
        if child.kind in _LABEL_CARRIERS:
            if classifier.label_word(child.text_content()) is not None:
                del children[index]
                return node.with_children(children)
            if child.kind == "p" or classifier.leading_label(child.text_content()) is not None:
                # Label inside the first paragraph/span
                stripped = strip_label(child, classifier)
                if stripped is child:
                    return node
                children[index] = stripped
                return node.with_children(children)
        return node
    return node


class AdmonitionEmitter:
    def __init__(self, profile: TargetGrammarProfile, blocks: "BlockEmitter"):
        self.profile = profile
        self.blocks = blocks
        classifier = blocks.classifier
        words = "|".join(
            sorted((re.escape(word) for word in classifier.heuristics.admonition_vocabulary), key=len, reverse=True)
        )
        # Rendered label left at the start of the first line, e.g. "*Note:* " or "**Warning**: "
        self._rendered_label_re = re.compile(
            rf"^(?P<mark>[*_`]*)(?:{words})(?::(?P=mark)|(?P=mark):)\s*",
            re.IGNORECASE,
        )

    def emit(
        self,
        node: ElementNode,
        role: AdmonitionRole,
        state: EmissionState,
        context: AncestorContext,
        body: ElementNode | None = None,
    ) -> str:
        """Emit a callout; `body` is the following sibling of a label-only paragraph."""
        inner_context = context.child(node, restart_lists=True)
        if body is not None:
            parts = [block.text for block in self.blocks.block_list([body], state, inner_context)]
        else:
            stripped = strip_label(node, self.blocks.classifier)
            primary, blocks = self.blocks.split_content(stripped, state, context, restart_lists=True)
            parts = ([primary] if primary else []) + [block.text for block in blocks]
        parts = [part for part in parts if part.strip()]
        if not parts:
            return ""
        parts[0] = self._strip_rendered_label(parts[0])
        if not parts[0]:
            parts = parts[1:]
            if not parts:
                return ""

        name = self.profile.admonition_name(role.kind)
        limit = self.blocks.classifier.heuristics.admonition_inline_max_chars
        if len(parts) == 1 and "\n" not in parts[0] and len(parts[0]) <= limit:
            return self.profile.admonition_inline_template.format(name=name, content=parts[0])
        content = "\n\n".join(parts)
        if self.profile.admonition_line_prefix:
            content = prefix_lines(content, self.profile.admonition_line_prefix)
        return self.profile.admonition_block_template.format(name=name, content=content)

    def _strip_rendered_label(self, line: str) -> str:
        """Last line of defence for labels hidden in markup the tree pass did not catch."""
        return self._rendered_label_re.sub("", line, count=1).lstrip()
