import pytest

from docmigrate.converter.exceptions import EmissionInvariantError
from docmigrate.converter.markup.classifier import AncestorContext, StructuralClassifier
from docmigrate.converter.markup.emitter import BlockEmitter
from docmigrate.converter.markup.models import ElementNode, ListOrdering, ListRole, element
from docmigrate.converter.markup.profiles import ASCIIDOC, MARKDOWN, Heuristics, TargetGrammarProfile
from docmigrate.converter.markup.resolver import ListNestingResolver
from docmigrate.converter.markup.state import EmissionState, prefix_lines


def emitter_for(profile: TargetGrammarProfile = ASCIIDOC, root: ElementNode | None = None) -> BlockEmitter:
    resolution = ListNestingResolver().resolve(root) if root is not None else None
    return BlockEmitter(profile, StructuralClassifier(Heuristics(), resolution))


def emit_document(root: ElementNode, profile: TargetGrammarProfile = ASCIIDOC) -> tuple[str, EmissionState]:
    resolution = ListNestingResolver().resolve(root)
    emitter = BlockEmitter(profile, StructuralClassifier(Heuristics(), resolution))
    state = EmissionState()
    return emitter.emit_document(resolution.root, state), state


class TestEmissionState:
    def test_push_and_pop(self):
        state = EmissionState()
        state.push_list(0)
        state.push_list(1)

        assert state.open_lists == 2
        assert state.pop_list() == 1
        assert state.list_depth_stack == [0]

    def test_negative_depth_is_an_invariant_violation(self):
        with pytest.raises(EmissionInvariantError):
            EmissionState().push_list(-1)

    def test_popping_empty_stack_is_an_invariant_violation(self):
        with pytest.raises(EmissionInvariantError):
            EmissionState().pop_list()

    def test_section_reset_is_consumed_once(self):
        state = EmissionState()
        state.enter_section(2)

        assert state.section_level == 2
        assert state.consume_section_reset()
        assert not state.consume_section_reset()

    def test_warn_records_warning(self):
        state = EmissionState()
        state.warn("list-depth-exceeded", "too deep")

        assert state.warnings[0].code == "list-depth-exceeded"


class TestPrefixLines:
    def test_blank_lines_get_bare_prefix(self):
        assert prefix_lines("a\n\nb", "> ") == "> a\n>\n> b"

    def test_indent_prefix_leaves_blank_lines_empty(self):
        assert prefix_lines("a\n\nb", "   ") == "   a\n\n   b"


class TestBlockGrouping:
    def test_loose_inline_nodes_form_one_paragraph(self):
        root = element("body", "Some ", element("b", "bold"), " text", element("p", "Next."))
        text, _ = emit_document(root)

        assert text == "Some *bold* text\n\nNext."

    def test_emphasis_keeps_spaces_outside_markers(self):
        root = element("body", element("p", "a", element("em", " word "), "b"))
        text, _ = emit_document(root)

        assert text == "a _word_ b"

    def test_line_break(self):
        text, _ = emit_document(element("body", element("p", "one", element("br"), "two")))
        assert text == "one +\ntwo"

    def test_stack_is_empty_after_the_walk(self):
        root = element("body", element("ul", element("li", "a", element("ol", element("li", "b")))))
        _, state = emit_document(root)

        assert state.open_lists == 0


class TestListDepth:
    def test_heading_resets_list_depth(self):
        emitter = emitter_for()
        state = EmissionState(list_depth_stack=[0, 1])
        state.enter_section(2)
        node = element("ul", element("li", "After heading"))

        text = emitter.emit(node, state, AncestorContext(), role=ListRole(ordering=ListOrdering.UNORDERED, depth=2))

        assert text == "* After heading"
        assert state.list_depth_stack == [0, 1]

    def test_nested_depth_follows_the_stack(self):
        emitter = emitter_for()
        state = EmissionState(list_depth_stack=[0])
        node = element("ul", element("li", "Nested"))

        text = emitter.emit(node, state, AncestorContext(), role=ListRole(ordering=ListOrdering.UNORDERED, depth=1))

        assert text == "** Nested"

    def test_paragraphs_in_items_become_continuations(self):
        root = element("body", element("ol", element("li", element("p", "Intro"), element("p", "Detail"))))
        text, _ = emit_document(root)

        assert text == ". Intro\n+\nDetail"

    def test_markdown_item_paragraphs_are_indented(self):
        root = element("body", element("ol", element("li", element("p", "Intro"), element("p", "Detail"))))
        text, _ = emit_document(root, MARKDOWN)

        assert text == "1. Intro\n\n   Detail"

    def test_empty_item_gets_placeholder(self):
        root = element("body", element("ul", element("li", element("ul", element("li", "inner")))))
        text, _ = emit_document(root)

        assert text.splitlines() == ["* {empty}", "+", "** inner"]

    def test_start_value_becomes_directive(self):
        root = element("body", element("ol", element("li", "three"), start="3", type="a"))
        text, _ = emit_document(root)

        assert text == "[loweralpha,start=3]\n. three"

    def test_markdown_start_value_is_the_first_number(self):
        root = element("body", element("ol", element("li", "three"), element("li", "four"), start="3"))
        text, _ = emit_document(root, MARKDOWN)

        assert text == "3. three\n4. four"


class TestDefinitionLists:
    def test_asciidoc(self):
        root = element(
            "body",
            element(
                "dl",
                element("dt", "Term"),
                element("dd", "Meaning"),
                element("dt", "Other"),
                element("dd", "Too"),
            ),
        )
        text, _ = emit_document(root)

        assert text == "Term::\nMeaning\nOther::\nToo"

    def test_markdown(self):
        root = element("body", element("dl", element("dt", "Term"), element("dd", "Meaning")))
        text, _ = emit_document(root, MARKDOWN)

        assert text == "**Term**\n: Meaning"


class TestOtherBlocks:
    def test_quote(self):
        text, _ = emit_document(element("body", element("blockquote", element("p", "Said."))))
        assert text == "____\nSaid.\n____"

    def test_markdown_quote(self):
        text, _ = emit_document(element("body", element("blockquote", element("p", "Said."))), MARKDOWN)
        assert text == "> Said."

    def test_collapsible(self):
        root = element("body", element("details", element("summary", "More"), element("p", "Hidden.")))
        text, _ = emit_document(root)

        assert text == ".More\n[%collapsible]\n====\nHidden.\n===="

    def test_rule(self):
        text, _ = emit_document(element("body", element("p", "a"), element("hr"), element("p", "b")))
        assert text == "a\n\n'''\n\nb"

    def test_opaque_container_forwards_children(self):
        text, _ = emit_document(element("body", element("section", element("p", "a"), element("p", "b"))))
        assert text == "a\n\nb"
