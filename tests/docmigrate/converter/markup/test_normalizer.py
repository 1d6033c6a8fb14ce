import pytest

from docmigrate.converter.markup.models import ConversionWarning
from docmigrate.converter.markup.normalizer import (
    PostEmissionNormalizer,
    build_passes,
    collapse_blank_lines,
    drop_dangling_continuations,
    merge_orphaned_ordering_directives,
    scan_blocks,
    separate_block_constructs,
    trim_whitespace,
)
from docmigrate.converter.markup.profiles import ASCIIDOC, MARKDOWN, WRITERSIDE, ZENDESK


def twice(fn, text: str) -> tuple[str, str]:
    once = fn(text)
    return once, fn(once)


class TestScanBlocks:
    def test_asciidoc_listing_is_literal(self):
        infos = scan_blocks(["----", "+", "----", "+"], "asciidoc")

        assert infos[0].opens
        assert infos[1].literal
        assert infos[2].closes
        assert not infos[3].literal

    def test_example_block_content_is_not_literal(self):
        infos = scan_blocks(["====", "text", "===="], "asciidoc")
        assert not infos[1].literal

    def test_markdown_fence(self):
        infos = scan_blocks(["```python", "# not a heading", "```"], "markdown")

        assert infos[0].opens
        assert infos[1].literal
        assert infos[2].closes


class TestMergeOrphanedOrderingDirectives:
    def test_split_directive_is_merged_and_pulled_onto_the_list(self):
        text = "[loweralpha]\n\n[start=3]\n\n. one"

        once, again = twice(lambda t: merge_orphaned_ordering_directives(t, ASCIIDOC), text)
        assert once == "[loweralpha,start=3]\n. one"
        assert again == once

    def test_last_ordering_wins(self):
        text = "[loweralpha]\n[lowerroman]\n. one"
        assert merge_orphaned_ordering_directives(text, ASCIIDOC) == "[lowerroman]\n. one"

    def test_other_block_attributes_are_left_alone(self):
        text = "[source,python]\n----\nx\n----"
        assert merge_orphaned_ordering_directives(text, ASCIIDOC) == text

    def test_directive_after_list_is_reattached(self):
        text = '1. one\n\n{type="alpha-lower"}'

        once, again = twice(lambda t: merge_orphaned_ordering_directives(t, WRITERSIDE), text)
        assert once == '1. one\n{type="alpha-lower"}'
        assert again == once

    def test_indentation_is_kept(self):
        text = '1. one\n   1. a\n   {type="roman-lower"}'
        assert merge_orphaned_ordering_directives(text, WRITERSIDE) == text

    def test_markdown_has_no_directives(self):
        text = "1. one\n\n[loweralpha]"
        assert merge_orphaned_ordering_directives(text, MARKDOWN) == text


class TestDropDanglingContinuations:
    def drop(self, text: str) -> str:
        return drop_dangling_continuations(text, glyph="+", lookahead=3, syntax="asciidoc")

    def test_marker_without_content_in_lookahead_is_dropped(self):
        once, again = twice(self.drop, "* a\n+\n\n\n\n\nb")

        assert "+" not in once.splitlines()
        assert again == once

    def test_kept_marker_is_pulled_tight(self):
        once, again = twice(self.drop, "* a\n+\n\nmore")

        assert once == "* a\n+\nmore"
        assert again == once

    def test_doubled_marker_keeps_one(self):
        assert self.drop("* a\n+\n+\ntext") == "* a\n+\ntext"

    def test_marker_at_document_start_is_dropped(self):
        assert self.drop("+\ntext") == "text"

    def test_marker_before_heading_is_dropped(self):
        assert self.drop("* a\n+\n== Next") == "* a\n== Next"

    def test_listing_content_is_untouched(self):
        text = "----\n+\n----"
        assert self.drop(text) == text


class TestCollapseBlankLines:
    def test_runs_collapse_to_two(self):
        once, again = twice(lambda t: collapse_blank_lines(t, "asciidoc"), "a\n\n\n\n\nb")

        assert once == "a\n\n\nb"
        assert again == once

    def test_two_blank_lines_are_kept(self):
        assert collapse_blank_lines("a\n\n\nb", "markdown") == "a\n\n\nb"

    def test_literal_blocks_are_untouched(self):
        text = "----\n\n\n\n\n----"
        assert collapse_blank_lines(text, "asciidoc") == text


class TestSeparateBlockConstructs:
    def test_heading_gets_blank_lines(self):
        once, again = twice(lambda t: separate_block_constructs(t, "asciidoc"), "text\n== Heading\nmore")

        assert once == "text\n\n== Heading\n\nmore"
        assert again == once

    def test_block_attribute_stays_on_its_block(self):
        text = "intro\n\n[NOTE]\n====\nbody\n===="
        assert separate_block_constructs(text, "asciidoc") == text

    def test_delimited_block_after_text(self):
        once, again = twice(lambda t: separate_block_constructs(t, "asciidoc"), "text\n----\ncode\n----\nafter")

        assert once == "text\n\n----\ncode\n----\n\nafter"
        assert again == once

    def test_continuation_keeps_block_attached(self):
        text = "* item\n+\n----\ncode\n----"
        assert separate_block_constructs(text, "asciidoc") == text

    def test_markdown_table(self):
        once, again = twice(lambda t: separate_block_constructs(t, "markdown"), "intro\n| a |\n| --- |\ntext")

        assert once == "intro\n\n| a |\n| --- |\n\ntext"
        assert again == once

    def test_writerside_attribute_stays_under_block(self):
        text = '```\ncode\n```\n{style="note"}'
        assert separate_block_constructs(text, "markdown") == text

    def test_indented_constructs_are_left_in_their_item(self):
        text = "- item\n  # not separated"
        assert separate_block_constructs(text, "markdown") == text


class TestTrimWhitespace:
    def test_trailing_spaces_and_final_newline(self):
        once, again = twice(lambda t: trim_whitespace(t, "asciidoc"), "\n\na  \nb\t\n\n\n")

        assert once == "a\nb\n"
        assert again == once

    def test_empty_document(self):
        assert trim_whitespace("\n  \n", "markdown") == ""

    def test_literal_trailing_spaces_survive(self):
        text = "----\ncode  \n----\n"
        assert trim_whitespace(text, "asciidoc") == text


class TestPipeline:
    def test_pass_order(self):
        names = [normalizer_pass.name for normalizer_pass in build_passes(ASCIIDOC)]
        assert names == [
            "merge-orphaned-ordering-directives",
            "drop-dangling-continuations",
            "collapse-blank-lines",
            "separate-block-constructs",
            "trim-whitespace",
        ]

    def test_markdown_has_no_continuation_pass(self):
        names = [normalizer_pass.name for normalizer_pass in build_passes(MARKDOWN)]
        assert "drop-dangling-continuations" not in names

    def test_html_only_trims(self):
        assert [normalizer_pass.name for normalizer_pass in build_passes(ZENDESK)] == ["trim-whitespace"]

    @pytest.mark.parametrize(
        "text",
        [
            "[loweralpha]\n\n. a\n+\n\n\n\n\n\ntext\n== H\nbody   \n",
            "+\n* a\n+\n+\n----\n\n\n\n+\n----\n",
            "intro\n[TIP]\n====\nx\n====\nafter\n\n\n\n",
        ],
    )
    def test_whole_sequence_is_idempotent(self, text):
        normalizer = PostEmissionNormalizer(ASCIIDOC)

        once = normalizer.normalize(text)
        assert normalizer.normalize(once) == once

    def test_repair_of_emitter_defect_is_reported(self):
        warnings: list[ConversionWarning] = []
        PostEmissionNormalizer(ASCIIDOC).normalize("* a\n+\n", warnings)

        assert [warning.code for warning in warnings] == ["normalizer-repair"]

    def test_cosmetic_passes_do_not_warn(self):
        warnings: list[ConversionWarning] = []
        PostEmissionNormalizer(ASCIIDOC).normalize("a\n\n\n\n\nb   ", warnings)

        assert warnings == []
