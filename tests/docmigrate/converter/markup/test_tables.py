from docmigrate.converter.markup.classifier import AncestorContext, StructuralClassifier
from docmigrate.converter.markup.emitter import BlockEmitter
from docmigrate.converter.markup.models import element
from docmigrate.converter.markup.profiles import ASCIIDOC, MARKDOWN, Heuristics, TargetGrammarProfile
from docmigrate.converter.markup.state import EmissionState


def emitter_for(profile: TargetGrammarProfile = ASCIIDOC) -> BlockEmitter:
    return BlockEmitter(profile, StructuralClassifier(Heuristics()))


def emit_table(table, profile: TargetGrammarProfile = ASCIIDOC) -> list[str]:
    return emitter_for(profile).tables.emit(table, EmissionState(), AncestorContext()).splitlines()


class TestRows:
    def test_thead_rows_are_header(self):
        table = element(
            "table",
            element("thead", element("tr", element("td", "H"))),
            element("tbody", element("tr", element("td", "B"))),
            element("tfoot", element("tr", element("td", "F"))),
        )
        rows = emitter_for().tables.collect_rows(table, AncestorContext())

        assert [row.header for row in rows] == [True, False, False]
        assert [row.cells[0].text for row in rows] == ["H", "B", "F"]

    def test_th_only_in_later_row_is_not_header(self):
        table = element("table", element("tr", element("td", "a")), element("tr", element("th", "b")))
        rows = emitter_for().tables.collect_rows(table, AncestorContext())

        assert not rows[0].header

    def test_empty_rows_are_dropped(self):
        table = element("table", element("tr"), element("tr", element("td", "x")))
        assert len(emitter_for().tables.collect_rows(table, AncestorContext())) == 1


class TestCellContent:
    def test_paragraphs_are_joined(self):
        table = element("table", element("tr", element("td", element("p", "one"), element("p", "two"))))
        assert emit_table(table)[2] == "|one two"

    def test_nested_list_is_flattened(self):
        cell = element("td", element("ol", element("li", "a", element("ul", element("li", "a1"))), element("li", "b")))
        table = element("table", element("tr", cell))

        assert emit_table(table)[2] == "|a; a1; b"

    def test_markdown_line_break_becomes_html(self):
        table = element("table", element("tr", element("td", "one", element("br"), "two")))
        assert emit_table(table, MARKDOWN)[0] == "| one<br>two |"

    def test_short_rows_are_padded(self):
        table = element(
            "table",
            element("tr", element("td", "a"), element("td", "b")),
            element("tr", element("td", "c")),
        )
        lines = emit_table(table, MARKDOWN)

        assert lines[2] == "| c |  |"

    def test_image_in_cell(self):
        table = element("table", element("tr", element("td", element("img", src="icon.png", alt="i", width="12"))))
        assert emit_table(table)[2] == "|image:icon.png[i]"


class TestCaption:
    def test_asciidoc_caption(self):
        table = element("table", element("caption", "Options"), element("tr", element("td", "x")))
        assert emit_table(table)[0] == ".Options"

    def test_markdown_caption(self):
        table = element("table", element("caption", "Options"), element("tr", element("td", "x")))
        assert emit_table(table, MARKDOWN)[:2] == ["**Options**", ""]

    def test_table_without_rows_emits_nothing(self):
        assert emit_table(element("table")) == []
