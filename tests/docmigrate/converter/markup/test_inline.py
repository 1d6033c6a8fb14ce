import pytest

from docmigrate.converter.markup.classifier import AncestorContext, StructuralClassifier
from docmigrate.converter.markup.inline import InlineRenderer, collapse_whitespace
from docmigrate.converter.markup.models import element
from docmigrate.converter.markup.profiles import ASCIIDOC, MARKDOWN, Heuristics, TargetGrammarProfile


def render(*nodes, profile: TargetGrammarProfile = ASCIIDOC) -> str:
    renderer = InlineRenderer(profile, StructuralClassifier(Heuristics()))
    paragraph = element("p", *nodes)
    return renderer.render_children(paragraph, AncestorContext())


class TestText:
    def test_whitespace_is_collapsed(self):
        assert collapse_whitespace("a \n\t b") == "a b"
        assert render("  a \n b  ") == "a b"

    def test_breaks_at_edges_are_dropped(self):
        assert render(element("br"), "a", element("br")) == "a"

    def test_empty_emphasis_is_left_out(self):
        assert render("a", element("b", " "), "b") == "a b"


class TestLinks:
    @pytest.mark.parametrize(
        "href, expected",
        [
            ("Topic.htm", "Topic.adoc"),
            ("dir/Topic.HTML#part", "dir/Topic.adoc#part"),
            ("image.png", "image.png"),
        ],
    )
    def test_rewrite_href(self, href, expected):
        renderer = InlineRenderer(ASCIIDOC, StructuralClassifier(Heuristics()))
        assert renderer.rewrite_href(href) == expected

    def test_internal_link_without_text_uses_file_stem(self):
        assert render(element("a", href="Setup.htm")) == "xref:Setup.adoc[Setup]"

    def test_brackets_in_link_text_are_escaped(self):
        assert render(element("a", "see [1]", href="https://example.com")) == "https://example.com[see [1\\]]"

    def test_markdown_anchor_link(self):
        assert render(element("a", "Top", href="#top"), profile=MARKDOWN) == "[Top](#top)"

    def test_named_anchor_definition(self):
        assert render(element("a", name="here"), "Text") == "[[here]]Text"


class TestImages:
    def test_alt_with_comma_is_quoted(self):
        renderer = InlineRenderer(ASCIIDOC, StructuralClassifier(Heuristics()))
        image = element("img", src="a.png", alt="one, two")

        assert renderer.image(image, block=True) == 'image::a.png["one, two"]'

    def test_title_is_used_without_alt(self):
        renderer = InlineRenderer(MARKDOWN, StructuralClassifier(Heuristics()))
        assert renderer.image(element("img", src="a.png", title="Chart"), block=False) == "![Chart](a.png)"
