from docmigrate.converter.config import Settings
from docmigrate.converter.markup.models import ElementNode, element
from docmigrate.converter.markup.profiles import ZENDESK
from docmigrate.converter.service import convert


def to_html(*children: ElementNode | str) -> str:
    return convert(element("body", *children), ZENDESK, settings=Settings()).text


def li(*children: ElementNode | str) -> ElementNode:
    return element("li", *children)


class TestSanitizing:
    def test_styles_classes_and_handlers_are_dropped(self):
        html = to_html(element("p", "Hi", style="color: red", class_="fancy", onclick="steal()"))
        assert html == "<p>Hi</p>\n"

    def test_unsafe_link_target_is_dropped(self):
        html = to_html(element("p", element("a", "click", href="javascript:alert(1)")))

        assert "javascript" not in html
        assert "<a>click</a>" in html

    def test_heading_id_is_kept(self):
        assert to_html(element("h2", "Setup", id="setup")) == '<h2 id="setup">Setup</h2>\n'

    def test_unknown_block_elements_are_unwrapped(self):
        html = to_html(element("section", element("p", "a"), element("p", "b")))
        assert html == "<p>a</p>\n<p>b</p>\n"


class TestCallouts:
    def test_callout_is_a_classed_blockquote(self):
        html = to_html(element("div", element("p", "Hot"), class_="warning"))
        assert html == '<blockquote class="zendesk-callout zendesk-warning"><p>Hot</p></blockquote>\n'

    def test_label_is_stripped(self):
        html = to_html(element("p", element("strong", "Tip:"), " Use keys."))

        assert "Tip:" not in html
        assert "zendesk-tip" in html

    def test_label_only_paragraph_takes_following_block(self):
        html = to_html(element("p", element("b", "Note:")), element("p", "Body."))
        assert html == '<blockquote class="zendesk-callout zendesk-note"><p>Body.</p></blockquote>\n'


class TestLists:
    def test_ordering_and_start(self):
        html = to_html(element("ol", li("c"), type="a", start="3"))

        assert 'type="a"' in html
        assert 'start="3"' in html
        assert "<li><p>c</p></li>" in html

    def test_repaired_sibling_list_is_nested(self):
        html = to_html(element("ol", li("Do:")), element("ul", li("this")))
        assert html == "<ol><li><p>Do:</p><ul><li><p>this</p></li></ul></li></ol>\n"


class TestInline:
    def test_internal_link_is_rewritten(self):
        html = to_html(element("p", element("a", "Guide", href="guide.htm#top")))
        assert '<a href="guide.html#top">Guide</a>' in html

    def test_emphasis_and_code(self):
        html = to_html(element("p", element("b", "bold"), " and ", element("code", "x = 1")))
        assert html == "<p><strong>bold</strong> and <code>x = 1</code></p>\n"


class TestTables:
    def test_single_paragraph_cells_are_unwrapped(self):
        html = to_html(element("table", element("tr", element("td", element("p", "x"), colspan="2"))))
        assert html == '<table><tr><td colspan="2">x</td></tr></table>\n'
