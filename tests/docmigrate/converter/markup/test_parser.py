from docmigrate.converter.markup.parser import parse_html


class TestParseHtml:
    def test_body_becomes_root(self):
        root = parse_html("<html><head><title>T</title></head><body class='topic'><p>Hi</p></body></html>")

        assert root.kind == "body"
        assert root.attr("class") == "topic"
        assert [child.kind for child in root.element_children()] == ["p"]

    def test_scripts_styles_and_comments_are_dropped(self):
        root = parse_html("<body><p>Hi<!-- hidden --></p><script>x()</script><style>p {}</style></body>")

        (paragraph,) = root.element_children()
        assert paragraph.text_content() == "Hi"

    def test_multi_valued_attributes_are_joined(self):
        root = parse_html('<p class="note  important" data-variable="General.Name">x</p>')

        (paragraph,) = root.element_children()
        assert paragraph.classes == ["note", "important"]
        assert paragraph.attr("data-variable") == "General.Name"

    def test_fragment_is_wrapped(self):
        root = parse_html("<ul><li>one</li><li>two</li></ul>")

        (lst,) = root.element_children()
        assert [item.text_content() for item in lst.element_children()] == ["one", "two"]

    def test_tag_names_are_lowercase(self):
        root = parse_html("<DIV><P>x</P></DIV>")
        assert root.element_children()[0].kind == "div"
