from docmigrate.converter.markup.profiles import ASCIIDOC, MARKDOWN, ZENDESK
from docmigrate.converter.markup.validator import OutputValidator, ValidationIssue


def rules(text: str, profile=ASCIIDOC) -> list[tuple[str, int]]:
    return [(issue.rule, issue.line) for issue in OutputValidator(profile).validate(text)]


class TestAsciidocRules:
    def test_clean_document(self):
        text = "== Title\n\n. one\n+\nmore\n.. nested\n\nimage::a.png[Alt]\n"
        assert rules(text) == []

    def test_orphaned_continuation(self):
        assert rules("* a\n+") == [("orphaned-continuation", 2)]

    def test_continuation_inside_listing_is_content(self):
        assert rules("----\n+\n----") == []

    def test_unbalanced_delimiters(self):
        assert rules("text\n----\ncode") == [("unbalanced-delimiters", 2)]

    def test_image_macro_without_attributes(self):
        assert rules("image::a.png") == [("invalid-image-macro", 1)]

    def test_image_macro_without_target(self):
        assert rules("see image:[icon] here") == [("invalid-image-macro", 1)]

    def test_prose_mentioning_image_is_fine(self):
        assert rules("The image: shown below") == []

    def test_list_depth_jump(self):
        assert rules("* a\n*** c") == [("list-depth-jump", 2)]

    def test_depth_resets_after_a_paragraph(self):
        assert rules("** a\n\ntext\n\n* b") == [("list-depth-jump", 1)]


class TestOtherProfiles:
    def test_markdown_image_without_source(self):
        assert rules("![alt]()", MARKDOWN) == [("invalid-image-macro", 1)]

    def test_markdown_unclosed_fence(self):
        assert rules("```\ncode", MARKDOWN) == [("unbalanced-delimiters", 1)]

    def test_html_is_not_checked(self):
        assert rules("<p>+</p>", ZENDESK) == []


class TestValidationIssue:
    def test_to_warning(self):
        warning = ValidationIssue("list-depth-jump", 4, "jump").to_warning()

        assert warning.code == "validation:list-depth-jump"
        assert warning.message == "line 4: jump"
