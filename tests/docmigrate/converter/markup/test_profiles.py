import pytest

from docmigrate.converter.exceptions import ProfileFileError, ProfileNotFoundError
from docmigrate.converter.markup.models import AdmonitionKind, ListOrdering
from docmigrate.converter.markup.profiles import (
    ASCIIDOC,
    BUILTIN_PROFILES,
    WRITERSIDE,
    Heuristics,
    get_profile,
    load_profile,
)


class TestBuiltinProfiles:
    def test_names(self):
        assert sorted(BUILTIN_PROFILES) == ["asciidoc", "markdown", "writerside", "zendesk"]

    def test_lookup_is_case_insensitive(self):
        assert get_profile("AsciiDoc") is ASCIIDOC

    def test_unknown_profile(self):
        with pytest.raises(ProfileNotFoundError) as exc_info:
            get_profile("rst")

        assert exc_info.value.to_dict()["available"] == ["asciidoc", "markdown", "writerside", "zendesk"]

    def test_heuristics_override(self):
        profile = get_profile("asciidoc", heuristics=Heuristics(inline_image_max_px=64))

        assert profile.heuristics.inline_image_max_px == 64
        assert ASCIIDOC.heuristics.inline_image_max_px == 32

    def test_writerside_maps_important_to_warning(self):
        assert WRITERSIDE.admonition_name(AdmonitionKind.IMPORTANT) == "warning"
        assert WRITERSIDE.ordering_directives[ListOrdering.ROMAN] == "roman-lower"

    def test_escape_text(self):
        assert get_profile("markdown").escape_text("a_b*c") == "a\\_b\\*c"
        assert ASCIIDOC.escape_text("a_b*c") == "a_b*c"


class TestLoadProfile:
    def test_round_trip_through_json(self, tmp_path):
        path = tmp_path / "custom.json"
        custom = ASCIIDOC.model_copy(update={"name": "custom", "max_list_depth": 3})
        path.write_text(custom.model_dump_json(), encoding="utf-8")

        loaded = load_profile(path)

        assert loaded.name == "custom"
        assert loaded.max_list_depth == 3
        assert loaded.ordering_directives == ASCIIDOC.ordering_directives

    def test_missing_file(self, tmp_path):
        with pytest.raises(ProfileFileError):
            load_profile(tmp_path / "missing.json")

    def test_invalid_profile(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text('{"name": "bad", "syntax": "rst"}', encoding="utf-8")

        with pytest.raises(ProfileFileError) as exc_info:
            load_profile(path)

        assert "invalid profile" in exc_info.value.reason
