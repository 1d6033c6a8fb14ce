import pytest

from docmigrate.converter.config import Settings
from docmigrate.converter.exceptions import ProfileNotFoundError


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("ENV_FILE", raising=False)
    names = ("DOCMIGRATE_DEFAULT_PROFILE", "DOCMIGRATE_HEURISTICS__INLINE_IMAGE_MAX_PX", "DOCMIGRATE_RUN_VALIDATOR")
    for name in names:
        monkeypatch.delenv(name, raising=False)


class TestSettings:
    def test_defaults(self):
        settings = Settings()

        assert settings.default_profile == "asciidoc"
        assert settings.run_validator
        assert settings.profile().name == "asciidoc"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("DOCMIGRATE_DEFAULT_PROFILE", "markdown")
        monkeypatch.setenv("DOCMIGRATE_HEURISTICS__INLINE_IMAGE_MAX_PX", "48")
        monkeypatch.setenv("DOCMIGRATE_RUN_VALIDATOR", "false")

        settings = Settings()
        profile = settings.profile()

        assert profile.name == "markdown"
        assert profile.heuristics.inline_image_max_px == 48
        assert not settings.run_validator

    def test_env_file(self, tmp_path):
        (tmp_path / ".env").write_text("DOCMIGRATE_DEFAULT_PROFILE=writerside\n", encoding="utf-8")
        assert Settings().profile().name == "writerside"

    def test_explicit_profile_name_wins(self):
        assert Settings().profile("zendesk").name == "zendesk"

    def test_unknown_default_profile(self, monkeypatch):
        monkeypatch.setenv("DOCMIGRATE_DEFAULT_PROFILE", "rst")

        with pytest.raises(ProfileNotFoundError):
            Settings().profile()
