import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from docmigrate.converter.markup.profiles import Heuristics, TargetGrammarProfile, get_profile


class Settings(BaseSettings):
    default_profile: str = "asciidoc"
    heuristics: Heuristics = Field(default_factory=Heuristics)
    run_validator: bool = True  # append validator findings to conversion warnings

    log_level: str = "INFO"
    log_file: Path | None = None

    model_config = SettingsConfigDict(
        env_prefix="DOCMIGRATE_",
        env_file=[os.getenv("ENV_FILE", ""), ".env"],
        extra="ignore",
        env_nested_delimiter="__",
    )

    def profile(self, name: str | None = None) -> TargetGrammarProfile:
        """Resolve a built-in profile with these settings' heuristics applied."""
        return get_profile(name or self.default_profile, heuristics=self.heuristics)
