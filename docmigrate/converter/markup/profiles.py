"""Target grammar profiles.

A profile is the syntax ruleset for one output language: marker tables,
continuation glyph, admonition templates, link/xref syntax and table cell
escaping. Emitters never hard-code target syntax; they read it from here.
Templates are `str.format` strings, so literal braces are doubled.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from docmigrate.converter.exceptions import ProfileFileError, ProfileNotFoundError
from docmigrate.converter.markup.models import AdmonitionKind, ListOrdering

DEFAULT_ADMONITION_VOCABULARY: dict[str, AdmonitionKind] = {
    "note": AdmonitionKind.NOTE,
    "info": AdmonitionKind.NOTE,
    "information": AdmonitionKind.NOTE,
    "example": AdmonitionKind.NOTE,
    "remark": AdmonitionKind.NOTE,
    "tip": AdmonitionKind.TIP,
    "hint": AdmonitionKind.TIP,
    "warning": AdmonitionKind.WARNING,
    "caution": AdmonitionKind.WARNING,
    "attention": AdmonitionKind.WARNING,
    "danger": AdmonitionKind.WARNING,
    "error": AdmonitionKind.WARNING,
    "important": AdmonitionKind.IMPORTANT,
    "advisory": AdmonitionKind.IMPORTANT,
}


class Heuristics(BaseModel):
    """Empirically tuned thresholds used by the classifier and emitters."""

    model_config = ConfigDict(frozen=True)

    inline_image_max_px: int = Field(default=32, gt=0)
    image_alone_slack_chars: int = Field(default=5, ge=0)  # stray text tolerated next to a "lone" image
    admonition_inline_max_chars: int = Field(default=160, gt=0)
    admonition_label_max_chars: int = Field(default=20, gt=0)
    continuation_lookahead: int = Field(default=3, gt=0)
    admonition_vocabulary: dict[str, AdmonitionKind] = Field(
        default_factory=lambda: dict(DEFAULT_ADMONITION_VOCABULARY)
    )
    admonition_class_prefixes: tuple[str, ...] = ("mc-",)
    admonition_class_suffixes: tuple[str, ...] = ("indiv", "inpaper", "box", "block", "label")
    inline_icon_classes: tuple[str, ...] = ("iconinline", "inline-icon", "icon-inline")
    icon_path_patterns: tuple[str, ...] = (r"/(?:gui|icons?|buttons?)/", r"\.ico$")


class TargetGrammarProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    syntax: Literal["asciidoc", "markdown", "html"]
    document_extension: str

    # Headings
    heading_marker: str = "="
    anchor_def_template: str = "[[{name}]]"

    # Lists
    ordered_marker: str = "."
    unordered_markers: tuple[str, ...] = ("*",)
    repeat_marker_per_depth: bool = True
    numbered_marker_template: str | None = None  # explicit numbers, e.g. "{n}."
    max_list_depth: int = Field(default=5, ge=1)
    continuation: str | None = "+"
    ordering_directives: dict[ListOrdering, str] = Field(default_factory=dict)
    ordering_directive_template: str | None = None
    ordering_directive_placement: Literal["before", "after"] = "before"
    start_attribute_template: str | None = None
    empty_item_placeholder: str = ""
    definition_term_template: str = "{term}::"
    definition_description_prefix: str = ""
    list_overflow_template: str = "{content}"
    list_separator: str | None = "//"  # line between adjacent sibling lists

    # Admonitions
    admonition_names: dict[AdmonitionKind, str] = Field(default_factory=dict)
    admonition_inline_template: str = "{name}: {content}"
    admonition_block_template: str = "{content}"
    admonition_line_prefix: str = ""

    # Inline
    strong_template: str = "*{content}*"
    italic_template: str = "_{content}_"
    code_template: str = "`{content}`"
    line_break: str = " +\n"
    xref_template: str = "xref:{href}[{text}]"
    link_template: str = "{href}[{text}]"
    anchor_ref_template: str = "<<{anchor},{text}>>"
    image_inline_template: str = "image:{src}[{alt}]"
    image_block_template: str = "image::{src}[{alt}]"
    text_escapes: dict[str, str] = Field(default_factory=dict)

    # Blocks
    code_block_template: str = "[source,{language}]\n----\n{code}\n----"
    code_block_plain_template: str = "----\n{code}\n----"
    quote_template: str = "____\n{content}\n____"
    quote_line_prefix: str = ""
    rule: str = "'''"
    collapsible_template: str = ".{title}\n[%collapsible]\n====\n{content}\n===="

    # Tables
    table_cell_delimiter: str = "|"
    table_cell_escape: str = "\\|"
    cell_list_separator: str = "; "

    heuristics: Heuristics = Field(default_factory=Heuristics)

    @property
    def uses_continuation(self) -> bool:
        return self.continuation is not None

    def admonition_name(self, kind: AdmonitionKind) -> str:
        return self.admonition_names.get(kind, self.admonition_names.get(AdmonitionKind.NOTE, kind.value))

    def escape_text(self, value: str) -> str:
        for raw, escaped in self.text_escapes.items():
            value = value.replace(raw, escaped)
        return value

    def with_heuristics(self, heuristics: Heuristics) -> "TargetGrammarProfile":
        return self.model_copy(update={"heuristics": heuristics})


ASCIIDOC = TargetGrammarProfile(
    name="asciidoc",
    syntax="asciidoc",
    document_extension=".adoc",
    ordering_directives={ListOrdering.ALPHA: "loweralpha", ListOrdering.ROMAN: "lowerroman"},
    ordering_directive_template="[{attrs}]",
    start_attribute_template="start={start}",
    empty_item_placeholder="{empty}",
    list_overflow_template="[.list-overflow]\n....\n{content}\n....",
    admonition_names={
        AdmonitionKind.NOTE: "NOTE",
        AdmonitionKind.TIP: "TIP",
        AdmonitionKind.WARNING: "WARNING",
        AdmonitionKind.IMPORTANT: "IMPORTANT",
    },
    admonition_inline_template="{name}: {content}",
    admonition_block_template="[{name}]\n====\n{content}\n====",
)

MARKDOWN = TargetGrammarProfile(
    name="markdown",
    syntax="markdown",
    document_extension=".md",
    heading_marker="#",
    anchor_def_template='<a id="{name}"></a>',
    ordered_marker="1.",
    unordered_markers=("-", "*", "+"),
    repeat_marker_per_depth=False,
    numbered_marker_template="{n}.",
    max_list_depth=9,
    continuation=None,
    definition_term_template="**{term}**",
    definition_description_prefix=": ",
    list_overflow_template="<!-- list-overflow -->\n```text\n{content}\n```",
    list_separator="<!-- -->",
    admonition_names={
        AdmonitionKind.NOTE: "NOTE",
        AdmonitionKind.TIP: "TIP",
        AdmonitionKind.WARNING: "WARNING",
        AdmonitionKind.IMPORTANT: "IMPORTANT",
    },
    admonition_inline_template="> [!{name}]\n> {content}",
    admonition_block_template="> [!{name}]\n{content}",
    admonition_line_prefix="> ",
    strong_template="**{content}**",
    italic_template="*{content}*",
    line_break="\\\n",
    xref_template="[{text}]({href})",
    link_template="[{text}]({href})",
    anchor_ref_template="[{text}](#{anchor})",
    image_inline_template="![{alt}]({src})",
    image_block_template="![{alt}]({src})",
    text_escapes={"*": "\\*", "_": "\\_", "`": "\\`"},
    code_block_template="```{language}\n{code}\n```",
    code_block_plain_template="```\n{code}\n```",
    quote_template="{content}",
    quote_line_prefix="> ",
    rule="---",
    collapsible_template="<details>\n<summary>{title}</summary>\n\n{content}\n\n</details>",
    table_cell_escape="\\|",
    cell_list_separator="; ",
)

WRITERSIDE = MARKDOWN.model_copy(
    update={
        "name": "writerside",
        "ordering_directives": {ListOrdering.ALPHA: "alpha-lower", ListOrdering.ROMAN: "roman-lower"},
        "ordering_directive_template": '{{type="{attrs}"}}',
        "ordering_directive_placement": "after",
        "admonition_names": {
            AdmonitionKind.NOTE: "note",
            AdmonitionKind.TIP: "tip",
            AdmonitionKind.WARNING: "warning",
            AdmonitionKind.IMPORTANT: "warning",
        },
        "admonition_inline_template": '> {content}\n{{style="{name}"}}',
        "admonition_block_template": '{content}\n{{style="{name}"}}',
        "collapsible_template": '<collapsible title="{title}">\n\n{content}\n\n</collapsible>',
    }
)

ZENDESK = TargetGrammarProfile(
    name="zendesk",
    syntax="html",
    document_extension=".html",
    max_list_depth=9,
    continuation=None,
    list_separator=None,
    image_inline_template='<img src="{src}" alt="{alt}">',
    image_block_template='<img src="{src}" alt="{alt}">',
    admonition_names={
        AdmonitionKind.NOTE: "note",
        AdmonitionKind.TIP: "tip",
        AdmonitionKind.WARNING: "warning",
        AdmonitionKind.IMPORTANT: "important",
    },
    cell_list_separator="; ",
)

BUILTIN_PROFILES: dict[str, TargetGrammarProfile] = {
    profile.name: profile for profile in (ASCIIDOC, MARKDOWN, WRITERSIDE, ZENDESK)
}


def get_profile(name: str, heuristics: Heuristics | None = None) -> TargetGrammarProfile:
    """Look up a built-in profile, optionally overriding its heuristics."""
    try:
        profile = BUILTIN_PROFILES[name.lower()]
    except KeyError:
        raise ProfileNotFoundError(name, available=sorted(BUILTIN_PROFILES)) from None
    if heuristics is not None:
        profile = profile.with_heuristics(heuristics)
    return profile


def load_profile(path: Path) -> TargetGrammarProfile:
    """Load a custom profile from a JSON file."""
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ProfileFileError(path, str(e)) from e
    try:
        return TargetGrammarProfile.model_validate_json(raw)
    except ValidationError as e:
        raise ProfileFileError(path, f"invalid profile: {e.error_count()} validation error(s)") from e
