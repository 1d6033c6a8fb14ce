"""Post-emission normalizer.

A fixed, ordered list of named text passes. Each pass targets one defect
class that only shows up between neighbouring emitted lines, is a pure
`str -> str` function, and leaves its own output unchanged when run again.
The whole sequence is idempotent as well.

Passes that repair something the emitter should never produce
(`signals_defect`) report a `normalizer-repair` warning when they fire.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from functools import partial

from loguru import logger

from docmigrate.converter.markup.models import ConversionWarning
from docmigrate.converter.markup.profiles import TargetGrammarProfile

_ASCIIDOC_DELIMITER_RE = re.compile(r"^(?:-{4,}|\.{4,}|\+{4,}|/{4,}|={4,}|_{4,}|\*{4,}|\|===)$")
_ASCIIDOC_LITERAL = frozenset("-.+/")
_FENCE_RE = re.compile(r"^(?P<fence>`{3,}|~{3,})(?P<info>.*)$")

_HEADING_RES = {
    "asciidoc": re.compile(r"^=+\s+\S"),
    "markdown": re.compile(r"^#{1,6}\s+\S"),
}
_LIST_LINE_RES = {
    "asciidoc": re.compile(r"^\s*(?:\.{1,5}|\*{1,5}|-)\s+\S"),
    "markdown": re.compile(r"^\s*(?:\d+[.)]|[-*+])\s+\S"),
}
# Lines that introduce the block right after them
_ASCIIDOC_PREFIX_RE = re.compile(r"^(?:\[[^\[\]].*\]|\[\[[^\]]+\]\]|\.[^.\s].*)$")
_WRITERSIDE_ATTRIBUTE_RE = re.compile(r"^\{.+\}$")


@dataclass(frozen=True)
class LineInfo:
    literal: bool = False  # verbatim content, delimiters excluded
    opens: bool = False
    closes: bool = False


def scan_blocks(lines: list[str], syntax: str) -> list[LineInfo]:
    """Classify each line as verbatim content, block opener or block closer."""
    infos: list[LineInfo] = []
    stack: list[str] = []
    for line in lines:
        stripped = line.strip()
        in_literal = bool(stack) and (syntax != "asciidoc" or stack[-1][0] in _ASCIIDOC_LITERAL)
        if syntax == "asciidoc" and _ASCIIDOC_DELIMITER_RE.match(stripped):
            if stack and stack[-1] == stripped:
                stack.pop()
                infos.append(LineInfo(closes=True))
                continue
            if not in_literal:
                stack.append(stripped)
                infos.append(LineInfo(opens=True))
                continue
        elif syntax == "markdown":
            match = _FENCE_RE.match(stripped)
            if match:
                fence = match.group("fence")
                if stack and fence[0] == stack[-1][0] and len(fence) >= len(stack[-1]) and not match.group("info"):
                    stack.pop()
                    infos.append(LineInfo(closes=True))
                    continue
                if not stack:
                    stack.append(fence)
                    infos.append(LineInfo(opens=True))
                    continue
        infos.append(LineInfo(literal=in_literal))
    return infos


def _is_blank(line: str) -> bool:
    return not line.strip()


# === PASSES ===


def _directive_pattern(profile: TargetGrammarProfile) -> re.Pattern[str] | None:
    if profile.ordering_directive_template is None:
        return None
    sample = profile.ordering_directive_template.format(attrs="\x00")
    return re.compile("^" + re.escape(sample).replace("\x00", r"(?P<attrs>[^\]\}\"]+)") + "$")


def _directive_tokens(line: str, pattern: re.Pattern[str], profile: TargetGrammarProfile) -> list[str] | None:
    match = pattern.match(line.strip())
    if match is None:
        return None
    names = set(profile.ordering_directives.values())
    tokens = [token.strip() for token in match.group("attrs").split(",")]
    for token in tokens:
        if token not in names and not re.fullmatch(r"start=\d+", token):
            return None
    return tokens


def _merge_tokens(tokens: list[str], names: set[str]) -> list[str]:
    """Last ordering name and last start value win."""
    ordering = [token for token in tokens if token in names]
    start = [token for token in tokens if token.startswith("start=")]
    return ordering[-1:] + start[-1:]


def merge_orphaned_ordering_directives(text: str, profile: TargetGrammarProfile) -> str:
    """Reattach ordering directives separated from their list, merging split ones."""
    pattern = _directive_pattern(profile)
    if pattern is None:
        return text
    names = set(profile.ordering_directives.values())
    syntax = "asciidoc" if profile.syntax == "asciidoc" else "markdown"
    list_line = _LIST_LINE_RES[syntax]
    lines = text.split("\n")
    infos = scan_blocks(lines, syntax)

    def tokens_at(index: int) -> list[str] | None:
        if infos[index].literal:
            return None
        return _directive_tokens(lines[index], pattern, profile)

    def render(tokens: list[str], line: str) -> str:
        indent = line[: len(line) - len(line.lstrip())]
        return indent + profile.ordering_directive_template.format(attrs=",".join(_merge_tokens(tokens, names)))

    out: list[str] = []
    i = 0
    while i < len(lines):
        tokens = tokens_at(i)
        if tokens is None:
            out.append(lines[i])
            i += 1
            continue

        if profile.ordering_directive_placement == "after":
            while out and _is_blank(out[-1]):
                out.pop()
            previous = _directive_tokens(out[-1], pattern, profile) if out else None
            if previous is not None:
                out[-1] = render(previous + tokens, out[-1])
            else:
                out.append(render(tokens, lines[i]))
            i += 1
            continue

        # Directive before its list: fold following directive lines in, then
        # close the gap to the list marker line
        j = i + 1
        while True:
            k = j
            while k < len(lines) and _is_blank(lines[k]):
                k += 1
            following = tokens_at(k) if k < len(lines) else None
            if following is None:
                break
            tokens = tokens + following
            j = k + 1
        k = j
        while k < len(lines) and _is_blank(lines[k]):
            k += 1
        if k < len(lines) and list_line.match(lines[k]):
            j = k
        out.append(render(tokens, lines[i]))
        i = j
    return "\n".join(out)


def drop_dangling_continuations(text: str, glyph: str, lookahead: int, syntax: str) -> str:
    """Remove continuation markers that own nothing.

    A marker is dropped when nothing but blank lines follows within the
    lookahead, when it is doubled, when it opens or ends the document, when
    a blank line cuts it off from the item before, or when a heading
    follows. Kept markers are pulled tight against their content.
    """
    heading = _HEADING_RES["asciidoc" if syntax == "asciidoc" else "markdown"]
    lines = text.split("\n")
    infos = scan_blocks(lines, syntax)
    out: list[str] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        if infos[i].literal or line.strip() != glyph:
            out.append(line)
            i += 1
            continue
        j = i + 1
        while j < len(lines) and j <= i + lookahead and _is_blank(lines[j]):
            j += 1
        has_owner = bool(out) and not _is_blank(out[-1])
        has_content = j < len(lines) and j <= i + lookahead and not _is_blank(lines[j])
        if not has_owner or not has_content or lines[j].strip() == glyph or heading.match(lines[j]):
            i += 1
            continue
        out.append(line)
        i = j
    return "\n".join(out)


def collapse_blank_lines(text: str, syntax: str) -> str:
    """Collapse runs of three or more blank lines to two."""
    lines = text.split("\n")
    infos = scan_blocks(lines, syntax)
    out: list[str] = []
    blank_run = 0
    for line, info in zip(lines, infos, strict=True):
        if not info.literal and _is_blank(line):
            blank_run += 1
            if blank_run > 2:
                continue
            out.append("")
            continue
        blank_run = 0
        out.append(line)
    return "\n".join(out)


def separate_block_constructs(text: str, syntax: str) -> str:
    """Ensure headings, delimited blocks and block macros are set off by blank lines."""
    lines = text.split("\n")
    infos = scan_blocks(lines, syntax)
    heading = _HEADING_RES[syntax]

    def starts_block(index: int) -> bool:
        line = lines[index]
        if infos[index].opens or heading.match(line):
            return True
        if syntax == "asciidoc":
            return line.startswith("image::") or bool(_ASCIIDOC_PREFIX_RE.match(line))
        return line.startswith("|") and (index == 0 or not lines[index - 1].startswith("|"))

    def ends_block(index: int) -> bool:
        line = lines[index]
        if infos[index].closes or heading.match(line):
            return True
        if syntax == "asciidoc":
            return line.startswith("image::")
        return line.startswith("|") and (index + 1 >= len(lines) or not lines[index + 1].startswith("|"))

    def attached_before(index: int) -> bool:
        """Previous line may sit directly on top of a block start."""
        previous = lines[index - 1]
        if _is_blank(previous) or infos[index - 1].opens:
            return True
        if syntax == "asciidoc":
            return previous.strip() == "+" or bool(_ASCIIDOC_PREFIX_RE.match(previous))
        return False

    def attached_after(index: int) -> bool:
        following = lines[index + 1]
        if _is_blank(following) or infos[index + 1].closes:
            return True
        if syntax == "asciidoc":
            return following.strip() == "+"
        return bool(_WRITERSIDE_ATTRIBUTE_RE.match(following.strip()))

    out: list[str] = []
    for index, line in enumerate(lines):
        if infos[index].literal:
            out.append(line)
            continue
        # Block-level constructs only count at column zero; indented ones live in list items
        at_margin = line == line.lstrip()
        if at_margin and out and not _is_blank(out[-1]) and starts_block(index) and not attached_before(index):
            out.append("")
        out.append(line)
        if at_margin and index + 1 < len(lines) and ends_block(index) and not attached_after(index):
            out.append("")
    return "\n".join(out)


def trim_whitespace(text: str, syntax: str) -> str:
    """Strip trailing spaces outside verbatim blocks and end with a single newline."""
    lines = text.split("\n")
    infos = scan_blocks(lines, syntax)
    trimmed = [line if info.literal else line.rstrip() for line, info in zip(lines, infos, strict=True)]
    body = "\n".join(trimmed).strip("\n")
    return body + "\n" if body else ""


# === PIPELINE ===


@dataclass(frozen=True)
class NormalizerPass:
    name: str
    defect: str
    apply: Callable[[str], str]
    signals_defect: bool = False


def build_passes(profile: TargetGrammarProfile) -> list[NormalizerPass]:
    if profile.syntax == "html":
        return [
            NormalizerPass("trim-whitespace", "trailing whitespace", partial(trim_whitespace, syntax="html")),
        ]
    syntax = "asciidoc" if profile.syntax == "asciidoc" else "markdown"
    passes = [
        NormalizerPass(
            "merge-orphaned-ordering-directives",
            "ordering directive separated from its list or split in two",
            partial(merge_orphaned_ordering_directives, profile=profile),
        ),
    ]
    if profile.continuation is not None:
        passes.append(
            NormalizerPass(
                "drop-dangling-continuations",
                "continuation marker with no content to attach",
                partial(
                    drop_dangling_continuations,
                    glyph=profile.continuation,
                    lookahead=profile.heuristics.continuation_lookahead,
                    syntax=syntax,
                ),
                signals_defect=True,
            )
        )
    passes += [
        NormalizerPass(
            "collapse-blank-lines",
            "three or more blank lines",
            partial(collapse_blank_lines, syntax=syntax),
        ),
        NormalizerPass(
            "separate-block-constructs",
            "block construct glued to neighbouring text",
            partial(separate_block_constructs, syntax=syntax),
        ),
        NormalizerPass("trim-whitespace", "trailing whitespace", partial(trim_whitespace, syntax=syntax)),
    ]
    return passes


class PostEmissionNormalizer:
    def __init__(self, profile: TargetGrammarProfile):
        self.profile = profile
        self.passes = build_passes(profile)

    def normalize(self, text: str, warnings: list[ConversionWarning] | None = None) -> str:
        for normalizer_pass in self.passes:
            fixed = normalizer_pass.apply(text)
            if fixed != text and normalizer_pass.signals_defect:
                logger.warning(f"Normalizer pass {normalizer_pass.name} repaired emitted output")
                if warnings is not None:
                    warnings.append(
                        ConversionWarning(
                            code="normalizer-repair",
                            message=f"{normalizer_pass.name}: {normalizer_pass.defect}",
                        )
                    )
            text = fixed
        return text
