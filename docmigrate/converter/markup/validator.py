"""Rule-based checks on the final document text.

Findings never change the output; they become `validation:<rule>`
warnings on the conversion result.
"""

import re
from dataclasses import dataclass

from docmigrate.converter.markup.models import ConversionWarning
from docmigrate.converter.markup.normalizer import scan_blocks
from docmigrate.converter.markup.profiles import TargetGrammarProfile

_ASCIIDOC_IMAGE_RE = re.compile(r"\bimage::?(?=\S)(?P<target>[^\[\s]*)(?P<attrs>\[[^\]]*\])?")
_ASCIIDOC_LIST_RE = re.compile(r"^(?P<marker>\.{1,5}|\*{1,5})\s+\S")
_MARKDOWN_IMAGE_RE = re.compile(r"!\[[^\]]*\]\((?P<target>[^)]*)\)")


@dataclass(frozen=True)
class ValidationIssue:
    rule: str
    line: int
    message: str

    def to_warning(self) -> ConversionWarning:
        return ConversionWarning(code=f"validation:{self.rule}", message=f"line {self.line}: {self.message}")


class OutputValidator:
    def __init__(self, profile: TargetGrammarProfile):
        self.profile = profile
        self.syntax = profile.syntax

    def validate(self, text: str) -> list[ValidationIssue]:
        if self.syntax == "html":
            return []
        lines = text.split("\n")
        issues = self._check_delimiters(lines)
        if self.syntax == "asciidoc":
            issues += self._check_continuations(lines)
            issues += self._check_asciidoc_images(lines)
            issues += self._check_list_depth(lines)
        else:
            issues += self._check_markdown_images(lines)
        return sorted(issues, key=lambda issue: issue.line)

    def _check_delimiters(self, lines: list[str]) -> list[ValidationIssue]:
        infos = scan_blocks(lines, self.syntax)
        depth = 0
        last_open = 0
        for number, info in enumerate(infos, start=1):
            if info.opens:
                depth += 1
                last_open = number
            elif info.closes:
                depth -= 1
        if depth > 0:
            return [ValidationIssue("unbalanced-delimiters", last_open, "delimited block is never closed")]
        return []

    def _check_continuations(self, lines: list[str]) -> list[ValidationIssue]:
        glyph = self.profile.continuation
        if glyph is None:
            return []
        infos = scan_blocks(lines, self.syntax)
        issues = []
        for index, line in enumerate(lines):
            if infos[index].literal or line.strip() != glyph:
                continue
            before = lines[index - 1] if index > 0 else ""
            after = lines[index + 1] if index + 1 < len(lines) else ""
            if not before.strip() or not after.strip() or after.strip() == glyph:
                issues.append(
                    ValidationIssue("orphaned-continuation", index + 1, "continuation marker owns no content")
                )
        return issues

    def _check_asciidoc_images(self, lines: list[str]) -> list[ValidationIssue]:
        infos = scan_blocks(lines, self.syntax)
        issues = []
        for index, line in enumerate(lines):
            if infos[index].literal:
                continue
            for match in _ASCIIDOC_IMAGE_RE.finditer(line):
                if not match.group("target") or match.group("attrs") is None:
                    message = f"malformed image macro {match.group(0)!r}"
                    issues.append(ValidationIssue("invalid-image-macro", index + 1, message))
        return issues

    def _check_markdown_images(self, lines: list[str]) -> list[ValidationIssue]:
        infos = scan_blocks(lines, self.syntax)
        issues = []
        for index, line in enumerate(lines):
            if infos[index].literal:
                continue
            for match in _MARKDOWN_IMAGE_RE.finditer(line):
                if not match.group("target").strip():
                    issues.append(ValidationIssue("invalid-image-macro", index + 1, "image without a source"))
        return issues

    def _check_list_depth(self, lines: list[str]) -> list[ValidationIssue]:
        """A list line may go at most one level deeper than the line before it."""
        infos = scan_blocks(lines, self.syntax)
        issues = []
        previous_depth = 0
        for index, line in enumerate(lines):
            if infos[index].literal or infos[index].opens or infos[index].closes:
                continue
            match = _ASCIIDOC_LIST_RE.match(line)
            if match is None:
                # Only a block boundary resets the expected depth
                if line.strip() and line.strip() != self.profile.continuation and not line.startswith("["):
                    if index > 0 and not lines[index - 1].strip():
                        previous_depth = 0
                continue
            depth = len(match.group("marker"))
            if depth > previous_depth + 1:
                message = f"list marker jumps from level {previous_depth} to {depth}"
                issues.append(ValidationIssue("list-depth-jump", index + 1, message))
            previous_depth = depth
        return issues
