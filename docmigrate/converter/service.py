"""Conversion entry point: element tree + target profile -> text and warnings.

Each call builds its own resolver output, classifier and EmissionState, so
independent documents can be converted concurrently without sharing
mutable state.
"""

from collections.abc import Mapping

from loguru import logger

from docmigrate.converter.config import Settings
from docmigrate.converter.exceptions import EmissionInvariantError
from docmigrate.converter.logging_config import conversion_context
from docmigrate.converter.markup.classifier import StructuralClassifier
from docmigrate.converter.markup.emitter import BlockEmitter
from docmigrate.converter.markup.html_emitter import HtmlEmitter
from docmigrate.converter.markup.models import ConversionResult, ConversionWarning, ElementNode
from docmigrate.converter.markup.normalizer import PostEmissionNormalizer
from docmigrate.converter.markup.parser import parse_html
from docmigrate.converter.markup.profiles import TargetGrammarProfile
from docmigrate.converter.markup.resolver import ListNestingResolver
from docmigrate.converter.markup.state import EmissionState
from docmigrate.converter.markup.substitutions import apply_substitutions
from docmigrate.converter.markup.validator import OutputValidator


def _resolve_profile(profile: TargetGrammarProfile | str | None, settings: Settings) -> TargetGrammarProfile:
    if isinstance(profile, TargetGrammarProfile):
        return profile
    return settings.profile(profile)


def convert(
    tree: ElementNode,
    profile: TargetGrammarProfile | str | None = None,
    substitutions: Mapping[str, str] | None = None,
    settings: Settings | None = None,
) -> ConversionResult:
    """Convert a parsed element tree into the target grammar.

    Structural defects never raise; they are repaired or degraded and
    reported as warnings on the result. Only unknown profiles and emitter
    invariant violations raise.
    """
    settings = settings or Settings()
    target = _resolve_profile(profile, settings)

    with conversion_context(target.name):
        logger.debug(f"Converting document to {target.name}")
        warnings: list[ConversionWarning] = []
        tree = apply_substitutions(tree, substitutions or {}, warnings)

        resolution = ListNestingResolver().resolve(tree)
        warnings.extend(resolution.warnings)
        classifier = StructuralClassifier(target.heuristics, resolution)

        state = EmissionState()
        if target.syntax == "html":
            text = HtmlEmitter(target, classifier).emit_document(resolution.root, state)
        else:
            text = BlockEmitter(target, classifier).emit_document(resolution.root, state)
        if state.open_lists:
            raise EmissionInvariantError(f"{state.open_lists} list(s) still open after the walk")
        warnings.extend(state.warnings)

        text = PostEmissionNormalizer(target).normalize(text, warnings)

        if settings.run_validator:
            issues = OutputValidator(target).validate(text)
            for issue in issues:
                logger.warning(f"Validation {issue.rule} at line {issue.line}: {issue.message}")
            warnings.extend(issue.to_warning() for issue in issues)

        logger.info(f"Converted document to {target.name}: {len(text)} chars, {len(warnings)} warning(s)")
        return ConversionResult(text=text, warnings=warnings)


def convert_html(
    markup: str | bytes,
    profile: TargetGrammarProfile | str | None = None,
    substitutions: Mapping[str, str] | None = None,
    settings: Settings | None = None,
) -> ConversionResult:
    """Parse exported HTML and convert it."""
    return convert(parse_html(markup), profile, substitutions=substitutions, settings=settings)
