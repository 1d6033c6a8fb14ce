"""Element tree classification, list repair and target-markup emission."""

from docmigrate.converter.markup.models import (
    ConversionResult,
    ConversionWarning,
    ElementNode,
    ListOrdering,
    SemanticRole,
    element,
    text,
)
from docmigrate.converter.markup.normalizer import PostEmissionNormalizer
from docmigrate.converter.markup.parser import parse_html
from docmigrate.converter.markup.profiles import (
    ASCIIDOC,
    MARKDOWN,
    WRITERSIDE,
    ZENDESK,
    Heuristics,
    TargetGrammarProfile,
    get_profile,
    load_profile,
)
from docmigrate.converter.markup.resolver import ListNestingResolver

__all__ = [
    # Parser
    "parse_html",
    # Models
    "ElementNode",
    "element",
    "text",
    "SemanticRole",
    "ListOrdering",
    "ConversionResult",
    "ConversionWarning",
    # Profiles
    "TargetGrammarProfile",
    "Heuristics",
    "ASCIIDOC",
    "MARKDOWN",
    "WRITERSIDE",
    "ZENDESK",
    "get_profile",
    "load_profile",
    # Passes
    "ListNestingResolver",
    "PostEmissionNormalizer",
]
