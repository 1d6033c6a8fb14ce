"""Ordering-scheme helpers shared by the resolver and the list emitters."""

import re

from docmigrate.converter.markup.models import ElementNode, ListOrdering

_TYPE_ORDERINGS = {
    "a": ListOrdering.ALPHA,
    "A": ListOrdering.ALPHA,
    "i": ListOrdering.ROMAN,
    "I": ListOrdering.ROMAN,
    "1": ListOrdering.NUMERIC,
}

_STYLE_ORDERINGS = {
    "lower-alpha": ListOrdering.ALPHA,
    "upper-alpha": ListOrdering.ALPHA,
    "lower-latin": ListOrdering.ALPHA,
    "upper-latin": ListOrdering.ALPHA,
    "lower-roman": ListOrdering.ROMAN,
    "upper-roman": ListOrdering.ROMAN,
    "decimal": ListOrdering.NUMERIC,
    "decimal-leading-zero": ListOrdering.NUMERIC,
}

_ROMAN_VALUES = [
    (1000, "m"),
    (900, "cm"),
    (500, "d"),
    (400, "cd"),
    (100, "c"),
    (90, "xc"),
    (50, "l"),
    (40, "xl"),
    (10, "x"),
    (9, "ix"),
    (5, "v"),
    (4, "iv"),
    (1, "i"),
]

# "a. ", "iv) ", "12. " at the start of an item's text
LITERAL_MARKER_RE = re.compile(r"^\s*(?P<marker>\d{1,3}|[a-z]{1,4})[.)]\s+", re.IGNORECASE)


def to_roman(n: int) -> str:
    parts = []
    for value, glyph in _ROMAN_VALUES:
        while n >= value:
            parts.append(glyph)
            n -= value
    return "".join(parts)


def from_roman(glyphs: str) -> int | None:
    """Parse a canonical lower/upper-case roman numeral, or None."""
    glyphs = glyphs.lower()
    if not glyphs or any(ch not in "ivxlcdm" for ch in glyphs):
        return None
    total, i = 0, 0
    for value, glyph in _ROMAN_VALUES:
        while glyphs.startswith(glyph, i):
            total += value
            i += len(glyph)
    if i != len(glyphs) or to_roman(total) != glyphs:
        return None
    return total


def to_alpha(n: int) -> str:
    """1 -> a, 26 -> z, 27 -> aa."""
    letters = []
    while n > 0:
        n, rem = divmod(n - 1, 26)
        letters.append(chr(ord("a") + rem))
    return "".join(reversed(letters))


def from_alpha(glyphs: str) -> int | None:
    glyphs = glyphs.lower()
    if not glyphs.isalpha() or not glyphs.isascii():
        return None
    total = 0
    for ch in glyphs:
        total = total * 26 + (ord(ch) - ord("a") + 1)
    return total


def ordinal_label(ordering: ListOrdering, n: int) -> str:
    """Textual marker for the n-th item (1-based), used where no list syntax exists."""
    match ordering:
        case ListOrdering.NUMERIC:
            return f"{n}."
        case ListOrdering.ALPHA:
            return f"{to_alpha(n)}."
        case ListOrdering.ROMAN:
            return f"{to_roman(n)}."
        case ListOrdering.UNORDERED:
            return "-"


def marker_readings(marker: str) -> dict[ListOrdering, int]:
    """All (scheme -> ordinal) interpretations of a literal marker like "ii" or "c"."""
    readings: dict[ListOrdering, int] = {}
    if marker.isdigit():
        readings[ListOrdering.NUMERIC] = int(marker)
        return readings
    roman = from_roman(marker)
    if roman is not None:
        readings[ListOrdering.ROMAN] = roman
    alpha = from_alpha(marker)
    if alpha is not None:
        readings[ListOrdering.ALPHA] = alpha
    return readings


def definitive_scheme(marker: str) -> ListOrdering | None:
    """The one scheme a literal marker can only belong to, or None when ambiguous."""
    readings = marker_readings(marker)
    if len(readings) == 1:
        return next(iter(readings))
    if ListOrdering.ROMAN in readings and len(marker) > 1 and readings[ListOrdering.ALPHA] > 26:
        # "ii", "iv": a two-glyph alpha reading is far less likely than roman
        return ListOrdering.ROMAN
    return None


def declared_ordering(node: ElementNode) -> ListOrdering | None:
    """Ordering declared on a list or item element through type/style/class."""
    if node.kind == "ul":
        return ListOrdering.UNORDERED
    declared_type = node.attr("type").strip()
    if declared_type in _TYPE_ORDERINGS:
        return _TYPE_ORDERINGS[declared_type]
    style = node.style()
    style_type = style.get("list-style-type") or (style.get("list-style", "").split() or [""])[0]
    if style_type in _STYLE_ORDERINGS:
        return _STYLE_ORDERINGS[style_type]
    for cls in node.classes:
        lowered = cls.lower()
        if "alpha" in lowered or "latin" in lowered:
            return ListOrdering.ALPHA
        if "roman" in lowered:
            return ListOrdering.ROMAN
    return None
