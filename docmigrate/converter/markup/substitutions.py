"""Pre-classification substitution of resolved variables and include markers.

Variables arrive from upstream as elements carrying `data-variable="Set.Name"`
(the authoring tool's variable element, already rewritten). The caller
resolves variable files itself and hands over a plain name -> text map.
"""

from collections.abc import Mapping

from loguru import logger

from docmigrate.converter.markup.models import ConversionWarning, ElementNode, text

VARIABLE_ATTRIBUTE = "data-variable"
INCLUDE_ERROR_ATTRIBUTE = "data-include-error"


def _lookup(name: str, substitutions: Mapping[str, str]) -> str | None:
    if name in substitutions:
        return substitutions[name]
    # "General.ProductName" may be registered under its short name only
    _, _, short = name.rpartition(".")
    return substitutions.get(short) if short != name else None


def apply_substitutions(
    root: ElementNode,
    substitutions: Mapping[str, str],
    warnings: list[ConversionWarning],
) -> ElementNode:
    """Return a copy of `root` with variable elements replaced by their values.

    Unresolved variables keep their original content. Failed includes are
    reported but their content (usually a fallback) is kept as is.
    """

    def visit(node: ElementNode) -> ElementNode:
        if node.is_text:
            return node
        variable = node.attr(VARIABLE_ATTRIBUTE)
        if variable:
            value = _lookup(variable, substitutions)
            if value is not None:
                return text(value)
            logger.warning(f"Unresolved variable {variable!r}, keeping source text")
            warnings.append(
                ConversionWarning(code="variable-unresolved", message=f"Variable {variable!r} has no value")
            )
        include_error = node.attr(INCLUDE_ERROR_ATTRIBUTE)
        if include_error:
            logger.warning(f"Include failed upstream: {include_error}")
            warnings.append(
                ConversionWarning(code="include-unresolved", message=f"Include not resolved: {include_error}")
            )
        if not node.children:
            return node
        return node.with_children([visit(child) for child in node.children])

    return visit(root)
