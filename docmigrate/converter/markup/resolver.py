"""List nesting resolver.

Pre-pass over the element tree that repairs list structure before emission:

- lists placed as siblings of a colon-terminated item are moved into that
  item, following chains of any length;
- lists and loose content placed directly inside a list (outside any item)
  are moved into the preceding item;
- an ordered list split in two by such a sibling list is merged back;
- numbering-scheme drift is coerced to the first definitive scheme found at
  each (parent item, depth).

The repaired tree keeps every other node as is. Each list node gets a
memoized ListInfo (ordering, depth, start) keyed by node identity.
"""

from dataclasses import dataclass, field

from loguru import logger

from docmigrate.converter.markup.models import ConversionWarning, ElementNode, ListOrdering, element, text
from docmigrate.converter.markup.numbering import (
    LITERAL_MARKER_RE,
    declared_ordering,
    definitive_scheme,
    marker_readings,
)

LIST_KINDS = frozenset({"ol", "ul"})
ITEM_KIND = "li"
# Nested structures that do not count toward an item's own text
_NESTED_KINDS = frozenset({"ol", "ul", "dl", "table"})


@dataclass(frozen=True)
class ListInfo:
    ordering: ListOrdering
    depth: int
    start: int | None = None


@dataclass
class ResolvedTree:
    root: ElementNode
    lists: dict[int, ListInfo] = field(default_factory=dict)
    warnings: list[ConversionWarning] = field(default_factory=list)

    def info(self, node: ElementNode) -> ListInfo | None:
        return self.lists.get(id(node))


# === TREE HELPERS ===


def _is_blank(node: ElementNode) -> bool:
    return node.is_text and not node.text.strip()


def _items(lst: ElementNode) -> list[ElementNode]:
    return [child for child in lst.children if child.kind == ITEM_KIND]


def _last_item(lst: ElementNode) -> ElementNode | None:
    items = _items(lst)
    return items[-1] if items else None


def _replace_child(node: ElementNode, old: ElementNode, new: ElementNode) -> ElementNode:
    children = list(node.children)
    for i, child in enumerate(children):
        if child is old:
            children[i] = new
            return node.with_children(children)
    raise ValueError("child not found")


def _append(node: ElementNode, *extra: ElementNode) -> ElementNode:
    return node.with_children([*node.children, *extra])


def _own_text(node: ElementNode) -> str:
    """Text of a node excluding nested lists and tables."""
    if node.is_text:
        return node.text
    return "".join(_own_text(child) for child in node.children if child.kind not in _NESTED_KINDS)


def ends_with_colon(item: ElementNode) -> bool:
    return _own_text(item).rstrip().endswith(":")


def _last_child_list(item: ElementNode) -> ElementNode | None:
    meaningful = [child for child in item.children if not _is_blank(child)]
    if meaningful and meaningful[-1].kind in LIST_KINDS:
        return meaningful[-1]
    return None


def _parse_start(lst: ElementNode) -> int | None:
    raw = lst.attr("start").strip()
    try:
        return int(raw) if raw else None
    except ValueError:
        return None


# === RESOLVER ===


class ListNestingResolver:
    """Repairs list structure and memoizes list ordering/depth."""

    def resolve(self, root: ElementNode) -> ResolvedTree:
        warnings: list[ConversionWarning] = []
        repaired = self._repair(root, warnings)
        lists: dict[int, ListInfo] = {}
        annotated = self._annotate(repaired, depth=0, scope=None, lists=lists, warnings=warnings)
        return ResolvedTree(root=annotated, lists=lists, warnings=warnings)

    # --- structural repair ---

    def _repair(self, node: ElementNode, warnings: list[ConversionWarning]) -> ElementNode:
        if node.is_text or not node.children:
            return node
        children = [self._repair(child, warnings) for child in node.children]
        if node.kind in LIST_KINDS:
            children = self._repair_list_children(children, warnings)
        children = self._repair_siblings(children, warnings)
        if len(children) == len(node.children) and all(new is old for new, old in zip(children, node.children)):
            return node
        return node.with_children(children)

    def _repair_list_children(
        self, children: list[ElementNode], warnings: list[ConversionWarning]
    ) -> list[ElementNode]:
        """Move lists and loose content sitting directly in a list into items."""
        result: list[ElementNode] = []
        last_item_idx: int | None = None
        for child in children:
            if child.kind == ITEM_KIND:
                result.append(child)
                last_item_idx = len(result) - 1
                continue
            if _is_blank(child):
                result.append(child)
                continue
            if child.kind in LIST_KINDS:
                code, message = "sibling-list-repaired", "list nested directly in a list moved into preceding item"
            else:
                code, message = "orphan-list-content", f"<{child.kind}> inside a list moved into preceding item"
            logger.debug(message)
            warnings.append(ConversionWarning(code=code, message=message))
            if last_item_idx is None:
                result.append(element(ITEM_KIND, child))
                last_item_idx = len(result) - 1
            elif child.kind in LIST_KINDS:
                result[last_item_idx] = self._append_to_chain(result[last_item_idx], child)
            else:
                result[last_item_idx] = _append(result[last_item_idx], child)
        return result

    def _repair_siblings(self, children: list[ElementNode], warnings: list[ConversionWarning]) -> list[ElementNode]:
        """Absorb lists, stray items and split continuations that follow a list."""
        result: list[ElementNode] = []
        i = 0
        while i < len(children):
            child = children[i]
            if child.kind in LIST_KINDS:
                child, i = self._absorb_following(child, children, i + 1, warnings)
                result.append(child)
            else:
                result.append(child)
                i += 1
        return result

    def _absorb_following(
        self,
        lst: ElementNode,
        siblings: list[ElementNode],
        j: int,
        warnings: list[ConversionWarning],
    ) -> tuple[ElementNode, int]:
        nested = False
        while True:
            k = j
            while k < len(siblings) and _is_blank(siblings[k]):
                k += 1
            if k >= len(siblings):
                break
            following = siblings[k]
            last = _last_item(lst)

            if following.kind == ITEM_KIND:
                logger.debug("Stray list item appended to preceding list")
                warnings.append(
                    ConversionWarning(code="orphan-list-content", message="stray list item appended to preceding list")
                )
                lst = _append(lst, following)
                j = k + 1
                continue

            if following.kind not in LIST_KINDS or last is None:
                break

            # An open chain (nested list ending in a colon item) takes the next list first
            chain_open = self._chain_open(last)
            if nested and not chain_open and self._continues_numbering(lst, following):
                logger.debug("Split ordered list merged back after nested sibling list")
                lst = _append(lst, *_items(following))
                j = k + 1
                continue

            if chain_open or (_last_child_list(last) is None and self._implies_continuation(last, lst, following)):
                logger.debug(f"Sibling <{following.kind}> re-parented under colon-terminated item")
                warnings.append(
                    ConversionWarning(
                        code="sibling-list-repaired",
                        message="sibling list moved into the preceding list item",
                    )
                )
                lst = _replace_child(lst, last, self._append_to_chain(last, following))
                nested = True
                j = k + 1
                continue
            break
        return lst, j

    def _chain_open(self, item: ElementNode) -> bool:
        nested = _last_child_list(item)
        if nested is None:
            return False
        nested_last = _last_item(nested)
        return nested_last is not None and ends_with_colon(nested_last)

    def _implies_continuation(self, last: ElementNode, lst: ElementNode, following: ElementNode) -> bool:
        if ends_with_colon(last):
            return True
        # A lettered/roman list right after a numbered one is a sub-step list
        parent_scheme = declared_ordering(lst)
        child_scheme = declared_ordering(following)
        return (
            lst.kind == "ol"
            and parent_scheme in (None, ListOrdering.NUMERIC)
            and child_scheme in (ListOrdering.ALPHA, ListOrdering.ROMAN)
        )

    def _continues_numbering(self, lst: ElementNode, following: ElementNode) -> bool:
        if lst.kind != "ol" or following.kind != "ol":
            return False
        start = _parse_start(following)
        if start is not None:
            return start == (_parse_start(lst) or 1) + len(_items(lst))
        return declared_ordering(following) == declared_ordering(lst)

    def _append_to_chain(self, item: ElementNode, new_list: ElementNode) -> ElementNode:
        """Attach `new_list` at the open end of the chain hanging off `item`.

        The list goes under the deepest last item that ends with a colon,
        following the chain of lists already nested there; otherwise under
        `item` itself. Repairing one list at a time or all at once therefore
        yields the same nesting.
        """
        nested = _last_child_list(item)
        if nested is not None:
            nested_last = _last_item(nested)
            if nested_last is not None and ends_with_colon(nested_last):
                updated = _replace_child(nested, nested_last, self._append_to_chain(nested_last, new_list))
                return _replace_child(item, nested, updated)
        return _append(item, new_list)

    # --- ordering and depth ---

    def _annotate(
        self,
        node: ElementNode,
        depth: int,
        scope: dict[int, ListOrdering] | None,
        lists: dict[int, ListInfo],
        warnings: list[ConversionWarning],
    ) -> ElementNode:
        """Record ListInfo for every list, coercing drifting item markers.

        `scope` holds the first definitive scheme per depth for lists owned
        by the same item; top-level lists each get their own.
        """
        if node.is_text or not node.children:
            return node
        if node.kind in LIST_KINDS:
            return self._annotate_list(node, depth, scope, lists, warnings)
        child_scope = {} if node.kind == ITEM_KIND else scope
        children = [self._annotate(child, depth, child_scope, lists, warnings) for child in node.children]
        if all(new is old for new, old in zip(children, node.children, strict=True)):
            return node
        return node.with_children(children)

    def _annotate_list(
        self,
        lst: ElementNode,
        depth: int,
        scope: dict[int, ListOrdering] | None,
        lists: dict[int, ListInfo],
        warnings: list[ConversionWarning],
    ) -> ElementNode:
        items = _items(lst)
        literal = self._literal_markers(items)
        ordering = self._list_ordering(lst, items, literal, depth, scope, warnings)

        children: list[ElementNode] = []
        position = 0
        for child in lst.children:
            if child.kind == ITEM_KIND:
                position += 1
                if literal is not None:
                    child = self._strip_marker(child)
                item_scheme = declared_ordering(child)
                if ordering != ListOrdering.UNORDERED and item_scheme not in (None, ordering):
                    warnings.append(
                        ConversionWarning(
                            code="numbering-drift",
                            message=f"item {position} declares {item_scheme}, coerced to {ordering}",
                        )
                    )
            children.append(self._annotate(child, depth + 1, None, lists, warnings))

        resolved = lst.with_children(children)
        start = _parse_start(lst) if ordering != ListOrdering.UNORDERED else None
        lists[id(resolved)] = ListInfo(ordering=ordering, depth=depth, start=start)
        return resolved

    def _list_ordering(
        self,
        lst: ElementNode,
        items: list[ElementNode],
        literal: list[str] | None,
        depth: int,
        scope: dict[int, ListOrdering] | None,
        warnings: list[ConversionWarning],
    ) -> ListOrdering:
        if lst.kind == "ul":
            return ListOrdering.UNORDERED
        candidate = declared_ordering(lst)
        if candidate is None:
            candidate = self._item_hint(items, literal)
        if scope is None:
            return candidate or ListOrdering.NUMERIC
        established = scope.get(depth)
        if established is None:
            if candidate is not None:
                scope[depth] = candidate
            return candidate or ListOrdering.NUMERIC
        if candidate is not None and candidate != established:
            logger.debug(f"Numbering drift at depth {depth}: {candidate} coerced to {established}")
            warnings.append(
                ConversionWarning(
                    code="numbering-drift",
                    message=f"list at depth {depth} declares {candidate}, coerced to {established}",
                )
            )
        return established

    def _item_hint(self, items: list[ElementNode], literal: list[str] | None) -> ListOrdering | None:
        """First definitive scheme declared by an item or its literal marker."""
        for item in items:
            scheme = declared_ordering(item)
            if scheme is not None:
                return scheme
        for marker in literal or []:
            scheme = definitive_scheme(marker)
            if scheme is not None:
                return scheme
        return None

    def _literal_markers(self, items: list[ElementNode]) -> list[str] | None:
        """Markers typed into item text ("a. Foo"), when every item carries one
        whose ordinal matches its position. Otherwise None."""
        if not items:
            return None
        markers = []
        for position, item in enumerate(items, start=1):
            match = LITERAL_MARKER_RE.match(_own_text(item))
            if match is None:
                return None
            marker = match.group("marker")
            if position not in marker_readings(marker).values():
                return None
            markers.append(marker)
        return markers

    def _strip_marker(self, item: ElementNode) -> ElementNode:
        """Drop the literal marker from the item's first text run."""
        done = False

        def visit(node: ElementNode) -> ElementNode:
            nonlocal done
            if done or node.kind in _NESTED_KINDS:
                return node
            if node.is_text:
                if not node.text.strip():
                    return node
                done = True
                return text(LITERAL_MARKER_RE.sub("", node.text, count=1))
            return node.with_children([visit(child) for child in node.children])

        return visit(item)
