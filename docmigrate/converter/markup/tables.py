"""Table sub-emitter.

Cells cannot hold block structure in the target grammars we emit, so
lists inside cells are flattened to separator-joined text and paragraphs
are joined with a space.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from docmigrate.converter.markup.classifier import AncestorContext
from docmigrate.converter.markup.models import ElementNode, ImageRole
from docmigrate.converter.markup.profiles import TargetGrammarProfile
from docmigrate.converter.markup.resolver import ITEM_KIND, LIST_KINDS
from docmigrate.converter.markup.state import EmissionState

if TYPE_CHECKING:
    from docmigrate.converter.markup.emitter import BlockEmitter

_CELL_KINDS = frozenset({"td", "th"})
_BLOCK_CELL_KINDS = frozenset({"p", "div", "h1", "h2", "h3", "h4", "h5", "h6", "pre", "blockquote"})


@dataclass(frozen=True)
class Cell:
    text: str
    span: int = 1
    header: bool = False


@dataclass(frozen=True)
class Row:
    cells: list[Cell]
    header: bool = False

    @property
    def width(self) -> int:
        return sum(cell.span for cell in self.cells)


class TableEmitter:
    def __init__(self, profile: TargetGrammarProfile, blocks: "BlockEmitter"):
        self.profile = profile
        self.blocks = blocks

    def emit(self, node: ElementNode, state: EmissionState, context: AncestorContext) -> str:
        table_context = context.child(node, restart_lists=True)
        rows = self.collect_rows(node, table_context)
        if not rows:
            return ""
        columns = max(row.width for row in rows)
        caption_node = next((child for child in node.element_children() if child.kind == "caption"), None)
        caption = self.blocks.inline.render_children(caption_node, table_context) if caption_node else ""
        if self.profile.syntax == "asciidoc":
            return self._asciidoc(rows, columns, caption)
        return self._pipe_table(rows, columns, caption)

    # === ROWS ===

    def collect_rows(self, node: ElementNode, context: AncestorContext) -> list[Row]:
        head, body, foot = [], [], []
        for child in node.element_children():
            match child.kind:
                case "thead":
                    head.extend(self._rows(child, context, header=True))
                case "tbody":
                    body.extend(self._rows(child, context, header=False))
                case "tfoot":
                    foot.extend(self._rows(child, context, header=False))
                case "tr":
                    body.append(self._row(child, context, header=False))
        rows = [row for row in head + body + foot if row.cells]
        if rows and not head and all(cell.header for cell in rows[0].cells):
            rows[0] = Row(cells=rows[0].cells, header=True)
        return rows

    def _rows(self, section: ElementNode, context: AncestorContext, *, header: bool) -> list[Row]:
        section_context = context.child(section)
        return [self._row(tr, section_context, header=header) for tr in section.element_children() if tr.kind == "tr"]

    def _row(self, tr: ElementNode, context: AncestorContext, *, header: bool) -> Row:
        row_context = context.child(tr)
        cells = []
        for cell in tr.element_children():
            if cell.kind not in _CELL_KINDS:
                continue
            span = cell.attr("colspan").strip()
            cells.append(
                Cell(
                    text=self.cell_text(cell, row_context),
                    span=int(span) if span.isdigit() and int(span) > 0 else 1,
                    header=cell.kind == "th",
                )
            )
        return Row(cells=cells, header=header)

    # === CELL CONTENT ===

    def cell_text(self, cell: ElementNode, context: AncestorContext) -> str:
        parts = self._flatten(cell, context.child(cell))
        value = " ".join(part for part in parts if part)
        if self.profile.syntax != "asciidoc":
            value = value.replace(self.profile.line_break, "<br>").replace("\n", " ")
        return value.replace(self.profile.table_cell_delimiter, self.profile.table_cell_escape)

    def _flatten(self, node: ElementNode, context: AncestorContext) -> list[str]:
        """Cell content as a list of inline strings."""
        parts: list[str] = []
        run: list[ElementNode] = []

        def flush() -> None:
            if run:
                parts.append(self.blocks.inline.render(run, context))
                run.clear()

        for child in node.children:
            if child.kind in LIST_KINDS:
                flush()
                parts.append(self.profile.cell_list_separator.join(self._list_items(child, context)))
            elif child.kind in _BLOCK_CELL_KINDS:
                flush()
                parts.extend(self._flatten(child, context.child(child)))
            elif child.kind == "img":
                flush()
                role = self.blocks.classifier.classify(child, context)
                if isinstance(role, ImageRole):
                    parts.append(self.blocks.inline.image(child, block=False))
            elif child.kind == "table":
                flush()
                parts.append(" ".join(self._flatten(child, context.child(child))))
            elif child.kind in ("thead", "tbody", "tr", "td", "th"):
                flush()
                parts.extend(self._flatten(child, context.child(child)))
            else:
                run.append(child)
        flush()
        return [part.strip() for part in parts if part.strip()]

    def _list_items(self, node: ElementNode, context: AncestorContext) -> list[str]:
        list_context = context.child(node)
        items = []
        for item in node.children:
            if item.kind != ITEM_KIND:
                continue
            item_context = list_context.child(item)
            own: list[ElementNode] = []
            nested: list[str] = []
            for child in item.children:
                if child.kind in LIST_KINDS:
                    nested.extend(self._list_items(child, item_context))
                else:
                    own.append(child)
            own_text = " ".join(self._flatten(item.with_children(own), item_context))
            if own_text:
                items.append(own_text)
            items.extend(nested)
        return items

    # === RENDERING ===

    def _asciidoc(self, rows: list[Row], columns: int, caption: str) -> str:
        options = ',options="header"' if rows[0].header else ""
        lines = []
        if caption:
            lines.append(f".{caption}")
        lines.append(f'[cols="{",".join(["1"] * columns)}"{options}]')
        lines.append("|===")
        for index, row in enumerate(rows):
            cells = [f"{cell.span}+|{cell.text}" if cell.span > 1 else f"|{cell.text}" for cell in row.cells]
            cells.extend("|" for _ in range(columns - row.width))
            lines.append(" ".join(cells))
            if index == 0 and row.header:
                lines.append("")
        lines.append("|===")
        return "\n".join(lines)

    def _pipe_table(self, rows: list[Row], columns: int, caption: str) -> str:
        lines = []
        if caption:
            lines.append(self.profile.strong_template.format(content=caption))
            lines.append("")
        for index, row in enumerate(rows):
            cells = []
            for cell in row.cells:
                cells.append(cell.text)
                cells.extend("" for _ in range(cell.span - 1))
            cells.extend("" for _ in range(columns - len(cells)))
            lines.append("| " + " | ".join(cells) + " |")
            if index == 0:
                lines.append("| " + " | ".join("---" for _ in range(columns)) + " |")
        return "\n".join(lines)
