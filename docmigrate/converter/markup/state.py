"""Mutable per-conversion emission state."""

from dataclasses import dataclass, field

from loguru import logger

from docmigrate.converter.exceptions import EmissionInvariantError
from docmigrate.converter.markup.models import ConversionWarning


@dataclass(frozen=True)
class EmittedBlock:
    """One emitted block of target text; lists are joined more tightly.

    A block that emitted a heading ends the list item it was found in: it and
    everything after it are emitted outside the item.
    """

    text: str
    is_list: bool = False
    ends_item: bool = False


def prefix_lines(value: str, prefix: str) -> str:
    """Prefix every line; blank lines get the prefix without trailing spaces."""
    bare = prefix.rstrip()
    return "\n".join(f"{prefix}{line}" if line.strip() else bare for line in value.split("\n"))


@dataclass
class EmissionState:
    """Accumulator threaded through one emission walk.

    A fresh instance is created for every conversion; nothing here outlives
    a single document.
    """

    section_level: int = 0
    sections_entered: int = 0
    just_closed_section: bool = False
    list_depth_stack: list[int] = field(default_factory=list)
    warnings: list[ConversionWarning] = field(default_factory=list)

    @property
    def open_lists(self) -> int:
        return len(self.list_depth_stack)

    def enter_section(self, level: int) -> None:
        self.section_level = level
        self.sections_entered += 1
        self.just_closed_section = True

    def consume_section_reset(self) -> bool:
        """Return whether a heading was just emitted, clearing the flag."""
        reset = self.just_closed_section
        self.just_closed_section = False
        return reset

    def push_list(self, depth: int) -> None:
        if depth < 0:
            raise EmissionInvariantError(f"negative list depth {depth}")
        self.list_depth_stack.append(depth)

    def pop_list(self) -> int:
        if not self.list_depth_stack:
            raise EmissionInvariantError("list depth stack popped while empty")
        return self.list_depth_stack.pop()

    def warn(self, code: str, message: str, severity: str = "warning") -> None:
        logger.debug(f"[{code}] {message}")
        self.warnings.append(ConversionWarning(code=code, message=message, severity=severity))
