"""Parser and renderer interfaces used by the splitting core.

The core never looks inside a declaration unit. It only needs a parser that
turns source text into an ordered sequence of units, and a renderer that
turns any subset of those units back into the text of one container.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from classsplit.splitting.types import DeclarationUnit, GroupRole


@dataclass(frozen=True)
class ParsedSource:
    """Language independent view of a parsed input.

    Attributes:
        path: Path of the source, used in diagnostics.
        aggregate_name: Name of the type being split.
        units: The aggregate's members in source order.
    """

    path: str
    aggregate_name: str
    units: tuple[DeclarationUnit, ...]


class Renderer(Protocol):
    """Turns a group of units back into container text.

    Implementations must be pure: the same units and role always produce
    byte-identical text. Estimates are cached on that assumption and every
    placement is verified by rendering again.
    """

    def render(self, units: Sequence[DeclarationUnit], role: GroupRole) -> str:
        """Render a container holding ``units`` in the given role."""
        ...


class LanguageAdapter(Protocol):
    """Protocol for language specific parser/renderer pairs."""

    @property
    def language(self) -> str:
        """Language name."""
        ...

    @property
    def file_extensions(self) -> set[str]:
        """Supported file extensions."""
        ...

    def parse(self, source: str, path: str = '<string>') -> ParsedSource:
        """Parse source text into its single aggregate and ordered units.

        Raises:
            SourceParseError: If the source is not syntactically valid.
            AggregateNotFoundError: If there is not exactly one aggregate.
        """
        ...

    def renderer(self, parsed: ParsedSource) -> Renderer:
        """Return a renderer bound to the scaffolding of ``parsed``."""
        ...
