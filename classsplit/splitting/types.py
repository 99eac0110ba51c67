"""Data structures shared by the estimator, the engine and the assembler.

A run starts from an ordered sequence of DeclarationUnit objects parsed from
one aggregate. The engine grows Group objects from them and hands the
finalized groups to the assembler as a Plan.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from enum import Enum

from classsplit.exceptions import PlanError


class GroupRole(str, Enum):
    """Whether a group replaces the original container or becomes a new one."""

    ORIGINAL = 'original'
    NEW = 'new'


@dataclass(frozen=True)
class DeclarationUnit:
    """One top-level member of the aggregate.

    Attributes:
        original_index: Position of the member in the source.
        content: Exact source text of the member, including attached
            comments and attributes.
        name: Member name, for diagnostics only.
        kind: Syntax kind of the member, for diagnostics only.
    """

    original_index: int
    content: str
    name: str | None = None
    kind: str | None = None

    @property
    def label(self) -> str:
        """Short human readable description, e.g. ``method Run (#3)``."""
        parts = [part for part in (self.kind, self.name) if part]
        parts.append(f'(#{self.original_index})')
        return ' '.join(parts)


@dataclass(frozen=True)
class SizeEstimate:
    """Cached cost of a unit rendered alone in a new container.

    Attributes:
        unit_index: original_index of the estimated unit.
        estimated_total_lines: Line count of a container holding only the unit.
        base_overhead: Line count of an empty new container.
    """

    unit_index: int
    estimated_total_lines: int
    base_overhead: int

    @property
    def incremental_lines(self) -> int:
        """Lines the unit is expected to add to a container, at least 1."""
        return max(self.estimated_total_lines - self.base_overhead, 1)


@dataclass
class Group:
    """Units destined for a single output container.

    A group is mutable while the engine grows it; ``finalize`` freezes it
    before it is handed over to the assembler.

    Attributes:
        role: Whether the group replaces the original container.
        units: The units in placement order.
        actual_lines: Rendered line count of the group as it stands.
        oversized: True for a single unit that cannot fit the budget alone.
    """

    role: GroupRole
    units: list[DeclarationUnit] = field(default_factory=list)
    actual_lines: int = 0
    oversized: bool = False
    _finalized: bool = field(default=False, repr=False, compare=False)

    @property
    def finalized(self) -> bool:
        return self._finalized

    def add(self, unit: DeclarationUnit, actual_lines: int) -> None:
        """Append a unit whose placement was verified at ``actual_lines``."""
        if self._finalized:
            raise PlanError(f'Cannot add {unit.label} to a finalized group')
        self.units.append(unit)
        self.actual_lines = actual_lines

    def finalize(self) -> Group:
        self._finalized = True
        return self

    def __len__(self) -> int:
        return len(self.units)

    def __iter__(self) -> Iterator[DeclarationUnit]:
        return iter(self.units)


@dataclass(frozen=True)
class Plan:
    """The finalized assignment of units to output containers.

    The first group always carries the original role and it is the only one
    that does.

    Attributes:
        groups: The groups in container order.
        moved: original_index of the units placed ahead of their turn to
            fill a container.
    """

    groups: tuple[Group, ...]
    moved: tuple[int, ...] = ()

    @property
    def original(self) -> Group:
        return self.groups[0]

    @property
    def new_groups(self) -> tuple[Group, ...]:
        return self.groups[1:]

    @property
    def oversized_groups(self) -> list[Group]:
        return [group for group in self.groups if group.oversized]

    @property
    def is_split(self) -> bool:
        """True when the plan produces at least one new container."""
        return len(self.groups) > 1

    @classmethod
    def single(cls, units: Iterable[DeclarationUnit], actual_lines: int) -> Plan:
        """Build the no-op plan keeping every unit in the original container."""
        group = Group(role=GroupRole.ORIGINAL, units=list(units))
        group.actual_lines = actual_lines
        return cls(groups=(group.finalize(),))

    def group_of(self, unit: DeclarationUnit) -> int:
        """Return the index of the group holding ``unit``."""
        for index, group in enumerate(self.groups):
            if unit in group.units:
                return index
        raise PlanError(f'{unit.label} is not part of the plan')

    def verify(self, units: Sequence[DeclarationUnit]) -> None:
        """Check the role and coverage invariants against the input units.

        Raises:
            PlanError: If a unit is missing or duplicated, or the roles are
                not exactly one original group in first position.
        """
        roles = [group.role for group in self.groups]
        if not roles or roles[0] is not GroupRole.ORIGINAL:
            raise PlanError('The first group of a plan must be the original')
        if roles.count(GroupRole.ORIGINAL) != 1:
            raise PlanError('A plan must contain exactly one original group')
        if not all(group.finalized for group in self.groups):
            raise PlanError('A plan may only hold finalized groups')

        placed = [unit.original_index for group in self.groups for unit in group]
        expected = sorted(unit.original_index for unit in units)
        if sorted(placed) != expected:
            missing = sorted(set(expected) - set(placed))
            duplicated = sorted({i for i in placed if placed.count(i) > 1})
            raise PlanError(
                f'Plan does not cover the input exactly once '
                f'(missing: {missing}, duplicated: {duplicated})'
            )
