"""Size-aware distribution of declaration units across containers.

The engine sweeps the units in source order and fills the container under
construction until the next unit no longer fits. Before giving up on that
container it looks for a later unit that would use the remaining space (a
filler). Candidates are chosen from cached estimates, but every placement is
verified by rendering the actual group, so no group ends up over budget
because an estimate drifted.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from classsplit.splitting.estimator import SizeEstimator, measure
from classsplit.splitting.types import DeclarationUnit, Group, GroupRole, Plan

if TYPE_CHECKING:
    from classsplit.lang.base import Renderer

logger = logging.getLogger(__name__)


@dataclass
class SweepState:
    """Accumulator threaded through the distribution sweep.

    Attributes:
        pending: Units not yet placed, in source order.
        groups: Finalized groups, in creation order.
        current: The group under construction.
        fillers: original_index of every unit placed out of order.
    """

    pending: list[DeclarationUnit]
    current: Group
    groups: list[Group] = field(default_factory=list)
    fillers: list[int] = field(default_factory=list)


class DistributionEngine:
    """Partitions units into groups that each fit the line budget.

    Example:
        >>> engine = DistributionEngine(renderer, max_lines=1500)
        >>> plan = engine.distribute(parsed.units)
        >>> [len(group) for group in plan.groups]
        [31, 28, 12]
    """

    def __init__(
        self,
        renderer: Renderer,
        max_lines: int,
        estimator: SizeEstimator | None = None,
    ):
        """Initialize the engine.

        Args:
            renderer: Renderer bound to the source being split.
            max_lines: The line budget per container.
            estimator: Optional estimator to share cached estimates with.
        """
        if max_lines <= 0:
            raise ValueError('max_lines must be a positive integer')
        self.renderer = renderer
        self.max_lines = max_lines
        self.estimator = estimator or SizeEstimator(renderer, max_lines)

    def distribute(self, units: Sequence[DeclarationUnit]) -> Plan:
        """Distribute ``units`` into a plan.

        The first group of the plan replaces the original container; all
        other groups become new containers.

        Args:
            units: The aggregate's units.

        Returns:
            The finalized plan.
        """
        ordered = sorted(units, key=lambda unit: unit.original_index)
        self.estimator.estimate_all(ordered)

        state = SweepState(
            pending=list(ordered), current=self._new_group(GroupRole.ORIGINAL)
        )

        while state.pending:
            self._step(state)

        if state.current.units or not state.groups:
            state.groups.append(state.current.finalize())

        plan = Plan(groups=tuple(state.groups), moved=tuple(state.fillers))
        plan.verify(ordered)

        logger.debug(
            f'Distributed {len(ordered)} member(s) into {len(plan.groups)} '
            f'container(s) with {len(plan.moved)} out of order placement(s)'
        )
        return plan

    def _step(self, state: SweepState) -> None:
        """Place exactly one pending unit."""
        next_unit = state.pending[0]
        current = state.current

        lines = self._verify(current, next_unit)
        if lines <= self.max_lines:
            current.add(next_unit, lines)
            state.pending.pop(0)
            return

        remaining = self.max_lines - current.actual_lines
        filler = self._find_filler(state.pending[1:], remaining)
        if filler is not None:
            lines = self._verify(current, filler)
            if lines <= self.max_lines:
                logger.debug(
                    f'Moving {filler.label} ahead of {next_unit.label} '
                    f'to use {remaining} remaining line(s)'
                )
                current.add(filler, lines)
                state.pending.remove(filler)
                state.fillers.append(filler.original_index)
                return

        if current.units:
            state.groups.append(current.finalize())
            current = state.current = self._new_group(GroupRole.NEW)

        # Either a fresh new group or an empty one that could not take the
        # unit, so the unit ends up alone.
        lines = self._verify(current, next_unit)
        current.add(next_unit, lines)
        state.pending.pop(0)

        if lines > self.max_lines:
            logger.warning(
                f'{next_unit.label} renders to {lines} lines on its own, over the '
                f'budget of {self.max_lines}; keeping it in a file of its own'
            )
            current.oversized = True
            state.groups.append(current.finalize())
            state.current = self._new_group(GroupRole.NEW)

    def _find_filler(
        self, candidates: Sequence[DeclarationUnit], remaining: int
    ) -> DeclarationUnit | None:
        """Pick the largest estimated unit that fits ``remaining`` lines.

        Ties go to the unit that comes first in the source.
        """
        best: DeclarationUnit | None = None
        best_cost = 0
        for unit in candidates:
            cost = self.estimator.estimate(unit).incremental_lines
            if cost > remaining:
                continue
            if cost > best_cost or (
                cost == best_cost
                and best is not None
                and unit.original_index < best.original_index
            ):
                best = unit
                best_cost = cost
        return best

    def _verify(self, group: Group, unit: DeclarationUnit) -> int:
        return measure(self.renderer, [*group.units, unit], group.role)

    def _new_group(self, role: GroupRole) -> Group:
        return Group(role=role, actual_lines=self.estimator.base_overhead(role))
