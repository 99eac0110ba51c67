"""Size estimation for declaration units.

Rendering cost is not additive: every container pays for its own usings,
namespaces and type signature. The estimator measures each unit once, alone
in a new container, and caches the result for the engine's filler search.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from classsplit.exceptions import RenderError
from classsplit.splitting.types import DeclarationUnit, GroupRole, SizeEstimate
from classsplit.utils import count_lines

if TYPE_CHECKING:
    from classsplit.lang.base import Renderer

logger = logging.getLogger(__name__)


def measure(
    renderer: Renderer, units: Sequence[DeclarationUnit], role: GroupRole
) -> int:
    """Render ``units`` in ``role`` and return the exact line count.

    Raises:
        RenderError: If the renderer fails.
    """
    try:
        text = renderer.render(units, role)
    except Exception as e:
        raise RenderError(len(units), role.value, cause=e) from e
    return count_lines(text)


class SizeEstimator:
    """Caches per-unit size estimates and per-role scaffolding overhead.

    Example:
        >>> estimator = SizeEstimator(renderer, max_lines=1500)
        >>> estimates = estimator.estimate_all(units)
        >>> estimates[0].incremental_lines
        42
    """

    def __init__(self, renderer: Renderer, max_lines: int):
        """Initialize the estimator.

        Args:
            renderer: Renderer bound to the source being split.
            max_lines: The line budget, used to flag oversized units.
        """
        self.renderer = renderer
        self.max_lines = max_lines
        self.oversized: list[DeclarationUnit] = []
        self._overheads: dict[GroupRole, int] = {}
        self._estimates: dict[int, SizeEstimate] = {}

    def base_overhead(self, role: GroupRole) -> int:
        """Line count of an empty container in ``role``, computed once."""
        if role not in self._overheads:
            self._overheads[role] = measure(self.renderer, [], role)
        return self._overheads[role]

    def estimate(self, unit: DeclarationUnit) -> SizeEstimate:
        """Return the cached estimate for ``unit``, measuring it on first use."""
        cached = self._estimates.get(unit.original_index)
        if cached is not None:
            return cached

        overhead = self.base_overhead(GroupRole.NEW)
        total = measure(self.renderer, [unit], GroupRole.NEW)
        estimate = SizeEstimate(
            unit_index=unit.original_index,
            estimated_total_lines=max(total, overhead + 1),
            base_overhead=overhead,
        )
        self._estimates[unit.original_index] = estimate

        if estimate.estimated_total_lines > self.max_lines:
            logger.warning(
                f'{unit.label} needs {estimate.estimated_total_lines} lines on its '
                f'own, more than the budget of {self.max_lines}; it will be placed '
                f'in a file of its own'
            )
            self.oversized.append(unit)

        return estimate

    def estimate_all(self, units: Iterable[DeclarationUnit]) -> dict[int, SizeEstimate]:
        """Estimate every unit, keyed by ``original_index``."""
        return {unit.original_index: self.estimate(unit) for unit in units}
