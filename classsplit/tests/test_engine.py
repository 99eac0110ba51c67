"""Test the distribution engine against a deterministic renderer."""

import random

import pytest

from classsplit.splitting.engine import DistributionEngine
from classsplit.splitting.estimator import SizeEstimator
from classsplit.splitting.types import GroupRole

from .fixtures import FakeRenderer


def _distribute(renderer, max_lines):
    return DistributionEngine(renderer, max_lines).distribute(renderer.units())


def _indices(plan):
    return [[unit.original_index for unit in group] for group in plan.groups]


class TestDistribution:
    """Test how units are packed into groups."""

    def test_oversized_member_with_filler(self):
        """A member over budget goes alone while a later one fills the gap."""
        renderer = FakeRenderer([40, 1390, 40, 40], overhead=10)
        plan = _distribute(renderer, 100)

        assert _indices(plan) == [[0, 2], [1], [3]]
        assert [group.role for group in plan.groups] == [
            GroupRole.ORIGINAL,
            GroupRole.NEW,
            GroupRole.NEW,
        ]
        assert [group.oversized for group in plan.groups] == [False, True, False]
        assert [group.actual_lines for group in plan.groups] == [90, 1400, 50]
        assert plan.moved == (2,)

    def test_sequential_packing(self):
        renderer = FakeRenderer([30] * 6, overhead=10)
        plan = _distribute(renderer, 100)

        assert _indices(plan) == [[0, 1, 2], [3, 4, 5]]
        assert plan.moved == ()

    def test_everything_fits(self):
        renderer = FakeRenderer([10, 10, 10], overhead=10)
        plan = _distribute(renderer, 100)

        assert _indices(plan) == [[0, 1, 2]]
        assert not plan.is_split

    def test_no_units(self):
        plan = _distribute(FakeRenderer([]), 100)

        assert len(plan.groups) == 1
        assert plan.original.units == []
        assert plan.original.finalized

    def test_single_unit(self):
        plan = _distribute(FakeRenderer([10]), 100)

        assert _indices(plan) == [[0]]
        assert plan.original.actual_lines == 20

    def test_input_units_are_not_consumed(self):
        renderer = FakeRenderer([40, 1390, 40, 40], overhead=10)
        units = renderer.units()
        plan = DistributionEngine(renderer, 100).distribute(units)

        assert [unit.original_index for unit in units] == [0, 1, 2, 3]
        plan.verify(units)

    def test_filler_when_next_does_not_fit(self):
        renderer = FakeRenderer([50, 45, 20, 60], overhead=10)
        plan = _distribute(renderer, 100)

        assert _indices(plan) == [[0, 2], [1], [3]]
        assert plan.moved == (2,)

    def test_filler_ties_go_to_earliest_unit(self):
        renderer = FakeRenderer([80, 50, 10, 10], overhead=10)
        plan = _distribute(renderer, 100)

        assert _indices(plan) == [[0, 2], [1, 3]]

    def test_largest_fitting_filler_wins(self):
        renderer = FakeRenderer([60, 50, 10, 25, 20], overhead=10)
        plan = _distribute(renderer, 100)

        assert _indices(plan)[0] == [0, 3]

    def test_filler_rejected_when_rendering_disagrees(self):
        """Estimates miss the separator lines, the verification does not."""
        renderer = FakeRenderer([50, 60, 20], overhead=10, gap=25)
        plan = _distribute(renderer, 100)

        assert _indices(plan) == [[0], [1], [2]]
        assert all(group.actual_lines <= 100 for group in plan.groups)
        assert plan.moved == ()

    def test_oversized_first_member(self):
        renderer = FakeRenderer([200, 10], overhead=10)
        plan = _distribute(renderer, 100)

        assert _indices(plan) == [[1], [0]]
        assert plan.original.role is GroupRole.ORIGINAL
        assert plan.groups[1].oversized

    def test_oversized_only_member_stays_in_original(self):
        renderer = FakeRenderer([500], overhead=10)
        plan = _distribute(renderer, 100)

        assert _indices(plan) == [[0]]
        assert plan.original.oversized
        assert not plan.is_split

    def test_original_overhead_is_used_for_original_group(self):
        renderer = FakeRenderer([30, 30, 30], overhead=10, original_overhead=40)
        plan = _distribute(renderer, 100)

        assert _indices(plan) == [[0, 1], [2]]
        assert plan.original.actual_lines == 100

    def test_units_are_processed_in_source_order(self):
        renderer = FakeRenderer([30] * 4, overhead=10)
        units = list(reversed(renderer.units()))
        plan = DistributionEngine(renderer, 100).distribute(units)

        assert _indices(plan) == [[0, 1, 2], [3]]

    def test_invalid_budget(self):
        with pytest.raises(ValueError, match='max_lines'):
            DistributionEngine(FakeRenderer([]), 0)

    def test_shared_estimator(self):
        renderer = FakeRenderer([40, 40], overhead=10)
        estimator = SizeEstimator(renderer, 100)
        engine = DistributionEngine(renderer, 100, estimator)

        assert engine.estimator is estimator
        engine.distribute(renderer.units())
        assert set(estimator._estimates) == {0, 1}


class TestDistributionProperties:
    """Test the plan invariants over many generated inputs."""

    @pytest.mark.parametrize('seed', range(20))
    def test_invariants(self, seed):
        rng = random.Random(seed)
        sizes = [rng.choice([1, 5, 20, 45, 80, 150]) for _ in range(rng.randint(1, 40))]
        max_lines = rng.choice([60, 100, 200])
        renderer = FakeRenderer(sizes, overhead=rng.randint(0, 15), gap=1)
        units = renderer.units()

        plan = DistributionEngine(renderer, max_lines).distribute(units)

        # Every unit is placed exactly once.
        placed = sorted(unit.original_index for group in plan.groups for unit in group)
        assert placed == list(range(len(units)))

        # Only the first group replaces the original.
        assert plan.original.role is GroupRole.ORIGINAL
        assert all(group.role is GroupRole.NEW for group in plan.new_groups)

        for group in plan.groups:
            assert group.finalized
            assert group.units
            assert group.actual_lines == renderer.lines_for(group.units, group.role)
            if group.oversized:
                assert len(group) == 1
            else:
                assert group.actual_lines <= max_lines

        # Units that were not moved forward keep their relative order.
        positions = {
            unit.original_index: (g, p)
            for g, group in enumerate(plan.groups)
            for p, unit in enumerate(group)
        }
        in_order = [i for i in range(len(units)) if i not in plan.moved]
        assert [positions[i] for i in in_order] == sorted(
            positions[i] for i in in_order
        )

    def test_deterministic(self):
        rng = random.Random(7)
        sizes = [rng.randint(1, 90) for _ in range(30)]
        first = _distribute(FakeRenderer(sizes), 150)
        second = _distribute(FakeRenderer(sizes), 150)

        assert _indices(first) == _indices(second)
        assert first.moved == second.moved
