"""Size-aware splitting of one oversized type across several files.

Classes:
    DeclarationUnit: One member of the type being split.
    SizeEstimator: Measures and caches the cost of each member alone.
    DistributionEngine: Packs members into groups that fit the line budget.
    OutputAssembler: Names, renders and writes the groups of a plan.
    Plan: The finalized assignment of members to files.
"""

from classsplit.splitting.assembler import (
    OutputAssembler,
    OutputContainer,
    allocation_lock,
    next_available_suffix,
)
from classsplit.splitting.engine import DistributionEngine
from classsplit.splitting.estimator import SizeEstimator, measure
from classsplit.splitting.types import (
    DeclarationUnit,
    Group,
    GroupRole,
    Plan,
    SizeEstimate,
)

__all__ = [
    'DeclarationUnit',
    'DistributionEngine',
    'Group',
    'GroupRole',
    'OutputAssembler',
    'OutputContainer',
    'Plan',
    'SizeEstimate',
    'SizeEstimator',
    'allocation_lock',
    'measure',
    'next_available_suffix',
]
