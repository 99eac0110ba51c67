"""classsplit - Split oversized C# classes into partial classes.

classsplit keeps every output file under a line budget while the type keeps
a single identity: the original file and each new file declare the same
``partial`` type. Members stay in source order, except that a later member
may be moved forward to fill space a larger one left unused.

Quick Start:
    >>> from classsplit import ClassSplitter, SplitterConfig
    >>>
    >>> splitter = ClassSplitter(SplitterConfig(max_lines=1000))
    >>> outcome = splitter.split_file('src/Services/Engine.cs')
    >>> [c.path.name for c in outcome.containers]
    ['Engine.cs', 'Engine2.cs', 'Engine3.cs']

CLI Usage:
    $ classsplit split src/Services/Engine.cs
    $ classsplit split src --recursive --max-lines 800
    $ classsplit split src --dry-run
"""

from importlib.metadata import PackageNotFoundError, version

from classsplit.config import SplitterConfig, get_config
from classsplit.exceptions import (
    AggregateNotFoundError,
    ClassSplitError,
    ConfigurationError,
    InputError,
    OutputError,
    PlanError,
    RenderError,
    SourceParseError,
    SourceReadError,
    UnsupportedAggregateError,
)
from classsplit.lang import CSharpAdapter
from classsplit.splitter import ClassSplitter, SplitOutcome, SplitStatus, SplitSummary
from classsplit.splitting import (
    DeclarationUnit,
    DistributionEngine,
    OutputAssembler,
    Plan,
    SizeEstimator,
    next_available_suffix,
)

__all__ = [
    # Main classes
    'ClassSplitter',
    'SplitOutcome',
    'SplitStatus',
    'SplitSummary',
    'CSharpAdapter',
    'DeclarationUnit',
    'DistributionEngine',
    'OutputAssembler',
    'Plan',
    'SizeEstimator',
    'next_available_suffix',
    # Configuration
    'SplitterConfig',
    'get_config',
    # Exceptions
    'ClassSplitError',
    'InputError',
    'SourceReadError',
    'SourceParseError',
    'AggregateNotFoundError',
    'UnsupportedAggregateError',
    'RenderError',
    'PlanError',
    'ConfigurationError',
    'OutputError',
]

try:
    __version__ = version('classsplit')
except PackageNotFoundError:
    __version__ = 'unknown'
