"""Orchestration of a classsplit run.

This module provides the ClassSplitter class that takes one source file from
disk through parsing, the initial size check, estimation, distribution and
assembly, and runs that pipeline over a batch of inputs.
"""

import codecs
import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from classsplit.config import SplitterConfig
from classsplit.exceptions import (
    AggregateNotFoundError,
    ClassSplitError,
    SourceReadError,
    UnsupportedAggregateError,
)
from classsplit.lang.base import LanguageAdapter, Renderer
from classsplit.lang.csharp import CSharpAdapter
from classsplit.splitting import (
    DeclarationUnit,
    DistributionEngine,
    GroupRole,
    OutputAssembler,
    OutputContainer,
    Plan,
    SizeEstimator,
    measure,
)

logger = logging.getLogger(__name__)


class SplitStatus(str, Enum):
    UNCHANGED = 'unchanged'
    SPLIT = 'split'
    SKIPPED = 'skipped'
    FAILED = 'failed'


@dataclass(frozen=True)
class SourceFile:
    """Decoded content of an input together with how to write it back."""

    path: Path
    text: str
    encoding: str = 'utf-8'
    newline: str = '\n'


@dataclass
class SplitOutcome:
    """Result of processing one input.

    Attributes:
        path: The input file.
        status: What happened to the input.
        total_lines: Rendered size of the whole type before splitting.
        containers: Containers written (or planned, in a dry run).
        oversized: Number of members that cannot fit the budget alone.
        error: Error message for skipped and failed inputs.
    """

    path: Path
    status: SplitStatus
    total_lines: int = 0
    containers: list[OutputContainer] = field(default_factory=list)
    oversized: int = 0
    error: str | None = None


@dataclass
class SplitSummary:
    """Outcomes of a batch run, in input order."""

    outcomes: list[SplitOutcome] = field(default_factory=list)

    def _count(self, status: SplitStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status is status)

    @property
    def processed(self) -> int:
        return len(self.outcomes)

    @property
    def split(self) -> int:
        return self._count(SplitStatus.SPLIT)

    @property
    def unchanged(self) -> int:
        return self._count(SplitStatus.UNCHANGED)

    @property
    def skipped(self) -> int:
        return self._count(SplitStatus.SKIPPED)

    @property
    def errors(self) -> int:
        return self._count(SplitStatus.FAILED)


def load_source(path: Path) -> SourceFile:
    """Read a source file, remembering its BOM and line endings.

    Raises:
        SourceReadError: If the file cannot be read or is not UTF-8.
    """
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise SourceReadError(str(path), cause=e) from e

    encoding = 'utf-8-sig' if raw.startswith(codecs.BOM_UTF8) else 'utf-8'
    try:
        text = raw.decode(encoding)
    except UnicodeDecodeError as e:
        raise SourceReadError(str(path), cause=e) from e

    newline = '\r\n' if '\r\n' in text else '\n'
    return SourceFile(
        path=path,
        text=text.replace('\r\n', '\n'),
        encoding=encoding,
        newline=newline,
    )


class ClassSplitter:
    """Splits oversized types into partial declarations across files.

    Attributes:
        config: The run configuration.
        adapter: The language adapter used to parse and render sources.

    Example:
        >>> from classsplit.config import SplitterConfig
        >>> splitter = ClassSplitter(SplitterConfig(max_lines=800))
        >>> outcome = splitter.split_file(Path('src/Engine.cs'))
        >>> [c.path.name for c in outcome.containers]
        ['Engine.cs', 'Engine2.cs']
    """

    def __init__(
        self, config: SplitterConfig, adapter: LanguageAdapter | None = None
    ):
        self.config = config
        self.adapter = adapter or CSharpAdapter()

    def plan(self, units: Iterable[DeclarationUnit], renderer: Renderer) -> Plan:
        """Distribute ``units`` over containers that fit the budget."""
        estimator = SizeEstimator(renderer, self.config.max_lines)
        engine = DistributionEngine(renderer, self.config.max_lines, estimator)
        return engine.distribute(list(units))

    def split_file(self, path: Path | str) -> SplitOutcome:
        """Split one file if its type exceeds the line budget.

        Raises:
            ClassSplitError: If the file cannot be read, parsed or written.
        """
        path = Path(path)
        source = load_source(path)
        parsed = self.adapter.parse(source.text, str(path))
        renderer = self.adapter.renderer(parsed)

        total_lines = measure(renderer, parsed.units, GroupRole.ORIGINAL)
        if total_lines <= self.config.max_lines:
            logger.info(
                f"{path}: {parsed.aggregate_name} doesn't need to be split "
                f'({total_lines} lines)'
            )
            return SplitOutcome(
                path=path, status=SplitStatus.UNCHANGED, total_lines=total_lines
            )

        plan = self.plan(parsed.units, renderer)
        oversized = len(plan.oversized_groups)
        if not plan.is_split:
            logger.warning(
                f'{path}: {parsed.aggregate_name} has {total_lines} lines but '
                f'cannot be split any further'
            )
            return SplitOutcome(
                path=path,
                status=SplitStatus.UNCHANGED,
                total_lines=total_lines,
                oversized=oversized,
            )

        assembler = OutputAssembler(
            renderer, path, encoding=source.encoding, newline=source.newline
        )
        if self.config.dry_run:
            containers = assembler.assemble(plan)
        else:
            containers = assembler.write(plan)

        logger.info(
            f'{path}: {parsed.aggregate_name} split into {len(containers)} '
            f'partial declarations, numbered from {containers[1].path.name}'
        )
        return SplitOutcome(
            path=path,
            status=SplitStatus.SPLIT,
            total_lines=total_lines,
            containers=containers,
            oversized=oversized,
        )

    def run(self, paths: Iterable[Path | str]) -> SplitSummary:
        """Process every input, continuing past per-input failures.

        Inputs are processed concurrently when ``config.jobs`` is above one.
        """
        paths = [Path(path) for path in paths]
        if self.config.jobs > 1 and len(paths) > 1:
            with ThreadPoolExecutor(max_workers=self.config.jobs) as pool:
                outcomes = list(pool.map(self._run_one, paths))
        else:
            outcomes = [self._run_one(path) for path in paths]
        return SplitSummary(outcomes=outcomes)

    def _run_one(self, path: Path) -> SplitOutcome:
        try:
            return self.split_file(path)
        except (AggregateNotFoundError, UnsupportedAggregateError) as e:
            logger.warning(f'Skipping {path}: {e}')
            return SplitOutcome(path=path, status=SplitStatus.SKIPPED, error=str(e))
        except ClassSplitError as e:
            logger.error(str(e))
            return SplitOutcome(path=path, status=SplitStatus.FAILED, error=str(e))
        except Exception as e:
            logger.exception(f'Unexpected error while splitting {path}')
            return SplitOutcome(
                path=path, status=SplitStatus.FAILED, error=str(e) or type(e).__name__
            )
