"""Output assembly for distribution plans.

This module turns a finalized Plan into output containers: the original
group replaces the source file, and every new group gets a file named after
the source with the next free numeric suffix. Allocation and writing happen
under a lock scoped to the destination directory and base name so that
concurrent runs never hand out the same suffix twice.
"""

from __future__ import annotations

import hashlib
import logging
import re
import tempfile
import threading
from collections.abc import Generator, Iterable
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import portalocker

from classsplit.exceptions import OutputError, RenderError
from classsplit.splitting.types import Group, GroupRole, Plan
from classsplit.utils import count_lines

if TYPE_CHECKING:
    from classsplit.lang.base import Renderer

logger = logging.getLogger(__name__)

FIRST_SUFFIX = 2

# POSIX record locks do not exclude threads of the same process.
_thread_locks: dict[str, threading.Lock] = {}
_thread_locks_guard = threading.Lock()


@dataclass(frozen=True)
class OutputContainer:
    """A rendered output file.

    Attributes:
        path: Where the container is written.
        role: Whether it replaces the source file.
        text: The rendered content.
        unit_count: Number of members in the container.
        line_count: Number of lines of ``text``.
        oversized: True if a single member could not fit the budget.
    """

    path: Path
    role: GroupRole
    text: str
    unit_count: int
    line_count: int
    oversized: bool = False


def next_available_suffix(existing_names: Iterable[str], base: str, ext: str) -> int:
    """Return the first numeric suffix above every existing ``{base}{N}{ext}``.

    Args:
        existing_names: File names present in the destination directory.
        base: File name without extension, e.g. ``'Foo'``.
        ext: Extension including the dot, e.g. ``'.cs'``.

    Returns:
        ``max(N) + 1``, or 2 when no numbered sibling exists.
    """
    pattern = re.compile(rf'^{re.escape(base)}(\d+){re.escape(ext)}$')
    numbers = [
        int(match.group(1))
        for match in (pattern.match(name) for name in existing_names)
        if match
    ]
    return max(numbers) + 1 if numbers else FIRST_SUFFIX


@contextmanager
def allocation_lock(
    directory: Path, base: str, ext: str
) -> Generator[None, None, None]:
    """Hold an exclusive lock for one base name in ``directory``.

    The lock excludes other processes through portalocker and other threads
    of this process through a per-key ``threading.Lock``.

    The lock file lives in the system temp directory so the source tree is
    left untouched.
    """
    key = hashlib.sha1(f'{directory.resolve()}/{base}{ext}'.encode()).hexdigest()
    lock_path = Path(tempfile.gettempdir()) / f'classsplit-{key}.lock'
    with _thread_locks_guard:
        thread_lock = _thread_locks.setdefault(key, threading.Lock())

    with thread_lock, open(lock_path, 'a', encoding='utf-8') as f:
        portalocker.lock(f, portalocker.LOCK_EX)
        try:
            yield
        finally:
            portalocker.unlock(f)


class OutputAssembler:
    """Renders and persists the containers of a plan.

    Example:
        >>> assembler = OutputAssembler(renderer, Path('src/Foo.cs'))
        >>> containers = assembler.write(plan)
        >>> [c.path.name for c in containers]
        ['Foo.cs', 'Foo2.cs', 'Foo3.cs']
    """

    def __init__(
        self,
        renderer: Renderer,
        source_path: Path | str,
        encoding: str = 'utf-8',
        newline: str = '\n',
    ):
        """Initialize the assembler.

        Args:
            renderer: Renderer bound to the source being split.
            source_path: The file the plan was computed for.
            encoding: Encoding used for every written container.
            newline: Line terminator used for every written container.
        """
        self.renderer = renderer
        self.source_path = Path(source_path)
        self.encoding = encoding
        self.newline = newline

    @property
    def directory(self) -> Path:
        return self.source_path.parent

    def assemble(
        self, plan: Plan, existing_names: Iterable[str] | None = None
    ) -> list[OutputContainer]:
        """Render every group of ``plan`` without touching the filesystem.

        Args:
            plan: The finalized plan.
            existing_names: File names already in the destination directory;
                read from disk when omitted.

        Returns:
            One container per group, in plan order.
        """
        base, ext = self.source_path.stem, self.source_path.suffix
        if existing_names is None:
            existing_names = self._existing_names()
        suffix = next_available_suffix(existing_names, base, ext)

        containers = [self._container(plan.original, self.source_path)]
        for offset, group in enumerate(plan.new_groups):
            path = self.directory / f'{base}{suffix + offset}{ext}'
            containers.append(self._container(group, path))
        return containers

    def write(self, plan: Plan) -> list[OutputContainer]:
        """Allocate names, render and persist every group of ``plan``.

        Each container is written on its own; a failure leaves containers
        written before it in place.

        Raises:
            OutputError: If a container cannot be written.
        """
        base, ext = self.source_path.stem, self.source_path.suffix
        with allocation_lock(self.directory, base, ext):
            containers = self.assemble(plan)
            # The source file is replaced only after every new file exists.
            for container in [*containers[1:], containers[0]]:
                self._write_container(container)
        return containers

    def _container(self, group: Group, path: Path) -> OutputContainer:
        try:
            text = self.renderer.render(group.units, group.role)
        except Exception as e:
            raise RenderError(len(group.units), group.role.value, cause=e) from e
        return OutputContainer(
            path=path,
            role=group.role,
            text=text,
            unit_count=len(group.units),
            line_count=count_lines(text),
            oversized=group.oversized,
        )

    def _existing_names(self) -> list[str]:
        try:
            return [p.name for p in self.directory.iterdir() if p.is_file()]
        except OSError as e:
            raise OutputError(str(self.directory), cause=e) from e

    def _write_container(self, container: OutputContainer) -> None:
        try:
            with open(
                container.path, 'w', encoding=self.encoding, newline=self.newline
            ) as f:
                f.write(container.text)
        except OSError as e:
            raise OutputError(str(container.path), cause=e) from e

        logger.info(
            f'Wrote {container.path} ({container.role.value}) with '
            f'{container.unit_count} member(s) and {container.line_count} lines'
        )
