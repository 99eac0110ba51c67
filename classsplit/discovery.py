"""
Input discovery for classsplit runs.
"""

import logging
from collections.abc import Iterable
from pathlib import Path

import pathspec

logger = logging.getLogger(__name__)


def discover_sources(
    paths: Iterable[str | Path],
    recursive: bool = False,
    extensions: Iterable[str] = ('.cs',),
    exclude: Iterable[str] = (),
) -> list[Path]:
    """
    Expand files and directories into the list of inputs to split.

    Files given explicitly are always kept, even when they do not exist, so
    that the failure is reported for that input. Directories contribute the
    files whose suffix is one of ``extensions`` and whose path relative to
    the directory does not match ``exclude``.

    Args:
        paths: Files and directories, in the order given by the user.
        recursive: Whether to descend into subdirectories.
        extensions: Suffixes to pick up from directories.
        exclude: gitignore style patterns of files to leave alone.

    Returns:
        Unique paths in discovery order.
    """
    suffixes = {ext.lower() for ext in extensions}
    exclude_spec = pathspec.GitIgnoreSpec.from_lines(list(exclude))

    found: list[Path] = []
    seen: set[Path] = set()

    def add(path: Path) -> None:
        key = path.resolve()
        if key not in seen:
            seen.add(key)
            found.append(path)

    for raw in paths:
        path = Path(raw)
        if not path.is_dir():
            add(path)
            continue

        candidates = path.rglob('*') if recursive else path.iterdir()
        matched = 0
        for file_path in sorted(candidates):
            if not file_path.is_file() or file_path.suffix.lower() not in suffixes:
                continue
            rel_path = file_path.relative_to(path).as_posix()
            if exclude_spec.match_file(rel_path):
                logger.debug(f'Excluded {file_path}')
                continue
            add(file_path)
            matched += 1

        if not matched:
            logger.warning(f'No matching files found in {path}')

    return found
