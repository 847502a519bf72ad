"""File discovery — find source files, pruning excluded directories."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable

# Directory names always pruned, in addition to configured exclusions.
DEFAULT_EXCLUDE_DIRS = frozenset({"vendor", "node_modules", ".git", "tests"})

DEFAULT_EXTENSIONS = ("php",)


def find_files(
    root: Path | str,
    exclude_dir_names: Iterable[str] = DEFAULT_EXCLUDE_DIRS,
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
) -> list[Path]:
    """Recursively find files under *root* with a recognized extension.

    Parameters
    ----------
    root:
        Directory to walk.
    exclude_dir_names:
        Directory basenames to prune at any depth.
    extensions:
        Recognized extensions, with or without the leading dot.

    Returns
    -------
    Sorted list of absolute ``Path`` objects.

    Raises
    ------
    NotADirectoryError
        If *root* is not a directory.
    OSError
        If *root* itself cannot be listed.
    """
    root_p = Path(root).absolute()
    if not root_p.is_dir():
        raise NotADirectoryError(f"find_files: not a directory: {root_p}")

    skip = frozenset(exclude_dir_names)
    exts = frozenset(e.lower().lstrip(".") for e in extensions)

    def _raise(err: OSError) -> None:
        # Only the root must be listable; unreadable subdirectories are skipped.
        if Path(err.filename or "") == root_p:
            raise err

    results: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root_p, onerror=_raise):
        # Prune in place so excluded trees are never entered.
        dirnames[:] = sorted(d for d in dirnames if d not in skip)
        for name in filenames:
            suffix = os.path.splitext(name)[1].lower().lstrip(".")
            if suffix and suffix in exts:
                results.append(Path(dirpath) / name)

    return sorted(results)
