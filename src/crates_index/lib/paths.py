"""Index tree layout: where a crate's file lives, and listing every file.

Crate files are bucketed by name length so no directory grows unbounded::

    1/a
    2/ab
    3/a/abc
    se/rd/serde

Names are drawn from ``[A-Za-z0-9_-]`` and stored lowercased.
"""

from __future__ import annotations

__all__ = [
    "ENUMERATION_PATTERNS",
    "crate_relative_path",
    "iter_index_paths",
]

import glob
import os
import re
from collections.abc import Iterator
from pathlib import Path, PurePosixPath

# Three-segment pattern first: covers both ``3/<c>/<name>`` and
# ``<ab>/<cd>/<name>``.  The flat ``1/`` and ``2/`` buckets come second.
ENUMERATION_PATTERNS: tuple[str, ...] = ("*/*/*", "[12]/*")

_NAME_PATTERN = re.compile(r"[A-Za-z0-9_-]+")


def crate_relative_path(name: str) -> PurePosixPath | None:
    """Return the index-relative path of the file for crate *name*.

    Lookup is case-insensitive.  Returns ``None`` for a name that is empty or
    has characters outside ``[A-Za-z0-9_-]``, so path separators and dots can
    never point the result outside the index.
    """
    if not _NAME_PATTERN.fullmatch(name):
        return None
    lower = name.lower()
    if len(lower) == 1:
        return PurePosixPath("1", lower)
    if len(lower) == 2:
        return PurePosixPath("2", lower)
    if len(lower) == 3:
        return PurePosixPath("3", lower[0], lower)
    return PurePosixPath(lower[0:2], lower[2:4], lower)


def iter_index_paths(root: Path | str) -> Iterator[PurePosixPath]:
    """Lazily yield the relative path of every crate file under *root*.

    The two glob passes in ``ENUMERATION_PATTERNS`` are chained in order;
    within a pass entries come in directory listing order.  ``*`` never
    matches a leading dot, so ``.git`` and other hidden entries are not
    visited.  Directories matched by a pattern are not yielded.

    Raises:
        FileNotFoundError: On first iteration, if *root* is not a directory.
    """
    root = Path(root)
    if not root.is_dir():
        msg = f"Index directory not found: {root}"
        raise FileNotFoundError(msg)
    for pattern in ENUMERATION_PATTERNS:
        for match in glob.iglob(pattern, root_dir=root):
            if (root / match).is_file():
                yield PurePosixPath(*match.split(os.sep))
