"""Public entry point: a local crates.io index checkout.

Example::

    index = Index(Config.from_env().index_path)
    index.retrieve_or_update()
    for crate in index.crates():
        print(crate.name, crate.latest_version.version)
"""

from __future__ import annotations

__all__ = ["Index"]

import logging
from collections.abc import Iterator
from pathlib import Path, PurePosixPath

from crates_index.lib.crate import Crate, ParsePolicy, iter_crates
from crates_index.lib.mirror import CRATES_IO_INDEX_URL, IndexMirror, SyncResult
from crates_index.lib.paths import crate_relative_path, iter_index_paths

logger = logging.getLogger(__name__)


class Index:
    """A crates.io index checkout at ``path``, mirrored from ``url``.

    The default location is not resolved here; see
    :meth:`crates_index.lib.config.Config.from_env`.
    """

    def __init__(self, path: Path | str, *, url: str = CRATES_IO_INDEX_URL) -> None:
        self.path = Path(path)
        self.url = url
        self._mirror = IndexMirror(self.path, url)

    def __repr__(self) -> str:
        return f"Index(path={str(self.path)!r}, url={self.url!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Index):
            return NotImplemented
        return (self.path, self.url) == (other.path, other.url)

    def __hash__(self) -> int:
        return hash((self.path, self.url))

    # ------------------------------------------------------------------
    # Mirror
    # ------------------------------------------------------------------

    def exists(self) -> bool:
        """Whether a checkout of ``url`` is present at ``path``."""
        return self._mirror.exists()

    def retrieve(self) -> None:
        """Clone the index into ``path``."""
        self._mirror.retrieve()

    def update(self) -> None:
        """Fetch and hard-reset an existing checkout to the upstream tip."""
        self._mirror.update()

    def retrieve_or_update(self) -> SyncResult:
        return self._mirror.retrieve_or_update()

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def crate_path(self, name: str) -> Path | None:
        """Absolute path where crate *name* would live, or ``None`` for bad names."""
        rel_path = crate_relative_path(name)
        if rel_path is None:
            return None
        return self.path / rel_path

    def crate(self, name: str) -> Crate | None:
        """Load crate *name* (case-insensitive).

        Returns ``None`` if the name is empty, non-ASCII, or not in the index.
        A file that exists but cannot be parsed raises
        :class:`~crates_index.lib.errors.DecodeError` or
        :class:`~crates_index.lib.errors.EmptyHistoryError`.
        """
        path = self.crate_path(name)
        if path is None or not path.exists():
            logger.debug("Crate %r not found in %s", name, self.path)
            return None
        return Crate.from_path(path)

    # ------------------------------------------------------------------
    # Enumeration
    # ------------------------------------------------------------------

    def crate_index_paths(self) -> Iterator[PurePosixPath]:
        """Every crate file path in the index, relative to ``path``."""
        return iter_index_paths(self.path)

    def crates(
        self, *, policy: ParsePolicy = ParsePolicy.SKIP_INVALID
    ) -> Iterator[Crate]:
        """Every crate in the index.

        By default files that fail to load are skipped silently; pass
        ``policy=ParsePolicy.STRICT`` to raise on the first one instead.
        """
        return iter_crates(self.path, self.crate_index_paths(), policy=policy)
