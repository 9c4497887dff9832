"""Local mirror of the remote index repository.

The mirror directory is treated as disposable: :meth:`IndexMirror.update`
hard-resets it to the fetched tip, discarding any local edits.  There is no
locking here.  Callers that may run ``retrieve``/``update`` from several
threads or processes against one directory must serialise those calls
themselves.
"""

from __future__ import annotations

__all__ = ["CRATES_IO_INDEX_URL", "IndexMirror", "SyncResult"]

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from crates_index.lib.errors import TransportError
from crates_index.lib.git_utils import (
    GitRepository,
    clone_repository,
    redact_sensitive,
)

logger = logging.getLogger(__name__)

CRATES_IO_INDEX_URL = "https://github.com/rust-lang/crates.io-index"

_ORIGIN = "origin"
_BRANCH = "master"


class SyncResult(Enum):
    """What :meth:`IndexMirror.retrieve_or_update` did."""

    CLONED = "cloned"
    UPDATED = "updated"


@dataclass(frozen=True)
class IndexMirror:
    """Keeps the git checkout at ``path`` in step with ``url``."""

    path: Path
    url: str = CRATES_IO_INDEX_URL

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", Path(self.path))

    def exists(self) -> bool:
        """Return whether a checkout of ``url`` is present at ``path``.

        A checkout without an ``origin`` remote (or with one that has no URL)
        counts as present: cargo creates its index checkout that way.
        """
        repo = GitRepository.discover(self.path)
        if repo is None:
            return False
        origin = repo.find_remote(_ORIGIN)
        if origin is None or origin.url is None:
            return True
        return origin.url == self.url

    def retrieve(self) -> None:
        """Clone ``url`` into ``path``.

        Raises:
            TransportError: If the clone fails.  Nothing is retried.
        """
        logger.debug("Cloning %s into %s", redact_sensitive(self.url), self.path)
        clone_repository(self.url, self.path)
        logger.info("Cloned %s → %s", redact_sensitive(self.url), self.path)

    def update(self) -> None:
        """Fetch ``master`` and hard-reset the working tree to it.

        Fetches from ``origin``, or straight from ``url`` when the checkout
        has no ``origin``.  Assumes the mirror already exists.

        Raises:
            TransportError: If the checkout cannot be opened, or the fetch or
                reset fails.
        """
        repo = GitRepository.discover(self.path)
        if repo is None:
            msg = f"No git checkout found at {self.path}"
            raise TransportError(msg)
        source = _ORIGIN if repo.find_remote(_ORIGIN) is not None else self.url
        repo.fetch(source, [_BRANCH])
        oid = repo.resolve_ref("FETCH_HEAD")
        repo.reset_hard(oid)
        logger.info("Updated %s to %s", self.path, oid[:12])

    def retrieve_or_update(self) -> SyncResult:
        """Update the mirror if it exists, clone it otherwise."""
        if self.exists():
            self.update()
            return SyncResult.UPDATED
        self.retrieve()
        return SyncResult.CLONED
