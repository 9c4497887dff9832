"""Crate files: the full version history of one package."""

from __future__ import annotations

__all__ = ["Crate", "ParsePolicy", "iter_crates"]

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePath

from crates_index.lib.errors import DecodeError, EmptyHistoryError
from crates_index.lib.models import Version
from crates_index.lib.records import decode_record

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Crate:
    """A single crate with all of its published versions.

    Versions are kept in file order, which is the order they were published.
    That is not necessarily semver order.
    """

    versions: tuple[Version, ...]

    def __post_init__(self) -> None:
        versions = tuple(self.versions)
        if not versions:
            raise EmptyHistoryError("crate must have at least one version")
        object.__setattr__(self, "versions", versions)

    @classmethod
    def from_bytes(cls, content: bytes) -> Crate:
        """Parse the newline-delimited JSON content of a crate file.

        Trailing newlines are ignored.  Any other blank line is malformed.

        Raises:
            EmptyHistoryError: If *content* is empty or only whitespace.
            DecodeError: If any line fails to decode; ``line`` is set on the
                error.
        """
        if not content.strip():
            raise EmptyHistoryError("crate must have at least one version")
        versions: list[Version] = []
        lines = content.rstrip(b"\n").split(b"\n")
        for lineno, line in enumerate(lines, start=1):
            try:
                versions.append(decode_record(line))
            except DecodeError as exc:
                raise exc.at_line(lineno) from exc
        return cls(tuple(versions))

    @classmethod
    def from_path(cls, path: Path | str) -> Crate:
        """Read and parse a crate file.  ``OSError`` from reading propagates."""
        return cls.from_bytes(Path(path).read_bytes())

    @property
    def earliest_version(self) -> Version:
        """Oldest published version.

        Warning: may not be the lowest version number.
        """
        return self.versions[0]

    @property
    def latest_version(self) -> Version:
        """Most recently published version.

        Warning: may not be the highest version number.
        """
        return self.versions[-1]

    @property
    def name(self) -> str:
        return self.latest_version.name

    def __len__(self) -> int:
        return len(self.versions)

    def __iter__(self) -> Iterator[Version]:
        return iter(self.versions)


class ParsePolicy(Enum):
    """How :func:`iter_crates` reacts to a file that fails to load."""

    STRICT = "strict"
    SKIP_INVALID = "skip_invalid"


def iter_crates(
    root: Path,
    paths: Iterable[PurePath],
    *,
    policy: ParsePolicy = ParsePolicy.SKIP_INVALID,
) -> Iterator[Crate]:
    """Parse each crate file under *root* lazily.

    With ``SKIP_INVALID`` any file that cannot be read or parsed is logged at
    debug level and skipped.  With ``STRICT`` the first failure propagates.
    Errors raised by *paths* itself always propagate.
    """
    for rel_path in paths:
        try:
            crate = Crate.from_path(root / rel_path)
        except (OSError, DecodeError, EmptyHistoryError) as exc:
            if policy is ParsePolicy.STRICT:
                raise
            logger.debug("Skipping unparsable crate file %s: %s", rel_path, exc)
            continue
        yield crate
