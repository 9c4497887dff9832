"""Immutable records describing published crate versions and their deps."""

from __future__ import annotations

__all__ = [
    "CHECKSUM_LENGTH",
    "Dependency",
    "DependencyKind",
    "Version",
]

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

CHECKSUM_LENGTH = 32


class DependencyKind(str, Enum):
    """Section of the manifest a dependency was declared in."""

    NORMAL = "normal"
    DEV = "dev"
    BUILD = "build"


@dataclass(frozen=True)
class Dependency:
    """A single dependency of a specific crate version."""

    name: str
    requirement: str
    features: tuple[str, ...] = ()
    optional: bool = False
    default_features: bool = True
    target: str | None = None
    kind: DependencyKind = DependencyKind.NORMAL
    package: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "features", tuple(self.features))
        object.__setattr__(self, "kind", DependencyKind(self.kind))

    @property
    def is_optional(self) -> bool:
        return self.optional

    @property
    def has_default_features(self) -> bool:
        return self.default_features

    @property
    def crate_name(self) -> str:
        """Name of the crate that actually provides this dependency.

        Equal to ``name`` unless the manifest renamed the dependency, e.g.::

            serde_lib = { version = "1", package = "serde" }

        uses the crate ``serde`` but imports it as ``serde_lib``; here
        ``crate_name`` is ``"serde"`` and ``name`` is ``"serde_lib"``.
        """
        return self.package if self.package is not None else self.name


def _freeze_features(
    features: Mapping[str, Iterable[str]],
) -> Mapping[str, tuple[str, ...]]:
    return MappingProxyType({key: tuple(values) for key, values in features.items()})


@dataclass(frozen=True)
class Version:
    """A single version of a crate published to the index.

    ``checksum`` holds the 32 raw bytes of the SHA-256 digest of the
    ``.crate`` archive.  ``features`` is read-only; its values are tuples.
    """

    name: str
    version: str
    checksum: bytes
    dependencies: tuple[Dependency, ...] = ()
    features: Mapping[str, tuple[str, ...]] = field(
        default_factory=dict, hash=False
    )
    yanked: bool = False

    def __post_init__(self) -> None:
        checksum = bytes(self.checksum)
        if len(checksum) != CHECKSUM_LENGTH:
            msg = (
                f"checksum must be {CHECKSUM_LENGTH} bytes, got {len(checksum)}"
            )
            raise ValueError(msg)
        object.__setattr__(self, "checksum", checksum)
        object.__setattr__(self, "dependencies", tuple(self.dependencies))
        object.__setattr__(self, "features", _freeze_features(self.features))

    @property
    def is_yanked(self) -> bool:
        """Whether this version was withdrawn with ``cargo yank``.

        Yanked versions stay in the index so existing lockfiles keep
        resolving, but must not be picked for new resolutions.
        """
        return self.yanked

    @property
    def checksum_hex(self) -> str:
        return self.checksum.hex()
