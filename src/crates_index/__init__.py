"""Read and mirror the crates.io package index.

Quick start::

    from crates_index import Index

    index = Index("/path/to/checkout")
    index.retrieve_or_update()
    crate = index.crate("serde")
"""

from crates_index.lib.crate import Crate, ParsePolicy
from crates_index.lib.errors import (
    ChecksumFormatError,
    CratesIndexError,
    DecodeError,
    EmptyHistoryError,
    TransportError,
)
from crates_index.lib.index import Index
from crates_index.lib.mirror import CRATES_IO_INDEX_URL, SyncResult
from crates_index.lib.models import Dependency, DependencyKind, Version

__all__ = [
    "CRATES_IO_INDEX_URL",
    "ChecksumFormatError",
    "Crate",
    "CratesIndexError",
    "DecodeError",
    "Dependency",
    "DependencyKind",
    "EmptyHistoryError",
    "Index",
    "ParsePolicy",
    "SyncResult",
    "TransportError",
    "Version",
]
