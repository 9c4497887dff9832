"""Error types raised by the index client.

Parsing a single record, a single crate file, or looking up one crate is
strict: every failure reaches the caller.  Bulk enumeration
(``Index.crates``) skips entries that raise :class:`DecodeError`,
:class:`EmptyHistoryError` or ``OSError``.  Unknown or non-ASCII crate names
are not errors at all; lookups return ``None`` for them.
"""

from __future__ import annotations

__all__ = [
    "ChecksumFormatError",
    "CratesIndexError",
    "DecodeError",
    "EmptyHistoryError",
    "TransportError",
]


class CratesIndexError(Exception):
    """Base class for every error raised by this package."""


class DecodeError(CratesIndexError, ValueError):
    """A record line could not be decoded into a ``Version``."""

    def __init__(self, message: str, *, line: int | None = None) -> None:
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)

    def at_line(self, line: int) -> DecodeError:
        """Return a copy of this error annotated with a 1-based line number."""
        return type(self)(str(self), line=line)


class ChecksumFormatError(DecodeError):
    """``cksum`` was not exactly 64 hexadecimal digits."""


class EmptyHistoryError(CratesIndexError, ValueError):
    """A crate file contained no version records."""


class TransportError(CratesIndexError, RuntimeError):
    """A git clone, fetch, or reset failed."""
