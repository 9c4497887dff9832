"""Configuration loading: CLI flags → env vars → ``.env`` file → defaults.

Only the embedding application (or the CLI) calls :meth:`Config.from_env`;
the rest of the package takes explicit paths and URLs.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from crates_index.lib.mirror import CRATES_IO_INDEX_URL

__all__ = ["CARGO_INDEX_DIR_NAME", "Config", "cargo_home", "default_index_path"]

logger = logging.getLogger(__name__)

# Directory cargo uses for its checkout of the crates.io index.
CARGO_INDEX_DIR_NAME = "github.com-1ecc6299db9ec823"

_URL_PATTERN = re.compile(r"^(https?://|ssh://|git://|file://|git@)\S+$")

ConfigValue = str | bool | None


def _truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes")


def cargo_home() -> Path:
    """Return ``$CARGO_HOME``, falling back to ``~/.cargo``."""
    raw = os.environ.get("CARGO_HOME", "").strip()
    if raw:
        return Path(raw).expanduser()
    return Path.home() / ".cargo"


def default_index_path() -> Path:
    """Location of cargo's own index checkout (``$CARGO_HOME/registry/index/…``)."""
    return cargo_home() / "registry" / "index" / CARGO_INDEX_DIR_NAME


def _validate_index_url(url: str) -> None:
    """Accept a git URL or an existing local repository path."""
    if _URL_PATTERN.match(url):
        if url != CRATES_IO_INDEX_URL:
            logger.warning(
                "Index URL '%s' is not the crates.io index (%s); "
                "make sure it uses the same layout",
                url,
                CRATES_IO_INDEX_URL,
            )
        return
    if url and Path(url).expanduser().exists():
        return
    msg = (
        f"Invalid index URL '{url}': must be a git URL or a local path. "
        f"Example: {CRATES_IO_INDEX_URL}"
    )
    raise ValueError(msg)


@dataclass(frozen=True)
class Config:
    """Immutable client configuration."""

    index_path: str = ""
    index_url: str = CRATES_IO_INDEX_URL
    verbose: bool = False

    def __post_init__(self) -> None:
        """Fill in the cargo default path and validate ``index_url``.

        A URL other than the crates.io index only logs a warning; anything
        that is neither a git URL nor an existing path raises ``ValueError``.
        """
        if not self.index_path:
            object.__setattr__(self, "index_path", str(default_index_path()))
        _validate_index_url(self.index_url)

    @classmethod
    def from_env(cls, overrides: dict[str, ConfigValue] | None = None) -> Config:
        """Build config from environment variables, then apply overrides.

        Priority: overrides (CLI flags) > env vars > ``.env`` in the current
        directory > defaults.
        """
        load_dotenv(Path.cwd() / ".env", override=False)

        env_values: dict[str, ConfigValue] = {
            "index_path": os.environ.get("CRATES_INDEX_PATH"),
            "index_url": os.environ.get("CRATES_INDEX_URL"),
            "verbose": _truthy(os.environ.get("CRATES_INDEX_VERBOSE")),
        }

        merged = {k: v for k, v in env_values.items() if v}
        if overrides:
            merged.update({k: v for k, v in overrides.items() if v is not None})

        index_path = merged.get("index_path")
        return cls(
            index_path=str(Path(str(index_path)).expanduser()) if index_path else "",
            index_url=str(merged.get("index_url", cls.index_url)),
            verbose=bool(merged.get("verbose", cls.verbose)),
        )
