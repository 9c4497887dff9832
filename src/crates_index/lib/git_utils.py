"""Git plumbing used to mirror the index.

Wraps the ``git`` executable via ``subprocess`` with a non-interactive
environment.  Proxy settings are picked up by git itself from
``http_proxy``/``https_proxy``/``all_proxy`` and ``http.proxy`` config.
Any failing command raises :class:`~crates_index.lib.errors.TransportError`
with credentials redacted from the message.
"""

from __future__ import annotations

__all__ = [
    "GitRepository",
    "Remote",
    "clone_repository",
    "git_noninteractive_env",
    "redact_sensitive",
    "run_git",
]

import logging
import os
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path

from crates_index.lib.errors import TransportError

logger = logging.getLogger(__name__)

_CREDENTIALS_PATTERN = re.compile(r"(?P<scheme>[a-z][a-z0-9+.-]*://)[^/@\s]+@")


def redact_sensitive(text: str) -> str:
    """Replace ``user:token@`` credentials in URLs with ``***@``.

    Args:
        text: String that may contain credential-bearing URLs.

    Returns:
        Sanitised string safe for logging and error messages.
    """
    return _CREDENTIALS_PATTERN.sub(r"\g<scheme>***@", text)


def git_noninteractive_env() -> dict[str, str]:
    """Return a copy of the environment with interactive git prompts disabled.

    Sets ``GIT_TERMINAL_PROMPT=0`` and ``GCM_INTERACTIVE=never`` so that
    credential helpers never block on stdin.
    """
    env = os.environ.copy()
    env["GIT_TERMINAL_PROMPT"] = "0"
    env["GCM_INTERACTIVE"] = "never"
    return env


def _safe_cmd(cmd: list[str]) -> str:
    return " ".join(redact_sensitive(part) for part in cmd)


def run_git(
    cmd: list[str],
    *,
    cwd: Path | str | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run a git command, raising ``TransportError`` on failure."""
    logger.debug("Running %s (cwd=%s)", _safe_cmd(cmd), cwd)
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
            env=git_noninteractive_env(),
        )
    except OSError as exc:
        msg = f"git failed to start ({_safe_cmd(cmd)}): {exc}"
        raise TransportError(msg) from exc
    if result.returncode != 0:
        safe_stderr = redact_sensitive(result.stderr.strip())
        msg = f"git failed ({_safe_cmd(cmd)}): {safe_stderr}"
        raise TransportError(msg)
    return result


def _probe_git(cmd: list[str], *, cwd: Path | str) -> str | None:
    """Run a query command; return stripped stdout, or ``None`` on non-zero exit."""
    result = subprocess.run(
        cmd,
        cwd=cwd,
        capture_output=True,
        text=True,
        check=False,
        env=git_noninteractive_env(),
    )
    if result.returncode != 0:
        return None
    return result.stdout.strip()


@dataclass(frozen=True)
class Remote:
    """A configured remote.  ``url`` is ``None`` when none is configured."""

    name: str
    url: str | None


@dataclass(frozen=True)
class GitRepository:
    """A git working copy rooted at ``path``."""

    path: Path

    @classmethod
    def discover(cls, path: Path | str) -> GitRepository | None:
        """Find the working copy containing *path*, searching parent directories.

        Returns ``None`` when *path* is not a directory or not inside a
        repository.
        """
        path = Path(path)
        if not path.is_dir():
            return None
        try:
            toplevel = _probe_git(["git", "rev-parse", "--show-toplevel"], cwd=path)
        except OSError:
            return None
        if not toplevel:
            return None
        return cls(Path(toplevel))

    def find_remote(self, name: str) -> Remote | None:
        """Return the remote called *name*, or ``None`` if it is not configured."""
        names = run_git(["git", "remote"], cwd=self.path).stdout.split()
        if name not in names:
            return None
        url = _probe_git(
            ["git", "config", "--get", f"remote.{name}.url"], cwd=self.path
        )
        return Remote(name=name, url=url or None)

    def fetch(self, source: str, refspecs: list[str]) -> None:
        """Fetch *refspecs* from a remote name or URL into ``FETCH_HEAD``."""
        run_git(["git", "fetch", source, *refspecs], cwd=self.path)

    def resolve_ref(self, ref: str) -> str:
        """Return the object id *ref* points to."""
        result = run_git(["git", "rev-parse", "--verify", ref], cwd=self.path)
        return result.stdout.strip()

    def reset_hard(self, oid: str) -> None:
        """Point HEAD at *oid* and overwrite the index and working tree."""
        run_git(["git", "reset", "--hard", oid], cwd=self.path)


def clone_repository(url: str, dest: Path | str) -> GitRepository:
    """Clone *url* into *dest*; parent directories are created as needed."""
    dest = Path(dest)
    run_git(["git", "clone", url, str(dest)])
    return GitRepository(dest)
