"""Tests for crates_index.lib.mirror."""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from crates_index.lib.errors import TransportError
from crates_index.lib.git_utils import Remote
from crates_index.lib.mirror import CRATES_IO_INDEX_URL, IndexMirror, SyncResult

# ---------------------------------------------------------------------------
# State machine against a mocked git layer
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_repo_cls():  # type: ignore[no-untyped-def]
    with patch("crates_index.lib.mirror.GitRepository") as repo_cls:
        yield repo_cls


class TestExists:
    def test_absent_when_no_checkout(
        self, mock_repo_cls: MagicMock, tmp_path: Path
    ) -> None:
        mock_repo_cls.discover.return_value = None
        assert IndexMirror(tmp_path).exists() is False

    def test_present_when_origin_matches(
        self, mock_repo_cls: MagicMock, tmp_path: Path
    ) -> None:
        repo = mock_repo_cls.discover.return_value
        repo.find_remote.return_value = Remote("origin", CRATES_IO_INDEX_URL)
        assert IndexMirror(tmp_path).exists() is True
        repo.find_remote.assert_called_once_with("origin")

    def test_absent_when_origin_differs(
        self, mock_repo_cls: MagicMock, tmp_path: Path
    ) -> None:
        repo = mock_repo_cls.discover.return_value
        repo.find_remote.return_value = Remote("origin", "https://example.com/other")
        assert IndexMirror(tmp_path).exists() is False

    def test_present_without_origin(
        self, mock_repo_cls: MagicMock, tmp_path: Path
    ) -> None:
        mock_repo_cls.discover.return_value.find_remote.return_value = None
        assert IndexMirror(tmp_path).exists() is True

    def test_present_when_origin_has_no_url(
        self, mock_repo_cls: MagicMock, tmp_path: Path
    ) -> None:
        repo = mock_repo_cls.discover.return_value
        repo.find_remote.return_value = Remote("origin", None)
        assert IndexMirror(tmp_path).exists() is True


class TestRetrieve:
    @patch("crates_index.lib.mirror.clone_repository")
    def test_clones_configured_url(self, mock_clone: MagicMock, tmp_path: Path) -> None:
        IndexMirror(tmp_path / "index", "https://example.com/index").retrieve()
        mock_clone.assert_called_once_with(
            "https://example.com/index", tmp_path / "index"
        )

    @patch("crates_index.lib.mirror.clone_repository")
    def test_failure_not_retried(self, mock_clone: MagicMock, tmp_path: Path) -> None:
        mock_clone.side_effect = TransportError("git failed (git clone): boom")
        with pytest.raises(TransportError, match="boom"):
            IndexMirror(tmp_path).retrieve()
        assert mock_clone.call_count == 1


class TestUpdate:
    def test_fetches_origin_and_resets(
        self,
        mock_repo_cls: MagicMock,
        tmp_path: Path,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        repo = mock_repo_cls.discover.return_value
        repo.find_remote.return_value = Remote("origin", CRATES_IO_INDEX_URL)
        repo.resolve_ref.return_value = "0123456789abcdef0123"

        with caplog.at_level(logging.INFO):
            IndexMirror(tmp_path).update()

        repo.fetch.assert_called_once_with("origin", ["master"])
        repo.resolve_ref.assert_called_once_with("FETCH_HEAD")
        repo.reset_hard.assert_called_once_with("0123456789abcdef0123")
        assert "0123456789ab" in caplog.text

    def test_anonymous_fetch_without_origin(
        self, mock_repo_cls: MagicMock, tmp_path: Path
    ) -> None:
        repo = mock_repo_cls.discover.return_value
        repo.find_remote.return_value = None
        repo.resolve_ref.return_value = "abc"
        IndexMirror(tmp_path, "https://example.com/index").update()
        repo.fetch.assert_called_once_with("https://example.com/index", ["master"])

    def test_missing_checkout(self, mock_repo_cls: MagicMock, tmp_path: Path) -> None:
        mock_repo_cls.discover.return_value = None
        with pytest.raises(TransportError, match="No git checkout"):
            IndexMirror(tmp_path).update()

    def test_fetch_failure_skips_reset(
        self, mock_repo_cls: MagicMock, tmp_path: Path
    ) -> None:
        repo = mock_repo_cls.discover.return_value
        repo.fetch.side_effect = TransportError("network down")
        with pytest.raises(TransportError):
            IndexMirror(tmp_path).update()
        repo.reset_hard.assert_not_called()


class TestRetrieveOrUpdate:
    def test_absent_clones(self, tmp_path: Path) -> None:
        mirror = IndexMirror(tmp_path)
        with (
            patch.object(IndexMirror, "exists", return_value=False),
            patch.object(IndexMirror, "retrieve") as retrieve,
            patch.object(IndexMirror, "update") as update,
        ):
            assert mirror.retrieve_or_update() is SyncResult.CLONED
        retrieve.assert_called_once_with()
        update.assert_not_called()

    def test_present_updates(self, tmp_path: Path) -> None:
        mirror = IndexMirror(tmp_path)
        with (
            patch.object(IndexMirror, "exists", return_value=True),
            patch.object(IndexMirror, "retrieve") as retrieve,
            patch.object(IndexMirror, "update") as update,
        ):
            assert mirror.retrieve_or_update() is SyncResult.UPDATED
        update.assert_called_once_with()
        retrieve.assert_not_called()


# ---------------------------------------------------------------------------
# Round trip against a real local upstream
# ---------------------------------------------------------------------------

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")

_GIT_IDENTITY = [
    "-c",
    "user.name=Index Bot",
    "-c",
    "user.email=index@example.com",
    "-c",
    "commit.gpgsign=false",
]


def _git(cwd: Path, *args: str) -> None:
    subprocess.run(["git", *_GIT_IDENTITY, *args], cwd=cwd, check=True, capture_output=True)


def _commit_file(repo: Path, rel: str, content: str) -> None:
    path = repo / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    _git(repo, "add", rel)
    _git(repo, "commit", "-m", f"Update {rel}")


@pytest.fixture()
def upstream(tmp_path: Path) -> Path:
    repo = tmp_path / "upstream"
    repo.mkdir()
    _git(repo, "init")
    _git(repo, "symbolic-ref", "HEAD", "refs/heads/master")
    _commit_file(repo, "config.json", '{"dl": "https://example.com"}\n')
    return repo


@requires_git
class TestRealGit:
    def test_clone_then_update(self, upstream: Path, tmp_path: Path) -> None:
        mirror = IndexMirror(tmp_path / "mirror", str(upstream))
        assert mirror.exists() is False

        assert mirror.retrieve_or_update() is SyncResult.CLONED
        assert mirror.exists() is True
        assert (tmp_path / "mirror" / "config.json").is_file()

        _commit_file(upstream, "2/cc", "{}\n")
        with patch("crates_index.lib.mirror.clone_repository") as clone:
            clone.side_effect = AssertionError("clone must not run")
            assert mirror.retrieve_or_update() is SyncResult.UPDATED
        assert (tmp_path / "mirror" / "2" / "cc").read_text() == "{}\n"

    def test_update_discards_local_edits(self, upstream: Path, tmp_path: Path) -> None:
        mirror = IndexMirror(tmp_path / "mirror", str(upstream))
        mirror.retrieve()
        local = tmp_path / "mirror" / "config.json"
        local.write_text("local edit\n")

        mirror.update()

        assert local.read_text() == '{"dl": "https://example.com"}\n'

    def test_other_origin_is_not_our_mirror(
        self, upstream: Path, tmp_path: Path
    ) -> None:
        IndexMirror(tmp_path / "mirror", str(upstream)).retrieve()
        other = IndexMirror(tmp_path / "mirror", "https://example.com/other-index")
        assert other.exists() is False

    def test_clone_failure_surfaces(self, tmp_path: Path) -> None:
        mirror = IndexMirror(tmp_path / "mirror", str(tmp_path / "no-such-upstream"))
        with pytest.raises(TransportError, match="git failed"):
            mirror.retrieve()
