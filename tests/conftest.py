"""Shared pytest fixtures for promptline tests."""

import shutil
import subprocess
from pathlib import Path

import pytest

from promptline.errors import VcsError
from promptline.identity import FixedIdentity
from promptline.vcs import Reference, RepositoryHandle, StatusKind


class FakeRepo:
    """In-memory repository state for FakeBackend."""

    def __init__(
        self,
        head: Reference | None = None,
        entries: list[tuple[str, StatusKind]] | None = None,
        upstream: Reference | None = None,
        counts: tuple[int, int] = (0, 0),
        failing: tuple[str, ...] = (),
    ) -> None:
        self.head = head
        self.entries = entries or []
        self.upstream = upstream
        self.counts = counts
        self.failing = set(failing)


class FakeBackend:
    """Backend over a {path: FakeRepo} map. Records every path it was asked to open."""

    def __init__(self, repos: dict[str, FakeRepo] | None = None) -> None:
        self.repos = repos or {}
        self.opened: list[str] = []
        self.handles: list[RepositoryHandle] = []

    def _repo(self, handle: RepositoryHandle, op: str) -> FakeRepo:
        repo = self.repos[str(handle.path)]
        if op in repo.failing:
            raise VcsError(f"{op} failed")
        return repo

    def open(self, path):
        self.opened.append(str(path))
        if str(path) not in self.repos:
            return None
        handle = RepositoryHandle(path=Path(path), git_dir=Path(path) / ".git")
        self.handles.append(handle)
        return handle

    def head(self, handle):
        return self._repo(handle, "head").head

    def peel_to_commit(self, handle, ref):
        return ref.target

    def status_entries(self, handle):
        return list(self._repo(handle, "status_entries").entries)

    def ahead_behind(self, handle, local_id, upstream_id):
        return self._repo(handle, "ahead_behind").counts

    def upstream_of(self, handle, branch_name):
        return self._repo(handle, "upstream_of").upstream


MAIN = Reference(name="refs/heads/main", target="0123456789abcdef0123456789abcdef01234567")
DETACHED = Reference(name="HEAD", target="fedcba9876543210fedcba9876543210fedcba98")
ORIGIN_MAIN = Reference(name="refs/remotes/origin/main", target="89abcdef0123456789abcdef0123456789abcdef")


@pytest.fixture
def fake_backend() -> FakeBackend:
    """A backend with no repositories; tests add FakeRepo entries."""
    return FakeBackend()


@pytest.fixture
def user() -> FixedIdentity:
    return FixedIdentity(1000)


@pytest.fixture
def root() -> FixedIdentity:
    return FixedIdentity(0)


@pytest.fixture
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A temporary $HOME directory."""
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setenv("HOME", str(home_dir))
    return home_dir


# ---------------------------------------------------------------------------
# Real git repositories (integration tests)
# ---------------------------------------------------------------------------

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def git(cwd: Path, *args: str) -> str:
    r = subprocess.run(
        ["git", "-C", str(cwd), *args],
        capture_output=True,
        text=True,
        check=True,
    )
    return r.stdout.strip()


@pytest.fixture
def git_repo(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A work tree on branch main with one commit."""
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test User")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test User")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(tmp_path / "gitconfig"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")

    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init", "--quiet")
    git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    (repo / "README.md").write_text("hello\n", encoding="utf-8")
    git(repo, "add", "README.md")
    git(repo, "commit", "--quiet", "-m", "initial")
    return repo
