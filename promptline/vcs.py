"""Git branch and status resolution for the prompt.

Resolution steps (see vcs_status):
- walk from the working directory outward and open the first repository found
- read HEAD: branch shorthand, or the first six hex digits when detached
- append ahead/behind markers when the branch tracks an upstream
- classify `git status` entries into CLEAN / STAGED / UNSTAGED

Queries go through a backend object so tests can substitute an in-memory one.
GitBackend runs the git executable, one short command per query.
"""

import logging
import os
import subprocess
from dataclasses import dataclass, field
from enum import Enum, Flag, auto
from pathlib import Path
from typing import Iterable, NamedTuple, Protocol

from promptline.cwd import current_dir
from promptline.errors import VcsError

logger = logging.getLogger(__name__)

GIT_TIMEOUT = 3  # seconds per git command; the prompt must not hang
SHORT_ID_LEN = 6
AHEAD_ICON = " ↑"
BEHIND_ICON = " ↓"


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

class StatusKind(Flag):
    """Per-file status bits, one for each index/work-tree change kind."""

    CURRENT = 0
    INDEX_NEW = auto()
    INDEX_MODIFIED = auto()
    INDEX_DELETED = auto()
    INDEX_RENAMED = auto()
    INDEX_TYPECHANGE = auto()
    WT_NEW = auto()
    WT_MODIFIED = auto()
    WT_DELETED = auto()
    WT_TYPECHANGE = auto()
    WT_RENAMED = auto()
    IGNORED = auto()
    CONFLICTED = auto()


WORKTREE_CHANGES = (
    StatusKind.WT_NEW
    | StatusKind.WT_MODIFIED
    | StatusKind.WT_DELETED
    | StatusKind.WT_TYPECHANGE
    | StatusKind.WT_RENAMED
)
INDEX_CHANGES = (
    StatusKind.INDEX_NEW
    | StatusKind.INDEX_MODIFIED
    | StatusKind.INDEX_DELETED
    | StatusKind.INDEX_TYPECHANGE
    | StatusKind.INDEX_RENAMED
)


class GitStatus(Enum):
    CLEAN = "clean"
    UNSTAGED = "unstaged"  # some change not yet added to the index
    STAGED = "staged"  # every change is staged


class VcsStatus(NamedTuple):
    branch_label: str
    category: GitStatus


@dataclass(frozen=True)
class Reference:
    """A resolved ref: full name ("refs/heads/main", or "HEAD" when detached)
    and the commit id it points at."""

    name: str
    target: str

    @property
    def is_branch(self) -> bool:
        return self.name.startswith("refs/heads/")

    @property
    def shorthand(self) -> str:
        for prefix in ("refs/heads/", "refs/remotes/", "refs/tags/"):
            if self.name.startswith(prefix):
                return self.name[len(prefix):]
        return self.name


@dataclass
class RepositoryHandle:
    """An opened repository.

    GitBackend holds no open resources (every query is its own git process),
    so close() only marks the end of the render's scope. Backends that do
    hold something (a libgit2 handle, a cache) can subclass and release it in
    close(); vcs_status always leaves the `with` block before returning.
    """

    path: Path
    git_dir: Path
    closed: bool = field(default=False, compare=False)

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> "RepositoryHandle":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class VcsBackend(Protocol):
    def open(self, path: Path) -> RepositoryHandle | None: ...
    def head(self, handle: RepositoryHandle) -> Reference | None: ...
    def peel_to_commit(self, handle: RepositoryHandle, ref: Reference) -> str: ...
    def status_entries(self, handle: RepositoryHandle) -> list[tuple[str, StatusKind]]: ...
    def ahead_behind(self, handle: RepositoryHandle, local_id: str, upstream_id: str) -> tuple[int, int]: ...
    def upstream_of(self, handle: RepositoryHandle, branch_name: str) -> Reference | None: ...


# ---------------------------------------------------------------------------
# git executable backend
# ---------------------------------------------------------------------------

def git_run(cwd: str, *args: str, ok_codes: tuple[int, ...] = (0,)) -> subprocess.CompletedProcess:
    """Run a git command in *cwd*; raise VcsError unless it exits with one of *ok_codes*."""
    env = dict(os.environ, GIT_OPTIONAL_LOCKS="0")
    try:
        r = subprocess.run(
            ["git", "-C", cwd, *args],
            capture_output=True,
            encoding="utf-8",
            errors="replace",
            env=env,
            timeout=GIT_TIMEOUT,
        )
    except subprocess.TimeoutExpired as exc:
        raise VcsError(f"git {args[0]} timed out after {GIT_TIMEOUT}s") from exc
    except FileNotFoundError as exc:
        raise VcsError("git executable not found in PATH") from exc
    except OSError as exc:
        raise VcsError(f"git {args[0]} could not run: {exc}") from exc
    if r.returncode not in ok_codes:
        raise VcsError(f"git {' '.join(args)} exited {r.returncode}: {r.stderr.strip()}")
    return r


_INDEX_CODES = {
    "M": StatusKind.INDEX_MODIFIED,
    "A": StatusKind.INDEX_NEW,
    "C": StatusKind.INDEX_NEW,
    "D": StatusKind.INDEX_DELETED,
    "R": StatusKind.INDEX_RENAMED,
    "T": StatusKind.INDEX_TYPECHANGE,
}
_WORKTREE_CODES = {
    "M": StatusKind.WT_MODIFIED,
    "A": StatusKind.WT_NEW,  # intent-to-add
    "D": StatusKind.WT_DELETED,
    "R": StatusKind.WT_RENAMED,
    "T": StatusKind.WT_TYPECHANGE,
}
_UNMERGED = {"DD", "AU", "UD", "UA", "DU", "AA", "UU"}


def parse_porcelain_z(output: str) -> list[tuple[str, StatusKind]]:
    """Parse `git status --porcelain=v1 -z` into (path, StatusKind) pairs.

    Records are NUL separated; a rename or copy record is followed by an extra
    record holding the original path, which is skipped.
    """
    entries: list[tuple[str, StatusKind]] = []
    records = iter(output.split("\0"))
    for record in records:
        if len(record) < 4:
            continue
        xy, path = record[:2], record[3:]
        if "R" in xy or "C" in xy:
            next(records, None)

        if xy == "??":
            kind = StatusKind.WT_NEW
        elif xy == "!!":
            kind = StatusKind.IGNORED
        elif xy in _UNMERGED:
            kind = StatusKind.CONFLICTED
        else:
            kind = _INDEX_CODES.get(xy[0], StatusKind.CURRENT) | _WORKTREE_CODES.get(xy[1], StatusKind.CURRENT)
        entries.append((path, kind))
    return entries


def _is_git_dir(path: Path) -> bool:
    return (path / "HEAD").is_file() and (path / "objects").is_dir() and (path / "refs").is_dir()


class GitBackend:
    """Backend that shells out to git.

    open() only accepts a work tree root (a directory holding .git) or a git
    directory itself; the upward search is done by discover_repository.
    """

    def open(self, path: Path) -> RepositoryHandle | None:
        path = Path(path)
        try:
            if not ((path / ".git").exists() or _is_git_dir(path)):
                return None
        except OSError:
            return None
        try:
            git_dir = git_run(str(path), "rev-parse", "--absolute-git-dir").stdout.strip()
        except VcsError as exc:
            logger.debug(f"Not opening {path}: {exc}")
            return None
        return RepositoryHandle(path=path, git_dir=Path(git_dir))

    def head(self, handle: RepositoryHandle) -> Reference | None:
        cwd = str(handle.path)
        r = git_run(cwd, "rev-parse", "--verify", "--quiet", "HEAD^{commit}", ok_codes=(0, 1))
        target = r.stdout.strip()
        if r.returncode != 0 or not target:
            # Unborn branch: no commit yet.
            return None
        r = git_run(cwd, "symbolic-ref", "--quiet", "HEAD", ok_codes=(0, 1))
        name = r.stdout.strip() if r.returncode == 0 else "HEAD"
        return Reference(name=name or "HEAD", target=target)

    def peel_to_commit(self, handle: RepositoryHandle, ref: Reference) -> str:
        return ref.target

    def status_entries(self, handle: RepositoryHandle) -> list[tuple[str, StatusKind]]:
        r = git_run(str(handle.path), "status", "--porcelain=v1", "-z", "--untracked-files=normal")
        return parse_porcelain_z(r.stdout)

    def ahead_behind(self, handle: RepositoryHandle, local_id: str, upstream_id: str) -> tuple[int, int]:
        r = git_run(str(handle.path), "rev-list", "--left-right", "--count", f"{local_id}...{upstream_id}")
        parts = r.stdout.split()
        try:
            ahead, behind = int(parts[0]), int(parts[1])
        except (IndexError, ValueError) as exc:
            raise VcsError(f"Unexpected rev-list output: {r.stdout!r}") from exc
        return ahead, behind

    def upstream_of(self, handle: RepositoryHandle, branch_name: str) -> Reference | None:
        cwd = str(handle.path)
        r = git_run(cwd, "for-each-ref", "--format=%(upstream)", f"refs/heads/{branch_name}")
        name = r.stdout.strip()
        if not name:
            return None
        r = git_run(cwd, "rev-parse", "--verify", "--quiet", f"{name}^{{commit}}", ok_codes=(0, 1))
        target = r.stdout.strip()
        if r.returncode != 0 or not target:
            # Upstream configured but the remote branch is gone.
            return None
        return Reference(name=name, target=target)


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

def working_path() -> str | None:
    """$PWD when it names the current directory (keeps symlinks), else os.getcwd()."""
    cwd = current_dir()
    pwd = os.environ.get("PWD")
    if pwd and cwd:
        try:
            if os.path.samefile(pwd, cwd):
                return pwd
        except OSError:
            pass
    return cwd or pwd


def discover_repository(path: str | Path, backend: VcsBackend) -> RepositoryHandle | None:
    """Open the repository at *path* or its nearest ancestor.

    The innermost repository wins, so a nested repo is found before its parent.
    """
    start = Path(path)
    for candidate in (start, *start.parents):
        handle = backend.open(candidate)
        if handle is not None:
            return handle
    return None


def divergence_marker(ahead: bool, behind: bool, ahead_icon: str = AHEAD_ICON, behind_icon: str = BEHIND_ICON) -> str:
    """Ahead marker, then behind marker; "" when in sync."""
    marker = ""
    if ahead:
        marker += ahead_icon
    if behind:
        marker += behind_icon
    return marker


def ahead_behind_of(handle: RepositoryHandle, head: Reference, backend: VcsBackend) -> tuple[int, int] | None:
    """Commits ahead/behind the branch's upstream; None when there is nothing to compare."""
    if not head.is_branch:
        return None
    try:
        upstream = backend.upstream_of(handle, head.shorthand)
        if upstream is None:
            return None
        return backend.ahead_behind(
            handle,
            backend.peel_to_commit(handle, head),
            backend.peel_to_commit(handle, upstream),
        )
    except VcsError as exc:
        logger.debug(f"Skipping ahead/behind: {exc}")
        return None


def classify_status(entries: Iterable[tuple[str, StatusKind]]) -> GitStatus:
    """Fold file statuses into one category.

    The first work-tree change decides UNSTAGED and ends the scan; an index
    change marks STAGED and the scan goes on, since a later work-tree change
    still outranks it.
    """
    category = GitStatus.CLEAN
    for _path, kind in entries:
        if kind & WORKTREE_CHANGES:
            category = GitStatus.UNSTAGED
            break
        if kind & INDEX_CHANGES:
            category = GitStatus.STAGED
    return category


def vcs_status(
    path: str | Path | None = None,
    backend: VcsBackend | None = None,
    ahead_icon: str = AHEAD_ICON,
    behind_icon: str = BEHIND_ICON,
) -> VcsStatus | None:
    """Branch label and status category for the repository around *path*.

    Returns None outside a repository, before the first commit, or when git
    fails after the repository was found.
    """
    if path is None:
        path = working_path()
        if path is None:
            return None
    backend = backend or GitBackend()

    handle = discover_repository(path, backend)
    if handle is None:
        logger.debug(f"No repository at or above {path}")
        return None

    with handle:
        try:
            head = backend.head(handle)
            if head is None:
                logger.debug(f"{handle.path}: no commits yet")
                return None

            marker = ""
            counts = ahead_behind_of(handle, head, backend)
            if counts is not None:
                ahead, behind = counts
                marker = divergence_marker(ahead > 0, behind > 0, ahead_icon, behind_icon)

            if head.is_branch:
                label = head.shorthand
            else:
                label = backend.peel_to_commit(handle, head)[:SHORT_ID_LEN]

            category = classify_status(backend.status_entries(handle))
        except VcsError as exc:
            logger.debug(f"{handle.path}: {exc}")
            return None

    return VcsStatus(label + marker, category)
