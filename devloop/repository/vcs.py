from __future__ import annotations

from pathlib import Path

from git import Repo
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from devloop.errors import VersionControlError
from devloop.utils import log

DEFAULT_COMMIT_MESSAGE = "feat: Automatic changes by coding agent"


class GitRepository:
    """Thin wrapper over GitPython; every failure surfaces as VersionControlError."""

    def init(self, root: str | Path) -> None:
        try:
            Repo.init(str(root))
        except (GitCommandError, OSError) as exc:
            raise VersionControlError(f"git init failed in {root}: {exc}") from exc
        log.info("git", f"initialised repository at {root}")

    def is_repo(self, root: str | Path) -> bool:
        try:
            Repo(str(root))
        except (InvalidGitRepositoryError, NoSuchPathError):
            return False
        return True

    def add_all(self, root: str | Path) -> None:
        repo = self._open(root)
        try:
            repo.git.add(A=True)
        except GitCommandError as exc:
            raise VersionControlError(f"git add failed in {root}: {exc}") from exc

    def commit(self, root: str | Path, message: str = DEFAULT_COMMIT_MESSAGE) -> str:
        repo = self._open(root)
        try:
            commit = repo.index.commit(message)
        except (GitCommandError, OSError, ValueError) as exc:
            raise VersionControlError(f"git commit failed in {root}: {exc}") from exc
        return commit.hexsha

    def reset_hard(self, root: str | Path) -> None:
        repo = self._open(root)
        try:
            repo.git.reset("--hard", "HEAD")
        except GitCommandError as exc:
            raise VersionControlError(f"git reset --hard failed in {root}: {exc}") from exc

    def _open(self, root: str | Path) -> Repo:
        try:
            return Repo(str(root))
        except (InvalidGitRepositoryError, NoSuchPathError) as exc:
            raise VersionControlError(f"not a git repository: {root}") from exc
