"""
Git worktree manager.

Each task with a repository gets its own worktree under
``<workspace>/work/<task-id>`` so several tasks can be worked on at once
without switching branches in the main checkout.
"""

import builtins
from dataclasses import dataclass
from pathlib import Path

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo

WORK_DIR = "work"


class WorktreeError(Exception):
    """Base exception for worktree operations."""

    pass


class WorktreeNotFoundError(WorktreeError):
    """Raised when a worktree cannot be found."""

    pass


class WorktreeLockError(WorktreeError):
    """Raised when a worktree is locked and cannot be removed."""

    pass


@dataclass
class Worktree:
    """
    Represents a git worktree.

    Attributes:
        path: Absolute path to the worktree directory
        branch: Branch ref (None for detached HEAD)
        commit: Commit SHA
        is_bare: Whether this is the bare repository
        is_locked: Whether the worktree is locked
    """

    path: Path
    branch: str | None
    commit: str
    is_bare: bool = False
    is_locked: bool = False


def _parse_porcelain(output: str) -> builtins.list[Worktree]:
    """Parse ``git worktree list --porcelain`` output."""
    worktrees: list[Worktree] = []
    current: dict[str, str | bool] = {}

    def flush() -> None:
        if current:
            worktrees.append(
                Worktree(
                    path=Path(str(current.get("path", ""))),
                    branch=str(current["branch"]) if "branch" in current else None,
                    commit=str(current.get("commit", "")),
                    is_bare=bool(current.get("is_bare", False)),
                    is_locked=bool(current.get("is_locked", False)),
                )
            )
            current.clear()

    for line in output.splitlines():
        line = line.strip()
        if not line:
            flush()
        elif line.startswith("worktree "):
            current["path"] = line[len("worktree ") :]
        elif line.startswith("HEAD "):
            current["commit"] = line[len("HEAD ") :]
        elif line.startswith("branch "):
            current["branch"] = line[len("branch ") :]
        elif line == "bare":
            current["is_bare"] = True
        elif line == "locked" or line.startswith("locked "):
            current["is_locked"] = True
    flush()
    return worktrees


class WorktreeManager:
    """
    Creates and removes task worktrees.

    Implements both the worktree creator used by bootstrap and the worktree
    remover used by ``TaskManager.cleanup_worktree``.

    Example:
        >>> manager = WorktreeManager(Path("~/adb").expanduser())
        >>> path = manager.create_worktree("~/src/api", "feat/TASK-00001-login", "TASK-00001")
        >>> manager.remove_worktree(path)
    """

    def __init__(self, base_path: Path):
        """
        Args:
            base_path: Workspace root; worktrees are created under its work/ directory
        """
        self.base_path = Path(base_path)
        self.worktree_base = self.base_path / WORK_DIR

    def _open_repo(self, path: Path | str) -> Repo:
        try:
            return Repo(Path(path).expanduser(), search_parent_directories=True)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise WorktreeError(f"Not a git repository: {path}") from e

    def worktree_path_for(self, task_id: str) -> Path:
        """Where the worktree for ``task_id`` lives."""
        return self.worktree_base / task_id

    def create_worktree(
        self,
        repo_path: str,
        branch: str,
        task_id: str,
        base_branch: str | None = None,
    ) -> str:
        """
        Create a worktree for a task, creating ``branch`` if it doesn't exist.

        Args:
            repo_path: Repository to branch from
            branch: Branch to check out in the worktree
            task_id: Task ID (used for the worktree directory name)
            base_branch: Start point for a new branch (defaults to HEAD)

        Returns:
            Absolute path of the new worktree

        Raises:
            WorktreeError: If the path is taken or git fails
        """
        repo = self._open_repo(repo_path)
        worktree_path = self.worktree_path_for(task_id)
        if worktree_path.exists():
            raise WorktreeError(f"Worktree already exists at: {worktree_path}")
        worktree_path.parent.mkdir(parents=True, exist_ok=True)

        existing_branches = {head.name for head in repo.heads}
        if branch in existing_branches:
            # git worktree add <path> <branch>
            args = ["add", str(worktree_path), branch]
        else:
            # git worktree add -b <branch> <path> [<start-point>]
            args = ["add", "-b", branch, str(worktree_path)]
            if base_branch:
                args.append(base_branch)

        try:
            repo.git.worktree(*args)
        except GitCommandError as e:
            raise WorktreeError(f"Failed to create worktree: {e.stderr}") from e
        return str(worktree_path)

    def list_worktrees(self, repo_path: Path | str) -> builtins.list[Worktree]:
        """
        List all worktrees of a repository.

        Raises:
            WorktreeError: If listing worktrees fails
        """
        repo = self._open_repo(repo_path)
        try:
            return _parse_porcelain(repo.git.worktree("list", "--porcelain"))
        except GitCommandError as e:
            raise WorktreeError(f"Failed to list worktrees: {e.stderr}") from e

    def _main_repo(self, worktree_path: Path) -> Repo:
        """The repository a linked worktree belongs to."""
        linked = self._open_repo(worktree_path)
        common_dir = Path(linked.common_dir)
        return self._open_repo(common_dir.parent)

    def remove_worktree(self, worktree_path: str, force: bool = False) -> None:
        """
        Remove a worktree.

        Args:
            worktree_path: Path to the worktree directory
            force: Force removal even if the worktree has uncommitted changes

        Raises:
            WorktreeNotFoundError: If the path doesn't exist or is not a worktree
            WorktreeLockError: If the worktree is locked and force=False
            WorktreeError: If removal fails
        """
        path = Path(worktree_path).expanduser()
        if not path.exists():
            raise WorktreeNotFoundError(f"Worktree not found: {path}")

        repo = self._main_repo(path)
        try:
            entries = _parse_porcelain(repo.git.worktree("list", "--porcelain"))
        except GitCommandError as e:
            raise WorktreeError(f"Failed to list worktrees: {e.stderr}") from e

        resolved = path.resolve()
        worktree = next((w for w in entries if w.path.resolve() == resolved), None)
        if worktree is None:
            raise WorktreeNotFoundError(f"Not a worktree: {path}")
        if worktree.is_bare:
            raise WorktreeError("Cannot remove bare repository worktree")
        if worktree.is_locked and not force:
            raise WorktreeLockError(f"Worktree is locked: {path}")

        args = ["remove"]
        if force:
            args.append("--force")
        args.append(str(path))
        try:
            repo.git.worktree(*args)
        except GitCommandError as e:
            raise WorktreeError(f"Failed to remove worktree: {e.stderr}") from e

    def prune(self, repo_path: Path | str) -> None:
        """
        Prune stale worktree administrative data ('git worktree prune').

        Raises:
            WorktreeError: If prune operation fails
        """
        repo = self._open_repo(repo_path)
        try:
            repo.git.worktree("prune")
        except GitCommandError as e:
            raise WorktreeError(f"Failed to prune worktrees: {e.stderr}") from e
