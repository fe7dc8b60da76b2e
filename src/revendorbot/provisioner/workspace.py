"""Workspace provisioning for revendor runs.

Creates an isolated temporary directory, clones the repository into an
``owner/name`` subdirectory, checks out the requested ref, and removes the
whole temporary tree when the run ends. Removal happens exactly once on
every exit path, including failed clones, failed checkouts and
cancellation.
"""

import logging
import shutil
import tempfile
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import AsyncIterator, Optional

from revendorbot.runner.command import CommandError, CommandRunner
from revendorbot.webhook.models import RepoRef

logger = logging.getLogger(__name__)

WORKSPACE_DIR_PERMISSIONS = 0o700
WORKSPACE_PREFIX = "revendor-"
BRANCH_REF_PREFIX = "refs/heads/"


class WorkspaceError(Exception):
    """Raised when a workspace cannot be prepared.

    Attributes:
        stage: Which step failed: "create_directory", "clone" or "checkout".
    """

    def __init__(self, stage: str, message: str):
        self.stage = stage
        super().__init__(f"workspace {stage} failed: {message}")


@dataclass
class Workspace:
    """A checked-out repository owned by a single revendor run.

    Attributes:
        root: The unique temporary directory; removed on release.
        repo: The repository that was cloned.
        ref: The branch or commit that was checked out.
    """

    root: Path
    repo: RepoRef
    ref: str = ""
    released: bool = field(default=False, init=False)

    @property
    def path(self) -> Path:
        """Directory holding the clone.

        Raises:
            WorkspaceError: If the workspace has already been released.
        """
        if self.released:
            raise WorkspaceError("access", f"{self.root} has been released")
        return self.root / self.repo.owner / self.repo.name


def strip_branch_prefix(ref: str) -> str:
    """Turn "refs/heads/main" into "main"; other refs pass through."""
    if ref.startswith(BRANCH_REF_PREFIX):
        return ref[len(BRANCH_REF_PREFIX):]
    return ref


class WorkspaceManager:
    """Creates and removes per-run repository workspaces.

    Attributes:
        runner: Command runner used for git invocations.
        git_path: The git executable.
        base_path: Parent for temporary directories; the system default
            temporary directory when None.
    """

    def __init__(
        self,
        runner: CommandRunner,
        git_path: str = "git",
        base_path: Optional[Path] = None,
    ):
        self.runner = runner
        self.git_path = git_path
        self.base_path = base_path

    @asynccontextmanager
    async def checkout(self, repo: RepoRef, ref: str) -> AsyncIterator[Workspace]:
        """Provide a fresh clone of ``repo`` at ``ref`` for the enclosed block.

        Args:
            repo: Repository to clone.
            ref: Branch (optionally "refs/heads/"-prefixed) or commit to check out.

        Yields:
            The prepared Workspace.

        Raises:
            WorkspaceError: If directory creation, clone or checkout fails.
        """
        root = self._create_root()
        workspace = Workspace(root=root, repo=repo, ref=strip_branch_prefix(ref))
        try:
            await self._prepare(workspace)
            yield workspace
        finally:
            self.release(workspace)

    def release(self, workspace: Workspace) -> None:
        """Recursively remove the workspace's temporary root.

        Removal errors are logged rather than raised so they never mask the
        outcome of the run.
        """
        if workspace.released:
            return
        workspace.released = True
        try:
            shutil.rmtree(workspace.root)
            logger.info("Removed workspace", extra={"workspace": str(workspace.root)})
        except OSError:
            logger.exception(
                "Failed to remove workspace",
                extra={"workspace": str(workspace.root)},
            )

    def _create_root(self) -> Path:
        try:
            if self.base_path is not None:
                self.base_path.mkdir(parents=True, exist_ok=True)
            return Path(tempfile.mkdtemp(prefix=WORKSPACE_PREFIX, dir=self.base_path))
        except OSError as exc:
            raise WorkspaceError(
                "create_directory", f"could not create temporary directory: {exc}"
            ) from exc

    async def _prepare(self, workspace: Workspace) -> None:
        clone_dir = workspace.path

        try:
            clone_dir.mkdir(mode=WORKSPACE_DIR_PERMISSIONS, parents=True)
        except OSError as exc:
            raise WorkspaceError(
                "create_directory", f"could not create {clone_dir}: {exc}"
            ) from exc

        logger.info(
            "Cloning repository",
            extra={"repository": workspace.repo.full_name, "target": str(clone_dir)},
        )
        try:
            await self.runner.run(
                clone_dir, self.git_path, "clone", workspace.repo.clone_url, "."
            )
        except CommandError as exc:
            raise WorkspaceError("clone", _describe(exc)) from exc

        try:
            await self.runner.run(clone_dir, self.git_path, "checkout", workspace.ref)
        except CommandError as exc:
            raise WorkspaceError("checkout", _describe(exc)) from exc


def _describe(exc: CommandError) -> str:
    if exc.diagnostics:
        return f"{exc}\n{exc.diagnostics}"
    return str(exc)
