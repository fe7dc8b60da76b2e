"""The revendor workflow: tidy, vendor, and commit the result if it changed.

A run clones the repository into a private workspace, runs ``go mod tidy``
and ``go mod vendor`` with vendor-mode module resolution, and inspects
``git status``. Only when the working tree changed are the changes staged,
committed (signed, with a sign-off) and pushed back to the tracking branch.

The whole run shares one deadline. When it expires the in-flight command
is cancelled (its process is killed), the workspace is removed, and the
run reports a timeout failure.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from revendorbot.provisioner.workspace import WorkspaceError, WorkspaceManager
from revendorbot.runner.command import CommandError, CommandResult, CommandRunner
from revendorbot.webhook.models import RepoRef

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 15
COMMIT_MESSAGE = "updating results of `go mod tidy` and `go mod vendor`"
GO_MODULE_ENV = {"GOFLAGS": "-mod=vendor", "GO111MODULE": "on"}


class RevendorStatus(str, Enum):
    """How a revendor run ended.

    Attributes:
        NO_CHANGE_NEEDED: Tidy and vendor left the working tree clean.
        COMMITTED: Changes were committed and pushed.
        FAILED: A step failed or the deadline expired.
    """

    NO_CHANGE_NEEDED = "no_change_needed"
    COMMITTED = "committed"
    FAILED = "failed"


@dataclass
class RevendorOutcome:
    """Result of a revendor run.

    Attributes:
        status: How the run ended.
        reason: Failure description for FAILED outcomes.
        error: The exception behind a FAILED outcome.
        duration_seconds: Wall-clock time of the run.
    """

    status: RevendorStatus
    reason: str = ""
    error: Optional[BaseException] = None
    duration_seconds: float = 0.0

    @property
    def failed(self) -> bool:
        return self.status is RevendorStatus.FAILED


class RevendorError(Exception):
    """Raised by callers that turn a FAILED outcome into an error."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)

    @classmethod
    def from_outcome(cls, outcome: RevendorOutcome) -> "RevendorError":
        return cls(outcome.reason or "revendor failed")


@dataclass
class StepProgress:
    """The step a run is currently executing; named in timeout reasons."""

    current: str = "git clone and checkout"


class StepError(Exception):
    """A workflow step failed; carries the step name for the failure reason."""

    def __init__(self, step: str, cause: CommandError):
        self.step = step
        self.cause = cause
        message = f"{step} failed: {cause}"
        if cause.diagnostics:
            message = f"{message}\n{cause.diagnostics}"
        super().__init__(message)


class RevendorWorkflow:
    """Runs the tidy/vendor/commit/push sequence for one repository ref.

    Attributes:
        workspaces: Provides the cloned working copy.
        runner: Runs go and git.
        timeout_seconds: Deadline for the whole run.
        go_path: The go executable.
        git_path: The git executable.
        sign_commits: Whether to pass -S to git commit.
    """

    def __init__(
        self,
        workspaces: WorkspaceManager,
        runner: CommandRunner,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        go_path: str = "go",
        git_path: str = "git",
        sign_commits: bool = True,
    ):
        self.workspaces = workspaces
        self.runner = runner
        self.timeout_seconds = timeout_seconds
        self.go_path = go_path
        self.git_path = git_path
        self.sign_commits = sign_commits

    async def run(self, repo: RepoRef, ref: str) -> RevendorOutcome:
        """Revendor ``repo`` at ``ref``.

        Never raises for step failures; they are reported as a FAILED
        outcome carrying the reason and the underlying exception. A timeout
        reason names the step that was running when the deadline expired.
        """
        logger.info(
            "Revendoring",
            extra={"repository": repo.full_name, "ref": ref},
        )
        start_time = time.monotonic()
        progress = StepProgress()

        try:
            status = await asyncio.wait_for(
                self._run_steps(repo, ref, progress), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError as exc:
            return self._failed(
                f"revendor timed out after {self.timeout_seconds}s "
                f"while running {progress.current}",
                exc,
                start_time,
            )
        except (WorkspaceError, StepError) as exc:
            return self._failed(str(exc), exc, start_time)

        duration = time.monotonic() - start_time
        logger.info(
            "Revendor finished",
            extra={
                "repository": repo.full_name,
                "status": status.value,
                "duration": duration,
            },
        )
        return RevendorOutcome(status=status, duration_seconds=duration)

    async def _run_steps(
        self, repo: RepoRef, ref: str, progress: StepProgress
    ) -> RevendorStatus:
        async with self.workspaces.checkout(repo, ref) as workspace:
            directory = workspace.path

            await self._step(
                progress, "go mod tidy", directory, self.go_path, "mod", "tidy", "-v",
                env=GO_MODULE_ENV,
            )
            await self._step(
                progress, "go mod vendor", directory, self.go_path, "mod", "vendor",
                env=GO_MODULE_ENV,
            )

            status = await self._step(
                progress, "git status", directory, self.git_path, "status", "--porcelain=v2"
            )
            if status.stdout == "":
                logger.info("No changes necessary", extra={"repository": repo.full_name})
                return RevendorStatus.NO_CHANGE_NEEDED

            logger.info(
                "Repo is dirty, committing changes",
                extra={"repository": repo.full_name},
            )
            await self._step(progress, "git add", directory, self.git_path, "add", ".")
            await self._step(
                progress, "git commit", directory, self.git_path, *self._commit_args()
            )
            await self._step(progress, "git push", directory, self.git_path, "push")
            return RevendorStatus.COMMITTED

    async def _step(
        self,
        progress: StepProgress,
        step: str,
        directory: Path,
        *args: str,
        env: Optional[dict[str, str]] = None,
    ) -> CommandResult:
        progress.current = step
        try:
            return await self.runner.run(directory, *args, env=env)
        except CommandError as exc:
            raise StepError(step, exc) from exc

    def _commit_args(self) -> list[str]:
        args = ["commit"]
        if self.sign_commits:
            args.append("-S")
        args.extend(["-s", "-m", COMMIT_MESSAGE])
        return args

    def _failed(
        self, reason: str, exc: BaseException, start_time: float
    ) -> RevendorOutcome:
        logger.error("Revendor failed: %s", reason)
        return RevendorOutcome(
            status=RevendorStatus.FAILED,
            reason=reason,
            error=exc,
            duration_seconds=time.monotonic() - start_time,
        )
