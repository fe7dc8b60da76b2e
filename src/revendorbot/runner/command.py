"""External command subprocess management.

Executes git and go as async subprocesses inside a workspace directory,
capturing their output into a structured result. The runner has no
deadline of its own: cancellation of the awaiting task (for example by an
enclosing ``asyncio.wait_for``) kills the child process before the
cancellation propagates.
"""

import asyncio
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Sequence

logger = logging.getLogger(__name__)

# Upper bound on captured output included in error messages
ERROR_OUTPUT_LIMIT = 2000


@dataclass
class CommandResult:
    """Result of a single external command invocation.

    Attributes:
        args: The full argument vector, executable first.
        exit_code: Process exit code.
        stdout: Captured standard output.
        stderr: Captured standard error.
        duration_seconds: Wall-clock execution time.
    """

    args: list[str]
    exit_code: int
    stdout: str
    stderr: str
    duration_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    @property
    def command(self) -> str:
        return " ".join(self.args)


class CommandError(Exception):
    """Raised when an external command fails or cannot start.

    Attributes:
        args_: The argument vector that was run.
        exit_code: Exit code, or -1 if the process never finished.
        stdout: Captured standard output, if any.
        stderr: Captured standard error, if any.
    """

    def __init__(
        self,
        args: Sequence[str],
        message: str,
        exit_code: int = -1,
        stdout: str = "",
        stderr: str = "",
    ):
        self.args_ = list(args)
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(f"{' '.join(self.args_)}: {message}")

    @property
    def command(self) -> str:
        return " ".join(self.args_)

    @property
    def diagnostics(self) -> str:
        """Captured output most useful for explaining the failure."""
        output = self.stderr.strip() or self.stdout.strip()
        return output[-ERROR_OUTPUT_LIMIT:]


class CommandRunner:
    """Runs external programs with captured output."""

    async def run(
        self,
        cwd: Path,
        *args: str,
        env: Optional[Mapping[str, str]] = None,
    ) -> CommandResult:
        """Run a command in ``cwd`` and return its captured result.

        Args:
            cwd: Working directory for the child process.
            *args: Executable followed by its arguments.
            env: Environment overrides merged over the inherited environment.

        Returns:
            CommandResult for a zero exit status.

        Raises:
            CommandError: On non-zero exit or failure to start.
            asyncio.CancelledError: Re-raised after killing the child when
                the awaiting task is cancelled.
        """
        argv = list(args)
        start_time = time.monotonic()

        logger.info(
            "Running command",
            extra={"command": " ".join(argv), "cwd": str(cwd)},
        )

        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                cwd=str(cwd),
                env=self._build_env(env),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            logger.error("Failed to start %s: %s", argv[0], exc)
            raise CommandError(argv, f"failed to start: {exc}") from exc

        try:
            stdout_bytes, stderr_bytes = await process.communicate()
        except asyncio.CancelledError:
            await self._kill(process)
            logger.warning(
                "Command cancelled, process killed",
                extra={"command": " ".join(argv)},
            )
            raise

        result = CommandResult(
            args=argv,
            exit_code=process.returncode if process.returncode is not None else -1,
            stdout=stdout_bytes.decode("utf-8", errors="replace"),
            stderr=stderr_bytes.decode("utf-8", errors="replace"),
            duration_seconds=time.monotonic() - start_time,
        )
        self._log_output(result)

        if not result.success:
            logger.error(
                "%s failed with exit code %d in %.1fs",
                result.command,
                result.exit_code,
                result.duration_seconds,
            )
            raise CommandError(
                argv,
                f"exited with code {result.exit_code}",
                exit_code=result.exit_code,
                stdout=result.stdout,
                stderr=result.stderr,
            )

        return result

    def _build_env(self, overrides: Optional[Mapping[str, str]]) -> Optional[dict]:
        """Merge overrides over the inherited environment.

        Returns None (inherit unchanged) when there is nothing to merge.
        """
        if not overrides:
            return None

        merged = dict(os.environ)
        merged.update(overrides)
        return merged

    async def _kill(self, process: asyncio.subprocess.Process) -> None:
        """Kill a still-running child and reap it."""
        if process.returncode is not None:
            return
        try:
            process.kill()
        except ProcessLookupError:
            return
        await process.wait()

    def _log_output(self, result: CommandResult) -> None:
        for stream_name, text in (("stdout", result.stdout), ("stderr", result.stderr)):
            for line in text.splitlines():
                logger.debug("%s %s: %s", result.args[0], stream_name, line)
