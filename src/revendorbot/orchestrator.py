"""RevendorBot orchestrator handling one webhook delivery end to end.

Receives a raw delivery and drives it through the bot's flow:
classify → detect manifest changes → revendor → report.

Pushes are handled silently: a failed revendor becomes the invocation's
error. "/revendor" comments on pull requests are acknowledged by deleting
the comment, and every outcome is reported back on the pull request with
the elapsed time. The orchestrator is the only place where errors become
user-visible comment text.
"""

import logging
import time
from pathlib import Path
from typing import Callable

from revendorbot.config import RevendorSettings
from revendorbot.github.client import GitHubClient
from revendorbot.github.notifier import (
    IN_PROGRESS_MESSAGE,
    NO_CHANGE_MESSAGE,
    Notifier,
    NotifyError,
    done_message,
    failure_message,
)
from revendorbot.provisioner.workspace import WorkspaceManager
from revendorbot.revendor.detector import ChangeDetector
from revendorbot.revendor.workflow import (
    RevendorError,
    RevendorOutcome,
    RevendorWorkflow,
)
from revendorbot.runner.command import CommandRunner
from revendorbot.webhook.classifier import (
    DEFAULT_TRIGGER_COMMAND,
    EvaluateComment,
    EvaluatePush,
    classify,
)

logger = logging.getLogger(__name__)


def format_duration(seconds: float) -> str:
    """Render an elapsed time compactly, e.g. "850ms", "4.25s", "2m3.5s".

    The value is rounded to each format's precision before the unit is
    chosen, so no unit ever shows a full carry ("1000ms", "60.00s").
    """
    millis = round(seconds * 1000)
    if millis < 1000:
        return f"{millis}ms"
    centis = round(seconds * 100)
    if centis < 6000:
        return f"{centis / 100:.2f}s"
    minutes, tenths = divmod(round(seconds * 10), 600)
    hours, minutes = divmod(minutes, 60)
    text = f"{minutes}m{tenths / 10:.1f}s"
    if hours:
        text = f"{hours}h{text}"
    return text


class RevendorBot:
    """Coordinates classification, detection, revendoring and notification.

    Attributes:
        github_client: GitHub API client, used to look up pull requests.
        detector: Decides whether a ref touched go.mod/go.sum.
        workflow: Performs the revendor.
        notifier: Posts and deletes status comments.
        trigger: Comment text that requests a revendor.
        clock: Monotonic time source.
        started_at: Clock reading taken once at construction; elapsed
            durations in comments are measured from here.
    """

    def __init__(
        self,
        github_client: GitHubClient,
        detector: ChangeDetector,
        workflow: RevendorWorkflow,
        notifier: Notifier,
        trigger: str = DEFAULT_TRIGGER_COMMAND,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.github_client = github_client
        self.detector = detector
        self.workflow = workflow
        self.notifier = notifier
        self.trigger = trigger
        self.clock = clock
        self.started_at = clock()

    def elapsed(self) -> str:
        return format_duration(self.clock() - self.started_at)

    async def handle(self, event_type: str, delivery_id: str, payload: bytes) -> None:
        """Handle a single webhook delivery.

        Args:
            event_type: The ``X-GitHub-Event`` header value.
            delivery_id: The ``X-GitHub-Delivery`` header value, for logging.
            payload: The raw request body.

        Raises:
            WebhookParseError: If the payload cannot be decoded.
            RevendorError: If a revendor run fails.
            NotifyError: If a status comment cannot be posted on the comment path.
            GitHubAPIError: If the pull request cannot be fetched.
        """
        action = classify(event_type, payload, trigger=self.trigger)

        logger.info(
            "Handling delivery",
            extra={
                "delivery_id": delivery_id,
                "event_type": event_type,
                "action": type(action).__name__,
            },
        )

        if isinstance(action, EvaluatePush):
            await self._handle_push(action, delivery_id)
        elif isinstance(action, EvaluateComment):
            await self._handle_comment(action, delivery_id)
        else:
            logger.info(
                "Ignoring delivery: %s",
                action.reason,
                extra={"delivery_id": delivery_id},
            )

    # ------------------------------------------------------------------
    # Push path
    # ------------------------------------------------------------------

    async def _handle_push(self, action: EvaluatePush, delivery_id: str) -> None:
        """Revendor the pushed ref if it touched the manifests; no comments."""
        repo = action.repo

        if not await self.detector.requires_revendor(repo, action.ref):
            logger.info(
                "No need to revendor",
                extra={"delivery_id": delivery_id, "repository": repo.full_name},
            )
            return

        outcome = await self.workflow.run(repo, action.ref)
        self._raise_if_failed(outcome)
        logger.info(
            "Push handled",
            extra={
                "delivery_id": delivery_id,
                "repository": repo.full_name,
                "status": outcome.status.value,
            },
        )

    # ------------------------------------------------------------------
    # Comment path
    # ------------------------------------------------------------------

    async def _handle_comment(self, action: EvaluateComment, delivery_id: str) -> None:
        """Run the comment flow and report its result on the pull request."""
        repo = action.repo
        number = action.pr_number

        try:
            finished = await self._run_comment_flow(action, delivery_id)
        except Exception as exc:
            logger.exception(
                "Revendor request failed",
                extra={"delivery_id": delivery_id, "repository": repo.full_name},
            )
            await self._post_failure(action, exc)
            raise

        if not finished:
            return

        await self.notifier.post(repo, number, done_message(self.elapsed()))

    async def _run_comment_flow(self, action: EvaluateComment, delivery_id: str) -> bool:
        """Acknowledge, detect and revendor.

        Returns:
            True when a revendor ran to completion, False when no revendor
            was needed (the no-op comment has already been posted).
        """
        repo = action.repo
        number = action.pr_number

        # Deleting the request shows it has been picked up.
        await self.notifier.delete(repo, action.comment_id)
        await self.notifier.post(repo, number, IN_PROGRESS_MESSAGE)

        pull_request = await self.github_client.get_pull_request(
            repo.owner, repo.name, number
        )
        ref = pull_request.head_ref
        logger.info(
            "HEAD is %s",
            ref,
            extra={"delivery_id": delivery_id, "pr_number": number},
        )

        if not await self.detector.requires_revendor(repo, ref):
            logger.info(
                "No need to revendor",
                extra={"delivery_id": delivery_id, "repository": repo.full_name},
            )
            await self.notifier.post(repo, number, NO_CHANGE_MESSAGE)
            return False

        outcome = await self.workflow.run(repo, ref)
        self._raise_if_failed(outcome)
        return True

    async def _post_failure(self, action: EvaluateComment, exc: Exception) -> None:
        """Best-effort failure comment; a failure here is only logged."""
        body = failure_message(str(exc), self.elapsed())
        try:
            await self.notifier.post(action.repo, action.pr_number, body)
        except NotifyError:
            logger.exception(
                "Errored trying to add a comment",
                extra={"repository": action.repo.full_name},
            )

    def _raise_if_failed(self, outcome: RevendorOutcome) -> None:
        if not outcome.failed:
            return
        error = RevendorError.from_outcome(outcome)
        if outcome.error is not None:
            raise error from outcome.error
        raise error


def build_bot(
    settings: RevendorSettings,
    github_client: GitHubClient,
    clock: Callable[[], float] = time.monotonic,
) -> RevendorBot:
    """Wire all bot dependencies around an authenticated GitHub client.

    Args:
        settings: Validated bot settings.
        github_client: Authenticated GitHub API client.
        clock: Monotonic time source; the bot's start time is read from it.

    Returns:
        Fully wired RevendorBot.
    """
    runner = CommandRunner()
    base_path = (
        Path(settings.workspace_base_path) if settings.workspace_base_path else None
    )
    workspaces = WorkspaceManager(
        runner=runner,
        git_path=settings.git_path,
        base_path=base_path,
    )
    workflow = RevendorWorkflow(
        workspaces=workspaces,
        runner=runner,
        timeout_seconds=settings.revendor_timeout_seconds,
        go_path=settings.go_path,
        git_path=settings.git_path,
        sign_commits=settings.sign_commits,
    )

    return RevendorBot(
        github_client=github_client,
        detector=ChangeDetector(github_client),
        workflow=workflow,
        notifier=Notifier(github_client),
        trigger=settings.trigger_command,
        clock=clock,
    )
