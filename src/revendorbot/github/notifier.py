"""Status comments posted back to the pull request that requested a revendor.

The Notifier wraps the GitHub comment endpoints and reports every failure
as NotifyError. Message bodies are module constants so the orchestrator
and tests share one source for the wording.
"""

import logging

from revendorbot.github.client import GitHubAPIError, GitHubClient
from revendorbot.webhook.models import RepoRef

logger = logging.getLogger(__name__)

IN_PROGRESS_MESSAGE = (
    ":robot: RevendorBot says `go.mod` or `go.sum` modified, may need to revendor."
)
NO_CHANGE_MESSAGE = ":robot: RevendorBot doesn't need to revendor! :beach_umbrella:"
DONE_MESSAGE = ":robot: RevendorBot done :hourglass: {duration}"
FAILURE_MESSAGE = (
    ":robot: :warning: RevendorBot got an error while trying to revendor:\n"
    "```\n{error}\n```\n\nTook {duration}"
)


class NotifyError(Exception):
    """Raised when a status comment cannot be posted or deleted."""

    pass


def done_message(duration: str) -> str:
    return DONE_MESSAGE.format(duration=duration)


def failure_message(error: str, duration: str) -> str:
    return FAILURE_MESSAGE.format(error=error, duration=duration)


class Notifier:
    """Posts and deletes issue comments on behalf of the bot.

    Attributes:
        github_client: Client used for the comment endpoints.
    """

    def __init__(self, github_client: GitHubClient):
        self.github_client = github_client

    async def post(self, repo: RepoRef, number: int, body: str) -> None:
        """Post ``body`` as a comment on issue or pull request ``number``.

        Raises:
            NotifyError: If GitHub rejects the request or it cannot be sent.
        """
        try:
            await self.github_client.create_issue_comment(
                repo.owner, repo.name, number, body
            )
        except GitHubAPIError as exc:
            raise NotifyError(
                f"failed to create comment on {repo.full_name}#{number}: {exc}"
            ) from exc

    async def delete(self, repo: RepoRef, comment_id: int) -> None:
        """Delete comment ``comment_id``.

        Raises:
            NotifyError: If GitHub rejects the request or it cannot be sent.
        """
        try:
            await self.github_client.delete_issue_comment(
                repo.owner, repo.name, comment_id
            )
        except GitHubAPIError as exc:
            raise NotifyError(
                f"failed to delete comment {comment_id} on {repo.full_name}: {exc}"
            ) from exc
        logger.info(
            "Deleted triggering comment",
            extra={"repository": repo.full_name, "comment_id": comment_id},
        )
