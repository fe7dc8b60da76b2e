"""GitHub webhook event models for RevendorBot.

This module defines the parsed form of the webhook events the bot reacts
to. A delivery is parsed into exactly one of ``PushEvent``,
``IssueCommentEvent`` or ``OtherEvent``; all of them are immutable once
constructed and live for a single invocation.

The models use Pydantic for validation, consistent with the bot's
configuration approach in config.py.
"""

from typing import Union

from pydantic import BaseModel, ConfigDict, Field


class RepoRef(BaseModel):
    """Identifies a remote repository.

    Attributes:
        owner: Login of the repository owner (user or organization).
        name: Repository name without the owner prefix.
        clone_url: URL passed to ``git clone``.
    """

    model_config = ConfigDict(frozen=True)

    owner: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    clone_url: str = Field(..., min_length=1)

    @property
    def full_name(self) -> str:
        """Repository path in format "{owner}/{name}"."""
        return f"{self.owner}/{self.name}"


class PushCommit(BaseModel):
    """One commit listed in a push event."""

    model_config = ConfigDict(frozen=True)

    id: str
    message: str = ""


class PushEvent(BaseModel):
    """A ``push`` delivery.

    Attributes:
        ref: The full pushed ref, e.g. "refs/heads/main".
        repo: The repository that received the push.
        commits: Commits included in the push (may be empty).
    """

    model_config = ConfigDict(frozen=True)

    ref: str = Field(..., min_length=1)
    repo: RepoRef
    commits: tuple[PushCommit, ...] = ()


class IssueCommentEvent(BaseModel):
    """An ``issue_comment`` delivery.

    GitHub reports comments on pull requests as issue comments; the
    ``is_pull_request`` flag tells the two apart.

    Attributes:
        action: "created", "edited" or "deleted".
        body: The comment text, untrimmed.
        issue_number: Number of the issue or pull request.
        is_pull_request: True when the issue is a pull request.
        comment_id: ID of the comment, used to delete it.
        repo: The repository the comment belongs to.
    """

    model_config = ConfigDict(frozen=True)

    action: str
    body: str = ""
    issue_number: int = Field(..., gt=0)
    is_pull_request: bool = False
    comment_id: int
    repo: RepoRef


class OtherEvent(BaseModel):
    """Any delivery type the bot does not act on."""

    model_config = ConfigDict(frozen=True)

    event_type: str


WebhookEvent = Union[PushEvent, IssueCommentEvent, OtherEvent]
