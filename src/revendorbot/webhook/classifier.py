"""Maps webhook deliveries to the action the bot should take."""

import logging
from dataclasses import dataclass
from typing import Union

from revendorbot.webhook.handler import parse_webhook
from revendorbot.webhook.models import IssueCommentEvent, PushEvent, RepoRef

logger = logging.getLogger(__name__)

DEFAULT_TRIGGER_COMMAND = "/revendor"


@dataclass(frozen=True)
class IgnoreAction:
    """Nothing to do for this delivery."""

    reason: str = ""


@dataclass(frozen=True)
class EvaluatePush:
    """Check a pushed ref and revendor it if its manifests changed."""

    ref: str
    repo: RepoRef


@dataclass(frozen=True)
class EvaluateComment:
    """Handle a ``/revendor`` request made on a pull request."""

    repo: RepoRef
    pr_number: int
    comment_id: int


Action = Union[IgnoreAction, EvaluatePush, EvaluateComment]


def is_revendor_request(
    event: IssueCommentEvent, trigger: str = DEFAULT_TRIGGER_COMMAND
) -> bool:
    """True for a newly created pull-request comment that is exactly the trigger.

    Surrounding whitespace in the comment body is ignored; anything else
    in the body disqualifies it.
    """
    if event.action != "created":
        return False
    if event.body.strip() != trigger:
        return False
    return event.is_pull_request


def classify(
    event_type: str,
    payload: bytes,
    trigger: str = DEFAULT_TRIGGER_COMMAND,
) -> Action:
    """Parse a delivery and decide what to do with it.

    Args:
        event_type: The ``X-GitHub-Event`` header value.
        payload: The raw request body.
        trigger: Comment text that requests a revendor.

    Returns:
        EvaluatePush for every push, EvaluateComment for qualifying
        comments, and IgnoreAction for everything else.

    Raises:
        WebhookParseError: If the payload cannot be decoded.
    """
    event = parse_webhook(event_type, payload)

    if isinstance(event, PushEvent):
        return EvaluatePush(ref=event.ref, repo=event.repo)

    if isinstance(event, IssueCommentEvent):
        if not is_revendor_request(event, trigger):
            return IgnoreAction(reason="comment is not a revendor request")
        return EvaluateComment(
            repo=event.repo,
            pr_number=event.issue_number,
            comment_id=event.comment_id,
        )

    logger.info("Ignoring %s event", event_type)
    return IgnoreAction(reason=f"unsupported event type {event_type!r}")
