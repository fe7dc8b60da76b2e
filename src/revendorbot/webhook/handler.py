"""GitHub webhook payload parsing for RevendorBot.

This module turns a delivery's event-type header and raw body into one of
the typed events in models.py. Only the fields the bot needs are read.

GitHub Webhook Payload Structure (issue_comment event):
{
  "action": "created",
  "issue": {
    "number": 42,
    "pull_request": {"url": "..."}
  },
  "comment": {"id": 1234, "body": "/revendor"},
  "repository": {
    "name": "repo-name",
    "owner": {"login": "owner-name"},
    "clone_url": "https://github.com/owner-name/repo-name.git"
  }
}

GitHub Webhook Payload Structure (push event):
{
  "ref": "refs/heads/main",
  "commits": [{"id": "abc123", "message": "..."}],
  "repository": {...same as above...}
}
"""

import json
import logging
from typing import Any, Dict

from pydantic import ValidationError

from revendorbot.webhook.models import (
    IssueCommentEvent,
    OtherEvent,
    PushCommit,
    PushEvent,
    RepoRef,
    WebhookEvent,
)

logger = logging.getLogger(__name__)

PUSH_EVENT = "push"
ISSUE_COMMENT_EVENT = "issue_comment"


class WebhookParseError(Exception):
    """Raised when a payload cannot be decoded as the declared event type.

    Attributes:
        event_type: The event-type tag of the delivery.
    """

    def __init__(self, event_type: str, message: str):
        self.event_type = event_type
        super().__init__(f"failed to parse {event_type!r} webhook event: {message}")


def parse_webhook(event_type: str, payload: bytes) -> WebhookEvent:
    """Parse a raw webhook delivery into a typed event.

    Args:
        event_type: The ``X-GitHub-Event`` header value.
        payload: The raw request body.

    Returns:
        PushEvent or IssueCommentEvent for the supported types, OtherEvent
        for everything else. Unsupported types are not decoded at all.

    Raises:
        WebhookParseError: If a supported event's payload is not valid JSON
            or is missing required fields.
    """
    if event_type not in (PUSH_EVENT, ISSUE_COMMENT_EVENT):
        return OtherEvent(event_type=event_type)

    data = _decode(event_type, payload)

    try:
        if event_type == PUSH_EVENT:
            return _parse_push(data)
        return _parse_issue_comment(data)
    except (AttributeError, KeyError, TypeError, ValidationError) as exc:
        raise WebhookParseError(event_type, str(exc)) from exc


def _decode(event_type: str, payload: bytes) -> Dict[str, Any]:
    try:
        data = json.loads(payload)
    except (UnicodeDecodeError, ValueError) as exc:
        raise WebhookParseError(event_type, f"invalid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise WebhookParseError(
            event_type, f"expected a JSON object, got {type(data).__name__}"
        )
    return data


def _parse_repo(data: Dict[str, Any]) -> RepoRef:
    """Extract the repository reference from a payload.

    Push payloads describe the owner with both ``login`` and ``name``;
    other events only carry ``login``.
    """
    repo_data = data["repository"]
    owner_data = repo_data["owner"]
    owner = owner_data.get("login") or owner_data.get("name")
    return RepoRef(
        owner=owner,
        name=repo_data["name"],
        clone_url=repo_data["clone_url"],
    )


def _parse_push(data: Dict[str, Any]) -> PushEvent:
    commits = tuple(
        PushCommit(id=commit["id"], message=commit.get("message") or "")
        for commit in data.get("commits") or []
    )
    event = PushEvent(ref=data["ref"], repo=_parse_repo(data), commits=commits)

    logger.debug(
        "Parsed push event",
        extra={"ref": event.ref, "repository": event.repo.full_name},
    )
    return event


def _parse_issue_comment(data: Dict[str, Any]) -> IssueCommentEvent:
    issue_data = data["issue"]
    comment_data = data["comment"]

    event = IssueCommentEvent(
        action=data["action"],
        body=comment_data.get("body") or "",
        issue_number=issue_data["number"],
        is_pull_request=issue_data.get("pull_request") is not None,
        comment_id=comment_data["id"],
        repo=_parse_repo(data),
    )

    logger.debug(
        "Parsed issue comment event",
        extra={
            "action": event.action,
            "repository": event.repo.full_name,
            "issue_number": event.issue_number,
        },
    )
    return event
