"""GitHub webhook handling for RevendorBot.

This module parses GitHub webhook deliveries and classifies them:
- push - a ref was updated; its commit may have touched go.mod/go.sum
- issue_comment - a "/revendor" comment on a pull request requests a run

Every other event type is ignored.
"""

from revendorbot.webhook.classifier import (
    Action,
    EvaluateComment,
    EvaluatePush,
    IgnoreAction,
    classify,
    is_revendor_request,
)
from revendorbot.webhook.handler import WebhookParseError, parse_webhook
from revendorbot.webhook.models import (
    IssueCommentEvent,
    OtherEvent,
    PushCommit,
    PushEvent,
    RepoRef,
    WebhookEvent,
)

__all__ = [
    "Action",
    "EvaluateComment",
    "EvaluatePush",
    "IgnoreAction",
    "IssueCommentEvent",
    "OtherEvent",
    "PushCommit",
    "PushEvent",
    "RepoRef",
    "WebhookEvent",
    "WebhookParseError",
    "classify",
    "is_revendor_request",
    "parse_webhook",
]
