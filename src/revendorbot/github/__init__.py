"""GitHub API integration for RevendorBot.

This module provides:
- GitHubClient, an async wrapper around the commit, pull request and
  issue comment endpoints
- Notifier, which posts and deletes the bot's status comments
"""

from revendorbot.github.client import GitHubAPIError, GitHubClient
from revendorbot.github.models import PullRequest
from revendorbot.github.notifier import Notifier, NotifyError

__all__ = [
    "GitHubAPIError",
    "GitHubClient",
    "Notifier",
    "NotifyError",
    "PullRequest",
]
