"""Decides whether a commit touched the Go module manifests."""

import logging

from revendorbot.github.client import GitHubAPIError, GitHubClient
from revendorbot.webhook.models import RepoRef

logger = logging.getLogger(__name__)

MANIFEST_FILES = frozenset({"go.mod", "go.sum"})


class ChangeDetector:
    """Checks the file list of a commit for go.mod or go.sum.

    Only root-level manifests count: names are compared for exact
    equality, so "tools/go.mod" does not match.

    When GitHub cannot be queried the detector answers False and logs a
    warning. A missed revendor is preferred over failing the caller, so
    API trouble silently skips the run; callers rely on this and it is
    covered by tests.
    """

    def __init__(self, github_client: GitHubClient):
        self.github_client = github_client

    async def requires_revendor(self, repo: RepoRef, ref: str) -> bool:
        try:
            files = await self.github_client.get_commit_files(
                repo.owner, repo.name, ref
            )
        except GitHubAPIError as exc:
            logger.warning(
                "Failed to get commit, ignoring: %s",
                exc,
                extra={
                    "repository": repo.full_name,
                    "ref": ref,
                    "status_code": exc.status_code,
                },
            )
            return False

        touched = MANIFEST_FILES.intersection(files)
        logger.info(
            "Checked commit for manifest changes",
            extra={
                "repository": repo.full_name,
                "ref": ref,
                "file_count": len(files),
                "manifests": sorted(touched),
            },
        )
        return bool(touched)
