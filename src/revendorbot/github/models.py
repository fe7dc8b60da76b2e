"""GitHub API response models used by RevendorBot."""

from typing import Any, Dict

from pydantic import BaseModel, Field


class PullRequest(BaseModel):
    """The parts of a pull request the bot needs.

    Attributes:
        number: Pull request number.
        head_ref: Branch name of the pull request head (no refs/heads/ prefix).
        head_sha: Commit SHA of the pull request head.
    """

    number: int = Field(..., gt=0)
    head_ref: str = Field(..., min_length=1)
    head_sha: str = ""

    @classmethod
    def from_github_response(cls, data: Dict[str, Any]) -> "PullRequest":
        """Build from a ``GET /repos/{owner}/{repo}/pulls/{number}`` body."""
        head = data.get("head") or {}
        return cls(
            number=data["number"],
            head_ref=head.get("ref", ""),
            head_sha=head.get("sha") or "",
        )
