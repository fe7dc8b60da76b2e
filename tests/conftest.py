"""Pytest configuration for all tests."""

import json
from typing import Any, Dict, List, Optional

import pytest

from revendorbot.webhook.models import RepoRef


def _repository(owner: str, name: str) -> Dict[str, Any]:
    return {
        "name": name,
        "full_name": f"{owner}/{name}",
        "owner": {"login": owner, "name": owner},
        "clone_url": f"https://github.com/{owner}/{name}.git",
    }


@pytest.fixture
def repo() -> RepoRef:
    return RepoRef(
        owner="acme",
        name="widgets",
        clone_url="https://github.com/acme/widgets.git",
    )


@pytest.fixture
def push_payload():
    """Build a raw push delivery body."""

    def build(
        ref: str = "refs/heads/main",
        owner: str = "acme",
        name: str = "widgets",
        commits: Optional[List[Dict[str, Any]]] = None,
    ) -> bytes:
        if commits is None:
            commits = [{"id": "a1b2c3d", "message": "bump deps"}]
        return json.dumps(
            {
                "ref": ref,
                "before": "0" * 40,
                "after": "a1b2c3d",
                "commits": commits,
                "repository": _repository(owner, name),
            }
        ).encode()

    return build


@pytest.fixture
def comment_payload():
    """Build a raw issue_comment delivery body."""

    def build(
        body: str = "/revendor",
        action: str = "created",
        is_pull_request: bool = True,
        number: int = 42,
        comment_id: int = 9001,
        owner: str = "acme",
        name: str = "widgets",
    ) -> bytes:
        issue: Dict[str, Any] = {"number": number, "title": "Update deps"}
        if is_pull_request:
            issue["pull_request"] = {
                "url": f"https://api.github.com/repos/{owner}/{name}/pulls/{number}"
            }
        return json.dumps(
            {
                "action": action,
                "issue": issue,
                "comment": {"id": comment_id, "body": body},
                "repository": _repository(owner, name),
            }
        ).encode()

    return build
