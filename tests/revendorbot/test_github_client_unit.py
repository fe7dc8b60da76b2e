"""Unit tests for the GitHub API client.

Requests are served by an httpx.MockTransport so paths, headers and
bodies can be asserted without network access.
"""

import asyncio
import json

import httpx
import pytest

from revendorbot.github import GitHubAPIError, GitHubClient, PullRequest


def run_async(coro):
    return asyncio.run(coro)


class Recorder:
    """MockTransport handler that records requests and replays one response."""

    def __init__(self, status_code=200, body=None, raise_exc=None):
        self.status_code = status_code
        self.body = body
        self.raise_exc = raise_exc
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raise_exc is not None:
            raise self.raise_exc
        if self.body is None:
            return httpx.Response(self.status_code)
        return httpx.Response(self.status_code, json=self.body)


def _client(handler, base_url="https://api.github.com"):
    return GitHubClient(
        token="ghp_test_token",
        base_url=base_url,
        transport=httpx.MockTransport(handler),
    )


async def _call(client, method, *args):
    async with client:
        return await getattr(client, method)(*args)


class TestGetCommitFiles:

    def test_returns_file_names(self):
        handler = Recorder(
            body={
                "sha": "a1b2c3d",
                "files": [
                    {"filename": "go.mod", "status": "modified"},
                    {"filename": "vendor/modules.txt", "status": "modified"},
                ],
            }
        )

        files = run_async(
            _call(_client(handler), "get_commit_files", "acme", "widgets", "refs/heads/main")
        )

        assert files == ["go.mod", "vendor/modules.txt"]
        request = handler.requests[0]
        assert request.method == "GET"
        assert request.url.path == "/repos/acme/widgets/commits/refs/heads/main"
        assert request.headers["Authorization"] == "Bearer ghp_test_token"
        assert request.headers["Accept"] == "application/vnd.github+json"

    def test_missing_files_key_is_empty(self):
        handler = Recorder(body={"sha": "a1b2c3d"})

        files = run_async(_call(_client(handler), "get_commit_files", "acme", "widgets", "main"))

        assert files == []

    def test_enterprise_base_url(self):
        handler = Recorder(body={"files": []})
        client = _client(handler, base_url="https://ghe.example.com/api/v3/")

        run_async(_call(client, "get_commit_files", "acme", "widgets", "main"))

        url = handler.requests[0].url
        assert url.host == "ghe.example.com"
        assert url.path == "/api/v3/repos/acme/widgets/commits/main"

    def test_non_object_body_raises(self):
        handler = Recorder(body=["go.mod"])

        with pytest.raises(GitHubAPIError, match="unexpected response shape"):
            run_async(_call(_client(handler), "get_commit_files", "acme", "widgets", "main"))

    @pytest.mark.parametrize(
        "files",
        [
            "go.mod",
            {"filename": "go.mod"},
            ["go.mod"],
            [{"status": "modified"}],
            [{"filename": 7}],
        ],
    )
    def test_malformed_files_raise(self, files):
        handler = Recorder(body={"sha": "a1b2c3d", "files": files})

        with pytest.raises(GitHubAPIError, match="unexpected response shape") as excinfo:
            run_async(_call(_client(handler), "get_commit_files", "acme", "widgets", "main"))

        assert excinfo.value.status_code == 200


class TestGetPullRequest:

    def test_returns_head_branch(self):
        handler = Recorder(
            body={
                "number": 42,
                "head": {"ref": "bump-deps", "sha": "f00dfeed"},
                "base": {"ref": "main"},
            }
        )

        pr = run_async(_call(_client(handler), "get_pull_request", "acme", "widgets", 42))

        assert pr == PullRequest(number=42, head_ref="bump-deps", head_sha="f00dfeed")
        assert handler.requests[0].url.path == "/repos/acme/widgets/pulls/42"

    @pytest.mark.parametrize(
        "body",
        [
            {"head": {"ref": "bump-deps"}},
            {"number": 42, "head": {"ref": ""}},
            {"number": 42},
            {"number": 42, "head": "bump-deps"},
            {"number": "forty-two", "head": {"ref": "bump-deps"}},
        ],
    )
    def test_malformed_pull_request_raises(self, body):
        handler = Recorder(body=body)

        with pytest.raises(GitHubAPIError, match="invalid pull request"):
            run_async(_call(_client(handler), "get_pull_request", "acme", "widgets", 42))


class TestComments:

    def test_create_issue_comment_posts_body(self):
        handler = Recorder(status_code=201, body={"id": 77, "body": "hello"})

        result = run_async(
            _call(_client(handler), "create_issue_comment", "acme", "widgets", 42, "hello")
        )

        assert result["id"] == 77
        request = handler.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/repos/acme/widgets/issues/42/comments"
        assert json.loads(request.content) == {"body": "hello"}

    def test_delete_issue_comment(self):
        handler = Recorder(status_code=204)

        result = run_async(
            _call(_client(handler), "delete_issue_comment", "acme", "widgets", 9001)
        )

        assert result is None
        request = handler.requests[0]
        assert request.method == "DELETE"
        assert request.url.path == "/repos/acme/widgets/issues/comments/9001"


class TestErrors:

    @pytest.mark.parametrize("status_code", [302, 403, 404, 422, 500])
    def test_status_of_300_or_more_raises(self, status_code):
        handler = Recorder(status_code=status_code, body={"message": "nope"})

        with pytest.raises(GitHubAPIError) as excinfo:
            run_async(_call(_client(handler), "get_pull_request", "acme", "widgets", 1))

        error = excinfo.value
        assert error.status_code == status_code
        assert f"got status {status_code}" in str(error)
        assert "GET /repos/acme/widgets/pulls/1" in str(error)
        assert "nope" in error.response_body

    def test_request_is_not_retried(self):
        handler = Recorder(status_code=500, body={"message": "boom"})

        with pytest.raises(GitHubAPIError):
            run_async(
                _call(_client(handler), "create_issue_comment", "acme", "widgets", 1, "x")
            )

        assert len(handler.requests) == 1

    def test_transport_error_raises(self):
        handler = Recorder(raise_exc=httpx.ConnectError("connection refused"))

        with pytest.raises(GitHubAPIError, match="connection refused") as excinfo:
            run_async(_call(_client(handler), "delete_issue_comment", "acme", "widgets", 1))

        assert excinfo.value.status_code is None
        assert excinfo.value.request_url.endswith("/repos/acme/widgets/issues/comments/1")


class TestLifecycle:

    def test_close_releases_http_client(self):
        client = _client(Recorder(body={"files": []}))

        async def scenario():
            http_client = client.client
            await client.close()
            return http_client

        http_client = run_async(scenario())

        assert http_client.is_closed
        assert client._client is None
