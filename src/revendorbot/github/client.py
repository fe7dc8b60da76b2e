"""GitHub API client for RevendorBot.

This module provides an async wrapper around the four GitHub endpoints
the bot uses:
- Listing the files changed by a commit
- Fetching a pull request
- Creating an issue comment
- Deleting an issue comment

Requests are made exactly once; any transport failure or status code of
300 or above raises GitHubAPIError.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from revendorbot.github.models import PullRequest

logger = logging.getLogger(__name__)


class GitHubAPIError(Exception):
    """Raised when a GitHub API request fails.

    Attributes:
        message: Human-readable error description.
        status_code: HTTP status code from the response, if one arrived.
        response_body: Response body from GitHub API.
        request_url: The URL that was requested.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        request_url: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.response_body = response_body
        self.request_url = request_url
        super().__init__(message)


class GitHubClient:
    """Async GitHub API client.

    Attributes:
        token: GitHub API token (PAT or GitHub App token).
        base_url: Base URL for GitHub API (default: https://api.github.com).
        timeout: Request timeout in seconds.

    Example:
        >>> client = GitHubClient(token="ghp_xxx")
        >>> async with client:
        ...     await client.create_issue_comment("owner", "repo", 42, "Hello!")
    """

    def __init__(
        self,
        token: str,
        base_url: str = "https://api.github.com",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the GitHub client.

        Args:
            token: GitHub API token for authentication.
            base_url: Base URL for GitHub API. Use this to support
                      GitHub Enterprise Server endpoints.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport, used by tests.
        """
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the HTTP client, creating it if necessary."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._default_headers(),
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    def _default_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "RevendorBot/1.0",
        }

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _request(
        self,
        method: str,
        path: str,
        json_data: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        """Make a single HTTP request.

        Args:
            method: HTTP method (GET, POST, DELETE).
            path: API path (e.g., /repos/owner/repo/issues/1/comments).
            json_data: Optional JSON body for the request.

        Returns:
            The HTTP response from GitHub, with a status below 300.

        Raises:
            GitHubAPIError: On transport failure or a status of 300 or above.
        """
        try:
            response = await self.client.request(
                method=method,
                url=path,
                json=json_data,
            )
        except httpx.HTTPError as exc:
            logger.error(
                "GitHub API request failed",
                extra={"path": path, "method": method, "error": str(exc)},
            )
            raise GitHubAPIError(
                message=f"{method} {path} failed: {exc}",
                request_url=f"{self.base_url}{path}",
            ) from exc

        if response.status_code >= 300:
            error_body = response.text
            logger.error(
                "GitHub API error",
                extra={
                    "status_code": response.status_code,
                    "path": path,
                    "method": method,
                    "response_body": error_body[:500],
                },
            )
            raise GitHubAPIError(
                message=(
                    f"got status {response.status_code} for {method} {path} "
                    f"({response.reason_phrase})"
                ),
                status_code=response.status_code,
                response_body=error_body,
                request_url=str(response.url),
            )

        return response

    async def get_commit_files(self, owner: str, repo: str, ref: str) -> List[str]:
        """List the file names changed by the commit ``ref`` resolves to.

        Args:
            owner: Repository owner (user or organization).
            repo: Repository name.
            ref: Commit SHA, branch name, or full ref.

        Returns:
            File paths relative to the repository root.

        Raises:
            GitHubAPIError: If the request fails or the response does not
                list files.
        """
        path = f"/repos/{owner}/{repo}/commits/{ref}"

        logger.debug(
            "Getting commit files",
            extra={"owner": owner, "repo": repo, "ref": ref},
        )

        response = await self._request(method="GET", path=path)
        files = _json(response).get("files") or []
        if not isinstance(files, list) or not all(
            isinstance(f, dict) and isinstance(f.get("filename"), str) for f in files
        ):
            raise _unexpected_shape(response, '"files" is not a list of file objects')
        return [f["filename"] for f in files if f["filename"]]

    async def get_pull_request(self, owner: str, repo: str, number: int) -> PullRequest:
        """Get pull request details.

        Raises:
            GitHubAPIError: If the request fails or the response lacks the
                pull request number or head branch.
        """
        path = f"/repos/{owner}/{repo}/pulls/{number}"

        logger.debug(
            "Getting pull request",
            extra={"owner": owner, "repo": repo, "pr_number": number},
        )

        response = await self._request(method="GET", path=path)
        data = _json(response)
        try:
            return PullRequest.from_github_response(data)
        except (AttributeError, KeyError, TypeError, ValidationError) as exc:
            raise _unexpected_shape(response, f"invalid pull request: {exc}") from exc

    async def create_issue_comment(
        self,
        owner: str,
        repo: str,
        issue_number: int,
        body: str,
    ) -> Dict[str, Any]:
        """Create a comment on an issue or pull request.

        Pull request conversation comments are issue comments; review
        comments use a different endpoint.

        Args:
            owner: Repository owner (user or organization).
            repo: Repository name.
            issue_number: Issue or pull request number to comment on.
            body: Comment body in markdown format.

        Returns:
            The created comment data from GitHub API.

        Raises:
            GitHubAPIError: If the request fails.
        """
        path = f"/repos/{owner}/{repo}/issues/{issue_number}/comments"

        logger.info(
            "Creating comment on issue",
            extra={
                "owner": owner,
                "repo": repo,
                "issue_number": issue_number,
                "body_length": len(body),
            },
        )

        response = await self._request(
            method="POST",
            path=path,
            json_data={"body": body},
        )

        result = _json(response)
        logger.info(
            "Comment created successfully",
            extra={
                "owner": owner,
                "repo": repo,
                "issue_number": issue_number,
                "comment_id": result.get("id"),
            },
        )

        return result

    async def delete_issue_comment(self, owner: str, repo: str, comment_id: int) -> None:
        """Delete an issue comment.

        Raises:
            GitHubAPIError: If the request fails.
        """
        path = f"/repos/{owner}/{repo}/issues/comments/{comment_id}"

        logger.info(
            "Deleting issue comment",
            extra={"owner": owner, "repo": repo, "comment_id": comment_id},
        )

        await self._request(method="DELETE", path=path)


def _json(response: httpx.Response) -> Dict[str, Any]:
    """Decode a JSON object body, raising GitHubAPIError when it is not one."""
    try:
        data = response.json()
    except ValueError as exc:
        raise GitHubAPIError(
            message=f"invalid JSON in response from {response.url}",
            status_code=response.status_code,
            response_body=response.text,
            request_url=str(response.url),
        ) from exc
    if not isinstance(data, dict):
        raise _unexpected_shape(response, "expected a JSON object")
    return data


def _unexpected_shape(response: httpx.Response, detail: str) -> GitHubAPIError:
    return GitHubAPIError(
        message=f"unexpected response shape from {response.url}: {detail}",
        status_code=response.status_code,
        response_body=response.text,
        request_url=str(response.url),
    )
