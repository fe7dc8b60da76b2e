"""Unit tests for the RevendorBot orchestrator.

Every collaborator is an AsyncMock; a shared call log captures the order
of GitHub interactions, detection and revendor runs.
"""

import asyncio
import re
from unittest.mock import AsyncMock, MagicMock

import pytest
from hypothesis import given
from hypothesis import strategies as st

from revendorbot.config import RevendorSettings
from revendorbot.github import GitHubAPIError, NotifyError, PullRequest
from revendorbot.github.notifier import IN_PROGRESS_MESSAGE, NO_CHANGE_MESSAGE
from revendorbot.orchestrator import RevendorBot, build_bot, format_duration
from revendorbot.revendor import (
    RevendorError,
    RevendorOutcome,
    RevendorStatus,
    RevendorWorkflow,
)
from revendorbot.webhook import WebhookParseError


def run_async(coro):
    return asyncio.run(coro)


class FakeClock:
    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class Harness:
    """A bot wired to mocks that log every call in order."""

    def __init__(self, requires_revendor=True, outcome=None):
        self.calls = []
        self.clock = FakeClock()

        self.github_client = MagicMock()
        self.github_client.get_pull_request = AsyncMock(
            side_effect=self._record(
                "get_pull_request",
                PullRequest(number=42, head_ref="bump-deps", head_sha="f00d"),
            )
        )

        self.detector = MagicMock()
        self.detector.requires_revendor = AsyncMock(
            side_effect=self._record("detect", requires_revendor)
        )

        self.workflow = MagicMock()
        self.workflow.run = AsyncMock(
            side_effect=self._record(
                "revendor",
                outcome or RevendorOutcome(status=RevendorStatus.COMMITTED),
                advance=4.25,
            )
        )

        self.notifier = MagicMock()
        self.notifier.delete = AsyncMock(side_effect=self._record("delete", None))
        self.notifier.post = AsyncMock(side_effect=self._record("post", None))

        self.bot = RevendorBot(
            github_client=self.github_client,
            detector=self.detector,
            workflow=self.workflow,
            notifier=self.notifier,
            clock=self.clock,
        )

    def _record(self, name, result, advance=0.0):
        def side_effect(*args):
            self.calls.append((name,) + args)
            self.clock.now += advance
            if isinstance(result, BaseException):
                raise result
            return result

        return side_effect

    def names(self):
        return [call[0] for call in self.calls]

    def posted(self):
        return [call[3] for call in self.calls if call[0] == "post"]


@pytest.fixture
def harness():
    return Harness()


class TestFormatDuration:

    @pytest.mark.parametrize(
        "seconds, expected",
        [
            (0.0, "0ms"),
            (0.85, "850ms"),
            (4.25, "4.25s"),
            (59.5, "59.50s"),
            (123.5, "2m3.5s"),
            (3723.5, "1h2m3.5s"),
            (0.9996, "1.00s"),
            (59.996, "1m0.0s"),
            (119.96, "2m0.0s"),
            (3599.96, "1h0m0.0s"),
        ],
    )
    def test_format(self, seconds, expected):
        assert format_duration(seconds) == expected

    @given(seconds=st.floats(min_value=0, max_value=100_000, allow_nan=False))
    def test_no_unit_shows_a_full_carry(self, seconds):
        text = format_duration(seconds)

        if text.endswith("ms"):
            assert int(text[:-2]) < 1000
            return
        match = re.fullmatch(r"(?:(\d+)h)?(?:(\d+)m)?([\d.]+)s", text)
        assert match is not None
        hours, minutes, secs = match.groups()
        assert float(secs) < 60
        if minutes is not None:
            assert int(minutes) < 60
        if hours is not None:
            assert minutes is not None


class TestCommentFlow:

    def test_revendor_request_full_sequence(self, harness, repo, comment_payload):
        run_async(harness.bot.handle("issue_comment", "d-1", comment_payload()))

        assert harness.names() == [
            "delete",
            "post",
            "get_pull_request",
            "detect",
            "revendor",
            "post",
        ]
        assert harness.calls[0] == ("delete", repo, 9001)
        assert harness.calls[2] == ("get_pull_request", "acme", "widgets", 42)
        assert harness.calls[3] == ("detect", repo, "bump-deps")
        assert harness.calls[4] == ("revendor", repo, "bump-deps")
        assert harness.posted() == [
            IN_PROGRESS_MESSAGE,
            ":robot: RevendorBot done :hourglass: 4.25s",
        ]

    def test_no_change_needed_posts_once_and_stops(self, repo, comment_payload):
        harness = Harness(requires_revendor=False)

        run_async(harness.bot.handle("issue_comment", "d-2", comment_payload()))

        assert harness.names() == ["delete", "post", "get_pull_request", "detect", "post"]
        assert harness.posted() == [IN_PROGRESS_MESSAGE, NO_CHANGE_MESSAGE]
        harness.workflow.run.assert_not_awaited()

    def test_revendor_failure_is_reported_and_raised(self, repo, comment_payload):
        harness = Harness(
            outcome=RevendorOutcome(
                status=RevendorStatus.FAILED,
                reason="git push failed: git push: exited with code 1",
            )
        )

        with pytest.raises(RevendorError, match="git push failed"):
            run_async(harness.bot.handle("issue_comment", "d-3", comment_payload()))

        failure = harness.posted()[-1]
        assert "RevendorBot got an error" in failure
        assert "git push failed: git push: exited with code 1" in failure
        assert "Took 4.25s" in failure
        assert not any("RevendorBot done" in body for body in harness.posted())

    def test_pull_request_lookup_failure_is_reported(self, harness, comment_payload):
        harness.github_client.get_pull_request.side_effect = GitHubAPIError(
            "got status 404 for GET /repos/acme/widgets/pulls/42 (Not Found)",
            status_code=404,
        )

        with pytest.raises(GitHubAPIError):
            run_async(harness.bot.handle("issue_comment", "d-4", comment_payload()))

        assert "got status 404" in harness.posted()[-1]
        harness.detector.requires_revendor.assert_not_awaited()

    def test_delete_failure_is_reported_and_raised(self, harness, comment_payload):
        harness.notifier.delete.side_effect = NotifyError("failed to delete comment 9001")

        with pytest.raises(NotifyError, match="delete"):
            run_async(harness.bot.handle("issue_comment", "d-5", comment_payload()))

        assert harness.names() == ["post"]
        assert "failed to delete comment 9001" in harness.posted()[0]
        harness.github_client.get_pull_request.assert_not_awaited()

    def test_failure_comment_error_is_only_logged(self, harness, comment_payload):
        harness.workflow.run.side_effect = None
        harness.workflow.run.return_value = RevendorOutcome(
            status=RevendorStatus.FAILED, reason="go mod tidy failed"
        )

        async def post(repo, number, body):
            if "got an error" in body:
                raise NotifyError("failed to create comment")

        harness.notifier.post.side_effect = post

        with pytest.raises(RevendorError, match="go mod tidy failed"):
            run_async(harness.bot.handle("issue_comment", "d-6", comment_payload()))

    def test_non_request_comment_is_ignored(self, harness, comment_payload):
        run_async(
            harness.bot.handle("issue_comment", "d-7", comment_payload(body="LGTM"))
        )

        assert harness.calls == []


class TestPushFlow:

    def test_push_with_manifest_change_revendors_without_comments(
        self, harness, repo, push_payload
    ):
        run_async(harness.bot.handle("push", "d-8", push_payload(ref="refs/heads/main")))

        assert harness.names() == ["detect", "revendor"]
        assert harness.calls[0] == ("detect", repo, "refs/heads/main")
        assert harness.calls[1] == ("revendor", repo, "refs/heads/main")

    def test_push_with_nothing_to_vendor_posts_no_comment(self, repo, push_payload):
        harness = Harness(outcome=RevendorOutcome(status=RevendorStatus.NO_CHANGE_NEEDED))

        run_async(harness.bot.handle("push", "d-13", push_payload(ref="refs/heads/main")))

        assert harness.names() == ["detect", "revendor"]
        assert harness.calls[1] == ("revendor", repo, "refs/heads/main")
        harness.notifier.post.assert_not_awaited()
        harness.notifier.delete.assert_not_awaited()
        harness.github_client.get_pull_request.assert_not_awaited()

    def test_push_without_manifest_change_does_nothing(self, push_payload):
        harness = Harness(requires_revendor=False)

        run_async(harness.bot.handle("push", "d-9", push_payload()))

        assert harness.names() == ["detect"]

    def test_push_failure_raises_without_comments(self, push_payload):
        cause = RuntimeError("underlying")
        harness = Harness(
            outcome=RevendorOutcome(
                status=RevendorStatus.FAILED, reason="revendor timed out after 15s", error=cause
            )
        )

        with pytest.raises(RevendorError, match="timed out") as excinfo:
            run_async(harness.bot.handle("push", "d-10", push_payload()))

        assert excinfo.value.__cause__ is cause
        harness.notifier.post.assert_not_awaited()
        harness.notifier.delete.assert_not_awaited()


class TestOtherDeliveries:

    def test_unsupported_event_does_nothing(self, harness):
        run_async(harness.bot.handle("ping", "d-11", b'{"zen": "Keep it simple."}'))

        assert harness.calls == []

    def test_malformed_payload_raises(self, harness):
        with pytest.raises(WebhookParseError):
            run_async(harness.bot.handle("push", "d-12", b"not json"))

        assert harness.calls == []


class TestBuildBot:

    def test_wires_settings_into_components(self, tmp_path):
        settings = RevendorSettings(
            github_token="ghp_test",
            revendor_timeout_seconds=30,
            trigger_command="/vendor",
            workspace_base_path=str(tmp_path),
            go_path="/usr/local/go/bin/go",
            sign_commits=False,
            _env_file=None,
        )
        clock = FakeClock(now=7.0)

        bot = build_bot(settings, github_client=MagicMock(), clock=clock)

        assert bot.trigger == "/vendor"
        assert bot.started_at == 7.0
        assert isinstance(bot.workflow, RevendorWorkflow)
        assert bot.workflow.timeout_seconds == 30
        assert bot.workflow.go_path == "/usr/local/go/bin/go"
        assert bot.workflow.sign_commits is False
        assert bot.workflow.workspaces.base_path == tmp_path

    def test_elapsed_measured_from_construction(self, harness):
        harness.clock.now += 2.5
        assert harness.bot.elapsed() == "2.50s"
