"""FastAPI application entry point for RevendorBot.

Receives GitHub webhook deliveries over HTTP and hands each accepted one
to a freshly wired RevendorBot running in a background task, so GitHub
gets its acknowledgment before the revendor starts.

Signature validation is expected to happen in front of this service.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request

from revendorbot.config import RevendorSettings, configure_logging, get_settings
from revendorbot.github.client import GitHubClient
from revendorbot.orchestrator import build_bot
from revendorbot.webhook.classifier import IgnoreAction, classify
from revendorbot.webhook.handler import WebhookParseError

logger = logging.getLogger(__name__)

# Global instances, initialized during lifespan startup
settings: Optional[RevendorSettings] = None
github_client: Optional[GitHubClient] = None
_background_tasks: set[asyncio.Task] = set()


def _redact_secret(value: str, visible_chars: int = 4) -> str:
    """Redact a secret value, showing only the first few characters."""
    if len(value) <= visible_chars:
        return "*" * len(value)
    return value[:visible_chars] + "*" * (len(value) - visible_chars)


def _log_configuration(cfg: RevendorSettings) -> None:
    """Log configuration values with secrets redacted."""
    logger.info("RevendorBot configuration:")
    logger.info(f"  GitHub Base URL: {cfg.github_base_url}")
    logger.info(f"  GitHub Token: {_redact_secret(cfg.github_token)}")
    logger.info(f"  Revendor Timeout Seconds: {cfg.revendor_timeout_seconds}")
    logger.info(f"  Trigger Command: {cfg.trigger_command}")
    logger.info(f"  Workspace Base Path: {cfg.workspace_base_path or '(system temp)'}")
    logger.info(f"  Git Path: {cfg.git_path}")
    logger.info(f"  Go Path: {cfg.go_path}")
    logger.info(f"  Sign Commits: {cfg.sign_commits}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load settings and open the GitHub client; close it on shutdown."""
    global settings, github_client

    settings = get_settings()
    configure_logging(settings.log_level)
    _log_configuration(settings)

    github_client = GitHubClient(
        token=settings.github_token,
        base_url=settings.github_base_url,
        timeout=settings.github_timeout_seconds,
    )
    logger.info("RevendorBot started")

    yield

    logger.info("RevendorBot shutting down...")
    if _background_tasks:
        await asyncio.gather(*_background_tasks, return_exceptions=True)
    if github_client is not None:
        await github_client.close()
    logger.info("RevendorBot shutdown complete")


app = FastAPI(
    title="RevendorBot",
    description="Keeps vendored Go module dependencies in sync on GitHub",
    version="1.0.0",
    lifespan=lifespan,
)


@app.get("/health")
async def health():
    """Liveness probe endpoint."""
    return {"status": "healthy"}


async def _handle_delivery(event_type: str, delivery_id: str, payload: bytes) -> None:
    bot = build_bot(settings, github_client)
    try:
        await bot.handle(event_type, delivery_id, payload)
    except Exception:
        logger.exception(
            "Failed to handle delivery",
            extra={"delivery_id": delivery_id, "event_type": event_type},
        )


@app.post("/webhooks/github")
async def github_webhook(request: Request):
    """GitHub webhook receiver endpoint.

    Returns:
        dict: "accepted" when a background revendor was started, "ignored"
        when the delivery needs no action.

    Raises:
        HTTPException: 400 when the payload cannot be parsed, 503 before
            startup has completed.
    """
    if settings is None or github_client is None:
        raise HTTPException(status_code=503, detail="RevendorBot not initialized")

    event_type = request.headers.get("X-GitHub-Event", "")
    delivery_id = request.headers.get("X-GitHub-Delivery", "")
    payload = await request.body()

    try:
        action = classify(event_type, payload, trigger=settings.trigger_command)
    except WebhookParseError as exc:
        logger.warning(
            "Rejected delivery: %s", exc, extra={"delivery_id": delivery_id}
        )
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    if isinstance(action, IgnoreAction):
        return {"status": "ignored", "reason": action.reason}

    task = asyncio.create_task(_handle_delivery(event_type, delivery_id, payload))
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)

    return {"status": "accepted", "delivery_id": delivery_id}


if __name__ == "__main__":
    import uvicorn

    dev_settings = get_settings()
    uvicorn.run(
        "revendorbot.main:app",
        host=dev_settings.host,
        port=dev_settings.port,
    )
