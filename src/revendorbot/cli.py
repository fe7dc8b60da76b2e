"""Command-line entry point for RevendorBot.

Processes one webhook delivery handed over by a webhook responder: the
event type and delivery ID are given as arguments and the raw payload is
read from standard input.

    revendorbot push 72d3162e-cc78-11e3-81ab-4c9367dc0958 < payload.json
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional, Sequence

from pydantic import ValidationError

from revendorbot.config import RevendorSettings, configure_logging, get_settings
from revendorbot.github.client import GitHubClient
from revendorbot.orchestrator import build_bot

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="revendorbot",
        description="Revendor Go module dependencies in response to a GitHub webhook delivery read from stdin.",
    )
    parser.add_argument("event_type", help="value of the X-GitHub-Event header")
    parser.add_argument("delivery_id", help="value of the X-GitHub-Delivery header")
    return parser


async def run(
    settings: RevendorSettings, event_type: str, delivery_id: str, payload: bytes
) -> None:
    """Handle one delivery with a bot wired from ``settings``."""
    async with GitHubClient(
        token=settings.github_token,
        base_url=settings.github_base_url,
        timeout=settings.github_timeout_seconds,
    ) as github_client:
        bot = build_bot(settings, github_client)
        await bot.handle(event_type, delivery_id, payload)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = get_settings()
    except ValidationError as exc:
        configure_logging()
        logger.error("Invalid configuration: %s", exc)
        return 1

    configure_logging(settings.log_level)
    payload = sys.stdin.buffer.read()

    try:
        asyncio.run(run(settings, args.event_type, args.delivery_id, payload))
    except Exception as exc:
        logger.error(
            "Failed to handle delivery: %s",
            exc,
            extra={"delivery_id": args.delivery_id},
        )
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
