"""Follow a Huddle channel or conversation from the terminal by polling."""

from __future__ import annotations

import argparse
import logging
import sys
import time

import httpx

from app.client import FeedClient

logger = logging.getLogger(__name__)


def _format(message: dict) -> str:
    author = (message.get("user") or {}).get("name") or "Unknown"
    return f"[{message['id']}] {author}: {message['content']}"


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("base_url", help="API base URL, e.g. http://localhost:8000")
    parser.add_argument("--token", required=True, help="Bearer token used for authentication")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--channel", type=int, dest="channel_id", help="Channel id to follow")
    target.add_argument(
        "--conversation", type=int, dest="conversation_id", help="Conversation id to follow"
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=3.0,
        help="Delay between polls (seconds)",
    )
    parser.add_argument(
        "--page-size",
        type=int,
        default=50,
        help="Number of history messages to load on start",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log verbosity level",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv or sys.argv[1:])
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    headers = {"Authorization": f"Bearer {args.token}"}
    with httpx.Client(base_url=args.base_url, headers=headers, timeout=10.0) as http:
        feed = FeedClient(
            http,
            channel_id=args.channel_id,
            conversation_id=args.conversation_id,
            page_size=args.page_size,
        )
        try:
            for message in feed.load():
                print(_format(message))
            while True:
                time.sleep(args.interval)
                try:
                    fresh = feed.poll()
                except httpx.HTTPError as exc:
                    logger.warning("poll failed: %s", exc)
                    continue
                for message in fresh:
                    print(_format(message))
        except KeyboardInterrupt:  # pragma: no cover - manual interruption
            logger.info("stopped at message %s", feed.view.last_seen_id)
            return 130
        except httpx.HTTPStatusError as exc:
            logger.error("feed request rejected: %s", exc.response.text)
            return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
