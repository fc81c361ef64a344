"""CLI entry point for Editor Bridge.

Usage:
    python -m src.service.main scrape --url https://example.com/p/1 --mode auto
    python -m src.service.main login 135
    python -m src.service.main logout 96
    python -m src.service.main save 135 --title "标题" --content-file article.html
    python -m src.service.main check 135
    python -m src.service.main send-template --id 123 --creator 456
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from src.common.config import Settings

from . import handlers
from .bridge import build_bridge

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Extract articles from web pages and save them into editor platforms",
    )
    parser.add_argument("--config", help="Path to settings.yaml")
    sub = parser.add_subparsers(dest="command", required=True)

    scrape = sub.add_parser("scrape", help="Extract an article fragment from a URL")
    scrape.add_argument("--url", required=True)
    scrape.add_argument("--selector", help="CSS selector (default from settings)")
    scrape.add_argument("--mode", choices=["selector", "script-data", "auto"], default="auto")
    scrape.add_argument("--output", help="Write extracted HTML to this file")

    login = sub.add_parser("login", help="Log in and cache the session")
    login.add_argument("channel")

    logout = sub.add_parser("logout", help="Clear the cached session")
    logout.add_argument("channel")

    check = sub.add_parser("check", help="Check whether the cached session is still valid")
    check.add_argument("channel")

    save = sub.add_parser("save", help="Save an article into a channel")
    save.add_argument("channel")
    save.add_argument("--title", required=True)
    content = save.add_mutually_exclusive_group(required=True)
    content.add_argument("--content", help="Article HTML")
    content.add_argument("--content-file", help="File containing article HTML")
    save.add_argument("--target-account", help="Target account id (96weixin to_user)")

    template = sub.add_parser("send-template", help="Transfer a 135editor template to a user")
    template.add_argument("--id", required=True)
    template.add_argument("--creator", required=True)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = Settings.load(Path(args.config)) if args.config else None
    bridge = build_bridge(settings)

    try:
        if args.command == "scrape":
            status, body = handlers.scrape(
                bridge, {"url": args.url, "selector": args.selector, "mode": args.mode}
            )
            if status == 200 and args.output:
                Path(args.output).write_text(body["content"], encoding="utf-8")
                logger.info("Extracted content written to %s", args.output)
        elif args.command == "login":
            status, body = handlers.login(bridge, args.channel)
        elif args.command == "logout":
            status, body = handlers.logout(bridge, args.channel)
        elif args.command == "check":
            status, body = handlers.check_session(bridge, args.channel)
        elif args.command == "save":
            content = (
                Path(args.content_file).read_text(encoding="utf-8")
                if args.content_file
                else args.content
            )
            status, body = handlers.save(
                bridge,
                args.channel,
                {
                    "title": args.title,
                    "content": content,
                    "targetAccountId": args.target_account,
                },
            )
        else:
            status, body = handlers.send_template(
                bridge, {"id": args.id, "creator": args.creator}
            )
    finally:
        bridge.close()

    print(json.dumps(body, ensure_ascii=False, indent=2, default=str))
    return 0 if status < 400 else 1


if __name__ == "__main__":
    sys.exit(main())
