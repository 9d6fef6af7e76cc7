#!/usr/bin/env python3
"""
Command-line helper around the aggregation core.

    python scripts/run_schedule.py authorize > google-credential.json
    python scripts/run_schedule.py events --credential google-credential.json --days 3

`authorize` runs the loopback OAuth flow and prints the credential JSON.
`events` loads that file, prints the aggregated window and rewrites the
file whenever the access token is refreshed.
"""
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Adjust path so imports resolve when running from project root
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from schedule_hub.core.config import settings
from schedule_hub.core.logging import configure_logging
from schedule_hub.environments.base import OAuthCredential
from schedule_hub.environments.google.auth import GoogleAuthFlow
from schedule_hub.services.factory import build_calendar_manager
from schedule_hub.utils.dates import get_date_range

logger = logging.getLogger("schedule_hub.scripts.run_schedule")


async def authorize(args: argparse.Namespace) -> int:
    credential = await GoogleAuthFlow().run()
    print(credential.model_dump_json(indent=2))
    return 0


async def show_events(args: argparse.Namespace) -> int:
    credential = None
    path = Path(args.credential) if args.credential else None
    if path and path.exists():
        credential = OAuthCredential.model_validate_json(path.read_text(encoding="utf-8"))

    def save_credential(refreshed: OAuthCredential) -> None:
        if path:
            path.write_text(refreshed.model_dump_json(indent=2), encoding="utf-8")
            logger.info(f"Saved refreshed credential to {path}")

    manager = build_calendar_manager(credential=credential, on_token_refresh=save_credential)
    start, end = get_date_range(args.days)
    result = await manager.fetch_events_report(start, end)

    for event in result.events:
        when = event.start.date().isoformat() if event.is_all_day else event.start.isoformat()
        print(json.dumps({
            "start": when,
            "title": event.title,
            "calendar": event.calendar_name,
            "source": event.source.value,
        }))

    for failure in result.failures:
        logger.warning(f"Source failed: {failure}")

    return 1 if result.failures and not result.events else 0


def main() -> int:
    parser = argparse.ArgumentParser(description=settings.APP_NAME)
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("authorize", help="Connect a Google account")

    events_parser = subparsers.add_parser("events", help="Print the aggregated schedule")
    events_parser.add_argument("--credential", help="Path of the Google credential JSON")
    events_parser.add_argument("--days", type=int, default=settings.DAYS_TO_SHOW)

    args = parser.parse_args()
    configure_logging()

    handler = authorize if args.command == "authorize" else show_events
    return asyncio.run(handler(args))


if __name__ == '__main__':
    sys.exit(main())
