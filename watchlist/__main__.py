"""Module executed when running ``python -m watchlist``."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from .aggregates import priority_stars
from .client import create_client
from .config import settings

logger = logging.getLogger("watchlist")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="watchlist", description="Watchlist catalog maintenance commands"
    )
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("refresh-all", help="Check every series for new seasons")
    commands.add_parser("notifications", help="List active new-season notifications")
    catalog = commands.add_parser("catalog", help="Print the catalog")
    catalog.add_argument("--watch-status", choices=["WATCHED", "UNWATCHED"])
    catalog.add_argument("--added-by")
    return parser


async def run(args: argparse.Namespace) -> int:
    async with create_client(settings, load=False) as client:
        if args.command == "refresh-all":
            result = await client.refresh.refresh_all()
            if result is None:
                logger.error("Bulk refresh did not complete")
            for notice in client.state.notices:
                print(notice.message)
            return 0 if result is not None else 1

        if args.command == "notifications":
            for notification in await client.notifications.load():
                print(f"{notification.series_title}: {notification.message}")
            return 0

        ok = await client.catalog.set_filters(
            watch_status=args.watch_status, added_by=args.added_by
        )
        if not ok:
            logger.error("Catalog listing failed")
            print(client.state.load_error, file=sys.stderr)
            return 1
        for view in client.view().items:
            progress = ""
            if view.rollup is not None:
                progress = f" [{view.rollup.watched_count}/{view.rollup.total}]"
            print(
                f"{view.title} ({view.content_type}) {view.watch_status}"
                f"{progress} {priority_stars(view.priority)}".rstrip()
            )
        return 0


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, configure logging and run the selected command."""

    args = build_parser().parse_args(argv)
    logging.basicConfig(level=settings.logging_level)
    return asyncio.run(run(args))


if __name__ == "__main__":  # pragma: no cover - runtime entrypoint
    sys.exit(main())
