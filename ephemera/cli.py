#!/usr/bin/env python3
"""
Command-line interface for ephemera administration.

Usage:
    ephemera-cli shorten <url> [--alias ALIAS] [--expires-in DAYS]
    ephemera-cli stats <short_code>
    ephemera-cli list
    ephemera-cli sweep
    ephemera-cli health
"""

import argparse
import asyncio
import json
import sys
from typing import List, Optional

from config import Config

from .bootstrap import Components, build_components
from .common.logging_config import setup_logging
from .errors import AppError


def _print(payload: dict, error: bool = False) -> None:
    print(json.dumps(payload, indent=2, default=str), file=sys.stderr if error else sys.stdout)


class EphemeraCLI:
    """Command-line interface for ephemera."""

    def __init__(self, config: Config, verbose: bool = False):
        """Initialize CLI."""
        self.config = config
        self.logger = setup_logging(level="DEBUG" if verbose else "WARNING", stream=sys.stderr)
        self.components: Optional[Components] = None

    async def initialize(self):
        """Initialize database and services."""
        self.components = await build_components(
            self.config, logger=self.logger, start_background=False
        )

    async def cleanup(self):
        """Cleanup resources."""
        if self.components:
            await self.components.close()

    async def shorten(self, url: str, alias: Optional[str] = None, expires_in: Optional[int] = None) -> int:
        """Shorten a URL."""
        service = self.components.url_service
        record = await service.shorten(url, custom_alias=alias, expires_in_days=expires_in)
        _print({
            "success": True,
            "short_code": record.short_code,
            "short_url": service.short_url(record.short_code),
            "original_url": record.original_url,
            "created_at": record.created_at.isoformat() if record.created_at else None,
            "expires_at": record.expires_at.isoformat() if record.expires_at else None,
        })
        return 0

    async def stats(self, short_code: str) -> int:
        """Get statistics for a short code."""
        stats = await self.components.url_service.get_stats(short_code)
        _print({
            "success": True,
            **stats.url.to_dict(),
            "recent_clicks": [click.to_dict() for click in stats.recent_clicks],
        })
        return 0

    async def list_content(self) -> int:
        """List all non-deleted content."""
        contents = await self.components.content_service.list_all()
        items = []
        for content in contents:
            item = content.to_dict()
            # Note bodies can be up to 1 MiB
            item.pop("body", None)
            items.append(item)
        _print({"success": True, "total": len(items), "contents": items})
        return 0

    async def sweep(self) -> int:
        """Purge expired content now."""
        result = await self.components.sweeper.run_once()
        _print({"success": True, **result.to_dict()})
        return 0

    async def health(self) -> int:
        """Check database health."""
        healthy = await self.components.db.health_check()
        _print({"success": healthy, "database": "healthy" if healthy else "unhealthy"})
        return 0 if healthy else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ephemera-cli",
        description="ephemera CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Shorten a URL
  %(prog)s shorten https://example.com/long/url

  # Shorten with a custom alias that expires in 30 days
  %(prog)s shorten https://example.com/long/url --alias mylink --expires-in 30

  # Get statistics
  %(prog)s stats mylink

  # Purge expired content
  %(prog)s sweep
        """
    )

    parser.add_argument("--database-url", default=None, help="PostgreSQL URL (default: DATABASE_URL)")
    parser.add_argument("--db-path", default=None, help="SQLite file (default: DB_PATH)")
    parser.add_argument("--upload-dir", default=None, help="Upload directory (default: UPLOAD_DIR)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    shorten_parser = subparsers.add_parser("shorten", help="Shorten a URL")
    shorten_parser.add_argument("url", help="URL to shorten")
    shorten_parser.add_argument("--alias", help="Custom short code")
    shorten_parser.add_argument("--expires-in", type=int, help="Days until the link expires")

    stats_parser = subparsers.add_parser("stats", help="Get URL statistics")
    stats_parser.add_argument("short_code", help="Short code to get stats for")

    subparsers.add_parser("list", help="List all content")
    subparsers.add_parser("sweep", help="Purge expired content now")
    subparsers.add_parser("health", help="Check database health")

    return parser


async def run(args: argparse.Namespace) -> int:
    overrides = {
        key: value
        for key, value in (
            ("database_url", args.database_url),
            ("db_path", args.db_path),
            ("upload_dir", args.upload_dir),
        )
        if value is not None
    }
    cli = EphemeraCLI(Config(**overrides), verbose=args.verbose)

    try:
        await cli.initialize()

        if args.command == "shorten":
            return await cli.shorten(args.url, args.alias, args.expires_in)
        elif args.command == "stats":
            return await cli.stats(args.short_code)
        elif args.command == "list":
            return await cli.list_content()
        elif args.command == "sweep":
            return await cli.sweep()
        elif args.command == "health":
            return await cli.health()
        return 1

    except AppError as e:
        _print({"success": False, "error": e.message, "code": e.code}, error=True)
        return 1
    finally:
        await cli.cleanup()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
