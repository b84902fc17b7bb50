#!/usr/bin/env python3
"""mcp-safe-fetch entry point.

Run:
  python -m safe_fetch                       # start server (stdio)
  python -m safe_fetch --test                # run lightweight self-tests then exit
  python -m safe_fetch --fetch URL           # sanitize one URL to stdout
  python -m safe_fetch --file PATH           # sanitize one file to stdout
"""

import argparse
import asyncio
import sys

from safe_fetch.config import load_config
from safe_fetch.errors import SafeError
from safe_fetch.fetcher import Fetcher
from safe_fetch.reader import read_text_file
from safe_fetch.sanitize import PipelineResult, sanitize_auto
from safe_fetch.sanitize.stats import STAT_LABELS
from safe_fetch.tools import sanitize_fetched


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(prog="safe_fetch", add_help=True)
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--test",
        action="store_true",
        help="Run built-in server self tests (tool & resource listing) then exit.",
    )
    group.add_argument("--fetch", metavar="URL", help="Fetch and sanitize a URL, print to stdout.")
    group.add_argument("--file", metavar="PATH", help="Read and sanitize a file, print to stdout.")
    return parser.parse_args(argv)


def _print_report(result: PipelineResult) -> None:
    counts = result.stats.as_dict()
    print("Sanitization complete:", file=sys.stderr)
    print(f"  Input:  {result.input_size} bytes", file=sys.stderr)
    print(f"  Output: {result.output_size} bytes", file=sys.stderr)
    for name, label in STAT_LABELS.items():
        if counts[name]:
            print(f"  {label}: {counts[name]}", file=sys.stderr)


async def _sanitize_url(url: str) -> PipelineResult:
    config = load_config()
    fetched = await Fetcher(limits=config.limits).fetch(url)
    return sanitize_fetched(fetched, config.sanitize)


def _sanitize_file(path: str) -> PipelineResult:
    config = load_config()
    raw = read_text_file(path, config.limits)
    return sanitize_auto(raw, path, config.sanitize)


def main() -> None:
    """CLI dispatcher for the MCP server."""
    args = parse_args(sys.argv[1:])
    try:
        if args.fetch or args.file:
            result = asyncio.run(_sanitize_url(args.fetch)) if args.fetch else _sanitize_file(args.file)
            _print_report(result)
            sys.stdout.write(result.content)
            return

        # Imported lazily: the server module configures logging and needs mcp.
        from safe_fetch.server import run_server, test_server

        if args.test:
            asyncio.run(test_server())
        else:
            asyncio.run(run_server())
    except SafeError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nServer stopped by user", file=sys.stderr)
    except Exception as exc:  # pylint: disable=broad-exception-caught
        print(f"Server error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
