"""Command-line export entrypoint.

Usage:
  kindly-stats labels --from 2021-02-01 --to 2021-02-03 --source web --source facebook
  python -m kindly_stats sessions --from 2021-02-01 --to 2021-03-01 -o sessions.csv

Credentials come from BOT_ID and KINDLY_API_KEY (a local .env is loaded
first). Rows are written as CSV to stdout or --output. --plan prints the
sub-queries that would run without touching the network.

Exit status: 0 on success, 2 when the failure is the caller's (bad filter,
rejected API key, 4xx from upstream), 1 otherwise.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import date, timedelta

import httpx
from dotenv import load_dotenv

from kindly_stats.aggregator import Aggregator, plan_windows
from kindly_stats.client import StatisticsClient
from kindly_stats.config import ClientConfig
from kindly_stats.errors import StatisticsError, is_client_error
from kindly_stats.export import CSVRowWriter
from kindly_stats.metrics import METRIC_NAMES
from kindly_stats.models.filter import Filter, Granularity

logger = logging.getLogger(__name__)


def parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got '{value}'") from e


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    today = date.today()
    parser = argparse.ArgumentParser(
        prog="kindly-stats",
        description="Export Kindly bot statistics as CSV.",
    )
    parser.add_argument("metric", choices=METRIC_NAMES, help="Metric to export.")
    parser.add_argument(
        "--from",
        dest="from_date",
        type=parse_date,
        default=today - timedelta(days=1),
        help="First day (inclusive). Defaults to yesterday.",
    )
    parser.add_argument(
        "--to",
        dest="to_date",
        type=parse_date,
        default=today,
        help="Last day (exclusive). Defaults to today.",
    )
    parser.add_argument(
        "--granularity",
        choices=[g.value for g in Granularity if g.value],
        default=Granularity.DAY.value,
    )
    parser.add_argument("--limit", type=int, default=10, help="Row limit per sub-query.")
    parser.add_argument(
        "--source",
        dest="sources",
        action="append",
        default=[],
        help="Traffic source; repeatable. Defaults to web and facebook.",
    )
    parser.add_argument(
        "--language",
        dest="language_codes",
        action="append",
        default=[],
        help="Language code; repeatable.",
    )
    parser.add_argument("--concurrency", type=int, default=1, help="Parallel sub-queries.")
    parser.add_argument("-o", "--output", help="Write CSV here instead of stdout.")
    parser.add_argument(
        "--plan", action="store_true", help="Print the sub-query plan and exit."
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def build_filter(args: argparse.Namespace) -> Filter:
    return Filter(
        from_date=args.from_date,
        to_date=args.to_date,
        granularity=Granularity(args.granularity),
        limit=args.limit,
        sources=tuple(args.sources),
        language_codes=tuple(args.language_codes),
    )


def print_plan(args: argparse.Namespace) -> None:
    """Print the sub-query windows. Needs no credentials."""
    for window in plan_windows(build_filter(args), args.metric):
        print(f"{window.start.isoformat()}\t{window.end.isoformat()}\t{window.source}")


async def run(args: argparse.Namespace, config: ClientConfig) -> int:
    """Build the client stack, export one metric, return the row count."""
    f = build_filter(args)
    async with StatisticsClient(config) as client:
        aggregator = Aggregator(client, max_concurrency=args.concurrency)

        if args.output:
            with open(args.output, "w", newline="", encoding="utf-8") as stream:
                return await aggregator.export(f, args.metric, CSVRowWriter(stream))
        return await aggregator.export(f, args.metric, CSVRowWriter(sys.stdout))


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint — parse flags, export, map failures to exit codes."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        stream=sys.stderr,
    )
    load_dotenv()

    try:
        if args.plan:
            print_plan(args)
            return
        config = ClientConfig.from_env()
        count = asyncio.run(run(args, config))
    except StatisticsError as e:
        logger.error(f"Export of '{args.metric}' failed: {e}")
        sys.exit(2 if is_client_error(e) else 1)
    except ValueError as e:
        # Missing environment or an invalid filter.
        logger.error(f"Export of '{args.metric}' failed: {e}")
        sys.exit(2)
    except httpx.HTTPError as e:
        logger.error(f"Export of '{args.metric}' failed: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(130)

    logger.info(f"Exported {count} '{args.metric}' rows")


if __name__ == "__main__":
    main()
