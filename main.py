import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

from rich.console import Console

from newsfeed import FetchError, PageFetcher
from newsfeed.page_fetcher import DEFAULT_FILENAME
from settings import get_setting

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)
console = Console()


def setup_logging(log_level: str = "INFO", log_dir: Optional[str] = None) -> None:
    """Log to the console, to combined.log and (errors only) to error.log."""
    log_dir = log_dir or get_setting("log_dir", "logs")
    os.makedirs(log_dir, exist_ok=True)
    level = getattr(logging, log_level.upper(), logging.INFO)

    error_handler = logging.FileHandler(os.path.join(log_dir, "error.log"), encoding="utf-8")
    error_handler.setLevel(logging.ERROR)
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(os.path.join(log_dir, "combined.log"), encoding="utf-8"),
            error_handler,
        ],
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fetch the mid.ru news listing into a JSON file")
    parser.add_argument("--page", type=int, default=1, help="1-based listing page")
    parser.add_argument("--output", default=DEFAULT_FILENAME, help="output file name")
    parser.add_argument("--output-dir", default=None, help="directory for the output file")
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (debug, info, warning, error, critical)",
    )
    parser.add_argument("--log-dir", default=None, help="directory for log files")
    parser.add_argument(
        "--strict",
        action="store_true",
        default=bool(get_setting("strict_empty", False)),
        help="fail instead of saving an empty result",
    )
    return parser


async def run(args: argparse.Namespace) -> int:
    try:
        async with PageFetcher(output_dir=args.output_dir) as fetcher:
            records = await fetcher.fetch_listing_page(args.page)
            if not records and args.strict:
                raise FetchError(f"No news items found on page {args.page}")
            path = fetcher.persist(records, args.output)
    except Exception as exc:
        logger.exception("An error occurred: %s", exc)
        return 1

    console.print(f"[green]Total news items fetched: {len(records)}[/green]")
    console.print(f"[cyan]Saved to {path}[/cyan]")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level, args.log_dir)
    return asyncio.run(run(args))


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
