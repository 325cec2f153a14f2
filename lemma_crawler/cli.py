"""
Command-line interface for the lemma crawler.
"""

import argparse
import logging
import time
from pathlib import Path

import urllib3

from lemma_crawler.analysis.text import PageAnalyzer
from lemma_crawler.config import (
    DEFAULT_MAX_DEPTH, DEFAULT_MAX_TIME, DEFAULT_OUTPUT, DEFAULT_START_URL,
    MAX_WORKERS,
)
from lemma_crawler.core.scheduler import Scheduler
from lemma_crawler.extraction.fetcher import PageFetcher
from lemma_crawler.session import build_session
from lemma_crawler.utils.log import setup_logging, log
from lemma_crawler.utils.url import normalise_url


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {number}")
    return number


def _non_negative_float(value: str) -> float:
    number = float(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {number}")
    return number


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {number}")
    return number


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Crawl pages breadth-first from a seed URL within a depth "
                    "and time budget, writing a lemma frequency CSV per page.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python -m lemma_crawler\n"
            "  python -m lemma_crawler https://example.com --depth 2\n"
            "  python -m lemma_crawler https://example.com --time 30 --workers 8\n"
            "  python -m lemma_crawler https://example.com --log-file crawl.log\n"
        ),
    )
    parser.add_argument(
        "url", nargs="?", default=DEFAULT_START_URL,
        help=f"Seed URL to crawl from (default: {DEFAULT_START_URL})",
    )
    parser.add_argument(
        "--depth", type=_non_negative_int, default=DEFAULT_MAX_DEPTH,
        help=f"Maximum link depth from the seed (default: {DEFAULT_MAX_DEPTH})",
    )
    parser.add_argument(
        "--time", dest="max_time", type=_non_negative_float,
        default=DEFAULT_MAX_TIME, metavar="SECONDS",
        help=f"Maximum running time in seconds (default: {DEFAULT_MAX_TIME:g})",
    )
    parser.add_argument(
        "--workers", type=_positive_int, default=MAX_WORKERS, metavar="N",
        help=f"Number of worker threads (default: {MAX_WORKERS})",
    )
    parser.add_argument(
        "--output", default=DEFAULT_OUTPUT,
        help=f"Directory for frequency CSV files (default: {DEFAULT_OUTPUT})",
    )
    parser.add_argument(
        "--no-verify-ssl", dest="verify_ssl", action="store_false", default=True,
        help="Disable TLS certificate verification",
    )
    parser.add_argument(
        "--debug", action="store_true",
        help="Enable verbose debug logging",
    )
    parser.add_argument(
        "--log-file",
        help="Write detailed logs to this file (always at DEBUG level)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    setup_logging(debug=args.debug, log_file=args.log_file)

    if args.debug:
        logging.getLogger("urllib3").setLevel(logging.DEBUG)

    if not args.verify_ssl:
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
        log.warning("TLS certificate verification is DISABLED (--no-verify-ssl)")

    target_url = args.url.strip()
    if not target_url.startswith(("http://", "https://")):
        target_url = "https://" + target_url
    if normalise_url(target_url) is None:
        log.error("Not a valid http(s) URL: %s", args.url)
        return 2

    output_dir = Path(args.output)
    output_dir.mkdir(parents=True, exist_ok=True)

    fetcher = PageFetcher(
        build_session(verify_ssl=args.verify_ssl, pool_size=args.workers)
    )
    scheduler = Scheduler(
        fetcher,
        PageAnalyzer(output_dir),
        max_depth=args.depth,
        max_time=args.max_time,
        workers=args.workers,
    )

    t0 = time.monotonic()
    try:
        scheduler.start(target_url)
        scheduler.wait()
    except KeyboardInterrupt:
        log.warning("Interrupted – stopping crawl")
        scheduler.stop()
    finally:
        fetcher.close()

    log.info("Pages admitted   : %d", len(scheduler.visited))
    log.info("Files saved in   : %s", output_dir.resolve())
    log.info("Total elapsed time: %.1f s", time.monotonic() - t0)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
