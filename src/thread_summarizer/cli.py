"""Command-line interface for the thread summarizer."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import load_config
from .errors import ConfigError
from .exporters import EXPORTERS
from .service import SummaryService

LOGGER = logging.getLogger("thread_summarizer.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="AI summaries for Foru.ms threads")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    summarize_parser = subparsers.add_parser("summarize", help="Summarize one or more threads")
    summarize_parser.add_argument("thread_ids", nargs="+", metavar="THREAD_ID", help="Thread IDs to summarize")
    summarize_parser.add_argument("--config", type=Path, default=None, help="YAML config file")
    summarize_parser.add_argument("--format", choices=sorted(EXPORTERS), default="json", help="Output format")
    summarize_parser.add_argument("--output", type=Path, default=None, help="Write results here instead of stdout; the format extension is added when missing")
    summarize_parser.add_argument("--stats", action="store_true", help="Log cache and timing stats at the end")

    return parser


def summarize(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    exporter = EXPORTERS[args.format]()

    with SummaryService.from_config(config) as service:
        results = [service.summarize(thread_id) for thread_id in args.thread_ids]

        if args.output:
            output = args.output
            if not output.suffix:
                output = output.with_suffix(f".{exporter.extension}")
            with open(output, "w", encoding="utf-8") as f:
                count = exporter.export(results, f)
            LOGGER.info("Wrote %d result(s) to %s", count, output)
        else:
            exporter.export(results, sys.stdout)

        if args.stats:
            cache_stats = service.cache.stats()
            LOGGER.info(
                "Cache: %d hits / %d requests (%.1f%%)",
                cache_stats.hits,
                cache_stats.total_requests,
                cache_stats.hit_rate * 100,
            )
            LOGGER.info("%s", service.tracker.stats().summary())

    return 0 if all(result.success for result in results) else 1


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )

    if args.command == "summarize":
        try:
            return summarize(args)
        except ConfigError as exc:
            LOGGER.error("%s", exc)
            return 2
    parser.error(f"Unknown command {args.command}")
    return 2


if __name__ == "__main__":
    sys.exit(main())
