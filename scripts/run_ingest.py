#!/usr/bin/env python3
import argparse
import asyncio
import logging
from datetime import date
from pathlib import Path

from filmfetch.core.container import AppContainer
from filmfetch.core.errors import FetcherError
from filmfetch.core.logging import configure_logging
from filmfetch.core.settings import get_settings
from filmfetch.models.ingest import YearRange
from filmfetch.services.sinks import JsonLinesSink

logger = logging.getLogger("filmfetch.run_ingest")


def _year_range(args: argparse.Namespace) -> YearRange | None:
    if args.start_year is None and args.end_year is None:
        return None
    current_year = date.today().year
    span = get_settings().discovery_year_span
    return YearRange(
        start_year=args.start_year if args.start_year is not None else current_year - span,
        end_year=args.end_year if args.end_year is not None else current_year,
    )


async def _run(args: argparse.Namespace) -> int:
    settings = get_settings()
    configure_logging(args.log_level or settings.log_level)

    try:
        year_range = _year_range(args)
    except ValueError as exc:
        logger.error("Invalid year range", extra={"error": str(exc)})
        return 2

    try:
        container = AppContainer(settings, sink=JsonLinesSink(Path(args.output_dir)))
    except FetcherError as exc:
        logger.error("Could not start ingestion", extra={"error": exc.to_dict()})
        return 2

    try:
        report = await container.ingestion_service.run(year_range)
    except FetcherError as exc:
        logger.error("Ingestion aborted", extra={"error": exc.to_dict()})
        return 1
    finally:
        await container.close()

    print(report.model_dump_json(indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Discover and enrich movies from TMDB, then write them as JSON lines.")
    parser.add_argument("--start-year", type=int, default=None, help="First release year (default: span from settings).")
    parser.add_argument("--end-year", type=int, default=None, help="Last release year (default: current year).")
    parser.add_argument("--output-dir", default="./data/ingest", help="Directory for genres.jsonl and movies.jsonl.")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL.")
    return parser


def main() -> int:
    parser = build_parser()
    args = parser.parse_args()
    return asyncio.run(_run(args))


if __name__ == "__main__":
    raise SystemExit(main())
