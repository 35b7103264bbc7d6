"""
Command-line entry point.

Usage:
    gmaps-scraper --input queries.txt --results out.csv --depth 5 --email
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from gmaps_scraper.core.config import Config
from gmaps_scraper.core.logging import get_logger, setup_logging
from gmaps_scraper.crawler.paginator import ScrollSettings
from gmaps_scraper.jobs.place import PlaceOptions
from gmaps_scraper.jobs.search import SearchJob
from gmaps_scraper.runner.browser import BrowserPages, locale_for
from gmaps_scraper.runner.orchestrator import Orchestrator, RunStats
from gmaps_scraper.runner.run_context import RunContext
from gmaps_scraper.runner.writers import build_writer

logger = get_logger(__name__)


def read_queries_from_file(path: Path) -> List[str]:
    """One query per line; blank lines and ``#`` comments skipped, duplicates dropped."""
    out: List[str] = []
    seen = set()
    for line in path.read_text("utf-8").splitlines():
        s = line.strip()
        if not s or s.startswith("#") or s in seen:
            continue
        seen.add(s)
        out.append(s)
    return out


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="gmaps-scraper",
        description="Scrape business listings from map search results.",
    )
    ap.add_argument("--input", required=True, help="Path to a file with one search query per line")
    ap.add_argument("--results", default=None, help="Output file (default: stdout)")
    ap.add_argument("--json", action="store_true", default=None, help="Write JSON lines instead of CSV")
    ap.add_argument("-c", "--concurrency", type=int, default=None, help="Number of concurrent workers")
    ap.add_argument("--depth", type=int, default=None, help="Maximum scroll rounds per results feed")
    ap.add_argument("--lang", default=None, help="Language code passed as hl= (e.g. en, de)")
    ap.add_argument("--email", action="store_true", default=None, help="Visit websites to extract emails")
    ap.add_argument("--extra-reviews", action="store_true", default=None, help="Paginate the reviews tab")
    ap.add_argument("--reviews", type=int, default=None, help="Review limit (-1 unlimited, 0 disables)")
    ap.add_argument(
        "--exit-on-inactivity", type=float, default=None,
        help="Stop after this many seconds without job activity (0 disables)",
    )
    ap.add_argument("--geo", default=None, help="Search center as 'lat,lon'")
    ap.add_argument("--zoom", type=int, default=None, help="Map zoom level (0-21)")
    ap.add_argument("--headed", action="store_true", help="Show the browser window")
    ap.add_argument("--env", default=None, help="Path to .env file (default: configs/.env)")
    ap.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return ap


def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    """Copy explicitly given CLI flags over the environment settings."""
    overrides = {
        "results_file": args.results,
        "json_output": args.json,
        "concurrency": args.concurrency,
        "max_depth": args.depth,
        "lang_code": args.lang,
        "extract_email": args.email,
        "extra_reviews": args.extra_reviews,
        "reviews_limit": args.reviews,
        "exit_on_inactivity": args.exit_on_inactivity,
        "geo_coordinates": args.geo,
        "zoom": args.zoom,
    }
    for attr, value in overrides.items():
        if value is not None:
            setattr(config, attr, value)
    if args.headed:
        config.headless = False
    if args.verbose:
        config.log_level = "DEBUG"
    return config


def build_seed_jobs(queries: List[str], config: Config, run: RunContext) -> List[SearchJob]:
    options = PlaceOptions(
        extract_email=config.extract_email,
        extra_reviews=config.extra_reviews,
        reviews_limit=config.reviews_limit,
        reviews_threshold=config.reviews_threshold,
        nav_timeout_ms=config.nav_timeout_ms,
        scroll_settings=ScrollSettings(),
    )
    return [
        SearchJob(
            query,
            lang_code=config.lang_code,
            max_depth=config.max_depth,
            dedup=run.dedup,
            place_options=options,
            geo_coordinates=config.geo_coordinates,
            zoom=config.zoom,
            timeout=config.job_timeout,
        )
        for query in queries
    ]


async def scrape(queries: List[str], config: Config) -> RunStats:
    """Run one scrape over ``queries`` and return its stats."""
    run = RunContext.create(inactivity_timeout=config.exit_on_inactivity or None)
    writer = build_writer(config.results_file, config.json_output)
    try:
        async with BrowserPages(headless=config.headless, locale=locale_for(config.lang_code)) as pages:
            orchestrator = Orchestrator(
                run,
                [writer],
                pages.page,
                concurrency=config.concurrency,
                default_timeout=config.job_timeout,
            )
            return await orchestrator.start(build_seed_jobs(queries, config, run))
    finally:
        writer.close()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    config = apply_overrides(Config(env_path=Path(args.env) if args.env else None), args)
    setup_logging(level=config.log_level, log_dir=config.log_dir)

    try:
        config.validate()
    except ValueError as e:
        logger.error(str(e))
        return 2

    query_file = Path(args.input)
    if not query_file.exists():
        logger.error(f"Queries file not found: {query_file}")
        return 1

    queries = read_queries_from_file(query_file)
    if not queries:
        logger.error("No queries found in file.")
        return 1

    logger.info(f"Starting scrape of {len(queries)} queries with {config!r}")

    try:
        stats = asyncio.run(scrape(queries, config))
    except KeyboardInterrupt:
        logger.warning("KeyboardInterrupt - stopping scrape.")
        return 130
    except Exception:
        logger.exception("Uncaught error during scrape")
        return 1

    return 0 if stats.failed == 0 or stats.results > 0 else 1


if __name__ == "__main__":
    sys.exit(main())
