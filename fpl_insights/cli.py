from __future__ import annotations

import argparse
import logging
import sys

import httpx

from .api import FplApiError, FplClient
from .config import Settings
from .league_report import DEFAULT_RIVAL_COUNT, ManagerNotInLeague, build_league_report
from .report_console import print_report
from .report_html import generate_html

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        description="FPL Insights - Mini-league analysis for Fantasy Premier League"
    )
    parser.add_argument("--league", type=int, help="Classic league id to analyse")
    parser.add_argument("--manager", type=int, help="Your FPL manager (entry) id")
    parser.add_argument(
        "--rivals",
        type=int,
        default=DEFAULT_RIVAL_COUNT,
        help=f"Number of nearest-ranked rivals to compare against (default: {DEFAULT_RIVAL_COUNT})",
    )
    parser.add_argument(
        "--gameweek",
        type=int,
        default=None,
        help="Gameweek to analyse (default: current gameweek)",
    )
    parser.add_argument(
        "--html",
        type=str,
        default=None,
        metavar="FILE",
        help="Generate HTML report to FILE",
    )
    parser.add_argument(
        "--no-console",
        action="store_true",
        help="Suppress console output",
    )
    parser.add_argument(
        "--web",
        action="store_true",
        help="Launch the JSON API instead of CLI",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=5000,
        help="Port for the web server (default: 5000)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = Settings.from_env()

    if args.web:
        from .web import create_app

        app = create_app(settings)
        logger.info("Starting FPL Insights API on http://localhost:%d", args.port)
        app.run(debug=args.verbose, port=args.port)
        return

    if args.league is None or args.manager is None:
        parser.error("--league and --manager are required unless --web is given")
    if args.rivals < 0:
        parser.error("--rivals must not be negative")

    logger.info("Fetching league %d for manager %d...", args.league, args.manager)
    try:
        with FplClient.from_settings(settings) as client:
            report = build_league_report(
                client,
                args.league,
                args.manager,
                rival_count=args.rivals,
                gameweek=args.gameweek,
                max_workers=settings.max_concurrency,
            )
    except ManagerNotInLeague as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except (FplApiError, httpx.HTTPError) as e:
        print(f"Error fetching data: {e}", file=sys.stderr)
        sys.exit(1)

    if not args.no_console:
        print_report(report)

    if args.html:
        generate_html(report, output_path=args.html)
        logger.info("HTML report saved to %s", args.html)


if __name__ == "__main__":
    main()
