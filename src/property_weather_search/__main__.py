import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace

from .errors import SearchError, ValidationError
from .search import build_search
from .settings import MISSING_WEATHER_POLICIES, get_settings
from .store import SQLitePropertyStore
from .validators import build_filter_spec


def _build_parser():
    parser = argparse.ArgumentParser(
        description="Search properties filtered by live weather",
    )
    parser.add_argument(
        "--search-text",
        default=None,
        help="Substring to match against property name, city or state",
    )
    parser.add_argument("--temp-min", default=None, help="Minimum temperature (°C)")
    parser.add_argument("--temp-max", default=None, help="Maximum temperature (°C)")
    parser.add_argument("--humidity-min", default=None, help="Minimum humidity (%%)")
    parser.add_argument("--humidity-max", default=None, help="Maximum humidity (%%)")
    parser.add_argument(
        "--conditions",
        action="append",
        default=None,
        help="Weather condition (clear, cloudy, drizzle, rainy, snow); repeatable",
    )
    parser.add_argument(
        "--on-missing-weather",
        choices=MISSING_WEATHER_POLICIES,
        default=None,
        help="Keep or drop properties whose weather could not be fetched",
    )
    parser.add_argument(
        "--db",
        default=None,
        help="Path to the properties SQLite database",
    )
    parser.add_argument(
        "--init-db",
        action="store_true",
        help="Create the properties table if missing and exit",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Run the HTTP API with uvicorn",
    )
    parser.add_argument("--host", default="127.0.0.1", help="Bind host for --serve")
    parser.add_argument("--port", type=int, default=5000, help="Bind port for --serve")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (DEBUG, INFO, etc.)",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Emit one JSON summary line for the search",
    )
    return parser


async def _run_search(search, search_text, spec):
    try:
        return await search.search(search_text, spec)
    finally:
        await search.weather.aclose()


def main(argv=None):
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=(args.log_level or "WARNING").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = get_settings()
    overrides = {}
    if args.db:
        overrides["db_path"] = args.db
    if args.on_missing_weather:
        overrides["on_missing_weather"] = args.on_missing_weather
    if overrides:
        settings = replace(settings, **overrides)

    if args.init_db:
        SQLitePropertyStore(settings.db_path).init_schema()
        print(f"Initialized {settings.db_path}")
        return 0

    if args.serve:
        import uvicorn

        from .api.app import create_app

        uvicorn.run(create_app(settings), host=args.host, port=args.port)
        return 0

    try:
        spec = build_filter_spec(
            temp_min=args.temp_min,
            temp_max=args.temp_max,
            humidity_min=args.humidity_min,
            humidity_max=args.humidity_max,
            conditions=args.conditions,
        )
    except ValidationError as exc:
        print(f"error: {exc.message}", file=sys.stderr)
        return 2

    search = build_search(settings)
    try:
        outcome = asyncio.run(_run_search(search, args.search_text, spec))
    except SearchError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if args.log_json:
        print(
            json.dumps(
                {
                    "matched": len(outcome.results),
                    "pages_fetched": outcome.pages_fetched,
                    "rows_scanned": outcome.rows_scanned,
                }
            )
        )
    print(json.dumps([r.model_dump() for r in outcome.results], indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
