"""Paginated property search filtered by live weather."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional

from .cache import WeatherCache
from .conditions import describe_code
from .filters import EXCLUDE, INCLUDE, accepts
from .models import FilterSpec, PropertyResult
from .settings import Settings
from .store import PropertyStore, SQLitePropertyStore, build_where
from .weather import WeatherClient


logger = logging.getLogger("pws.search")

DESIRED_RESULTS = 20
FETCH_BATCH_SIZE = 50
MAX_ATTEMPTS = 3


@dataclass
class SearchOutcome:
    results: list[PropertyResult] = field(default_factory=list)
    pages_fetched: int = 0
    rows_scanned: int = 0


class PropertySearch:
    """Accumulates weather-matching properties page by page.

    Stops once `desired_results` matches are collected, the store runs out of
    rows, or `max_attempts` pages have been read, whichever comes first.
    """

    def __init__(
        self,
        store: PropertyStore,
        weather: WeatherClient,
        *,
        desired_results: int = DESIRED_RESULTS,
        fetch_batch_size: int = FETCH_BATCH_SIZE,
        max_attempts: int = MAX_ATTEMPTS,
        on_missing_weather: str = EXCLUDE,
    ):
        if on_missing_weather not in (EXCLUDE, INCLUDE):
            raise ValueError(f"unknown missing-weather policy: {on_missing_weather!r}")
        self.store = store
        self.weather = weather
        self.desired_results = desired_results
        self.fetch_batch_size = fetch_batch_size
        self.max_attempts = max_attempts
        self.on_missing_weather = on_missing_weather

    async def search(
        self,
        search_text: Optional[str] = None,
        spec: Optional[FilterSpec] = None,
    ) -> SearchOutcome:
        spec = spec or FilterSpec()
        where = build_where(search_text)
        outcome = SearchOutcome()
        skip = 0
        attempt = 0

        while len(outcome.results) < self.desired_results and attempt < self.max_attempts:
            rows = await asyncio.to_thread(
                self.store.find,
                skip=skip,
                take=self.fetch_batch_size,
                where=where,
                order_by="id",
            )
            outcome.pages_fetched += 1
            logger.info("attempt %d: fetched %d properties", attempt + 1, len(rows))
            if not rows:
                break

            located = [(row.id, row.coordinate) for row in rows if row.coordinate]
            readings = await self.weather.fetch_batch(located) if located else {}

            for row in rows:
                if len(outcome.results) >= self.desired_results:
                    break
                outcome.rows_scanned += 1
                reading = readings.get(row.id)
                if not accepts(reading, spec, self.on_missing_weather):
                    continue
                if reading is not None and reading.is_sentinel:
                    reading = None
                condition = describe_code(reading.weather_code) if reading else None
                outcome.results.append(PropertyResult.from_record(row, reading, condition))
                logger.debug("property %s matched all filters", row.id)

            skip += self.fetch_batch_size
            attempt += 1

        logger.info(
            "search finished: %d matched after %d page(s)",
            len(outcome.results),
            outcome.pages_fetched,
        )
        return outcome


def build_search(
    settings: Settings,
    *,
    store: Optional[PropertyStore] = None,
    weather: Optional[WeatherClient] = None,
) -> PropertySearch:
    """Composition root: one cache and one weather client per search."""

    if weather is None:
        cache = WeatherCache(
            default_ttl=settings.weather_cache_ttl,
            max_entries=settings.weather_cache_max_entries,
            enabled=settings.cache_enabled,
        )
        weather = WeatherClient(
            cache,
            base_url=settings.weather_url,
            timeout=settings.weather_timeout,
            concurrency=settings.weather_concurrency,
        )
    return PropertySearch(
        store if store is not None else SQLitePropertyStore(settings.db_path),
        weather,
        desired_results=settings.desired_results,
        fetch_batch_size=settings.fetch_batch_size,
        max_attempts=settings.max_attempts,
        on_missing_weather=settings.on_missing_weather,
    )
