"""Current-weather lookups against the Open-Meteo forecast API."""

from __future__ import annotations

import asyncio
import logging
from typing import Hashable, Iterable

import httpx

from .cache import WeatherCache
from .errors import UpstreamError
from .models import SENTINEL_READING, Coordinate, WeatherReading


logger = logging.getLogger("pws.weather")

OPEN_METEO_URL = "https://api.open-meteo.com/v1/forecast"
CURRENT_FIELDS = "temperature_2m,relative_humidity_2m,weather_code"


class WeatherClient:
    """Fetches current weather per coordinate, backed by a `WeatherCache`.

    Batches are deduplicated by coordinate key and at most `concurrency`
    upstream requests are in flight at once. The client owns its
    `httpx.AsyncClient` unless one is passed in.
    """

    def __init__(
        self,
        cache: WeatherCache | None = None,
        *,
        base_url: str = OPEN_METEO_URL,
        timeout: float = 5.0,
        concurrency: int = 5,
        ttl: float | None = None,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.cache = cache if cache is not None else WeatherCache()
        self.base_url = base_url
        self.timeout = timeout
        self.concurrency = max(1, int(concurrency))
        self.ttl = ttl
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, transport=transport)

    async def __aenter__(self) -> "WeatherClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, coordinate: Coordinate) -> WeatherReading:
        params = {
            "latitude": coordinate.lat,
            "longitude": coordinate.lng,
            "current": CURRENT_FIELDS,
            "timezone": "auto",
        }
        try:
            # httpx timeouts apply per phase; the deadline covers the whole exchange.
            response = await asyncio.wait_for(
                self._client.get(self.base_url, params=params, timeout=self.timeout),
                self.timeout,
            )
            response.raise_for_status()
            return WeatherReading.from_open_meteo(response.json())
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise UpstreamError(
                f"weather request timed out after {self.timeout}s", key=coordinate.key
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise UpstreamError(
                f"weather API returned HTTP {exc.response.status_code}",
                key=coordinate.key,
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(
                f"weather request failed: {exc}", key=coordinate.key
            ) from exc
        except (KeyError, TypeError, ValueError) as exc:
            raise UpstreamError(
                f"malformed weather payload: {exc}", key=coordinate.key
            ) from exc

    async def fetch_one(self, coordinate: Coordinate) -> WeatherReading:
        key = coordinate.key
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        return await self._fetch_and_store(coordinate)

    async def _fetch_and_store(self, coordinate: Coordinate) -> WeatherReading:
        reading = await self._request(coordinate)
        self.cache.set(coordinate.key, reading, self.ttl)
        return reading

    async def fetch_batch(
        self, coordinates: Iterable[tuple[Hashable, Coordinate]]
    ) -> dict[Hashable, WeatherReading]:
        """Map each id to its reading; failed lookups get the sentinel reading."""

        ids_by_key: dict[str, list[Hashable]] = {}
        coordinate_by_key: dict[str, Coordinate] = {}
        for item_id, coordinate in coordinates:
            key = coordinate.key
            ids_by_key.setdefault(key, []).append(item_id)
            coordinate_by_key.setdefault(key, coordinate)

        readings: dict[str, WeatherReading] = {}
        pending: list[str] = []
        for key in ids_by_key:
            cached = self.cache.get(key)
            if cached is not None:
                readings[key] = cached
            else:
                pending.append(key)

        semaphore = asyncio.Semaphore(self.concurrency)

        async def _fetch(key: str) -> None:
            async with semaphore:
                try:
                    readings[key] = await self._fetch_and_store(coordinate_by_key[key])
                except UpstreamError as exc:
                    logger.warning("weather lookup failed for %s: %s", key, exc)
                    readings[key] = SENTINEL_READING

        if pending:
            await asyncio.gather(*[_fetch(key) for key in pending])
            logger.debug(
                "weather batch: %d locations, %d fetched upstream, %d cached",
                len(ids_by_key),
                len(pending),
                len(self.cache),
            )

        out: dict[Hashable, WeatherReading] = {}
        for key, ids in ids_by_key.items():
            for item_id in ids:
                out[item_id] = readings[key]
        return out
