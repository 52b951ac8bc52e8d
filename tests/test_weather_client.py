import asyncio
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import httpx
import pytest

from property_weather_search.cache import WeatherCache
from property_weather_search.errors import UpstreamError
from property_weather_search.models import SENTINEL_READING, Coordinate, WeatherReading
from property_weather_search.weather import CURRENT_FIELDS, WeatherClient


def _payload(temp=20.0, humidity=50.0, code=0):
    return {
        "current": {
            "temperature_2m": temp,
            "relative_humidity_2m": humidity,
            "weather_code": code,
        }
    }


class _Recorder:
    def __init__(self, respond=None):
        self.requests = []
        self.respond = respond or (lambda request: httpx.Response(200, json=_payload()))

    def __call__(self, request):
        self.requests.append(request)
        return self.respond(request)


def _client(handler, **kwargs):
    return WeatherClient(transport=httpx.MockTransport(handler), **kwargs)


def test_fetch_one_sends_query_and_caches():
    recorder = _Recorder(lambda r: httpx.Response(200, json=_payload(18.5, 71, 3)))

    async def run():
        async with _client(recorder) as client:
            first = await client.fetch_one(Coordinate(28.538336, -81.379234))
            second = await client.fetch_one(Coordinate(28.53834, -81.37923))
            return first, second

    first, second = asyncio.run(run())
    assert first == WeatherReading(temperature=18.5, humidity=71.0, weather_code=3)
    assert second == first
    assert len(recorder.requests) == 1
    params = recorder.requests[0].url.params
    assert params["latitude"] == "28.538336"
    assert params["longitude"] == "-81.379234"
    assert params["current"] == CURRENT_FIELDS


@pytest.mark.parametrize(
    "respond",
    [
        lambda r: httpx.Response(500, json={"error": True}),
        lambda r: httpx.Response(200, json={"unexpected": {}}),
        lambda r: (_ for _ in ()).throw(httpx.ReadTimeout("slow", request=r)),
        lambda r: (_ for _ in ()).throw(httpx.ConnectError("down", request=r)),
    ],
)
def test_fetch_one_failures_raise_upstream_error(respond):
    async def run():
        async with _client(_Recorder(respond)) as client:
            await client.fetch_one(Coordinate(1.0, 2.0))

    with pytest.raises(UpstreamError) as excinfo:
        asyncio.run(run())
    assert excinfo.value.key == "1.0000,2.0000"


def test_failed_fetch_is_not_cached():
    cache = WeatherCache()

    async def run():
        async with _client(_Recorder(lambda r: httpx.Response(503)), cache=cache) as client:
            with pytest.raises(UpstreamError):
                await client.fetch_one(Coordinate(1.0, 2.0))

    asyncio.run(run())
    assert len(cache) == 0


def test_batch_dedups_identical_rounded_coordinates():
    recorder = _Recorder()

    async def run():
        async with _client(recorder) as client:
            return await client.fetch_batch(
                [
                    (1, Coordinate(40.712776, -74.005974)),
                    (2, Coordinate(40.71278, -74.00597)),
                    (3, Coordinate(34.052235, -118.243683)),
                ]
            )

    out = asyncio.run(run())
    assert len(recorder.requests) == 2
    assert out[1] == out[2]
    assert set(out) == {1, 2, 3}


def test_batch_uses_cache_before_upstream():
    cache = WeatherCache()
    cached = WeatherReading(temperature=-3.0, humidity=88.0, weather_code=71)
    cache.set(Coordinate(10.0, 10.0).key, cached, ttl=60)
    recorder = _Recorder()

    async def run():
        async with _client(recorder, cache=cache) as client:
            return await client.fetch_batch([(7, Coordinate(10.0, 10.0))])

    assert asyncio.run(run()) == {7: cached}
    assert recorder.requests == []


def test_batch_substitutes_sentinel_per_failed_coordinate():
    def respond(request):
        if request.url.params["latitude"] == "1.0":
            return httpx.Response(502)
        return httpx.Response(200, json=_payload(12.0, 60.0, 61))

    async def run():
        async with _client(_Recorder(respond)) as client:
            return await client.fetch_batch(
                [("a", Coordinate(1.0, 1.0)), ("b", Coordinate(2.0, 2.0)), ("c", Coordinate(1.0, 1.0))]
            )

    out = asyncio.run(run())
    assert out["a"] == SENTINEL_READING
    assert out["c"] == SENTINEL_READING
    assert out["b"].weather_code == 61


def test_batch_caps_in_flight_requests():
    state = {"in_flight": 0, "peak": 0, "calls": 0}

    async def respond(request):
        state["in_flight"] += 1
        state["calls"] += 1
        state["peak"] = max(state["peak"], state["in_flight"])
        await asyncio.sleep(0.01)
        state["in_flight"] -= 1
        return httpx.Response(200, json=_payload())

    async def run():
        async with WeatherClient(transport=httpx.MockTransport(respond), concurrency=5) as client:
            coords = [(i, Coordinate(float(i), 0.0)) for i in range(12)]
            return await client.fetch_batch(coords)

    out = asyncio.run(run())
    assert len(out) == 12
    assert state["calls"] == 12
    assert 1 < state["peak"] <= 5


class _TrickleHandler(BaseHTTPRequestHandler):
    # Sends headers at once, then the JSON body one byte per 0.1s.
    def do_GET(self):
        body = b'{"current": {"temperature_2m": 1.0, "relative_humidity_2m": 2.0, "weather_code": 0}}'
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        try:
            for i in range(len(body)):
                self.wfile.write(body[i : i + 1])
                self.wfile.flush()
                time.sleep(0.1)
        except OSError:
            pass

    def log_message(self, *args):
        pass


def test_fetch_one_deadline_covers_slow_body():
    server = ThreadingHTTPServer(("127.0.0.1", 0), _TrickleHandler)
    server.daemon_threads = True
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    url = f"http://127.0.0.1:{server.server_address[1]}/v1/forecast"

    async def run():
        http = httpx.AsyncClient(trust_env=False)
        try:
            client = WeatherClient(base_url=url, timeout=0.5, client=http)
            await client.fetch_one(Coordinate(1.0, 2.0))
        finally:
            await http.aclose()

    started = time.monotonic()
    try:
        with pytest.raises(UpstreamError) as excinfo:
            asyncio.run(run())
    finally:
        server.shutdown()
        server.server_close()
    assert time.monotonic() - started < 3.0
    assert "timed out" in str(excinfo.value)


def test_batch_counts_one_miss_per_upstream_fetch():
    cache = WeatherCache()
    recorder = _Recorder()

    async def run():
        async with _client(recorder, cache=cache) as client:
            await client.fetch_batch([(1, Coordinate(1.0, 1.0))])
            await client.fetch_batch([(2, Coordinate(1.0, 1.0))])

    asyncio.run(run())
    assert len(recorder.requests) == 1
    assert cache.stats() == {"hits": 1, "misses": 1, "evictions": 0}
