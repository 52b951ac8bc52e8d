from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from property_weather_search.errors import ValidationError
from property_weather_search.search import build_search
from property_weather_search.settings import Settings, get_settings
from property_weather_search.store import PropertyStore
from property_weather_search.validators import build_filter_spec
from property_weather_search.weather import WeatherClient


logger = logging.getLogger("pws.api")


def create_app(
    settings: Optional[Settings] = None,
    *,
    store: Optional[PropertyStore] = None,
    weather: Optional[WeatherClient] = None,
) -> FastAPI:
    settings = settings or get_settings()
    owns_weather = weather is None
    search = build_search(settings, store=store, weather=weather)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        if owns_weather:
            await search.weather.aclose()

    app = FastAPI(title="Property weather search", lifespan=lifespan)
    app.state.settings = settings
    app.state.search = search

    if settings.frontend_url:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[settings.frontend_url],
            allow_methods=["GET", "POST", "PUT", "DELETE"],
            allow_credentials=True,
        )

    @app.get("/", response_class=PlainTextResponse)
    def root():
        return "Property Weather Search: OK"

    @app.get("/health")
    def health():
        return {"status": "ok"}

    async def get_properties(
        request: Request,
        searchText: Optional[str] = None,
        tempMin: Optional[str] = None,
        tempMax: Optional[str] = None,
        humidityMin: Optional[str] = None,
        humidityMax: Optional[str] = None,
        conditions: Optional[list[str]] = Query(None),
    ):
        try:
            spec = build_filter_spec(
                temp_min=tempMin,
                temp_max=tempMax,
                humidity_min=humidityMin,
                humidity_max=humidityMax,
                conditions=conditions,
            )
        except ValidationError as exc:
            return JSONResponse({"error": exc.message}, status_code=400)

        try:
            outcome = await request.app.state.search.search(searchText, spec)
        except Exception:
            logger.exception("property search failed")
            return JSONResponse({"error": "Internal Server Error"}, status_code=500)
        return JSONResponse([r.model_dump() for r in outcome.results])

    app.add_api_route("/get-properties", get_properties, methods=["GET"])
    app.add_api_route("/api/properties", get_properties, methods=["GET"])

    return app


app = create_app()
