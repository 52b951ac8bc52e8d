from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel


SENTINEL_CODE = -1


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float

    @property
    def key(self) -> str:
        return coordinate_key(self.lat, self.lng)


def coordinate_key(lat: float, lng: float) -> str:
    """Cache/dedup identity: both axes rounded to 4 decimals."""

    return f"{float(lat):.4f},{float(lng):.4f}"


@dataclass(frozen=True)
class WeatherReading:
    temperature: float
    humidity: float
    weather_code: int

    @property
    def is_sentinel(self) -> bool:
        return self.weather_code == SENTINEL_CODE

    @classmethod
    def from_open_meteo(cls, payload: dict[str, Any]) -> "WeatherReading":
        current = payload["current"]
        return cls(
            temperature=float(current["temperature_2m"]),
            humidity=float(current["relative_humidity_2m"]),
            weather_code=int(current["weather_code"]),
        )

    def to_dict(self) -> dict:
        return {
            "temperature": self.temperature,
            "humidity": self.humidity,
            "weatherCode": self.weather_code,
        }


# Marks a failed upstream fetch inside a batch.
SENTINEL_READING = WeatherReading(temperature=0.0, humidity=0.0, weather_code=SENTINEL_CODE)


@dataclass(frozen=True)
class FilterSpec:
    """Weather constraints; a field left as None is unconstrained."""

    temp_min: Optional[float] = None
    temp_max: Optional[float] = None
    humidity_min: Optional[float] = None
    humidity_max: Optional[float] = None
    conditions: Optional[frozenset[int]] = None


class PropertyRecord(BaseModel):
    id: int
    name: str
    city: str | None = None
    state: str | None = None
    country: str | None = None
    lat: float | None = None
    lng: float | None = None
    is_active: bool = True

    @property
    def coordinate(self) -> Coordinate | None:
        if self.lat is None or self.lng is None:
            return None
        return Coordinate(lat=self.lat, lng=self.lng)


class WeatherOut(BaseModel):
    temperature: float
    humidity: float
    weatherCode: int


class PropertyResult(BaseModel):
    id: int
    name: str
    city: str | None = None
    state: str | None = None
    country: str | None = None
    lat: float | None = None
    lng: float | None = None
    isActive: bool = True
    weather: WeatherOut | None = None
    condition: str | None = None

    @classmethod
    def from_record(
        cls,
        record: PropertyRecord,
        reading: WeatherReading | None,
        condition: str | None = None,
    ) -> "PropertyResult":
        return cls(
            id=record.id,
            name=record.name,
            city=record.city,
            state=record.state,
            country=record.country,
            lat=record.lat,
            lng=record.lng,
            isActive=record.is_active,
            weather=WeatherOut(**reading.to_dict()) if reading else None,
            condition=condition,
        )
