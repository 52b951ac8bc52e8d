from __future__ import annotations

from typing import Optional

from .models import FilterSpec, WeatherReading


EXCLUDE = "exclude"
INCLUDE = "include"


def matches(reading: WeatherReading, spec: FilterSpec) -> bool:
    if spec.temp_min is not None and reading.temperature < spec.temp_min:
        return False
    if spec.temp_max is not None and reading.temperature > spec.temp_max:
        return False
    if spec.humidity_min is not None and reading.humidity < spec.humidity_min:
        return False
    if spec.humidity_max is not None and reading.humidity > spec.humidity_max:
        return False
    if spec.conditions and reading.weather_code not in spec.conditions:
        return False
    return True


def accepts(
    reading: Optional[WeatherReading],
    spec: FilterSpec,
    on_missing_weather: str = EXCLUDE,
) -> bool:
    """Apply `matches`, deciding missing or failed readings by policy.

    A reading is missing when the property has no coordinate or its fetch
    produced the sentinel reading.
    """

    if reading is None or reading.is_sentinel:
        return on_missing_weather == INCLUDE
    return matches(reading, spec)
