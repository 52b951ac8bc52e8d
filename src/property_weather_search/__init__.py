"""Package initializer for `property_weather_search`."""

from .models import FilterSpec, PropertyRecord, WeatherReading
from .search import PropertySearch, SearchOutcome

__all__ = [
    "FilterSpec",
    "PropertyRecord",
    "PropertySearch",
    "SearchOutcome",
    "WeatherReading",
]
