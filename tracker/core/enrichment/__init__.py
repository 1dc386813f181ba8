# tracker/core/enrichment/__init__.py
"""
Обогащение данными внешних API: погода и обратное геокодирование.
"""

from tracker.core.enrichment.location import LocationService
from tracker.core.enrichment.singleflight import SingleFlight
from tracker.core.enrichment.weather import WeatherService

__all__ = ["LocationService", "SingleFlight", "WeatherService"]
