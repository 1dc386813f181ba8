# tracker/core/geo/distance.py
"""
Расстояния на сферической Земле (формула Haversine).
"""

import math

from tracker.common.constants import EARTH_RADIUS_M


def distance_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Вычисляет расстояние между двумя точками (в метрах) по формуле Haversine.
    """
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)

    a = (math.sin(dlat / 2) ** 2 +
         math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) *
         math.sin(dlon / 2) ** 2)

    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_M * c


def implied_speed_kmh(distance_m: float, elapsed_ms: float) -> float:
    """Скорость (км/ч), необходимая чтобы пройти distance_m за elapsed_ms."""
    return (distance_m / (elapsed_ms / 1000)) * 3.6
