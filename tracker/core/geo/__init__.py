# tracker/core/geo/__init__.py
"""
Геометрия: расстояния и скорости.
"""

from tracker.core.geo.distance import distance_meters, implied_speed_kmh

__all__ = ["distance_meters", "implied_speed_kmh"]
