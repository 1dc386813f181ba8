# tracker/core/routesets/__init__.py
"""
Снимки маршрута.
"""

from tracker.core.routesets.models import RoutesetMeta, RoutesetSaveRequest
from tracker.core.routesets.service import RoutesetService

__all__ = ["RoutesetMeta", "RoutesetSaveRequest", "RoutesetService"]
