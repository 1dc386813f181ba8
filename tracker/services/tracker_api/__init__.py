# tracker/services/tracker_api/__init__.py
"""
HTTP API трекера маршрута.
"""

from tracker.services.tracker_api.app import app, create_app

__all__ = ["app", "create_app"]
