# tracker/core/route/__init__.py
"""
Маршрут: журнал точек, приём, представления, публичный GeoJSON.
"""

from tracker.core.route.ingest import GateThresholds, IngestionPipeline
from tracker.core.route.materializer import GeoJsonMaterializer
from tracker.core.route.models import IngestResult, Point
from tracker.core.route.projections import RouteProjections
from tracker.core.route.service import RouteService
from tracker.core.route.store import PointStore

__all__ = [
    "GateThresholds",
    "GeoJsonMaterializer",
    "IngestResult",
    "IngestionPipeline",
    "Point",
    "PointStore",
    "RouteProjections",
    "RouteService",
]
