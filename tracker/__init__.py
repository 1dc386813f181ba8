# tracker/__init__.py
"""
GPS-трекер: append-only журнал точек маршрута и его проекции.
"""

__version__ = "1.0.0"
