# tracker/core/codec/__init__.py
"""
Потоковый кодек: массив объектов <-> объект на строку, GeoJSON-линия.
"""

from tracker.core.codec.array_stream import ArrayStreamDecoder, DecoderState, iter_array_objects
from tracker.core.codec.encoders import (
    FEATURE_COLLECTION_OPEN,
    JsonArrayEncoder,
    LineStringFeatureEncoder,
    dumps_compact,
)

__all__ = [
    "ArrayStreamDecoder",
    "DecoderState",
    "iter_array_objects",
    "FEATURE_COLLECTION_OPEN",
    "JsonArrayEncoder",
    "LineStringFeatureEncoder",
    "dumps_compact",
]
