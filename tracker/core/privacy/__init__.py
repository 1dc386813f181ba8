# tracker/core/privacy/__init__.py
"""
Зоны приватности: модель, кэш с TTL, хранилище.
"""

from tracker.core.privacy.cache import PrivacyZoneCache
from tracker.core.privacy.models import PrivacyZone
from tracker.core.privacy.repository import PrivacyZoneRepository

__all__ = [
    "PrivacyZone",
    "PrivacyZoneCache",
    "PrivacyZoneRepository",
]
