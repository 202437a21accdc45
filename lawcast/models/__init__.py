"""Data models for LawCast."""

from lawcast.models.notice import Attachment, Notice
from lawcast.models.destination import Destination, RegistryState, RegistryStats
from lawcast.models.delivery import DeliveryOutcome, DeliveryResult, ProbeResult
from lawcast.models.cache import CacheConfig, CacheInfo
from lawcast.models.config import AppConfig

__all__ = [
    "Attachment",
    "Notice",
    "Destination",
    "RegistryState",
    "RegistryStats",
    "DeliveryOutcome",
    "DeliveryResult",
    "ProbeResult",
    "CacheConfig",
    "CacheInfo",
    "AppConfig",
]
