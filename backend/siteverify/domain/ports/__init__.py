"""Ports for external collaborators (geocoding, photo storage, notifications)"""

from .geocoding_port import GeocodingPort, GeocodeResult, GeocodingError
from .photo_storage_port import PhotoStoragePort
from .notification_port import NotificationPort, WorkflowEvent
from .bounded import call_with_timeout

__all__ = [
    "GeocodingPort",
    "GeocodeResult",
    "GeocodingError",
    "PhotoStoragePort",
    "NotificationPort",
    "WorkflowEvent",
    "call_with_timeout",
]
