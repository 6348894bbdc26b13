"""FastAPI dependency providers for workflow services and collaborators.

Collaborator adapters (geocoder, photo storage, notification dispatcher)
are built once per process from settings; services are built per request
around the request's database session. Tests replace the adapters through
``app.dependency_overrides``.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from .assignments.service import AssignmentManager
from .bulk.export_service import ExportService
from .bulk.import_service import BulkImportService
from .config import get_settings
from .database import get_db
from .domain.ports.geocoding_port import GeocodingPort
from .domain.ports.photo_storage_port import PhotoStoragePort
from .infrastructure.geocoding import NominatimGeocoder, StaticGeocoder
from .infrastructure.notifications import NotificationDispatcher
from .infrastructure.storage import S3PhotoStorage
from .verification.service import WorkflowService


@lru_cache()
def get_notification_dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher(max_workers=get_settings().NOTIFICATION_WORKERS)


@lru_cache()
def get_geocoder() -> GeocodingPort:
    settings = get_settings()
    if settings.GEOCODER_BACKEND == "static":
        return StaticGeocoder()
    return NominatimGeocoder(
        settings.GEOCODER_URL,
        user_agent=settings.GEOCODER_USER_AGENT,
        request_timeout=settings.EXTERNAL_CALL_TIMEOUT_SECONDS,
    )


@lru_cache()
def get_photo_storage() -> PhotoStoragePort:
    settings = get_settings()
    return S3PhotoStorage(
        endpoint_url=settings.S3_ENDPOINT_URL,
        access_key=settings.S3_ACCESS_KEY_ID,
        secret_key=settings.S3_SECRET_ACCESS_KEY,
        bucket_name=settings.S3_BUCKET_NAME,
        region=settings.S3_REGION,
    )


def get_workflow_service(
    db: Session = Depends(get_db),
    geocoder: GeocodingPort = Depends(get_geocoder),
    photo_storage: PhotoStoragePort = Depends(get_photo_storage),
    notifier: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> WorkflowService:
    return WorkflowService(
        db, geocoder=geocoder, photo_storage=photo_storage, notifier=notifier
    )


def get_assignment_manager(
    db: Session = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> AssignmentManager:
    return AssignmentManager(
        db, notifier=notifier, max_open_assignments=get_settings().MAX_OPEN_ASSIGNMENTS
    )


def get_import_service(
    db: Session = Depends(get_db),
    geocoder: GeocodingPort = Depends(get_geocoder),
) -> BulkImportService:
    return BulkImportService(db, geocoder, max_workers=get_settings().IMPORT_GEOCODE_WORKERS)


def get_export_service(db: Session = Depends(get_db)) -> ExportService:
    return ExportService(db)
