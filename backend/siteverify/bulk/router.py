"""Bulk import / export endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import Response

from ..auth.dependencies import get_current_actor
from ..dependencies import get_export_service, get_import_service
from ..domain.verification.models import Actor
from .export_service import ExportService
from .import_service import BulkImportService
from .schemas import ExportFilter, ImportResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["Bulk Import/Export"])


@router.post("/import", response_model=ImportResult)
def import_documents(
    file: UploadFile = File(..., description="CSV with columns fullName, email, phone, address, city, state, country"),
    submitter_id: Optional[str] = Query(None, description="Owner of the documents (admins only)"),
    actor: Actor = Depends(get_current_actor),
    service: BulkImportService = Depends(get_import_service),
):
    """
    Import contact addresses from CSV (submitters for themselves, ADMIN for anyone).

    Rows are processed independently; the response lists every rejected row
    with its 1-based index. Rows whose geocoding failed are still created and
    flagged geocode_pending.
    """
    return service.import_documents(file.file, actor, submitter_id=submitter_id)


@router.get("/export")
def export_documents(
    filter: ExportFilter = Query(ExportFilter.ALL, description="verified | unverified | rejected | all"),
    actor: Actor = Depends(get_current_actor),
    service: ExportService = Depends(get_export_service),
):
    """Export visible documents as CSV."""
    content = service.export_csv(actor, filter)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="documents-{filter.value}.csv"'},
    )
