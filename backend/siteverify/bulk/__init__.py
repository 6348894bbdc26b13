"""Bulk import/export pipeline"""

from .import_service import BulkImportService
from .export_service import ExportService
from .schemas import ImportResult, RowFailure, ExportFilter

__all__ = ["BulkImportService", "ExportService", "ImportResult", "RowFailure", "ExportFilter"]
