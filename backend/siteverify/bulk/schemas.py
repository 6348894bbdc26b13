"""Schemas for bulk import and export"""

from enum import Enum
from typing import List

from pydantic import BaseModel, Field

# Persisted column layouts
IMPORT_COLUMNS = ["fullName", "email", "phone", "address", "city", "state", "country"]

REQUIRED_IMPORT_COLUMNS = ["fullName", "address", "city", "state", "country"]

EXPORT_COLUMNS = IMPORT_COLUMNS + ["status", "decidedBy", "decidedAt", "moderatorNotes"]


class RowFailure(BaseModel):
    """A rejected import row.

    Attributes:
        row_index: 1-based index over data rows (0 = the file as a whole)
        reason: Error kind name (e.g. "ValidationError")
        detail: Human-readable explanation
    """
    row_index: int
    reason: str
    detail: str = ""


class ImportResult(BaseModel):
    """Result of a bulk import.

    Attributes:
        created: Number of documents created
        failed: Rejected rows in row order
        geocode_pending: Created documents whose geocoding failed
        document_ids: Ids of the created documents in row order
    """
    created: int = 0
    failed: List[RowFailure] = Field(default_factory=list)
    geocode_pending: int = 0
    document_ids: List[str] = Field(default_factory=list)


class ExportFilter(str, Enum):
    """Status filter for export"""
    VERIFIED = "verified"
    UNVERIFIED = "unverified"  # Any non-terminal status
    REJECTED = "rejected"
    ALL = "all"
