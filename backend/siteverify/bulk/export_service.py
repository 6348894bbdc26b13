"""Read-only export of verification documents"""

import logging
from typing import Union

import pandas as pd
from sqlalchemy.orm import Session

from ..auth.guard import authorize, export_scope
from ..domain.verification.errors import ValidationError
from ..domain.verification.models import Actor
from ..domain.verification.status import VerificationStatus, WorkflowAction, NON_TERMINAL_STATES
from ..infrastructure.repositories.document_repository import DocumentRepository
from ..models.base import isoformat
from ..models.verification_document import VerificationDocument
from .schemas import ExportFilter, EXPORT_COLUMNS

logger = logging.getLogger(__name__)

# None = no status restriction
FILTER_STATUSES = {
    ExportFilter.VERIFIED: [VerificationStatus.VERIFIED],
    ExportFilter.UNVERIFIED: sorted(NON_TERMINAL_STATES, key=lambda s: s.value),
    ExportFilter.REJECTED: [VerificationStatus.REJECTED],
    ExportFilter.ALL: None,
}


def to_export_row(document: VerificationDocument) -> dict:
    """Map a document onto the export column layout."""
    return {
        "fullName": document.full_name,
        "email": document.email,
        "phone": document.phone,
        "address": document.street,
        "city": document.city,
        "state": document.state,
        "country": document.country,
        "status": document.status,
        "decidedBy": document.decided_by,
        "decidedAt": isoformat(document.decided_at),
        "moderatorNotes": document.comments,
    }


class ExportService:
    """Export the documents visible to an actor, filtered by status.

    Submitters get their own documents, moderators their assignments and
    admins everything, ordered by created_at then id.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repository = DocumentRepository(db)

    def export_rows(
        self, actor: Actor, export_filter: Union[ExportFilter, str] = ExportFilter.ALL
    ) -> list[dict]:
        """
        Export documents as row dicts in EXPORT_COLUMNS layout.

        Raises:
            AuthorizationError: If the actor may not export
            ValidationError: If the filter is unknown
        """
        authorize(actor, WorkflowAction.EXPORT).raise_if_denied()
        try:
            export_filter = ExportFilter(export_filter)
        except ValueError:
            raise ValidationError(
                f"Invalid export filter '{export_filter}'. Must be one of: {[f.value for f in ExportFilter]}"
            )

        documents = self.repository.query(
            statuses=FILTER_STATUSES[export_filter], **export_scope(actor)
        )
        logger.info(
            f"Exported {len(documents)} documents (filter={export_filter.value})",
            extra={"user_id": actor.user_id, "action": WorkflowAction.EXPORT.value},
        )
        return [to_export_row(d) for d in documents]

    def export_csv(
        self, actor: Actor, export_filter: Union[ExportFilter, str] = ExportFilter.ALL
    ) -> bytes:
        """Export documents as UTF-8 CSV bytes with a header row."""
        rows = self.export_rows(actor, export_filter)
        df = pd.DataFrame(rows, columns=EXPORT_COLUMNS)
        return df.to_csv(index=False).encode("utf-8")
