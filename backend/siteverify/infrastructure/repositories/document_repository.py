"""Document repository - record store access for verification documents"""

import logging
import uuid
from typing import Any, Iterable, Optional, Union

from sqlalchemy import select, update, func
from sqlalchemy.orm import Session

from ...models.base import utcnow
from ...models.verification_document import VerificationDocument
from ...domain.verification.status import VerificationStatus

logger = logging.getLogger(__name__)

DocumentId = Union[str, uuid.UUID]


def parse_document_id(document_id: DocumentId) -> Optional[uuid.UUID]:
    """Coerce an id from the API or audit log into a UUID (None if malformed)."""
    if isinstance(document_id, uuid.UUID):
        return document_id
    try:
        return uuid.UUID(str(document_id))
    except (TypeError, ValueError):
        return None


class DocumentRepository:
    """Repository for verification_document operations.

    Status changes go exclusively through conditional_update(), the
    compare-and-swap primitive the workflow relies on for concurrency
    control.
    """

    def __init__(self, db: Session):
        """Initialize repository with database session.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def get(self, document_id: DocumentId) -> Optional[VerificationDocument]:
        """Load a document by id, or None if it does not exist."""
        uid = parse_document_id(document_id)
        if uid is None:
            return None
        return self.db.get(VerificationDocument, uid)

    def add(self, document: VerificationDocument) -> VerificationDocument:
        """Persist a new document (flush only, caller commits)."""
        self.db.add(document)
        self.db.flush()
        return document

    def conditional_update(
        self,
        document_id: DocumentId,
        expected_status: VerificationStatus,
        fields: dict[str, Any],
    ) -> bool:
        """Write fields only if the document still has expected_status.

        Issues a single UPDATE ... WHERE id = :id AND status = :expected.

        Args:
            document_id: Target document
            expected_status: Status observed when the caller read the document
            fields: Column values to write (may include a new status)

        Returns:
            True if the row was updated, False on conflict
        """
        uid = parse_document_id(document_id)
        if uid is None:
            return False

        values = dict(fields)
        values["updated_at"] = utcnow()
        expected = VerificationStatus(expected_status).value
        if "status" in values and isinstance(values["status"], VerificationStatus):
            values["status"] = values["status"].value

        stmt = (
            update(VerificationDocument)
            .where(
                VerificationDocument.id == uid,
                VerificationDocument.status == expected,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)

        if result.rowcount != 1:
            logger.info(
                f"Conditional update conflict: document={uid}, expected_status={expected}"
            )
            return False

        # Refresh the identity-map copy so callers see the written row
        self.db.get(VerificationDocument, uid, populate_existing=True)
        return True

    def query(
        self,
        statuses: Optional[Iterable[VerificationStatus]] = None,
        submitter_id: Optional[str] = None,
        assigned_moderator_id: Optional[str] = None,
    ) -> list[VerificationDocument]:
        """Query documents in deterministic order (created_at, id).

        Args:
            statuses: Restrict to these statuses (None = all)
            submitter_id: Restrict to one submitter's documents
            assigned_moderator_id: Restrict to one moderator's assignments

        Returns:
            List of VerificationDocument
        """
        stmt = select(VerificationDocument)

        if statuses is not None:
            values = [VerificationStatus(s).value for s in statuses]
            stmt = stmt.where(VerificationDocument.status.in_(values))
        if submitter_id is not None:
            stmt = stmt.where(VerificationDocument.submitter_id == submitter_id)
        if assigned_moderator_id is not None:
            stmt = stmt.where(VerificationDocument.assigned_moderator_id == assigned_moderator_id)

        stmt = stmt.order_by(VerificationDocument.created_at, VerificationDocument.id)
        return list(self.db.execute(stmt).scalars().all())

    def count_open_assignments(self, moderator_id: str) -> int:
        """Number of documents currently awaiting this moderator's visit."""
        stmt = select(func.count()).select_from(VerificationDocument).where(
            VerificationDocument.assigned_moderator_id == moderator_id,
            VerificationDocument.status == VerificationStatus.ASSIGNED_TO_MODERATOR.value,
        )
        return self.db.execute(stmt).scalar_one()
