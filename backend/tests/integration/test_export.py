"""Integration tests for read-only export"""

import io
from datetime import datetime, timedelta, timezone

import pandas as pd
import pytest

from siteverify.bulk.export_service import ExportService
from siteverify.bulk.schemas import EXPORT_COLUMNS
from siteverify.domain.verification.errors import ValidationError

pytestmark = pytest.mark.integration

BASE = datetime(2026, 10, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def mixed_documents(make_document):
    """One document per interesting status, created a minute apart"""
    def at(minutes, **fields):
        return make_document(created_at=BASE + timedelta(minutes=minutes), **fields)

    return {
        "pending": at(0, full_name="Pending Person"),
        "assigned": at(1, full_name="Assigned Person", status="assigned_to_moderator",
                       assigned_moderator_id="mod-lagos"),
        "verified": at(2, full_name="Verified Person", status="verified", assigned_moderator_id="mod-lagos",
                       address_exists=True, building_type="residential", comments="Met the tenant",
                       decided_by="admin-1", decided_at=BASE + timedelta(days=1)),
        "rejected": at(3, full_name="Rejected Person", status="rejected", decided_by="admin-1",
                       decided_at=BASE + timedelta(days=2)),
        "failed": at(4, full_name="Failed Person", status="verification_failed",
                     assigned_moderator_id="mod-lagos-2", address_exists=False),
        "other": at(5, full_name="Other Submitter", submitter_id="submitter-2"),
    }


class TestExport:

    def test_all_in_creation_order(self, db_session, admin, mixed_documents):
        rows = ExportService(db_session).export_rows(admin, "all")

        assert [r["fullName"] for r in rows] == [
            "Pending Person", "Assigned Person", "Verified Person",
            "Rejected Person", "Failed Person", "Other Submitter",
        ]
        assert list(rows[0].keys()) == EXPORT_COLUMNS

    def test_verified_filter(self, db_session, admin, mixed_documents):
        rows = ExportService(db_session).export_rows(admin, "verified")

        assert len(rows) == 1
        row = rows[0]
        assert row["status"] == "verified"
        assert row["address"] == "12 Marina Road"
        assert row["decidedBy"] == "admin-1"
        assert row["decidedAt"].startswith("2026-10-02")
        assert row["moderatorNotes"] == "Met the tenant"

    def test_unverified_filter_covers_non_terminal_states(self, db_session, admin, mixed_documents):
        rows = ExportService(db_session).export_rows(admin, "unverified")

        assert {r["status"] for r in rows} == {
            "pending_assignment", "assigned_to_moderator", "verification_failed",
        }
        assert len(rows) == 4

    def test_rejected_filter(self, db_session, admin, mixed_documents):
        rows = ExportService(db_session).export_rows(admin, "rejected")

        assert [r["fullName"] for r in rows] == ["Rejected Person"]

    def test_unknown_filter_rejected(self, db_session, admin):
        with pytest.raises(ValidationError, match="Invalid export filter"):
            ExportService(db_session).export_rows(admin, "everything")

    def test_submitter_sees_own_documents(self, db_session, submitter, mixed_documents):
        rows = ExportService(db_session).export_rows(submitter, "all")

        assert len(rows) == 5
        assert "Other Submitter" not in {r["fullName"] for r in rows}

    def test_moderator_sees_assignments(self, db_session, moderator_lagos, mixed_documents):
        rows = ExportService(db_session).export_rows(moderator_lagos, "all")

        assert [r["fullName"] for r in rows] == ["Assigned Person", "Verified Person"]

    def test_export_does_not_mutate(self, db_session, admin, mixed_documents):
        before = {d.id: (d.status, d.updated_at) for d in mixed_documents.values()}

        ExportService(db_session).export_csv(admin, "all")

        for doc in mixed_documents.values():
            db_session.refresh(doc)
            assert (doc.status, doc.updated_at) == before[doc.id]

    def test_csv_layout(self, db_session, admin, mixed_documents):
        content = ExportService(db_session).export_csv(admin, "verified")

        df = pd.read_csv(io.BytesIO(content), dtype=str, keep_default_na=False)
        assert list(df.columns) == EXPORT_COLUMNS
        assert df.iloc[0]["fullName"] == "Verified Person"
        assert df.iloc[0]["status"] == "verified"

    def test_empty_export_has_header(self, db_session, admin):
        content = ExportService(db_session).export_csv(admin, "all")

        assert content.decode("utf-8").strip() == ",".join(EXPORT_COLUMNS)
