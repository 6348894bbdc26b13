"""Integration tests for the audit trail

Walks a document through its full lifecycle (including denied attempts)
and checks that the event chain is ordered and consistent with the
document's final status.
"""

import pytest

from siteverify.assignments.service import AssignmentManager
from siteverify.audit import AuditRecorder, OUTCOME_ACCEPTED
from siteverify.bulk.import_service import BulkImportService
from siteverify.config import get_settings
from siteverify.domain.verification.errors import AuthorizationError, GeofenceViolation
from siteverify.domain.verification.models import ModeratorFindings
from siteverify.domain.verification.status import Decision, WorkflowAction
from siteverify.verification.service import WorkflowService

pytestmark = pytest.mark.integration

CSV = (
    b"fullName,email,phone,address,city,state,country\n"
    b"Ada Obi,ada@example.com,,12 Marina Road,Lagos Island,Lagos,Nigeria\n"
)


def run_lifecycle(db_session, geocoder, admin, submitter, moderator_lagos, moderator_lagos_2):
    """Import → assign → reassign → denied findings → findings → approve"""
    result = BulkImportService(db_session, geocoder).import_documents(CSV, submitter)
    doc_id = result.document_ids[0]

    manager = AssignmentManager(db_session)
    manager.assign(doc_id, "mod-lagos", admin)
    manager.reassign(doc_id, "mod-lagos-2", admin)

    service = WorkflowService(db_session, geocoder=geocoder, settings=get_settings())
    findings = ModeratorFindings(address_exists=True, building_type="residential")
    with pytest.raises(AuthorizationError):
        service.submit_findings(doc_id, moderator_lagos, findings, 6.5244, 3.3792)
    with pytest.raises(GeofenceViolation):
        service.submit_findings(doc_id, moderator_lagos_2, findings, 6.6, 3.3792)
    service.submit_findings(doc_id, moderator_lagos_2, findings, 6.5244, 3.3792)
    service.finalize(doc_id, admin, Decision.APPROVE)
    return doc_id


class TestAuditTrail:

    def test_full_lifecycle_chain(self, db_session, geocoder, admin, submitter, moderator_lagos, moderator_lagos_2):
        doc_id = run_lifecycle(db_session, geocoder, admin, submitter, moderator_lagos, moderator_lagos_2)

        events = AuditRecorder(db_session).history(doc_id)

        assert [(e.action, e.outcome) for e in events] == [
            ("create", "accepted"),
            ("assign", "accepted"),
            ("reassign", "accepted"),
            ("submit_findings", "denied"),
            ("submit_findings", "denied"),
            ("submit_findings", "accepted"),
            ("finalize", "accepted"),
        ]
        assert [e.failure_kind for e in events if e.outcome == "denied"] == [
            "AuthorizationError", "GeofenceViolation",
        ]

    def test_prior_status_chain_is_consistent(self, db_session, geocoder, admin, submitter,
                                              moderator_lagos, moderator_lagos_2):
        """Test each event's prior status is the previous event's new status"""
        doc_id = run_lifecycle(db_session, geocoder, admin, submitter, moderator_lagos, moderator_lagos_2)

        events = AuditRecorder(db_session).history(doc_id)

        assert events[0].prior_status is None
        for previous, current in zip(events, events[1:]):
            assert current.prior_status == previous.new_status
            assert current.id > previous.id
        assert events[-1].new_status == "verified"

    def test_denied_events_keep_status(self, db_session, geocoder, admin, submitter, moderator_lagos, moderator_lagos_2):
        doc_id = run_lifecycle(db_session, geocoder, admin, submitter, moderator_lagos, moderator_lagos_2)

        for event in AuditRecorder(db_session).history(doc_id):
            if event.outcome == "denied":
                assert event.new_status == event.prior_status

    def test_history_access(self, db_session, geocoder, admin, submitter, other_submitter,
                            moderator_lagos, moderator_lagos_2):
        """Test admins and the owning submitter can read the trail"""
        doc_id = run_lifecycle(db_session, geocoder, admin, submitter, moderator_lagos, moderator_lagos_2)
        service = WorkflowService(db_session, settings=get_settings())

        assert len(service.history(doc_id, admin)) == 7
        assert len(service.history(doc_id, submitter)) == 7
        with pytest.raises(AuthorizationError):
            service.history(doc_id, other_submitter)
        with pytest.raises(AuthorizationError):
            service.history(doc_id, moderator_lagos_2)

    def test_recorder_appends(self, db_session, admin, make_document):
        doc = make_document()
        recorder = AuditRecorder(db_session)

        event = recorder.record(
            doc.id, admin, WorkflowAction.GEOCODE, "pending_assignment", "pending_assignment",
            payload={"note": "manual"},
        )
        db_session.commit()

        assert event.outcome == OUTCOME_ACCEPTED
        assert [e.id for e in recorder.history(doc.id)] == [event.id]
        assert event.to_dict()["payload"] == {"note": "manual"}
