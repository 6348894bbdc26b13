"""Integration tests for the HTTP API

Exercises routing, bearer-token identity, request validation and the
mapping of workflow errors onto status codes.
"""

import base64
import io

import pytest
from fastapi.testclient import TestClient

from conftest import auth_headers
from siteverify.models.audit_event import AuditEvent

pytestmark = pytest.mark.integration

API = "/api/v1"

CSV = (
    b"fullName,email,phone,address,city,state,country\n"
    b"Ada Obi,ada@example.com,+2348000000001,12 Marina Road,Lagos Island,Lagos,Nigeria\n"
    b"Bola Ade,bola@example.com,+2348000000002,,Lagos Island,Lagos,Nigeria\n"
    b"Chidi Okafor,chidi@example.com,+2348000000003,5 Aso Drive,Maitama,FCT,Nigeria\n"
)

NEAR = {"latitude": 6.5244, "longitude": 3.3792}
FAR = {"latitude": 6.5344, "longitude": 3.3792}


def import_csv(client, actor, content=CSV):
    return client.post(
        f"{API}/documents/import",
        files={"file": ("contacts.csv", io.BytesIO(content), "text/csv")},
        headers=auth_headers(actor),
    )


class TestAuthentication:

    def test_missing_token(self, client: TestClient):
        response = client.get(f"{API}/documents/export")
        assert response.status_code in (401, 403)

    def test_invalid_token(self, client: TestClient):
        response = client.get(
            f"{API}/documents/export", headers={"Authorization": "Bearer not-a-token"}
        )
        assert response.status_code == 401

    def test_health(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_metrics(self, client: TestClient):
        response = client.get("/metrics")

        assert response.status_code == 200
        assert "siteverify_workflow_transitions_total" in response.text

    def test_request_id_header(self, client: TestClient):
        response = client.get("/health", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"

    def test_unsafe_request_id_is_replaced(self, client: TestClient):
        response = client.get("/health", headers={"X-Request-ID": "forged id; level=ERROR"})

        assert response.headers["X-Request-ID"] != "forged id; level=ERROR"
        assert len(response.headers["X-Request-ID"]) == 36

    def test_requests_are_timed_by_route_template(self, client: TestClient, admin):
        client.get(f"{API}/documents/not-a-document", headers=auth_headers(admin))

        response = client.get("/metrics")

        assert 'route="/api/v1/documents/{document_id}"' in response.text
        assert "siteverify_http_request_duration_seconds_bucket" in response.text


class TestWorkflowAPI:
    """Happy path and error mapping over HTTP"""

    def test_import_reports_failed_rows(self, client, submitter):
        response = import_csv(client, submitter)

        assert response.status_code == 200
        data = response.json()
        assert data["created"] == 2
        assert data["failed"] == [{"row_index": 2, "reason": "ValidationError", "detail": data["failed"][0]["detail"]}]
        assert data["geocode_pending"] == 0

    def test_full_lifecycle(self, client, admin, submitter, moderator_lagos):
        doc_id = import_csv(client, submitter).json()["document_ids"][0]

        response = client.post(
            f"{API}/documents/{doc_id}/assign",
            json={"moderator_id": "mod-lagos"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 200
        assert response.json()["status"] == "assigned_to_moderator"

        photo = base64.b64encode(b"jpeg-bytes").decode()
        response = client.post(
            f"{API}/documents/{doc_id}/findings",
            json={**NEAR, "address_exists": True, "building_type": "residential", "photo_base64": photo},
            headers=auth_headers(moderator_lagos),
        )
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "moderator_verified"
        assert body["findings"]["distance_meters"] == pytest.approx(0.0)
        assert body["findings"]["photo_reference"]

        response = client.post(
            f"{API}/documents/{doc_id}/finalize",
            json={"decision": "approve", "notes": "ok"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 200
        assert response.json()["decision"]["decided_by"] == "admin-1"

        response = client.get(f"{API}/documents/{doc_id}/audit", headers=auth_headers(submitter))
        assert response.status_code == 200
        assert [e["action"] for e in response.json()] == ["create", "assign", "submit_findings", "finalize"]

    def test_geofence_violation_is_403(self, client, admin, submitter, moderator_lagos):
        doc_id = import_csv(client, submitter).json()["document_ids"][0]
        client.post(f"{API}/documents/{doc_id}/assign", json={"moderator_id": "mod-lagos"},
                    headers=auth_headers(admin))

        response = client.post(
            f"{API}/documents/{doc_id}/findings",
            json={**FAR, "address_exists": True, "building_type": "residential"},
            headers=auth_headers(moderator_lagos),
        )

        assert response.status_code == 403
        body = response.json()
        assert body["error"] == "GeofenceViolation"
        assert body["distance_meters"] == pytest.approx(1112.0, rel=1e-2)

    def test_jurisdiction_mismatch_is_403(self, client, admin, submitter, moderator_abuja):
        doc_id = import_csv(client, submitter).json()["document_ids"][0]

        response = client.post(
            f"{API}/documents/{doc_id}/assign",
            json={"moderator_id": "mod-abuja"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 403
        assert response.json()["reason"] == "JurisdictionMismatch"

    def test_moderator_finalize_is_403(self, client, moderator_lagos, make_document):
        doc = make_document(status="moderator_verified", assigned_moderator_id="mod-lagos",
                            address_exists=True, building_type="office")

        response = client.post(
            f"{API}/documents/{doc.id}/finalize",
            json={"decision": "approve"},
            headers=auth_headers(moderator_lagos),
        )

        assert response.status_code == 403
        assert response.json()["reason"] == "RoleNotPermitted"

    def test_illegal_transition_is_409(self, client, admin, make_document):
        doc = make_document()

        response = client.post(
            f"{API}/documents/{doc.id}/finalize",
            json={"decision": "approve"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 409
        assert response.json()["error"] == "IllegalTransition"

    def test_unknown_document_is_404(self, client, admin):
        response = client.get(f"{API}/documents/not-a-document", headers=auth_headers(admin))

        assert response.status_code == 404
        assert response.json()["reason"] == "DocumentNotFound"

    def test_bad_decision_is_422(self, client, admin, make_document):
        doc = make_document()

        response = client.post(
            f"{API}/documents/{doc.id}/finalize",
            json={"decision": "maybe"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 422

    def test_bad_photo_is_422(self, client, admin, moderator_lagos, make_document):
        doc = make_document(status="assigned_to_moderator", assigned_moderator_id="mod-lagos")

        response = client.post(
            f"{API}/documents/{doc.id}/findings",
            json={**NEAR, "address_exists": False, "photo_base64": "***"},
            headers=auth_headers(moderator_lagos),
        )

        assert response.status_code == 422

    def test_geocode_retry(self, client, admin, make_document):
        doc = make_document(latitude=None, longitude=None, geocode_pending=True)

        response = client.post(f"{API}/documents/{doc.id}/geocode", headers=auth_headers(admin))

        assert response.status_code == 200
        assert response.json()["geocode_pending"] is False


class TestExportAPI:

    def test_export_csv(self, client, admin, submitter):
        import_csv(client, submitter)

        response = client.get(f"{API}/documents/export?filter=unverified", headers=auth_headers(admin))

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert 'filename="documents-unverified.csv"' in response.headers["content-disposition"]
        lines = response.text.strip().splitlines()
        assert lines[0] == "fullName,email,phone,address,city,state,country,status,decidedBy,decidedAt,moderatorNotes"
        assert len(lines) == 3

    def test_export_invalid_filter(self, client, admin):
        response = client.get(f"{API}/documents/export?filter=everything", headers=auth_headers(admin))

        assert response.status_code == 422


class TestRegistrationAPI:

    def test_issue_and_register(self, client, admin):
        response = client.post(
            f"{API}/registration-codes",
            json={"role": "moderator", "full_name": "Bola Ade", "email": "bola@example.com"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 201
        code = response.json()["code"]

        response = client.post(
            f"{API}/register",
            json={"code": code, "user_id": "auth0|bola", "jurisdiction": "Lagos"},
        )
        assert response.status_code == 201
        assert response.json()["role"] == "moderator"

        response = client.post(f"{API}/register", json={"code": code, "user_id": "auth0|again"})
        assert response.status_code == 409
        assert response.json()["error"] == "RegistrationCodeConsumed"

    def test_unknown_code_is_404(self, client):
        response = client.post(f"{API}/register", json={"code": "nope", "user_id": "auth0|x"})
        assert response.status_code == 404

    def test_submitter_cannot_issue_codes(self, client, submitter):
        response = client.post(
            f"{API}/registration-codes",
            json={"role": "user", "full_name": "Ada", "email": "ada@example.com"},
            headers=auth_headers(submitter),
        )
        assert response.status_code == 403

    def test_change_role(self, client, admin, submitter):
        response = client.patch(
            f"{API}/users/submitter-1/role",
            json={"role": "moderator", "jurisdiction": "Lagos"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        assert response.json()["jurisdiction"] == "Lagos"


class TestDenialsAreAudited:

    def test_denied_http_attempt_is_recorded(self, client, db_session, moderator_lagos, make_document):
        doc = make_document()

        client.post(
            f"{API}/documents/{doc.id}/assign",
            json={"moderator_id": "mod-lagos"},
            headers=auth_headers(moderator_lagos),
        )

        event = db_session.query(AuditEvent).filter_by(document_id=str(doc.id)).one()
        assert event.outcome == "denied"
        assert event.actor_id == "mod-lagos"
