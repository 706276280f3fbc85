"""HTTP adapter tests: status codes and error payloads for document endpoints"""

import pytest
from sqlalchemy import event

from insuredocs.audit import AuditTrailService
from insuredocs.documents import DocumentLifecycleService
from insuredocs.documents.router import get_lifecycle_service
from insuredocs.domain.metadata import LOSS_NOT_IN_POLICY
from insuredocs.main import app


class RefusingAuditTrail(AuditTrailService):

    def record_action(self, document_id, actor_id, action_kind, description=None):
        return False


@pytest.fixture
def actor_headers(users):
    return {"X-User-Id": str(users["alice"].id)}


class TestDocumentEndpoints:

    def test_get_document(self, client, document):
        response = client.get(f"/documents/{document.id}")

        assert response.status_code == 200
        body = response.json()
        assert body["policy_number"] == "PLC10001"
        assert body["loss_sequence"] == "1 - Water Damage (03/14/2024)"
        assert body["status"] == "UNPROCESSED"
        assert body["is_processed"] is False

    def test_unknown_document_is_404(self, client, action_types):
        response = client.get("/documents/9999")

        assert response.status_code == 404
        assert response.json()["error"] == "document_not_found"

    def test_list_documents(self, client, document, make_document, actor_headers):
        trashed = make_document("old.pdf")
        client.post(f"/documents/{trashed.id}/trash", headers=actor_headers)

        response = client.get("/documents")

        assert response.status_code == 200
        assert [item["id"] for item in response.json()["items"]] == [document.id]

        response = client.get("/documents", params={"status": "trashed"})
        assert [item["id"] for item in response.json()["items"]] == [trashed.id]

    def test_request_id_is_echoed(self, client, document):
        response = client.get(f"/documents/{document.id}", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"


class TestMetadataEndpoint:

    def test_update_metadata(self, client, document, actor_headers):
        response = client.put(
            f"/documents/{document.id}/metadata",
            json={"description": "Adjuster notes"},
            headers=actor_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["document"]["description"] == "Adjuster notes"
        assert body["document"]["version"] == 2
        assert body["changes"][0]["label"] == "Document Description"
        assert body["description"] == "Document Description changed from 'First notice of loss' to 'Adjuster notes'"

    def test_hierarchy_violation_is_422(self, client, document, hierarchy, actor_headers):
        response = client.put(
            f"/documents/{document.id}/metadata",
            json={"policy_id": hierarchy.p2.id, "loss_id": hierarchy.l1.id},
            headers=actor_headers,
        )

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["details"]["errors"] == [{"field": "loss_id", "message": LOSS_NOT_IN_POLICY}]

    def test_processed_document_is_409(self, client, document, actor_headers):
        client.post(f"/documents/{document.id}/process", json={"processed": True}, headers=actor_headers)

        response = client.put(
            f"/documents/{document.id}/metadata",
            json={"description": "too late"},
            headers=actor_headers,
        )

        assert response.status_code == 409
        assert response.json()["error"] == "document_locked"

    def test_stale_version_is_409(self, client, document, actor_headers):
        response = client.put(
            f"/documents/{document.id}/metadata",
            json={"description": "x", "expected_version": 3},
            headers=actor_headers,
        )

        assert response.status_code == 409
        assert response.json()["error"] == "version_conflict"

    def test_unknown_field_is_rejected(self, client, document, actor_headers):
        response = client.put(
            f"/documents/{document.id}/metadata",
            json={"status": "PROCESSED"},
            headers=actor_headers,
        )

        assert response.status_code == 422

    def test_actor_header_required(self, client, document):
        response = client.put(f"/documents/{document.id}/metadata", json={"description": "x"})

        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"


class TestLifecycleEndpoints:

    def test_process_and_unprocess(self, client, document, actor_headers):
        response = client.post(f"/documents/{document.id}/process", json={"processed": True}, headers=actor_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "PROCESSED"

        response = client.post(f"/documents/{document.id}/process", json={"processed": False}, headers=actor_headers)
        assert response.json()["status"] == "UNPROCESSED"

    def test_trash_and_restore(self, client, document, actor_headers):
        response = client.post(f"/documents/{document.id}/trash", headers=actor_headers)
        assert response.status_code == 200
        assert response.json()["is_trashed"] is True

        response = client.post(f"/documents/{document.id}/restore", headers=actor_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "UNPROCESSED"
        assert response.json()["deleted_at"] is None

    def test_restore_processed_is_409(self, client, document, actor_headers):
        client.post(f"/documents/{document.id}/process", json={"processed": True}, headers=actor_headers)

        response = client.post(f"/documents/{document.id}/restore", headers=actor_headers)

        assert response.status_code == 409
        assert response.json()["error"] == "invalid_transition"

    def test_record_view(self, client, document, actor_headers):
        response = client.post(f"/documents/{document.id}/views", headers=actor_headers)

        assert response.status_code == 204

    def test_audit_failure_is_generic_500(self, client, db_session, document, actor_headers):
        app.dependency_overrides[get_lifecycle_service] = lambda: DocumentLifecycleService(
            db_session, audit=RefusingAuditTrail(db_session)
        )

        response = client.post(f"/documents/{document.id}/trash", headers=actor_headers)

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "audit_write_failed"
        assert "sqlite" not in body["message"].lower()


class TestHistoryEndpoints:

    def test_history_newest_first(self, client, document, actor_headers):
        client.post(f"/documents/{document.id}/views", headers=actor_headers)
        client.post(f"/documents/{document.id}/process", json={"processed": True}, headers=actor_headers)

        response = client.get(f"/documents/{document.id}/history")

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 2
        assert [entry["action_type"] for entry in body["entries"]] == ["process", "view"]
        assert body["entries"][0]["user"]["username"] == "alice"

    def test_history_ascending_and_filtered(self, client, document, action_types, actor_headers):
        client.post(f"/documents/{document.id}/views", headers=actor_headers)
        client.post(f"/documents/{document.id}/trash", headers=actor_headers)
        client.post(f"/documents/{document.id}/views", headers=actor_headers)

        ascending = client.get(f"/documents/{document.id}/history", params={"direction": "asc"}).json()
        trashes = client.get(
            f"/documents/{document.id}/history",
            params={"action_type_id": action_types["trash"].id},
        ).json()

        # the second view is rejected: trashed documents cannot be viewed
        assert [entry["action_type"] for entry in ascending["entries"]] == ["view", "trash"]
        assert trashes["total"] == 1

    def test_history_of_unknown_document_is_404(self, client, action_types):
        response = client.get("/documents/9999/history")

        assert response.status_code == 404

    def test_history_page_size_limit(self, client, document):
        response = client.get(f"/documents/{document.id}/history", params={"per_page": 500})

        assert response.status_code == 422

    def test_last_action_reads_history_once(self, client, engine, document, actor_headers):
        client.post(f"/documents/{document.id}/trash", headers=actor_headers)
        statements = []

        def capture(conn, cursor, statement, parameters, context, executemany):
            statements.append(statement)

        event.listen(engine, "before_cursor_execute", capture)
        try:
            response = client.get(f"/documents/{document.id}/history/last")
        finally:
            event.remove(engine, "before_cursor_execute", capture)

        assert response.status_code == 200
        # one count plus one page query
        assert len([s for s in statements if "map_document_action" in s]) == 2

    def test_last_action_of_unknown_document_is_404(self, client, action_types):
        assert client.get("/documents/9999/history/last").status_code == 404

    def test_last_action(self, client, document, actor_headers):
        assert client.get(f"/documents/{document.id}/history/last").json() is None

        client.post(f"/documents/{document.id}/trash", headers=actor_headers)

        response = client.get(f"/documents/{document.id}/history/last")
        assert response.status_code == 200
        assert response.json()["description"] == "Moved to trash"
