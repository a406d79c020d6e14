"""Tests for the method/path request handler."""

from __future__ import annotations

import base64
import json

import pytest

from notehistory.errors import NoteHistoryStorageError
from notehistory.history import CORS_HEADERS, HistoryRequestHandler, VersionService
from notehistory.history.storage import MemoryKeyValueStore
from notehistory.history.store import blob_key

PREFIX = "/parties/notes"


@pytest.fixture
def handler(service, document) -> HistoryRequestHandler:
    service.attach("doc", document)
    return HistoryRequestHandler(service)


class TestRoutes:
    def test_register_editor(self, handler, service):
        body = json.dumps({"connectionId": "c1", "user": {"name": "Ada", "color": "#F56565"}})
        response = handler.handle("POST", f"{PREFIX}/doc/user", body.encode())
        assert response.status == 200
        assert response.body == {"success": True}
        assert "c1" in service.active_editors("doc")

    def test_register_accepts_decoded_body(self, handler):
        body = {"connectionId": "c1", "user": {"name": "Ada", "color": "#F56565"}}
        assert handler.handle("POST", f"{PREFIX}/doc/user", body).status == 200

    def test_list_versions(self, handler, service, clock):
        service.maybe_snapshot("doc")
        response = handler.handle("GET", f"{PREFIX}/doc/versions")
        assert response.status == 200
        assert response.body[0]["id"] == f"v_{clock.now}"
        assert set(response.body[0]) == {"id", "timestamp", "title", "editedBy", "editorColor"}

    def test_list_versions_empty(self, handler):
        assert handler.handle("GET", f"{PREFIX}/other/versions").body == []

    def test_get_version(self, handler, service, document):
        version = service.maybe_snapshot("doc").version
        response = handler.handle("GET", f"{PREFIX}/doc/version/{version.id}")
        assert response.status == 200
        assert response.body["id"] == version.id
        assert base64.b64decode(response.body["state"]) == document.encode_state()

    def test_restore(self, handler, service, clock):
        version = service.maybe_snapshot("doc").version
        clock.advance(6000)
        response = handler.handle("POST", f"{PREFIX}/doc/restore/{version.id}")
        assert response.status == 200
        assert response.body["success"] is True

    def test_options_preflight(self, handler):
        response = handler.handle("OPTIONS", f"{PREFIX}/doc/versions")
        assert response.status == 204
        assert response.headers == CORS_HEADERS
        assert response.content() == b""

    def test_query_string_ignored(self, handler):
        assert handler.handle("GET", f"{PREFIX}/doc/versions?x=1").status == 200

    def test_encoded_document_id(self, handler, service):
        handler.handle("POST", f"{PREFIX}/my%20doc/user", {
            "connectionId": "c1", "user": {"name": "Ada", "color": "#F56565"},
        })
        assert "c1" in service.active_editors("my doc")


class TestErrors:
    def test_unknown_version_is_404(self, handler):
        response = handler.handle("GET", f"{PREFIX}/doc/version/v_0")
        assert response.status == 404
        assert response.body["error"] == "Version not found"

    def test_restore_unknown_version_is_404(self, handler):
        assert handler.handle("POST", f"{PREFIX}/doc/restore/v_0").status == 404

    @pytest.mark.parametrize(
        "body",
        [
            None,
            b"{not json",
            b"[1]",
            json.dumps({"connectionId": "c1"}).encode(),
            json.dumps({"connectionId": "", "user": {"name": "Ada", "color": "#fff"}}).encode(),
        ],
    )
    def test_invalid_body_is_400(self, handler, body):
        response = handler.handle("POST", f"{PREFIX}/doc/user", body)
        assert response.status == 400
        assert response.body["error"] == "Invalid body"

    @pytest.mark.parametrize(
        "method, path",
        [
            ("GET", "/elsewhere/doc/versions"),
            ("GET", f"{PREFIX}/doc"),
            ("DELETE", f"{PREFIX}/doc/versions"),
            ("GET", f"{PREFIX}/doc/user"),
            ("POST", f"{PREFIX}/doc/restore"),
        ],
    )
    def test_unknown_route_is_404(self, handler, method, path):
        assert handler.handle(method, path).status == 404

    def test_storage_failure_is_500(self, config, clock):
        class BrokenStore(MemoryKeyValueStore):
            def get(self, document_id, key, default=None):
                if key == blob_key("v_1"):
                    raise NoteHistoryStorageError(
                        message="read failed",
                        context={"document_id": document_id, "key": key, "operation": "read"},
                    )
                return super().get(document_id, key, default)

        handler = HistoryRequestHandler(VersionService(BrokenStore(), config, clock))
        response = handler.handle("GET", f"{PREFIX}/doc/version/v_1")
        assert response.status == 500

    def test_corrupt_snapshot_restore_is_500(self, handler, storage, document):
        storage.put("doc", blob_key("v_bad"), base64.b64encode(b"not json").decode())
        before = document.encode_state()
        response = handler.handle("POST", f"{PREFIX}/doc/restore/v_bad")
        assert response.status == 500
        assert response.body == {"error": "Storage failure"}
        assert document.encode_state() == before


class TestMetrics:
    def test_requests_counted(self, handler, metrics):
        handler.handle("GET", f"{PREFIX}/doc/versions")
        handler.handle("GET", "/nowhere")
        tags = [e["tags"] for e in metrics.increments if e["name"] == "notehistory.requests_total"]
        assert tags == [
            {"route": "versions", "status": "200"},
            {"route": "unknown", "status": "404"},
        ]


def test_custom_prefix(service):
    handler = HistoryRequestHandler(service, route_prefix="/api/")
    assert handler.handle("GET", "/api/doc/versions").status == 200
