"""
Tests for the admin access gate and client address resolution.
"""
import uuid

import pytest
from starlette.requests import Request

from conftest import ADMIN_TOKEN, make_dream_fields
from ruya.core.config import settings
from ruya.core.security import client_address, extract_token, is_authorized
from ruya.models.dream import Dream
from ruya.services.store import create_dream


def _request(headers: dict | None = None, query: str = "", client=("127.0.0.1", 5000)) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/dreams",
        "query_string": query.encode(),
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


class TestExtractToken:
    def test_bearer_header(self):
        assert extract_token(_request({"Authorization": "Bearer abc"})) == "abc"

    def test_admin_header(self):
        assert extract_token(_request({"X-Admin-Token": "abc"})) == "abc"

    def test_query_param(self):
        assert extract_token(_request(query="token=abc")) == "abc"

    def test_missing(self):
        assert extract_token(_request()) is None


class TestIsAuthorized:
    def test_exact_match(self):
        assert is_authorized("s3cret", "s3cret") is True

    @pytest.mark.parametrize("token", [None, "", "s3cre", "s3cret ", "S3CRET"])
    def test_mismatch(self, token):
        assert is_authorized(token, "s3cret") is False

    def test_empty_secret_never_matches(self):
        assert is_authorized("", "") is False


class TestClientAddress:
    def test_first_forwarded_for_entry(self):
        req = _request({"X-Forwarded-For": "203.0.113.1, 10.0.0.2"})
        assert client_address(req) == "203.0.113.1"

    def test_real_ip_header(self):
        assert client_address(_request({"X-Real-IP": "203.0.113.2"})) == "203.0.113.2"

    def test_socket_peer(self):
        assert client_address(_request()) == "127.0.0.1"

    def test_unknown(self):
        assert client_address(_request(client=None)) == "unknown"

    def test_proxy_headers_ignored_when_untrusted(self, monkeypatch):
        monkeypatch.setattr(settings, "TRUST_PROXY_HEADERS", False)
        req = _request({"X-Forwarded-For": "203.0.113.1", "X-Real-IP": "203.0.113.2"})
        assert client_address(req) == "127.0.0.1"


# ---------------------------------------------------------------------------
# HTTP: every admin endpoint refuses without touching the store
# ---------------------------------------------------------------------------

ADMIN_CALLS = [
    ("GET", "/dreams", None),
    ("GET", "/dreams/{id}", None),
    ("PUT", "/dreams/{id}", {"interpretation": "A long enough interpretation."}),
    ("PUT", "/dreams", {"id": "{id}", "interpretation": "A long enough interpretation."}),
    ("DELETE", "/dreams/{id}", None),
    ("DELETE", "/dreams?id={id}", None),
    ("POST", "/dreams/{id}/archive", None),
    ("POST", "/dreams/{id}/toggle-public", None),
    ("POST", "/dreams/{id}/tags", {"tags": ["x"]}),
    ("GET", "/stats", None),
]


def _snapshot(db) -> list[tuple]:
    db.expire_all()
    return [
        (d.id, str(d.status), d.interpretation, d.is_public, d.tags)
        for d in db.query(Dream).order_by(Dream.id).all()
    ]


class TestAdminGate:
    @pytest.mark.parametrize("method,path,body", ADMIN_CALLS)
    @pytest.mark.parametrize("headers", [
        {},
        {"Authorization": "Bearer wrong-token"},
        {"X-Admin-Token": "wrong-token"},
    ])
    def test_rejected_without_mutation(self, client, db, method, path, body, headers):
        dream = create_dream(db, make_dream_fields())
        before = _snapshot(db)

        url = path.replace("{id}", dream.id)
        json_body = None
        if body is not None:
            json_body = {k: (v.replace("{id}", dream.id) if isinstance(v, str) else v)
                         for k, v in body.items()}
        r = client.request(method, url, json=json_body, headers=headers)

        assert r.status_code == 401
        assert r.json() == {"success": False, "error": "Unauthorized access", "code": "UNAUTHORIZED"}
        assert _snapshot(db) == before

    def test_wrong_query_token_rejected(self, client):
        r = client.get("/stats?token=nope")
        assert r.status_code == 401

    def test_query_token_accepted(self, client):
        r = client.get(f"/stats?token={ADMIN_TOKEN}")
        assert r.status_code == 200

    def test_admin_header_accepted(self, client):
        r = client.get("/stats", headers={"X-Admin-Token": ADMIN_TOKEN})
        assert r.status_code == 200

    def test_unauthorized_beats_invalid_fields(self, client):
        r = client.put(f"/dreams/{uuid.uuid4().hex}", json={"interpretation": 123, "tags": "x"})
        assert r.status_code == 401

    @pytest.mark.parametrize("method,path", [
        ("PUT", "/dreams/{id}"),
        ("PUT", "/dreams"),
        ("POST", "/dreams/{id}/tags"),
    ])
    def test_unauthorized_beats_malformed_body(self, client, method, path):
        url = path.replace("{id}", uuid.uuid4().hex)
        r = client.request(
            method, url, content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert r.status_code == 401
        assert r.json()["code"] == "UNAUTHORIZED"

    def test_malformed_body_with_token_is_validation_error(self, client, admin_headers):
        r = client.put(
            f"/dreams/{uuid.uuid4().hex}",
            content=b"{not json",
            headers={**admin_headers, "Content-Type": "application/json"},
        )
        assert r.status_code == 400
        assert r.json()["code"] == "VALIDATION_ERROR"

    def test_public_routes_skip_the_gate(self, client):
        assert client.get("/dreams/public").status_code == 200
