from __future__ import annotations

import httpx
import pytest

from roster_import.services.api_client import (
    IMPORT_FALLBACK_MESSAGE,
    UNDO_FALLBACK_MESSAGE,
    ImportClient,
    ImportRequestError,
)
from tests.helpers import FakeBackend


def _client(backend: FakeBackend) -> ImportClient:
    return ImportClient("http://backend.test/", transport=backend.transport)


def test_import_users_posts_bearer_json(backend: FakeBackend):
    backend.skipped = [{"email": "x@nu.ac.th", "reason": "Email already exists"}]
    with _client(backend) as client:
        skipped = client.import_users("tok-1", [{"email": "x@nu.ac.th"}])

    assert skipped == [{"email": "x@nu.ac.th", "reason": "Email already exists"}]
    (request,) = backend.requests
    assert request.method == "POST"
    assert str(request.url) == "http://backend.test/users/import"
    assert request.headers["Authorization"] == "Bearer tok-1"
    assert request.headers["Content-Type"] == "application/json"
    assert backend.bodies() == [{"users": [{"email": "x@nu.ac.th"}]}]


def test_import_users_without_skip_list():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(201, json={"created": 2})

    with ImportClient("http://backend.test", transport=httpx.MockTransport(handler)) as client:
        assert client.import_users("tok", []) == []


def test_server_message_is_surfaced(backend: FakeBackend):
    backend.import_status = 400
    backend.error_body = {"message": "users must be an array", "statusCode": 400}
    with _client(backend) as client, pytest.raises(ImportRequestError) as e:
        client.import_users("tok", [])
    assert e.value.message == "users must be an array"
    assert e.value.status_code == 400


def test_server_message_list_is_joined(backend: FakeBackend):
    backend.import_status = 422
    backend.error_body = {"message": ["email must be an email", "role must be valid"]}
    with _client(backend) as client, pytest.raises(ImportRequestError) as e:
        client.import_users("tok", [])
    assert e.value.message == "email must be an email, role must be valid"


def test_generic_message_without_server_payload():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="<html>bad gateway</html>")

    with ImportClient("http://backend.test", transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(ImportRequestError) as e:
            client.import_users("tok", [])
        assert e.value.message == IMPORT_FALLBACK_MESSAGE
        assert e.value.status_code == 502


def test_transport_error_is_not_retried(backend: FakeBackend):
    backend.raise_transport_error = True
    with _client(backend) as client, pytest.raises(ImportRequestError) as e:
        client.import_users("tok", [])
    assert e.value.status_code is None
    assert len(backend.requests) == 1


def test_undo_posts_empty_body(backend: FakeBackend):
    with _client(backend) as client:
        client.undo_last_import("tok-2")
    (request,) = backend.requests
    assert request.url.path == "/users/import/undo"
    assert request.headers["Authorization"] == "Bearer tok-2"
    assert backend.bodies() == [{}]


def test_undo_failure_message(backend: FakeBackend):
    backend.undo_status = 500
    with _client(backend) as client, pytest.raises(ImportRequestError) as e:
        client.undo_last_import("tok")
    assert e.value.message == UNDO_FALLBACK_MESSAGE
