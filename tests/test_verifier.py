"""Tests for the remote and local password verifiers."""

import json

import httpx
import pytest

from mortar.errors import TransportError
from mortar.models import GraduationData
from mortar.security.passwords import hash_password
from mortar.security.verifier import LocalPasswordVerifier, RemotePasswordVerifier
from mortar.testing import InMemoryRepository

URL = "https://grad.example/.netlify/functions/secure-operations"


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.anyio
async def test_remote_posts_verify_action() -> None:
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"isValid": True})

    async with _client(handler) as client:
        verifier = RemotePasswordVerifier(URL, client=client)
        assert await verifier.verify("g1", "secret") is True

    assert seen == [{"action": "verify", "entityId": "g1", "candidatePassword": "secret"}]


@pytest.mark.anyio
async def test_remote_invalid_password() -> None:
    async with _client(lambda request: httpx.Response(200, json={"isValid": False})) as client:
        assert await RemotePasswordVerifier(URL, client=client).verify("g1", "nope") is False


@pytest.mark.anyio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, json={"error": "boom"}),
        httpx.Response(200, text="<html>"),
        httpx.Response(200, json={"ok": True}),
        httpx.Response(200, json={"isValid": "yes"}),
    ],
)
async def test_remote_bad_answers_are_transport_errors(response: httpx.Response) -> None:
    async with _client(lambda request: response) as client:
        with pytest.raises(TransportError):
            await RemotePasswordVerifier(URL, client=client).verify("g1", "secret")


@pytest.mark.anyio
async def test_remote_connection_failure_is_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(TransportError) as exc_info:
            await RemotePasswordVerifier(URL, client=client).verify("g1", "secret")
    assert exc_info.value.operation == "verify"
    assert exc_info.value.entity_id == "g1"


@pytest.mark.anyio
async def test_local_verifier() -> None:
    repo = InMemoryRepository(
        [
            GraduationData(id="g1", password_hash=hash_password("secret")),
            GraduationData(id="g2"),
            GraduationData(id="g3", password_hash="garbage"),
        ]
    )
    verifier = LocalPasswordVerifier(repo)
    assert await verifier.verify("g1", "secret") is True
    assert await verifier.verify("g1", "wrong") is False
    assert await verifier.verify("g2", "secret") is False
    assert await verifier.verify("missing", "secret") is False
    assert await verifier.verify("g3", "secret") is False
