# tests/test_single_flight.py

import asyncio

import pytest

from conftest import candidate_payload, run
from utils.exceptions import RequestInFlightError
from utils.single_flight import SingleFlight, caller_key, in_flight


def test_second_call_is_rejected_while_first_runs():
    guard = SingleFlight()

    async def scenario():
        started = asyncio.Event()
        release = asyncio.Event()

        async def first():
            async with guard.guard("search", "user-1"):
                started.set()
                await release.wait()

        task = asyncio.create_task(first())
        await started.wait()

        with pytest.raises(RequestInFlightError):
            async with guard.guard("search", "user-1"):
                pass

        # other actions and other callers are independent
        async with guard.guard("save", "user-1"):
            pass
        async with guard.guard("search", "user-2"):
            pass

        release.set()
        await task
        assert not guard.is_running("search", "user-1")

    run(scenario())


def test_guard_is_released_after_an_error():
    guard = SingleFlight()

    async def scenario():
        with pytest.raises(ValueError):
            async with guard.guard("upload", "k"):
                raise ValueError("bad file")
        async with guard.guard("upload", "k"):
            pass

    run(scenario())


def test_save_in_flight_returns_409(client, auth_headers):
    token = ("save", "token:" + auth_headers["Authorization"].split(" ", 1)[1])
    in_flight._in_flight.add(token)
    try:
        r = client.post("/candidates", json=candidate_payload(), headers=auth_headers)
    finally:
        in_flight._in_flight.discard(token)
    assert r.status_code == 409
    assert "save" in r.json()["detail"]


# =====================
# CALLER KEY
# =====================

def _request(headers=None, host="10.0.0.1"):
    from starlette.requests import Request

    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request({"type": "http", "headers": raw, "client": (host, 5000)})


def test_caller_key_prefers_token_then_client_id():
    assert caller_key(_request({"Authorization": "Bearer abc", "X-Client-Id": "tab-1"})) == "token:abc"
    assert caller_key(_request({"X-Client-Id": "tab-1"})) == "client:tab-1"
    assert caller_key(_request()) == "ip:10.0.0.1"


def test_forwarded_for_is_ignored_unless_proxy_is_trusted(monkeypatch):
    import config

    request = _request({"X-Forwarded-For": "10.0.0.9, 172.16.0.1"})
    assert caller_key(request) == "ip:10.0.0.1"

    monkeypatch.setattr(config, "TRUST_PROXY_HEADERS", True)
    assert caller_key(request) == "ip:10.0.0.9"


def test_spoofed_forwarded_for_does_not_collide(client):
    token = ("search", "ip:10.0.0.9")
    in_flight._in_flight.add(token)
    try:
        r = client.post("/search-candidates", json={"query": "python"}, headers={"X-Forwarded-For": "10.0.0.9"})
    finally:
        in_flight._in_flight.discard(token)
    assert r.status_code == 200


def test_anonymous_callers_with_client_ids_do_not_block_each_other(client):
    token = ("search", "client:tab-1")
    in_flight._in_flight.add(token)
    try:
        blocked = client.post("/search-candidates", json={"query": "python"}, headers={"X-Client-Id": "tab-1"})
        other = client.post("/search-candidates", json={"query": "python"}, headers={"X-Client-Id": "tab-2"})
    finally:
        in_flight._in_flight.discard(token)
    assert blocked.status_code == 409
    assert other.status_code == 200
