"""Tests for the Xray Cloud token manager."""

import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest
import requests

from mcp_xray.xray.auth import CloudTokenManager, TokenState, XrayCloudAuth


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _counting_authenticate(prefix: str = "token"):
    calls = []

    def authenticate():
        calls.append(1)
        return f"{prefix}-{len(calls)}"

    return authenticate, calls


def test_first_call_authenticates():
    authenticate, calls = _counting_authenticate()
    clock = FakeClock()
    manager = CloudTokenManager(authenticate, clock=clock)

    assert manager.state is TokenState.UNAUTHENTICATED
    assert manager.get_token() == "token-1"
    assert manager.state is TokenState.AUTHENTICATED
    assert manager.expires_at == clock.now + 14 * 60
    assert len(calls) == 1


def test_fresh_token_is_reused():
    authenticate, calls = _counting_authenticate()
    clock = FakeClock()
    manager = CloudTokenManager(authenticate, clock=clock)

    manager.get_token()
    # Five minutes before expiry
    clock.now = manager.expires_at - 300
    assert manager.get_token() == "token-1"
    assert len(calls) == 1


def test_token_near_expiry_is_refreshed():
    authenticate, calls = _counting_authenticate()
    clock = FakeClock()
    manager = CloudTokenManager(authenticate, clock=clock)

    manager.get_token()
    # Thirty seconds before expiry, inside the refresh buffer
    clock.now = manager.expires_at - 30
    assert manager.get_token() == "token-2"
    assert len(calls) == 2


def test_concurrent_callers_share_one_refresh():
    started = threading.Event()
    release = threading.Event()
    calls = []

    def authenticate():
        calls.append(1)
        started.set()
        assert release.wait(timeout=5)
        return "shared-token"

    manager = CloudTokenManager(authenticate)

    with ThreadPoolExecutor(max_workers=4) as pool:
        first = pool.submit(manager.get_token)
        assert started.wait(timeout=5)
        assert manager.state is TokenState.REFRESHING
        others = [pool.submit(manager.get_token) for _ in range(3)]
        release.set()
        results = [first.result(timeout=5)] + [f.result(timeout=5) for f in others]

    assert results == ["shared-token"] * 4
    assert len(calls) == 1
    assert manager.state is TokenState.AUTHENTICATED


def test_failed_refresh_propagates_and_resets():
    attempts = []

    def authenticate():
        attempts.append(1)
        if len(attempts) == 1:
            raise requests.ConnectionError("xray unreachable")
        return "recovered"

    manager = CloudTokenManager(authenticate)

    with pytest.raises(requests.ConnectionError):
        manager.get_token()
    assert manager.state is TokenState.UNAUTHENTICATED
    assert manager.expires_at is None

    assert manager.get_token() == "recovered"
    assert manager.state is TokenState.AUTHENTICATED


def test_waiters_receive_the_refresh_error():
    started = threading.Event()
    release = threading.Event()

    def authenticate():
        started.set()
        assert release.wait(timeout=5)
        raise RuntimeError("invalid client credentials")

    manager = CloudTokenManager(authenticate)

    with ThreadPoolExecutor(max_workers=2) as pool:
        first = pool.submit(manager.get_token)
        assert started.wait(timeout=5)
        waiter = pool.submit(manager.get_token)
        release.set()
        with pytest.raises(RuntimeError, match="invalid client credentials"):
            first.result(timeout=5)
        with pytest.raises(RuntimeError, match="invalid client credentials"):
            waiter.result(timeout=5)

    assert manager.state is TokenState.UNAUTHENTICATED


def test_auth_sets_bearer_header():
    manager = MagicMock(spec=CloudTokenManager)
    manager.get_token.return_value = "abc"
    request = requests.Request("GET", "https://xray.example.com/graphql").prepare()

    XrayCloudAuth(manager)(request)

    assert request.headers["Authorization"] == "Bearer abc"
