"""Tests for vendure_sdk.token_manager.TokenManager."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest

from vendure_sdk.errors import AuthenticationError, TokenMissingError
from vendure_sdk.token_manager import TokenManager, TokenState


class _FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def test_fetches_once_and_caches():
    fetcher = MagicMock(return_value="tok-1")
    manager = TokenManager(fetcher, {"username": "u"})

    assert manager.get_valid_token() == "tok-1"
    assert manager.get_valid_token() == "tok-1"
    fetcher.assert_called_once_with({"username": "u"})
    assert manager.state is TokenState.VALID


def test_refetches_after_expiry():
    clock = _FakeClock()
    fetcher = MagicMock(side_effect=["tok-1", "tok-2"])
    manager = TokenManager(fetcher, session_duration=60, clock=clock)

    assert manager.get_valid_token() == "tok-1"
    clock.now += 59
    assert manager.get_valid_token() == "tok-1"
    clock.now += 1
    assert manager.get_valid_token() == "tok-2"
    assert fetcher.call_count == 2


def test_fetcher_error_becomes_authentication_error():
    manager = TokenManager(MagicMock(side_effect=RuntimeError("backend down")))

    with pytest.raises(AuthenticationError) as exc_info:
        manager.get_valid_token()

    assert "backend down" in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert manager.state is TokenState.FAILED


def test_empty_token_raises_token_missing():
    manager = TokenManager(MagicMock(return_value=None))

    with pytest.raises(TokenMissingError):
        manager.get_valid_token()


def test_failure_is_not_cached():
    fetcher = MagicMock(side_effect=[RuntimeError("flaky"), "tok-2"])
    manager = TokenManager(fetcher)

    with pytest.raises(AuthenticationError):
        manager.get_valid_token()
    assert manager.get_valid_token() == "tok-2"


def test_concurrent_callers_share_one_fetch():
    release = threading.Event()
    started = threading.Event()
    calls = []

    def fetcher(params):
        calls.append(params)
        started.set()
        release.wait(timeout=5)
        return "shared-token"

    manager = TokenManager(fetcher)

    with ThreadPoolExecutor(max_workers=5) as pool:
        leader = pool.submit(manager.get_valid_token)
        assert started.wait(timeout=5)
        waiters = [pool.submit(manager.get_valid_token) for _ in range(4)]
        # let the waiters reach the in-flight future before releasing
        time.sleep(0.05)
        release.set()
        results = [leader.result(timeout=5)] + [w.result(timeout=5) for w in waiters]

    assert results == ["shared-token"] * 5
    assert len(calls) == 1


def test_concurrent_callers_share_the_failure():
    release = threading.Event()
    started = threading.Event()
    calls = []

    def fetcher(params):
        calls.append(params)
        started.set()
        release.wait(timeout=5)
        raise RuntimeError("denied")

    manager = TokenManager(fetcher)

    with ThreadPoolExecutor(max_workers=3) as pool:
        leader = pool.submit(manager.get_valid_token)
        assert started.wait(timeout=5)
        waiters = [pool.submit(manager.get_valid_token) for _ in range(2)]
        time.sleep(0.05)
        release.set()
        for future in [leader] + waiters:
            with pytest.raises(AuthenticationError):
                future.result(timeout=5)

    assert len(calls) == 1


def test_refresh_token_forces_fetch_with_params():
    fetcher = MagicMock(side_effect=["tok-1", "tok-2"])
    manager = TokenManager(fetcher, {"username": "a"})
    manager.get_valid_token()

    assert manager.refresh_token({"username": "b"}) == "tok-2"
    fetcher.assert_called_with({"username": "b"})
    assert manager.token == "tok-2"


def test_invalidate_forces_new_fetch():
    fetcher = MagicMock(side_effect=["tok-1", "tok-2"])
    manager = TokenManager(fetcher)
    manager.get_valid_token()

    manager.invalidate()

    assert manager.token is None
    assert manager.state is TokenState.UNINITIALIZED
    assert manager.get_valid_token() == "tok-2"


def test_set_token_without_expiry_never_fetches():
    fetcher = MagicMock()
    clock = _FakeClock()
    manager = TokenManager(fetcher, clock=clock)

    manager.set_token("preset")
    clock.now += 10 ** 9

    assert manager.get_valid_token() == "preset"
    fetcher.assert_not_called()


def test_set_token_with_expiry():
    clock = _FakeClock()
    fetcher = MagicMock(return_value="fresh")
    manager = TokenManager(fetcher, clock=clock)

    manager.set_token("preset", expires_at=clock.now + 5)
    assert manager.get_valid_token() == "preset"
    clock.now += 5
    assert manager.state is TokenState.UNINITIALIZED
    assert manager.get_valid_token() == "fresh"


class _PausingLock:
    """Wraps a lock and parks one named thread right after its first release."""

    def __init__(self, lock, thread_name):
        self._lock = lock
        self._thread_name = thread_name
        self._parked = False
        self.paused = threading.Event()
        self.resume = threading.Event()

    def __enter__(self):
        self._lock.acquire()
        return self

    def __exit__(self, *exc_info):
        self._lock.release()
        if threading.current_thread().name == self._thread_name and not self._parked:
            self._parked = True
            self.paused.set()
            self.resume.wait(timeout=5)
        return False


def test_caller_arriving_after_a_finished_refresh_reuses_its_token():
    fetcher = MagicMock(side_effect=["tok-1", "tok-2"])
    manager = TokenManager(fetcher)
    gate = _PausingLock(manager._lock, "slow-caller")
    manager._lock = gate
    results = {}

    slow = threading.Thread(
        target=lambda: results.setdefault("slow", manager.get_valid_token()),
        name="slow-caller",
    )
    slow.start()
    # slow-caller has seen no valid token and is parked before refreshing
    assert gate.paused.wait(timeout=5)
    results["fast"] = manager.get_valid_token()
    gate.resume.set()
    slow.join(timeout=5)

    assert fetcher.call_count == 1
    assert results == {"slow": "tok-1", "fast": "tok-1"}


def test_invalidate_during_refresh_is_not_undone():
    release = threading.Event()
    started = threading.Event()

    def fetcher(params):
        started.set()
        release.wait(timeout=5)
        return "old-session"

    manager = TokenManager(fetcher)

    with ThreadPoolExecutor(max_workers=1) as pool:
        leader = pool.submit(manager.get_valid_token)
        assert started.wait(timeout=5)
        manager.invalidate()
        release.set()
        # the caller that asked still gets the fetched token
        assert leader.result(timeout=5) == "old-session"

    assert manager.token is None
    assert manager.state is TokenState.UNINITIALIZED


def test_set_token_during_refresh_wins():
    release = threading.Event()
    started = threading.Event()

    def fetcher(params):
        started.set()
        release.wait(timeout=5)
        return "fetched"

    manager = TokenManager(fetcher)

    with ThreadPoolExecutor(max_workers=1) as pool:
        leader = pool.submit(manager.get_valid_token)
        assert started.wait(timeout=5)
        manager.set_token("explicit")
        release.set()
        leader.result(timeout=5)

    assert manager.token == "explicit"
    assert manager.state is TokenState.VALID
