"""Tests for the bounded exponential-backoff retry policy."""

import pytest

from core.errors import FatalRemoteError, RetryExhaustedError, TransientRemoteError
from core.services.retry import RetryPolicy


class Flaky:
    """Callable that raises the queued errors, then returns `value`."""

    def __init__(self, errors, value="ok"):
        self.errors = list(errors)
        self.value = value
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.value


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def policy(sleeps):
    return RetryPolicy(max_retries=3, base_delay=1.0, sleep=sleeps.append)


class TestRetryPolicy:

    def test_success_first_try(self, policy, sleeps):
        fn = Flaky([])
        assert policy.call(fn) == "ok"
        assert fn.calls == 1
        assert sleeps == []
        assert policy.retries_used == 0

    def test_transient_then_success(self, policy, sleeps):
        fn = Flaky([TransientRemoteError("Rate limited", status_code=429)])
        assert policy.call(fn) == "ok"
        assert fn.calls == 2
        assert sleeps == [1.0]
        assert policy.retries_used == 1

    def test_backoff_doubles(self, policy, sleeps):
        fn = Flaky([TransientRemoteError("busy")] * 3)
        assert policy.call(fn) == "ok"
        assert sleeps == [1.0, 2.0, 4.0]

    def test_exhausted_after_max_retries(self, policy, sleeps):
        fn = Flaky([TransientRemoteError("busy", status_code=503)] * 4)
        with pytest.raises(RetryExhaustedError) as excinfo:
            policy.call(fn)
        assert fn.calls == 4
        assert excinfo.value.retries == 3
        assert excinfo.value.status_code == 503
        assert "gave up after 3 retries" in excinfo.value.message

    def test_fatal_not_retried(self, policy, sleeps):
        fn = Flaky([FatalRemoteError("Cloudflare API Error: forbidden", status_code=403)])
        with pytest.raises(FatalRemoteError):
            policy.call(fn)
        assert fn.calls == 1
        assert sleeps == []

    def test_zero_retries(self, sleeps):
        policy = RetryPolicy(max_retries=0, sleep=sleeps.append)
        with pytest.raises(RetryExhaustedError):
            policy.call(Flaky([TransientRemoteError("busy")]))
        assert sleeps == []

    def test_negative_retries_rejected(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_retries=-1)

    def test_retry_logged(self, policy, caplog):
        policy.call(Flaky([TransientRemoteError("Rate limited")]), label="create a@example.com")
        assert "create a@example.com: Rate limited" in caplog.text

    def test_counter_resets_per_call(self, policy):
        policy.call(Flaky([TransientRemoteError("busy")]))
        policy.call(Flaky([]))
        assert policy.retries_used == 0
