"""Tests for the bounded retry loop."""

import asyncio

import pytest

from launchpad.jobs.errors import ProviderError
from launchpad.jobs.retry import RetriesExhausted, RetryPolicy, run_with_retry


def flaky(failures, value="ok"):
    """Return an async fn that raises each of failures once, then returns value."""
    remaining = list(failures)
    calls = []

    async def fn():
        calls.append(1)
        if remaining:
            raise remaining.pop(0)
        return value

    fn.calls = calls
    return fn


def test_delay_schedule():
    policy = RetryPolicy()
    assert [policy.delay_for(n) for n in (1, 2, 3, 4, 5)] == [5.0, 10.0, 20.0, 40.0, 60.0]
    assert policy.delay_for(10) == 60.0
    assert policy.max_retries == 2


@pytest.mark.asyncio
async def test_success_first_try(policy, sleep):
    fn = flaky([])
    value, retries = await run_with_retry(fn, policy, sleep=sleep)
    assert (value, retries) == ("ok", 0)
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_succeeds_after_two_failures(policy, sleep):
    seen = []

    async def on_retry(n, error):
        seen.append((n, str(error)))

    fn = flaky([ProviderError("503", status_code=503), ProviderError("overloaded", status_code=529)])
    value, retries = await run_with_retry(fn, policy, on_retry=on_retry, sleep=sleep)

    assert value == "ok"
    assert retries == 2
    assert seen == [(1, "503"), (2, "overloaded")]
    assert sleep.delays == [5.0, 10.0]


@pytest.mark.asyncio
async def test_exhausts_after_max_attempts(policy, sleep):
    errors = [ProviderError(f"fail {i}") for i in range(3)]
    fn = flaky(errors)

    with pytest.raises(RetriesExhausted) as exc_info:
        await run_with_retry(fn, policy, sleep=sleep)

    assert exc_info.value.attempts == 3
    assert exc_info.value.retries == 2
    assert exc_info.value.last_error is errors[2]
    assert len(fn.calls) == 3
    assert sleep.delays == [5.0, 10.0]


@pytest.mark.asyncio
async def test_permanent_provider_error_is_not_retried(policy, sleep):
    fn = flaky([ProviderError("bad key", status_code=401)])

    with pytest.raises(RetriesExhausted) as exc_info:
        await run_with_retry(fn, policy, sleep=sleep)

    assert exc_info.value.attempts == 1
    assert len(fn.calls) == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_attempt_timeout_counts_as_retryable_failure(sleep):
    policy = RetryPolicy(max_attempts=2, initial_delay=0, timeout=0.01)

    async def slow():
        await asyncio.sleep(1)

    with pytest.raises(RetriesExhausted) as exc_info:
        await run_with_retry(slow, policy, sleep=sleep)

    assert exc_info.value.attempts == 2
    assert "timed out" in str(exc_info.value.last_error)


def test_provider_error_retryability():
    assert ProviderError("x").retryable
    assert ProviderError("x", status_code=429).retryable
    assert ProviderError("x", status_code=500).retryable
    assert not ProviderError("x", status_code=400).retryable
    assert not ProviderError("x", status_code=403).retryable
