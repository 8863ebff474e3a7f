"""
Unit tests for resilience utilities.
"""

import pytest

from symbolicator.utils.resilience import retry_with_backoff


@pytest.mark.asyncio
async def test_retry_succeeds_after_transient_failures():
    """Test the call is retried until it succeeds."""
    attempts = []

    @retry_with_backoff(max_retries=3, base_delay=0, exceptions=(ConnectionError,))
    async def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise ConnectionError("reset")
        return "ok"

    assert await flaky() == "ok"
    assert len(attempts) == 3


@pytest.mark.asyncio
async def test_retry_reraises_after_last_attempt():
    """Test the last error propagates once retries are exhausted."""
    attempts = []

    @retry_with_backoff(max_retries=2, base_delay=0, exceptions=(ConnectionError,))
    async def down():
        attempts.append(1)
        raise ConnectionError("refused")

    with pytest.raises(ConnectionError, match="refused"):
        await down()
    assert len(attempts) == 2


@pytest.mark.asyncio
async def test_other_exceptions_not_retried():
    """Test exceptions outside the retry list propagate immediately."""
    attempts = []

    @retry_with_backoff(max_retries=3, base_delay=0, exceptions=(ConnectionError,))
    async def broken():
        attempts.append(1)
        raise ValueError("bad input")

    with pytest.raises(ValueError):
        await broken()
    assert len(attempts) == 1


@pytest.mark.asyncio
async def test_backoff_delays(monkeypatch):
    """Test delays grow exponentially and are capped."""
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)

    monkeypatch.setattr("symbolicator.utils.resilience.asyncio.sleep", fake_sleep)

    @retry_with_backoff(max_retries=5, base_delay=1.0, max_delay=5.0, exceptions=(ConnectionError,))
    async def down():
        raise ConnectionError("refused")

    with pytest.raises(ConnectionError):
        await down()

    assert delays == [1.0, 2.0, 4.0, 5.0]


@pytest.mark.asyncio
async def test_wrapped_name_preserved():
    """Test functools.wraps keeps the coroutine's name."""
    @retry_with_backoff()
    async def fetch_map():
        return None

    assert fetch_map.__name__ == "fetch_map"
