"""Tests for the outbound retry policy."""

import httpx
import pytest

from pokepacks.services.retry import RetryPolicy


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def status_error(code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://catalog.test/cards")
    response = httpx.Response(code, request=request)
    return httpx.HTTPStatusError(f"HTTP {code}", request=request, response=response)


class Flaky:
    """Raises the queued errors in order, then returns "ok"."""

    def __init__(self, *errors: Exception) -> None:
        self.errors = list(errors)
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return "ok"


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


class TestRetryPolicy:
    async def test_success_first_try(self, sleep: RecordingSleep) -> None:
        operation = Flaky()

        assert await RetryPolicy(sleep=sleep).run(operation) == "ok"
        assert operation.calls == 1
        assert sleep.delays == []

    @pytest.mark.parametrize("code", [429, 502, 503, 504])
    async def test_transient_status_retried(self, sleep: RecordingSleep, code: int) -> None:
        operation = Flaky(status_error(code))

        assert await RetryPolicy(sleep=sleep).run(operation) == "ok"
        assert operation.calls == 2
        assert sleep.delays == [0.3]

    async def test_transport_errors_retried(self, sleep: RecordingSleep) -> None:
        operation = Flaky(httpx.ConnectTimeout("slow"), httpx.ReadError("reset"))

        assert await RetryPolicy(sleep=sleep).run(operation) == "ok"
        assert sleep.delays == [0.3, 0.7]

    @pytest.mark.parametrize("code", [400, 401, 404, 500])
    async def test_other_statuses_not_retried(self, sleep: RecordingSleep, code: int) -> None:
        operation = Flaky(status_error(code))

        with pytest.raises(httpx.HTTPStatusError):
            await RetryPolicy(sleep=sleep).run(operation)
        assert operation.calls == 1

    async def test_non_http_errors_not_retried(self, sleep: RecordingSleep) -> None:
        operation = Flaky(ValueError("bad json"))

        with pytest.raises(ValueError):
            await RetryPolicy(sleep=sleep).run(operation)
        assert operation.calls == 1

    async def test_gives_up_after_max_attempts(self, sleep: RecordingSleep) -> None:
        """Four attempts, three sleeps, then the last error propagates."""
        operation = Flaky(*(status_error(503) for _ in range(10)))

        with pytest.raises(httpx.HTTPStatusError):
            await RetryPolicy(sleep=sleep).run(operation)
        assert operation.calls == 4
        assert sleep.delays == [0.3, 0.7, 1.2]

    def test_last_delay_repeats(self) -> None:
        policy = RetryPolicy()

        assert policy.delay_for(10) == 2.0
