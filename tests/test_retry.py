import pytest

from incidentlens.errors import FatalServiceError, RetryableServiceError
from incidentlens.retry import call_with_retry


class Flaky:
    def __init__(self, failures: list[Exception], result="ok"):
        self.failures = list(failures)
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return self.result


async def no_sleep(delay: float) -> None:
    no_sleep.delays.append(delay)


@pytest.fixture(autouse=True)
def reset_delays():
    no_sleep.delays = []


@pytest.mark.asyncio
async def test_retries_until_success_with_growing_delay():
    operation = Flaky([RetryableServiceError("svc", "503"), RetryableServiceError("svc", "503")])

    result = await call_with_retry(operation, "test", max_attempts=3, backoff_seconds=1.0, sleep=no_sleep)

    assert result == "ok"
    assert operation.calls == 3
    assert 1.0 <= no_sleep.delays[0] <= 1.1
    assert 2.0 <= no_sleep.delays[1] <= 2.2


@pytest.mark.asyncio
async def test_reraises_after_last_attempt():
    operation = Flaky([RetryableServiceError("svc", "timeout")] * 5)
    with pytest.raises(RetryableServiceError):
        await call_with_retry(operation, "test", max_attempts=2, backoff_seconds=0, sleep=no_sleep)
    assert operation.calls == 2


@pytest.mark.asyncio
async def test_fatal_errors_are_not_retried():
    operation = Flaky([FatalServiceError("svc", "401")])
    with pytest.raises(FatalServiceError):
        await call_with_retry(operation, "test", max_attempts=3, backoff_seconds=0, sleep=no_sleep)
    assert operation.calls == 1
    assert no_sleep.delays == []
