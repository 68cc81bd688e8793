import asyncio

import httpx
import pytest
import requests

from corpus_rag.core.retry import backoff_delay, is_transient_error, retry_async


class StatusError(Exception):
    def __init__(self, status_code: int):
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code


class Flaky:
    def __init__(self, errors: list[Exception], result: str = "ok"):
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.mark.parametrize(
    "exc, expected",
    [
        (ConnectionResetError(), True),
        (asyncio.TimeoutError(), True),
        (httpx.ConnectTimeout("connect timed out"), True),
        (requests.ConnectionError("reset"), True),
        (StatusError(429), True),
        (StatusError(503), True),
        (StatusError(404), False),
        (RuntimeError("read ETIMEDOUT"), True),
        (ValueError("bad id"), False),
    ],
)
def test_is_transient_error(exc, expected):
    assert is_transient_error(exc) is expected


def test_backoff_delay_is_bounded():
    for _ in range(100):
        delay = backoff_delay(0, 0.12, 0.25)
        assert 0.12 <= delay <= 0.25


@pytest.mark.asyncio
async def test_transient_failure_is_retried_once():
    fn = Flaky([ConnectionResetError()])
    sleep = RecordingSleep()

    assert await retry_async(fn, retries=1, sleep=sleep) == "ok"
    assert fn.calls == 2
    assert len(sleep.delays) == 1
    assert 0.12 <= sleep.delays[0] <= 0.25


@pytest.mark.asyncio
async def test_non_transient_failure_is_not_retried():
    fn = Flaky([ValueError("bad")])
    sleep = RecordingSleep()

    with pytest.raises(ValueError):
        await retry_async(fn, retries=3, sleep=sleep)
    assert fn.calls == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_gives_up_after_retries():
    fn = Flaky([StatusError(503), StatusError(503), StatusError(503)])

    with pytest.raises(StatusError):
        await retry_async(fn, retries=2, sleep=RecordingSleep())
    assert fn.calls == 3


@pytest.mark.asyncio
async def test_custom_predicate():
    fn = Flaky([ValueError("flaky")])

    result = await retry_async(fn, retries=1, is_transient=lambda e: True, sleep=RecordingSleep())

    assert result == "ok"
