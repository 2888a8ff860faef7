import pytest

from nutrichef.retry import RetryAborted, RetryExhausted, exponential_backoff, retry


class Flaky:
    def __init__(self, failures, result="ok"):
        self.failures = list(failures)
        self.result = result
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return self.result


def test_exponential_backoff_doubles():
    backoff = exponential_backoff(1.0)
    assert [backoff(n) for n in (1, 2, 3)] == [1.0, 2.0, 4.0]


def test_retry_returns_after_transient_failures():
    sleeps = []
    operation = Flaky([RuntimeError("a"), RuntimeError("b")])

    assert retry(operation, 3, exponential_backoff(1.0), sleep=sleeps.append) == "ok"
    assert operation.calls == 3
    assert sleeps == [1.0, 2.0]


def test_retry_exhausted_keeps_last_error():
    sleeps = []
    operation = Flaky([RuntimeError("1"), RuntimeError("2"), RuntimeError("3")])

    with pytest.raises(RetryExhausted) as excinfo:
        retry(operation, 3, exponential_backoff(1.0), sleep=sleeps.append)
    assert excinfo.value.attempts == 3
    assert str(excinfo.value.last_error) == "3"
    assert sleeps == [1.0, 2.0]


def test_retry_aborts_without_waiting():
    sleeps = []
    operation = Flaky([ValueError("fatal"), RuntimeError("never reached")])

    with pytest.raises(RetryAborted) as excinfo:
        retry(
            operation,
            3,
            exponential_backoff(1.0),
            should_abort=lambda e: isinstance(e, ValueError),
            sleep=sleeps.append,
        )
    assert excinfo.value.attempts == 1
    assert operation.calls == 1
    assert sleeps == []


def test_retry_rejects_zero_attempts():
    with pytest.raises(ValueError):
        retry(lambda: None, 0, exponential_backoff())
