from __future__ import annotations

import logging
import time
from typing import Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryError(Exception):
    def __init__(self, last_error: BaseException, attempts: int):
        self.last_error = last_error
        self.attempts = attempts
        super().__init__(f"{type(last_error).__name__} after {attempts} attempt(s): {last_error}")


class RetryAborted(RetryError):
    """The operation failed with an error that retrying cannot fix."""


class RetryExhausted(RetryError):
    """Every allowed attempt failed."""


def exponential_backoff(initial: float = 1.0, factor: float = 2.0) -> Callable[[int], float]:
    """Delay in seconds to wait after failed attempt ``n`` (1-based): initial, initial*factor, ..."""

    def _delay(attempt: int) -> float:
        return initial * factor ** (attempt - 1)

    return _delay


def _never_abort(error: Exception) -> bool:
    return False


def retry(
    operation: Callable[[], T],
    max_attempts: int,
    backoff: Callable[[int], float],
    should_abort: Optional[Callable[[Exception], bool]] = None,
    sleep: Callable[[float], None] = time.sleep,
    label: str = "operation",
) -> T:
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    should_abort = should_abort or _never_abort

    for attempt in range(1, max_attempts + 1):
        try:
            return operation()
        except Exception as e:
            if should_abort(e):
                logger.warning("%s aborted on attempt %d/%d: %s", label, attempt, max_attempts, e)
                raise RetryAborted(e, attempt) from e
            if attempt == max_attempts:
                logger.warning("%s failed on final attempt %d/%d: %s", label, attempt, max_attempts, e)
                raise RetryExhausted(e, attempt) from e
            delay = backoff(attempt)
            logger.warning(
                "%s failed on attempt %d/%d, retrying in %.1fs: %s",
                label,
                attempt,
                max_attempts,
                delay,
                e,
            )
            sleep(delay)

    # Unreachable: the loop either returns or raises.
    raise RuntimeError("retry loop exited unexpectedly")
