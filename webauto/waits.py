# webauto/waits.py
"""
@file waits.py
@brief Polling helpers for element and page conditions.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional, TypeVar

from .exceptions import TimeoutError

log = logging.getLogger("webauto.waits")

T = TypeVar("T")


def _now() -> float:
    return time.monotonic()


def _timeout_error(
    description: str,
    timeout: float,
    attempts: int,
    elapsed: float,
    last_exception: Optional[BaseException],
) -> TimeoutError:
    if last_exception is not None:
        error = TimeoutError(
            f"Timed out waiting for {description} after {timeout}s: "
            f"{type(last_exception).__name__}: {last_exception}"
        )
    else:
        error = TimeoutError(f"Timed out waiting for {description} after {timeout}s")
    error.original_exception = last_exception
    error.description = description
    error.timeout = timeout
    error.attempt_count = attempts
    error.elapsed_time = elapsed
    return error


def wait_until(
    predicate: Callable[[], T],
    timeout: float,
    interval: float = 0.2,
    description: str = "condition",
) -> T:
    """
    Call predicate until it returns a truthy value, and return that value.

    Exceptions from the predicate count as a falsy result; the last one is
    kept on the TimeoutError raised when time runs out.
    """
    start = _now()
    attempts = 0
    last_exception: Optional[BaseException] = None

    while True:
        attempts += 1
        try:
            result = predicate()
            if result:
                log.debug("%s satisfied after %d attempt(s)", description, attempts)
                return result
        except Exception as e:
            last_exception = e

        elapsed = _now() - start
        time_left = timeout - elapsed
        if time_left <= 0:
            raise _timeout_error(description, timeout, attempts, elapsed, last_exception)
        time.sleep(min(interval, time_left))


def wait_until_not(
    predicate: Callable[[], Any],
    timeout: float,
    interval: float = 0.2,
    description: str = "condition to become false",
) -> None:
    """Call predicate until it returns a falsy value."""
    start = _now()
    attempts = 0

    while True:
        attempts += 1
        try:
            if not predicate():
                return
        except Exception as e:
            log.debug("%s: predicate raised %s, treating as still true", description, e)

        elapsed = _now() - start
        time_left = timeout - elapsed
        if time_left <= 0:
            raise _timeout_error(description, timeout, attempts, elapsed, None)
        time.sleep(min(interval, time_left))
