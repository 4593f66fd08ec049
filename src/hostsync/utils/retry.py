# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

import time
from typing import Callable, Optional, TypeVar

T = TypeVar("T")


def retry_call(
    fn: Callable[[], T],
    *,
    retries: int,
    delay: float,
    retry_on: tuple[type[Exception], ...] = (Exception,),
    on_retry: Optional[Callable[[int, Exception], None]] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call ``fn`` up to ``retries`` times with a fixed delay between attempts.

    retries: number of attempts (at least one is always made)
    delay: seconds between attempts, no backoff growth
    retry_on: exception types to retry
    on_retry: callback(attempt, exception) after each failed attempt

    The exception from the last attempt propagates unchanged.
    """
    attempts = max(retries, 1)
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except retry_on as exc:
            if on_retry:
                on_retry(attempt, exc)
            if attempt == attempts:
                raise
            sleep(delay)
    raise AssertionError("unreachable")
