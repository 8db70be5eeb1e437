# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/utils/retry.py

from __future__ import annotations

import functools
import logging
import time
from typing import Callable, Optional, Tuple, Type

log = logging.getLogger("cloudstep")


class RetryError(RuntimeError):
    """A polled condition never became true."""


def retry(
    *,
    retries: int,
    delay: float,
    retry_on: Tuple[Type[Exception], ...] = (Exception,),
    backoff: float = 1.0,
    on_retry: Optional[Callable[[int, Exception], None]] = None,
):
    """
    Poll a readiness check from inside a step body, e.g. waiting for a
    database socket or an API to answer after a restart.

    The wrapped function is called up to `retries` times. Only exceptions in
    `retry_on` trigger another attempt; anything else propagates at once.
    The pause starts at `delay` seconds and is multiplied by `backoff` after
    each failure. The workflow engine never retries whole steps.
    """

    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            pause = delay
            for attempt in range(1, retries + 1):
                try:
                    return fn(*args, **kwargs)
                except retry_on as exc:
                    if on_retry is not None:
                        on_retry(attempt, exc)
                    if attempt == retries:
                        raise RetryError(
                            f"{fn.__name__} still failing after {retries} attempts: {exc}"
                        ) from exc
                    log.debug("%s not ready (%d/%d): %s; next try in %.1fs",
                              fn.__name__, attempt, retries, exc, pause)
                    time.sleep(pause)
                    pause *= backoff
        return wrapper
    return decorator
