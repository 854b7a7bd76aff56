"""Reusable decorators for resource loading utilities."""

import time
import functools
import logging
from typing import Callable

log = logging.getLogger(__name__)


def log_elapsed(what: str) -> Callable[[Callable], Callable]:
    """Log how long the wrapped callable took to produce ``what``."""

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return func(*args, **kwargs)
            # logged on failure too, so slow broken loads are visible
            finally:
                elapsed_ms = (time.perf_counter() - start) * 1000
                log.info(f"{what} took {elapsed_ms:.1f} ms")

        return wrapper

    return decorator
