# hardware_store/core/retry.py
"""
Retry utilities with exponential backoff and jitter.
"""
import random
import time
from functools import wraps
from typing import Any, Callable, TypeVar

T = TypeVar("T")


def retry_with_backoff(
    max_retries: int = 3,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = True,
    exceptions: tuple = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
):
    """
    Decorator for retrying functions with exponential backoff and jitter.

    Args:
        max_retries: Retry attempts after the first call
        initial_delay: Delay before the first retry, in seconds
        max_delay: Upper bound for a single delay
        exponential_base: Multiplier applied to the delay after each retry
        jitter: Add up to 25% random jitter to each delay
        exceptions: Exceptions that trigger a retry; others propagate at once
        sleep: Function used to wait (tests pass a no-op)

    The exception from the last attempt is re-raised.
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            delay = initial_delay

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions:
                    if attempt == max_retries:
                        raise

                    actual_delay = delay
                    if jitter:
                        actual_delay += delay * 0.25 * random.random()
                    sleep(min(actual_delay, max_delay))

                    delay *= exponential_base

            raise RuntimeError("unreachable")  # pragma: no cover

        return wrapper

    return decorator
