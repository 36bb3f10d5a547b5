"""Decorator utilities for cross-cutting concerns."""
import time
import logging
import functools
from typing import Any, Callable, TypeVar, cast

# Setup logging
logger = logging.getLogger(__name__)

F = TypeVar('F', bound=Callable[..., Any])


def log_execution_time(func: F) -> F:
    """Decorator to log how long a storage call took.

    Timings are logged at DEBUG; the decorated function is responsible for
    logging its own outcome at the appropriate level.

    Args:
        func: The function to decorate

    Returns:
        Decorated function that logs execution time
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.perf_counter()
        try:
            result = func(*args, **kwargs)
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.debug(f"{func.__qualname__} completed in {duration_ms:.1f}ms")
            return result
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.debug(f"{func.__qualname__} raised {type(e).__name__} after {duration_ms:.1f}ms")
            raise
    return cast(F, wrapper)
