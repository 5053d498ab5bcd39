"""
Bounded retry for database work that can fail transiently (deadlocks,
serialization failures, dropped connections).
"""

import functools
import logging
import time

from django.db import OperationalError

from core_backend.config import marketplace_settings

logger = logging.getLogger(__name__)


def retry_on_transient_errors(func=None, *, attempts=None, delay=0.05):
    """
    Re-run the wrapped callable when it raises OperationalError.

    The wrapped callable must own its whole atomic block so that each attempt
    starts from a clean transaction. The last failure is re-raised.
    """

    def decorator(inner):
        @functools.wraps(inner)
        def wrapper(*args, **kwargs):
            max_attempts = attempts or marketplace_settings.transient_retry_attempts
            for attempt in range(1, max_attempts + 1):
                try:
                    return inner(*args, **kwargs)
                except OperationalError as e:
                    if attempt >= max_attempts:
                        logger.error(
                            f"{inner.__qualname__} failed after {attempt} attempts: {e}"
                        )
                        raise
                    logger.warning(
                        f"Transient database error in {inner.__qualname__} "
                        f"(attempt {attempt}/{max_attempts}): {e}"
                    )
                    time.sleep(delay * attempt)

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator
