# eip_controller/core/wait.py
"""
Retrying waiter for eventually-consistent EC2 calls

A condition is polled on an exponential backoff schedule. The condition
returns True when done, False to poll again, or raises. A raised error is
retried only if its provider error code is in the retryable set; anything
else surfaces immediately.
"""

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, Optional

from botocore.exceptions import ClientError

from .errors import RetriesExhaustedError

logger = logging.getLogger(__name__)


# EC2 error codes the address services care about
AUTH_FAILURE = "AuthFailure"
IN_USE_IP_ADDRESS = "InvalidIPAddress.InUse"
ASSOCIATION_ID_NOT_FOUND = "InvalidAssociationID.NotFound"


def error_code(err: Optional[BaseException]) -> Optional[str]:
    """
    Extract the provider error code from an exception

    Follows the ``raise ... from`` chain so wrapped ClientErrors are found.
    """
    seen = set()
    while err is not None and id(err) not in seen:
        seen.add(id(err))
        if isinstance(err, ClientError):
            return err.response.get("Error", {}).get("Code")
        err = err.__cause__
    return None


@dataclass
class Backoff:
    """Exponential backoff schedule"""
    initial_interval: float = 1.0
    factor: float = 1.5
    jitter: float = 1.0
    steps: int = 10
    max_interval: float = 30.0

    def intervals(self):
        """Yield the sleep before each retry (steps - 1 values)"""
        interval = self.initial_interval
        for _ in range(self.steps - 1):
            delay = interval
            if self.jitter > 0:
                delay += random.uniform(0, self.jitter * interval)
            yield min(delay, self.max_interval)
            interval = min(interval * self.factor, self.max_interval)


def new_backoff() -> Backoff:
    """Backoff built from application settings"""
    from ..config import settings

    return Backoff(
        initial_interval=settings.BACKOFF_INITIAL_INTERVAL,
        factor=settings.BACKOFF_FACTOR,
        jitter=settings.BACKOFF_JITTER,
        steps=settings.BACKOFF_STEPS,
        max_interval=settings.BACKOFF_MAX_INTERVAL,
    )


def wait_for_with_retryable(
    backoff: Backoff,
    condition: Callable[[], bool],
    *retryable_codes: str,
) -> None:
    """
    Poll condition until it returns True

    Args:
        backoff: Retry schedule; at most backoff.steps attempts are made
        condition: Callable returning True when done
        retryable_codes: Provider error codes that are retried instead of raised

    Raises:
        RetriesExhaustedError: If the schedule runs out before success
        Exception: Any error from condition whose code is not retryable
    """
    delays = backoff.intervals()
    last_error: Optional[Exception] = None

    for attempt in range(1, max(backoff.steps, 1) + 1):
        try:
            if condition():
                return
            last_error = None
        except Exception as e:
            code = error_code(e)
            if code not in retryable_codes:
                raise
            last_error = e
            logger.debug(f"Retryable error {code} (attempt {attempt}/{backoff.steps}): {e}")

        delay = next(delays, None)
        if delay is None:
            break
        time.sleep(delay)

    raise RetriesExhaustedError(max(backoff.steps, 1), last_error) from last_error
