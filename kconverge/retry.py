"""
Retry a read-modify-write sequence when the store rejects the write because the
resourceVersion it carried is stale.
"""

# Standard
from dataclasses import dataclass, field
from threading import Event
from typing import Callable, Optional, TypeVar
import time

# Third Party
from openshift.dynamic.exceptions import ConflictError

# First Party
import alog

# Local
from . import config
from .exceptions import is_conflict

log = alog.use_channel("RETRY")

T = TypeVar("T")


@dataclass
class RetryPolicy:
    """How many times to retry after a conflict and how to wait in between

    Attributes:
        retries:  int
            The number of extra attempts after the first one
        backoff_base_seconds:  float
            Attempt N waits N * backoff_base_seconds before running
        sleep:  Callable[[float], None]
            Function used to wait when no cancel_event is given
        cancel_event:  Optional[Event]
            When given, the backoff waits on this event and a set event stops
            retrying
    """

    retries: int = 4
    backoff_base_seconds: float = 0.01
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)
    cancel_event: Optional[Event] = None

    @classmethod
    def from_config(cls, **kwargs) -> "RetryPolicy":
        """Build the policy from the library config. Any keyword argument
        overrides the matching field.
        """
        kwargs.setdefault("retries", config.conflict_retries)
        kwargs.setdefault("backoff_base_seconds", config.retry_backoff_base_seconds)
        return cls(**kwargs)

    def backoff(self, attempt: int) -> bool:
        """Wait before the given retry attempt (1-based)

        Returns:
            proceed:  bool
                False if the wait was cancelled
        """
        duration = self.backoff_base_seconds * attempt
        log.debug3("Retrying in %fs", duration)
        if self.cancel_event is None:
            self.sleep(duration)
            return True
        return not self.cancel_event.wait(duration)


def retry_on_conflict(
    operation: Callable[[], T],
    retry_policy: Optional[RetryPolicy] = None,
) -> T:
    """Run the operation, running it again from scratch each time it raises a
    conflict. The operation is expected to read the current object itself so
    that every attempt writes against a fresh resourceVersion.

    Args:
        operation:  Callable[[], T]
            The full read-modify-write sequence
        retry_policy:  Optional[RetryPolicy]
            The policy to follow. Built from the library config if not given.

    Returns:
        result:  T
            Whatever the first successful attempt returned

    Raises:
        ConflictError: the last conflict if retries are exhausted or cancelled
    """
    retry_policy = retry_policy or RetryPolicy.from_config()
    attempt = 0
    while True:
        try:
            return operation()
        except ConflictError as err:
            if not is_conflict(err):
                raise
            log.debug2("Handling ConflictError: %s", getattr(err, "reason", err))
            if attempt >= retry_policy.retries:
                log.debug("Conflict retries exhausted after %d attempts", attempt + 1)
                raise
            attempt += 1
            if not retry_policy.backoff(attempt):
                log.debug("Conflict retries cancelled at attempt %d", attempt)
                raise
            log.debug3("Retry attempt %d", attempt)
