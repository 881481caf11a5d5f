"""
This module implements custom exceptions and the helpers used to classify the
errors raised by the cluster store
"""

# Standard
from typing import List, Optional
import json

# Third Party
from openshift.dynamic.exceptions import (
    ConflictError,
    DynamicApiError,
    NotFoundError,
    UnprocessibleEntityError,
)

# Local
from . import constants

## Base Error ##################################################################


class KConvergeError(Exception):
    """Base class for all kconverge exceptions"""

    def __init__(self, message: str, is_fatal_error: bool):
        """Construct with a flag indicating whether this is a fatal error. This
        will be a static property of all children.
        """
        super().__init__(message)
        self._is_fatal_error = is_fatal_error

    @property
    def is_fatal_error(self):
        """Property indicating whether or not this error should abort the
        current reconciliation for good
        """
        return self._is_fatal_error


## Fatal Errors ################################################################


class KConvergeFatalError(KConvergeError):
    """A KConvergeFatalError is one that indicates an unexpected, and likely
    unrecoverable, failure during a reconciliation.
    """

    def __init__(self, message: str = ""):
        super().__init__(message=message, is_fatal_error=True)


class ConfigError(KConvergeFatalError):
    """Exception caused during usage of user-provided configuration"""


class ClusterError(KConvergeFatalError):
    """Exception caused when a cluster operation fails in an unexpected way"""


class ValidationError(KConvergeFatalError):
    """Exception raised when an input cannot be turned into a legal value, for
    example a name that yields no valid DNS-1123 label
    """


## Expected Errors #############################################################


class KConvergeExpectedError(KConvergeError):
    """A KConvergeExpectedError is one that indicates an expected failure
    condition that should cause a reconciliation to terminate, but is expected
    to resolve in a subsequent reconciliation.
    """

    def __init__(self, message: str = ""):
        super().__init__(message=message, is_fatal_error=False)


class PreconditionError(KConvergeExpectedError):
    """Exception raised when a caller-supplied object or argument does not meet
    the contract of the operation
    """


class VerificationError(KConvergeExpectedError):
    """Exception raised when a resource in the cluster is not in the verified
    state
    """


## Assertions ##################################################################


def assert_precondition(condition: bool, message: str = ""):
    """Replacement for assert() which will throw a PreconditionError"""
    if not condition:
        raise PreconditionError(message)


def assert_verified(condition: bool, message: str = ""):
    """Replacement for assert() which will throw a VerificationError"""
    if not condition:
        raise VerificationError(message)


def assert_config(condition: bool, message: str = ""):
    """Replacement for assert() which will throw a ConfigError"""
    if not condition:
        raise ConfigError(message)


def assert_cluster(condition: bool, message: str = ""):
    """Replacement for assert() which will throw a ClusterError. This should
    be used when an operation in the cluster (such as resolving a resource
    handle) does not behave as expected.
    """
    if not condition:
        raise ClusterError(message)


## Store Error Classification ##################################################


def status_body(err: Exception) -> dict:
    """Parse the Status object carried in the body of an API error

    Args:
        err:  Exception
            The error raised by the cluster client

    Returns:
        status:  dict
            The parsed Status, or an empty dict if the error carries none
    """
    body = getattr(err, "body", None)
    if not body:
        return {}
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    if isinstance(body, dict):
        return body
    try:
        parsed = json.loads(body)
    except (TypeError, ValueError):
        return {}
    return parsed if isinstance(parsed, dict) else {}


def status_reason(err: Exception) -> Optional[str]:
    """Get the machine readable reason (e.g. AlreadyExists) of an API error"""
    return status_body(err).get("reason")


def status_causes(err: Exception) -> List[str]:
    """Get the human readable messages of every cause of an API error"""
    causes = status_body(err).get("details", {}).get("causes") or []
    return [cause.get("message", "") for cause in causes]


def is_not_found(err: Exception) -> bool:
    return isinstance(err, NotFoundError)


def is_already_exists(err: Exception) -> bool:
    return (
        isinstance(err, ConflictError)
        and status_reason(err) == constants.STATUS_REASON_ALREADY_EXISTS
    )


def is_conflict(err: Exception) -> bool:
    """A conflict is a 409 caused by a stale resourceVersion. The API server
    also answers 409 for AlreadyExists, which is not retriable.
    """
    return isinstance(err, ConflictError) and not is_already_exists(err)


def is_invalid(err: Exception) -> bool:
    return (
        isinstance(err, UnprocessibleEntityError)
        and status_reason(err) == constants.STATUS_REASON_INVALID
    )


def is_api_error(err: Exception) -> bool:
    return isinstance(err, DynamicApiError)
