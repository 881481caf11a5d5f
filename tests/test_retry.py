"""
Tests for the conflict retry loop
"""

# Standard
from threading import Event
from unittest import mock

# Third Party
from openshift.dynamic.exceptions import ConflictError, NotFoundError
import pytest

# Local
from kconverge.retry import RetryPolicy, retry_on_conflict
from kconverge.test_helpers.helpers import (
    FailOnce,
    already_exists_error,
    conflict_error,
    library_config,
    not_found_error,
)

## Helpers #####################################################################


def make_operation(fail_flag, result="done"):
    """Make a mock operation that runs the fail flag before returning"""

    def operation():
        fail_flag()
        return result

    return mock.Mock(side_effect=operation)


def make_policy(retries=4, **kwargs):
    return RetryPolicy(retries=retries, sleep=mock.Mock(), **kwargs)


## RetryPolicy #################################################################


def test_policy_from_config():
    """Make sure the policy picks up the library config"""
    with library_config(conflict_retries=1, retry_backoff_base_seconds=0.5):
        policy = RetryPolicy.from_config()
    assert policy.retries == 1
    assert policy.backoff_base_seconds == 0.5


def test_policy_from_config_overrides():
    with library_config(conflict_retries=1):
        policy = RetryPolicy.from_config(retries=7)
    assert policy.retries == 7


def test_policy_backoff_is_linear():
    """Make sure attempt N waits N times the base"""
    policy = make_policy(backoff_base_seconds=0.25)
    assert policy.backoff(1)
    assert policy.backoff(3)
    assert [c.args[0] for c in policy.sleep.call_args_list] == [0.25, 0.75]


## retry_on_conflict ###########################################################


def test_retry_success_first_try():
    """Make sure a successful operation runs once"""
    operation = make_operation(lambda: None)
    policy = make_policy()
    assert retry_on_conflict(operation, policy) == "done"
    assert operation.call_count == 1
    assert not policy.sleep.called


def test_retry_transient_conflicts():
    """Make sure transient conflicts are retried until the operation succeeds"""
    operation = make_operation(FailOnce(conflict_error(), times=2))
    policy = make_policy()
    assert retry_on_conflict(operation, policy) == "done"
    assert operation.call_count == 3
    assert policy.sleep.call_count == 2


def test_retry_exhausted():
    """Make sure the last conflict is raised once the retries are used up"""
    operation = make_operation(FailOnce(conflict_error(), times=10))
    policy = make_policy(retries=2)
    with pytest.raises(ConflictError):
        retry_on_conflict(operation, policy)
    assert operation.call_count == 3


def test_retry_zero_retries():
    operation = make_operation(FailOnce(conflict_error()))
    with pytest.raises(ConflictError):
        retry_on_conflict(operation, make_policy(retries=0))
    assert operation.call_count == 1


def test_retry_already_exists_not_retried():
    """Make sure an AlreadyExists 409 is not treated as a stale version"""
    operation = make_operation(FailOnce(already_exists_error()))
    with pytest.raises(ConflictError):
        retry_on_conflict(operation, make_policy())
    assert operation.call_count == 1


def test_retry_other_errors_propagate():
    """Make sure errors other than conflicts are raised right away"""
    operation = make_operation(FailOnce(not_found_error()))
    with pytest.raises(NotFoundError):
        retry_on_conflict(operation, make_policy())
    assert operation.call_count == 1


def test_retry_cancelled():
    """Make sure a set cancel event stops the retries with the conflict"""
    cancel_event = Event()
    cancel_event.set()
    operation = make_operation(FailOnce(conflict_error(), times=10))
    policy = RetryPolicy(retries=4, backoff_base_seconds=10, cancel_event=cancel_event)
    with pytest.raises(ConflictError):
        retry_on_conflict(operation, policy)
    assert operation.call_count == 1


def test_retry_not_cancelled_event():
    """Make sure an unset cancel event lets the retries run"""
    operation = make_operation(FailOnce(conflict_error()))
    policy = RetryPolicy(retries=4, backoff_base_seconds=0, cancel_event=Event())
    assert retry_on_conflict(operation, policy) == "done"
    assert operation.call_count == 2


def test_retry_default_policy():
    """Make sure the policy is built from the library config when not given"""
    operation = make_operation(FailOnce(conflict_error(), times=10))
    with library_config(conflict_retries=1, retry_backoff_base_seconds=0):
        with pytest.raises(ConflictError):
            retry_on_conflict(operation)
    assert operation.call_count == 2
