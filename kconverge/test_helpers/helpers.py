"""
This module holds common helper functions for making testing easy
"""

# Standard
from contextlib import contextmanager
from unittest import mock
import copy
import inspect
import os

# Third Party
from openshift.dynamic.exceptions import NotFoundError

# First Party
import alog

# Local
from kconverge import constants
from kconverge.cluster.dry_run_cluster_client import (
    DryRunClusterClient,
    make_status_error,
)
from kconverge.config import library_config as config_detail_dict

log = alog.use_channel("TEST")


def configure_logging():
    alog.configure(
        os.environ.get("LOG_LEVEL", "off"),
        os.environ.get("LOG_FILTERS", ""),
        formatter="json"
        if os.environ.get("LOG_JSON", "").lower() == "true"
        else "pretty",
        thread_id=os.environ.get("LOG_THREAD_ID", "").lower() == "true",
    )


configure_logging()

TEST_NAMESPACE = "test"
SOME_OTHER_NAMESPACE = "somewhere"
TEST_OWNER_NAME = "test-owner"
TEST_OWNER_UID = "12345678-1234-1234-1234-123456789012"


@contextmanager
def library_config(**config_overrides):
    """This context manager sets library config values temporarily and reverts
    them on completion
    """
    # Override the configs and hang onto the old values
    old_vals = {}
    for key, val in config_overrides.items():
        if key in config_detail_dict:
            old_vals[key] = config_detail_dict[key]
        config_detail_dict[key] = val

    # Yield to the context
    try:
        yield
    finally:
        # Revert to the old values
        for key in config_overrides:
            if key in old_vals:
                config_detail_dict[key] = old_vals[key]
            else:
                del config_detail_dict[key]


## Store Errors ################################################################


def not_found_error(name="test"):
    return make_status_error(
        404, constants.STATUS_REASON_NOT_FOUND, f'"{name}" not found'
    )


def conflict_error(name="test"):
    return make_status_error(
        409,
        constants.STATUS_REASON_CONFLICT,
        f'Operation cannot be fulfilled on "{name}": the object has been modified',
    )


def already_exists_error(name="test"):
    return make_status_error(
        409, constants.STATUS_REASON_ALREADY_EXISTS, f'"{name}" already exists'
    )


def invalid_error(*messages):
    return make_status_error(
        422,
        constants.STATUS_REASON_INVALID,
        ", ".join(messages),
        [{"message": message} for message in messages],
    )


## Failure Injection ###########################################################


def get_failable_method(fail_flag, method):
    log.debug4(
        "Setting up failable mock of [%s] with fail flag: %s", str(method), fail_flag
    )

    def failable_method(*args, **kwargs):
        if isinstance(fail_flag, Exception) or (
            inspect.isclass(fail_flag) and issubclass(fail_flag, Exception)
        ):
            log.debug4("Raising in failable mock")
            raise fail_flag
        if callable(fail_flag):
            log.debug4("Calling callable fail flag")
            fail_flag(*args, **kwargs)
        log.debug4("Passing through (%s, **%s)", args, kwargs)
        return method(*args, **kwargs)

    return failable_method


class FailOnce:
    """Helper callable that raises fail_val on the N'th call, or on each of the
    first `times` calls starting there
    """

    def __init__(self, fail_val, fail_number=1, times=1):
        self.call_count = 0
        self.fail_number = fail_number
        self.times = times
        self.fail_val = fail_val

    def __call__(self, *_, **__):
        self.call_count += 1
        if self.fail_number <= self.call_count < self.fail_number + self.times:
            log.debug("Failing on call %d with %s", self.call_count, self.fail_val)
            if callable(self.fail_val) and not isinstance(self.fail_val, Exception):
                raise self.fail_val()
            raise self.fail_val
        log.debug("Not failing on call %d", self.call_count)


class MockClusterClient(DryRunClusterClient):
    """The MockClusterClient wraps a standard DryRunClusterClient with mocks so
    that tests can count calls and inject failures in each of its operations.
    A fail flag is either an exception to raise on every call or a callable run
    before each call (e.g. a FailOnce).
    """

    def __init__(  # pylint: disable=too-many-arguments
        self,
        get_fail=None,
        create_fail=None,
        update_fail=None,
        patch_fail=None,
        delete_fail=None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.get_object = mock.Mock(
            side_effect=get_failable_method(get_fail, super().get_object)
        )
        self.create_object = mock.Mock(
            side_effect=get_failable_method(create_fail, super().create_object)
        )
        self.update_object = mock.Mock(
            side_effect=get_failable_method(update_fail, super().update_object)
        )
        self.patch_object = mock.Mock(
            side_effect=get_failable_method(patch_fail, super().patch_object)
        )
        self.delete_object = mock.Mock(
            side_effect=get_failable_method(delete_fail, super().delete_object)
        )

    def get_obj(self, kind, name, namespace=TEST_NAMESPACE, api_version=None):
        """Get an object without going through the mocks. None if missing."""
        try:
            return DryRunClusterClient.get_object(
                self, kind, name, namespace, api_version
            )
        except NotFoundError:
            return None


## Object Builders #############################################################


def make_owner(name=TEST_OWNER_NAME, uid=TEST_OWNER_UID, kind="Widget"):
    return {
        "apiVersion": "foo.bar.com/v1",
        "kind": kind,
        "metadata": {"name": name, "namespace": TEST_NAMESPACE, "uid": uid},
    }


def make_object(kind, name, namespace=TEST_NAMESPACE, labels=None, **kwargs):
    obj = copy.deepcopy(kwargs)
    obj["kind"] = kind
    metadata = obj.setdefault("metadata", {})
    metadata.setdefault("name", name)
    if namespace is not None:
        metadata.setdefault("namespace", namespace)
    if labels is not None:
        metadata["labels"] = dict(labels)
    return obj


def make_secret(name="test-secret", data=None, **kwargs):
    return make_object("Secret", name, data=data or {"key": "dmFsdWU="}, **kwargs)


def make_config_map(name="test-cm", data=None, **kwargs):
    return make_object("ConfigMap", name, data=data or {"key": "value"}, **kwargs)


def make_service(name="test-svc", selector=None, **kwargs):
    spec = kwargs.pop("spec", {})
    spec.setdefault("selector", selector or {"app": "test"})
    spec.setdefault("ports", [{"name": "web", "port": 9090}])
    return make_object("Service", name, spec=spec, **kwargs)


def _make_workload(kind, name, selector_labels, template_annotations, **kwargs):
    spec = kwargs.pop("spec", {})
    spec.setdefault("selector", {"matchLabels": dict(selector_labels)})
    template_meta = {"labels": dict(selector_labels)}
    if template_annotations is not None:
        template_meta["annotations"] = dict(template_annotations)
    spec.setdefault(
        "template",
        {
            "metadata": template_meta,
            "spec": {"containers": [{"name": "main", "image": "busybox"}]},
        },
    )
    return make_object(kind, name, spec=spec, **kwargs)


def make_stateful_set(
    name="test-sset",
    selector_labels=None,
    template_annotations=None,
    service_name="governing",
    **kwargs,
):
    spec = kwargs.pop("spec", {})
    spec.setdefault("serviceName", service_name)
    spec.setdefault("replicas", 1)
    return _make_workload(
        "StatefulSet",
        name,
        selector_labels or {"app": "test"},
        template_annotations,
        spec=spec,
        **kwargs,
    )


def make_daemon_set(
    name="test-dset",
    selector_labels=None,
    template_annotations=None,
    **kwargs,
):
    return _make_workload(
        "DaemonSet",
        name,
        selector_labels or {"app": "test"},
        template_annotations,
        **kwargs,
    )
