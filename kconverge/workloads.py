"""
Reconcile operations for the workload kinds: DaemonSet and StatefulSet.

Workloads are never created by an update. A rolling restart triggered with
kubectl writes an annotation on the pod template of the live object, which an
update carries over so that the reconciliation does not restart the pods a
second time.
"""

# Standard
from typing import Callable, Optional

# Third Party
from openshift.dynamic.exceptions import DynamicApiError

# First Party
import alog

# Local
from . import constants
from .cluster.base import ClusterClientBase
from .exceptions import ClusterError, is_already_exists, is_invalid, status_causes
from .metadata import merge_kubectl_annotations
from .patch import PatchType, labels_patch
from .reconcile import create_or_update, resource_identifiers
from .retry import RetryPolicy
from .utils import nested_get

log = alog.use_channel("WRKLD")


def _carry_over_kubectl_annotations(desired: dict, observed: dict):
    template_meta = (
        desired.setdefault("spec", {})
        .setdefault("template", {})
        .setdefault("metadata", {})
    )
    merge_kubectl_annotations(
        nested_get(observed, "spec.template.metadata"), template_meta
    )


@alog.logged_function(log.debug)
def update_daemon_set(
    client: ClusterClientBase,
    daemon_set: dict,
    retry_policy: Optional[RetryPolicy] = None,
) -> dict:
    """Update an existing DaemonSet, keeping its labels, annotations and the
    kubectl annotations of its pod template

    Raises:
        NotFoundError: if the DaemonSet does not exist
    """
    daemon_set.setdefault("kind", "DaemonSet")
    return create_or_update(
        client,
        daemon_set,
        mutate=_carry_over_kubectl_annotations,
        create_missing=False,
        retry_policy=retry_policy,
    )


@alog.logged_function(log.debug)
def update_stateful_set(
    client: ClusterClientBase,
    stateful_set: dict,
    retry_policy: Optional[RetryPolicy] = None,
) -> dict:
    """Update an existing StatefulSet, keeping its labels, annotations and the
    kubectl annotations of its pod template

    Raises:
        NotFoundError: if the StatefulSet does not exist
    """
    stateful_set.setdefault("kind", "StatefulSet")
    return create_or_update(
        client,
        stateful_set,
        mutate=_carry_over_kubectl_annotations,
        create_missing=False,
        retry_policy=retry_policy,
    )


@alog.logged_function(log.debug)
def force_update_stateful_set(
    client: ClusterClientBase,
    stateful_set: dict,
    on_delete: Optional[Callable[[str], None]] = None,
    retry_policy: Optional[RetryPolicy] = None,
) -> Optional[dict]:
    """Update a StatefulSet, deleting it when the update changes an immutable
    field (e.g. spec.selector). The caller is expected to create it again on
    the next reconciliation.

    Args:
        client:  ClusterClientBase
            The client used for every read and write
        stateful_set:  dict
            The desired StatefulSet
        on_delete:  Optional[Callable[[str], None]]
            Called with the reasons the update was rejected, right before the
            StatefulSet is deleted
        retry_policy:  Optional[RetryPolicy]
            The conflict retry policy of the update

    Returns:
        stateful_set:  Optional[dict]
            The StatefulSet as written, or None if it was deleted

    Raises:
        ClusterError: if the update fails for any other reason
    """
    try:
        return update_stateful_set(client, stateful_set, retry_policy=retry_policy)
    except DynamicApiError as err:
        if not is_invalid(err):
            raise ClusterError(f"failed to update StatefulSet: {err.reason}") from err

        reason = ", ".join(status_causes(err))
        res_id = resource_identifiers(client, stateful_set)
        log.debug(
            "Deleting StatefulSet [%s] in %s: %s",
            res_id.name,
            res_id.namespace,
            reason,
        )
        if on_delete is not None:
            on_delete(reason)
        client.delete_object(
            kind=res_id.kind,
            name=res_id.name,
            namespace=res_id.namespace,
            api_version=res_id.api_version,
            propagation_policy=constants.PROPAGATION_FOREGROUND,
        )
        return None


@alog.logged_function(log.debug)
def create_stateful_set_or_patch_labels(
    client: ClusterClientBase,
    stateful_set: dict,
) -> dict:
    """Create a StatefulSet. If it already exists, only its labels are patched
    to the desired ones and the rest of the object is left untouched.

    Returns:
        stateful_set:  dict
            The created or patched StatefulSet
    """
    stateful_set.setdefault("kind", "StatefulSet")
    res_id = resource_identifiers(client, stateful_set)
    try:
        return client.create_object(stateful_set)
    except DynamicApiError as err:
        if not is_already_exists(err):
            raise
    log.debug2(
        "StatefulSet [%s] in %s already exists, patching labels",
        res_id.name,
        res_id.namespace,
    )
    return client.patch_object(
        kind=res_id.kind,
        name=res_id.name,
        namespace=res_id.namespace,
        body=labels_patch(stateful_set["metadata"].get("labels")),
        patch_type=PatchType.STRATEGIC_MERGE,
        api_version=res_id.api_version,
        field_manager=constants.FIELD_MANAGER,
    )
