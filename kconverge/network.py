"""
Reconcile operations for the networking kinds: Service, Endpoints and
EndpointSlice
"""

# Standard
from typing import Dict, Optional

# Third Party
from openshift.dynamic.exceptions import DynamicApiError

# First Party
import alog

# Local
from .cluster.base import ClusterClientBase
from .exceptions import ClusterError, assert_precondition
from .metadata import merge_owner_references
from .reconcile import create_or_update
from .retry import RetryPolicy, retry_on_conflict

log = alog.use_channel("NETWK")

# Service fields assigned by the cluster which an update may not change
SERVICE_IMMUTABLE_FIELDS = ["clusterIP", "clusterIPs", "ipFamilies", "ipFamilyPolicy"]


def _carry_over_service_fields(desired: dict, observed: dict):
    observed_spec = observed.get("spec") or {}
    desired_spec = desired.setdefault("spec", {})
    for field in SERVICE_IMMUTABLE_FIELDS:
        if field in observed_spec:
            desired_spec[field] = observed_spec[field]
        else:
            desired_spec.pop(field, None)

    metadata = desired.setdefault("metadata", {})
    owner_refs = merge_owner_references(
        (observed.get("metadata") or {}).get("ownerReferences"),
        metadata.get("ownerReferences"),
    )
    if owner_refs:
        metadata["ownerReferences"] = owner_refs


@alog.logged_function(log.debug)
def create_or_update_service(
    client: ClusterClientBase,
    service: dict,
    retry_policy: Optional[RetryPolicy] = None,
) -> dict:
    """Create the Service or update it in place. The cluster assigned IP
    settings of an existing Service always win over the desired ones and
    existing owner references are kept.

    Returns:
        service:  dict
            The Service as written to the cluster
    """
    service.setdefault("kind", "Service")
    return create_or_update(
        client,
        service,
        mutate=_carry_over_service_fields,
        retry_policy=retry_policy,
    )


@alog.logged_function(log.debug)
def create_or_update_endpoints(
    client: ClusterClientBase,
    endpoints: dict,
    retry_policy: Optional[RetryPolicy] = None,
) -> dict:
    endpoints.setdefault("kind", "Endpoints")
    return create_or_update(client, endpoints, retry_policy=retry_policy)


@alog.logged_function(log.debug)
def create_or_update_endpoint_slice(
    client: ClusterClientBase,
    endpoint_slice: dict,
    retry_policy: Optional[RetryPolicy] = None,
) -> dict:
    """Create or update an EndpointSlice. A slice without a name is always
    created and the store generates its name from metadata.generateName.
    """
    endpoint_slice.setdefault("kind", "EndpointSlice")
    if not (endpoint_slice.get("metadata") or {}).get("name"):
        log.debug2("Creating EndpointSlice with a generated name")
        client.type_registry.add_type_information(endpoint_slice)
        return retry_on_conflict(
            lambda: client.create_object(endpoint_slice), retry_policy
        )
    return create_or_update(client, endpoint_slice, retry_policy=retry_policy)


@alog.logged_function(log.debug)
def ensure_custom_governing_service(
    client: ClusterClientBase,
    namespace: str,
    service_name: str,
    selector_labels: Dict[str, str],
):
    """Verify that a user supplied governing Service exists in the namespace
    and that its selector picks up pods carrying selector_labels

    Raises:
        PreconditionError: if no service name is given
        ClusterError: if the Service cannot be fetched or does not select the
            pods
    """
    assert_precondition(
        bool(service_name), "A custom governing service requires a service name"
    )
    try:
        service = client.get_object(
            kind="Service", name=service_name, namespace=namespace
        )
    except DynamicApiError as err:
        raise ClusterError(
            f"failed to get custom governing service {namespace}/{service_name}: {err.reason}"
        ) from err

    selector = (service.get("spec") or {}).get("selector") or {}
    selector_labels = selector_labels or {}
    log.debug3("Matching selector %s against %s", selector, selector_labels)
    if any(selector_labels.get(key) != val for key, val in selector.items()):
        raise ClusterError(
            f"custom governing service {namespace}/{service_name} with selector "
            f'"{_format_labels(selector)}" does not select pods with labels '
            f'"{_format_labels(selector_labels)}"'
        )


def _format_labels(labels: Dict[str, str]) -> str:
    return ",".join(f"{key}={labels[key]}" for key in sorted(labels))

