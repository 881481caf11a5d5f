"""
Verify that the acting identity holds a set of RBAC permissions by asking the
cluster through SelfSubjectAccessReviews
"""

# Standard
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

# First Party
import alog

# Local
from . import constants
from .cluster.base import ClusterClientBase
from .exceptions import assert_precondition

log = alog.use_channel("RBAC")


@dataclass(frozen=True)
class ResourceAttribute:
    """The verbs required on one resource. An empty name means all objects of
    the resource.
    """

    resource: str
    verbs: Sequence[str] = field(default_factory=tuple)
    name: str = ""
    group: str = ""
    version: str = ""


@alog.logged_function(log.debug)
def is_allowed(
    client: ClusterClientBase,
    namespaces: Optional[Sequence[str]],
    *attributes: ResourceAttribute,
) -> Tuple[bool, List[str]]:
    """Check every verb of every attribute in every namespace. The checks run
    sequentially and all denials are collected.

    Args:
        client:  ClusterClientBase
            The client acting as the identity to check
        namespaces:  Optional[Sequence[str]]
            The namespaces to check in. Empty means all namespaces.
        *attributes:  ResourceAttribute
            The required permissions

    Returns:
        allowed:  bool
            True if no permission is missing
        missing:  List[str]
            One message per missing permission

    Raises:
        PreconditionError: if no attributes are given
    """
    assert_precondition(bool(attributes), "resource attributes must not be empty")
    namespaces = list(namespaces or []) or [constants.ALL_NAMESPACES]

    missing = []
    for namespace in namespaces:
        for attribute in attributes:
            for verb in attribute.verbs:
                resource_attributes = {
                    "verb": verb,
                    "group": attribute.group,
                    "version": attribute.version,
                    "resource": attribute.resource,
                    "name": attribute.name,
                    "namespace": namespace,
                }
                # A review on a single namespace object is scoped to itself
                if (
                    attribute.group == ""
                    and attribute.resource == "namespaces"
                    and attribute.name
                    and namespace == constants.ALL_NAMESPACES
                ):
                    resource_attributes["namespace"] = attribute.name

                review = client.create_object(
                    {
                        "apiVersion": "authorization.k8s.io/v1",
                        "kind": "SelfSubjectAccessReview",
                        "spec": {"resourceAttributes": resource_attributes},
                    }
                )
                if (review.get("status") or {}).get("allowed"):
                    continue

                log.debug2("Denied: %s", resource_attributes)
                missing.append(_missing_permission(verb, attribute, namespace))

    return not missing, missing


def _missing_permission(verb: str, attribute: ResourceAttribute, namespace: str) -> str:
    resource = attribute.resource
    if attribute.name:
        resource += "/" + attribute.name
    message = (
        f'missing "{verb}" permission on resource "{resource}" '
        f'(group: "{attribute.group}")'
    )
    if namespace == constants.ALL_NAMESPACES:
        return message + " for all namespaces"
    return message + f' for namespace "{namespace}"'
