"""
Query the API discovery documents of the cluster
"""

# Third Party
from openshift.dynamic.exceptions import NotFoundError

# First Party
import alog

# Local
from .cluster.base import ClusterClientBase

log = alog.use_channel("DSCVR")


def is_api_group_version_resource_supported(
    client: ClusterClientBase,
    group_version: str,
    resource: str,
) -> bool:
    """Whether the cluster serves a resource (e.g. "statefulsets") in a
    group/version (e.g. "apps/v1"). A group/version the cluster does not know
    counts as unsupported; every other error propagates.
    """
    try:
        api_resources = client.get_api_resources(group_version)
    except NotFoundError:
        log.debug2("Group version %s not served", group_version)
        return False
    return any(entry.get("name") == resource for entry in api_resources)
