"""
Package exports
"""

# Local
from . import config, constants
from .cluster import (
    ClusterClientBase,
    ClusterConfig,
    DryRunClusterClient,
    OpenshiftClusterClient,
)
from .discovery import is_api_group_version_resource_supported
from .exceptions import (
    assert_cluster,
    assert_config,
    assert_precondition,
    assert_verified,
)
from .finalizer import (
    add_finalizer,
    finalizer_add_patch,
    finalizer_delete_patch,
    has_status_cleanup_finalizer,
    remove_finalizer,
)
from .metadata import (
    merge_kubectl_annotations,
    merge_metadata,
    merge_owner_references,
)
from .namer import ResourceNamer
from .network import (
    create_or_update_endpoint_slice,
    create_or_update_endpoints,
    create_or_update_service,
    ensure_custom_governing_service,
)
from .pod import pod_running_and_ready, update_dns_config, update_dns_policy
from .rbac import ResourceAttribute, is_allowed
from .reconcile import create_or_update_config_map, create_or_update_secret
from .retry import RetryPolicy, retry_on_conflict
from .type_registry import DEFAULT_TYPE_REGISTRY, KindInfo, TypeRegistry
from .workloads import (
    create_stateful_set_or_patch_labels,
    force_update_stateful_set,
    update_daemon_set,
    update_stateful_set,
)
