"""
This cluster client delegates every operation to the openshift DynamicClient.
It is the one that will be used when making live changes to a cluster.
"""

# Standard
from typing import List, Optional
import copy

# Third Party
from openshift.dynamic import DynamicClient
from openshift.dynamic.exceptions import ResourceNotFoundError, ResourceNotUniqueError
from openshift.dynamic.resource import Resource
import kubernetes

# First Party
import alog

# Local
from .. import config
from ..exceptions import assert_cluster, assert_precondition
from ..patch import PatchType
from ..type_registry import TypeRegistry
from .base import ClusterClientBase
from .cluster_config import ClusterConfig, new_api_client

log = alog.use_channel("OSFTC")


class OpenshiftClusterClient(ClusterClientBase):
    """This cluster client uses the openshift DynamicClient to interact with
    the cluster
    """

    def __init__(
        self,
        api_client: Optional[kubernetes.client.ApiClient] = None,
        cluster_config: Optional[ClusterConfig] = None,
        type_registry: Optional[TypeRegistry] = None,
    ):
        """
        Args:
            api_client:  Optional[kubernetes.client.ApiClient]
                A preconfigured api client. If not given, one is built from
                cluster_config on first use.
            cluster_config:  Optional[ClusterConfig]
                The connection settings used to build the api client
            type_registry:  Optional[TypeRegistry]
                The registry used to resolve missing apiVersions
        """
        super().__init__(type_registry)
        self._api_client = api_client
        self._cluster_config = cluster_config

        # Set up the client
        log.debug("Initializing openshift client")
        self._client = None

    @property
    def client(self) -> DynamicClient:
        """Lazy property access to the client"""
        if self._client is None:
            if self._api_client is None:
                self._api_client = new_api_client(self._cluster_config)
            self._client = DynamicClient(self._api_client)
        return self._client

    ## Interface ###############################################################

    def get_object(
        self,
        kind: str,
        name: str,
        namespace: Optional[str] = None,
        api_version: Optional[str] = None,
    ) -> dict:
        resource_handle = self._get_resource_handle(kind, api_version)
        log.debug2("Fetching [%s/%s] in %s", kind, name, namespace)
        return resource_handle.get(
            name=name,
            namespace=namespace,
            _request_timeout=config.client.request_timeout_seconds,
        ).to_dict()

    def create_object(self, resource_definition: dict) -> dict:
        resource_definition = self._strip_resource_version(resource_definition)
        api_version, kind, name, namespace = self._get_resource_identifiers(
            resource_definition, require_name=False
        )
        resource_handle = self._get_resource_handle(kind, api_version)
        log.debug2(
            "Attempting to create [%s/%s/%s] in %s", api_version, kind, name, namespace
        )
        return resource_handle.create(
            body=resource_definition,
            namespace=namespace,
            _request_timeout=config.client.request_timeout_seconds,
        ).to_dict()

    def update_object(self, resource_definition: dict) -> dict:
        api_version, kind, name, namespace = self._get_resource_identifiers(
            resource_definition
        )
        resource_handle = self._get_resource_handle(kind, api_version)
        log.debug2(
            "Attempting to put [%s/%s/%s] in %s", api_version, kind, name, namespace
        )
        return resource_handle.replace(
            body=resource_definition,
            name=name,
            namespace=namespace,
            _request_timeout=config.client.request_timeout_seconds,
        ).to_dict()

    def patch_object(  # pylint: disable=too-many-arguments
        self,
        kind: str,
        name: str,
        namespace: Optional[str],
        body,
        patch_type: PatchType,
        api_version: Optional[str] = None,
        field_manager: Optional[str] = None,
    ) -> dict:
        resource_handle = self._get_resource_handle(kind, api_version)
        log.debug2(
            "Attempting to patch [%s/%s] in %s with %s",
            kind,
            name,
            namespace,
            patch_type.name,
        )
        kwargs = {}
        if field_manager:
            kwargs["field_manager"] = field_manager
        return resource_handle.patch(
            body=body,
            name=name,
            namespace=namespace,
            content_type=patch_type.value,
            _request_timeout=config.client.request_timeout_seconds,
            **kwargs,
        ).to_dict()

    def delete_object(  # pylint: disable=too-many-arguments
        self,
        kind: str,
        name: str,
        namespace: Optional[str] = None,
        api_version: Optional[str] = None,
        propagation_policy: Optional[str] = None,
    ):
        resource_handle = self._get_resource_handle(kind, api_version)
        body = None
        if propagation_policy:
            body = {
                "apiVersion": "v1",
                "kind": "DeleteOptions",
                "propagationPolicy": propagation_policy,
            }
        log.debug2(
            "Attempting to delete [%s/%s] from %s (propagation: %s)",
            kind,
            name,
            namespace,
            propagation_policy,
        )
        resource_handle.delete(
            name=name,
            namespace=namespace,
            body=body,
            _request_timeout=config.client.request_timeout_seconds,
        )

    def get_api_resources(self, group_version: str) -> List[dict]:
        path = "/api/v1" if group_version == "v1" else f"/apis/{group_version}"
        log.debug2("Fetching discovery document %s", path)
        resource_list = self.client.request(
            "get", path, _request_timeout=config.client.request_timeout_seconds
        )
        return resource_list.to_dict().get("resources") or []

    ## Implementation Helpers ##################################################

    def _get_resource_handle(self, kind: str, api_version: Optional[str]) -> Resource:
        """Get the openshift resource handle for a specified kind and api_version"""
        api_version = self.type_registry.api_version_for(kind, api_version)
        resources = None
        try:
            resources = self.client.resources.get(kind=kind, api_version=api_version)
        except (ResourceNotFoundError, ResourceNotUniqueError):
            log.debug(
                "No objects of kind [%s] found or multiple objects matching request found",
                kind,
            )
        assert_cluster(
            resources is not None,
            f"Failed to fetch resource handle for {api_version}/{kind}",
        )
        return resources

    def _get_resource_identifiers(self, resource_definition, require_name=True):
        """Helper for getting the required parts of a single resource definition"""
        metadata = resource_definition.get("metadata") or {}
        kind = resource_definition.get("kind")
        name = metadata.get("name")
        assert_precondition(bool(kind), "Cannot apply resource without kind")
        assert_precondition(
            not require_name or bool(name), "Cannot apply resource without name"
        )
        api_version = self.type_registry.api_version_for(
            kind, resource_definition.get("apiVersion")
        )
        return api_version, kind, name, metadata.get("namespace")

    @staticmethod
    def _strip_resource_version(resource_definition: dict) -> dict:
        """A create never carries a resourceVersion"""
        if "resourceVersion" not in (resource_definition.get("metadata") or {}):
            return resource_definition
        resource_definition = copy.deepcopy(resource_definition)
        del resource_definition["metadata"]["resourceVersion"]
        return resource_definition
