"""
This defines the base class for all cluster clients. A cluster client exposes
the verbs of the cluster store on dict manifests. Store errors are raised as the
openshift.dynamic.exceptions classes and are never translated.
"""

# Standard
from typing import List, Optional
import abc

# Local
from ..patch import PatchType
from ..type_registry import DEFAULT_TYPE_REGISTRY, TypeRegistry


class ClusterClientBase(abc.ABC):
    """
    Base class for the clients that carry out every read and write of the
    reconcile operations
    """

    def __init__(self, type_registry: Optional[TypeRegistry] = None):
        self.type_registry = (
            DEFAULT_TYPE_REGISTRY if type_registry is None else type_registry
        )

    @abc.abstractmethod
    def get_object(
        self,
        kind: str,
        name: str,
        namespace: Optional[str] = None,
        api_version: Optional[str] = None,
    ) -> dict:
        """Fetch the current state of a single object

        Args:
            kind:  str
                The kind of the object to fetch
            name:  str
                The full name of the object to fetch
            namespace:  Optional[str]
                The namespace of the object or None for cluster scoped kinds
            api_version:  Optional[str]
                The api_version of the kind. Resolved from the type registry
                when not given.

        Returns:
            current_state:  dict
                The dict representation of the object

        Raises:
            NotFoundError: if the object does not exist
        """

    @abc.abstractmethod
    def create_object(self, resource_definition: dict) -> dict:
        """Create the object. The definition must not carry a resourceVersion.

        Args:
            resource_definition:  dict
                The full manifest of the object to create

        Returns:
            created:  dict
                The object as stored, including server populated fields

        Raises:
            ConflictError: with reason AlreadyExists if the object exists
        """

    @abc.abstractmethod
    def update_object(self, resource_definition: dict) -> dict:
        """Replace the object. The store only accepts the write if the
        resourceVersion of the definition matches the stored one.

        Args:
            resource_definition:  dict
                The full manifest of the object carrying the observed
                resourceVersion

        Returns:
            updated:  dict
                The object as stored

        Raises:
            ConflictError: if the resourceVersion is stale
            UnprocessibleEntityError: if an immutable field is changed
        """

    @abc.abstractmethod
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
        """Apply a patch to the object atomically

        Args:
            kind:  str
                The kind of the object to patch
            name:  str
                The name of the object to patch
            namespace:  Optional[str]
                The namespace of the object
            body:  Union[list, dict]
                The patch body matching the patch_type
            patch_type:  PatchType
                The content type of the patch
            api_version:  Optional[str]
                The api_version of the kind
            field_manager:  Optional[str]
                Name of the actor to attribute the change to

        Returns:
            patched:  dict
                The object as stored after the patch
        """

    @abc.abstractmethod
    def delete_object(  # pylint: disable=too-many-arguments
        self,
        kind: str,
        name: str,
        namespace: Optional[str] = None,
        api_version: Optional[str] = None,
        propagation_policy: Optional[str] = None,
    ):
        """Delete the object

        Args:
            kind:  str
                The kind of the object to delete
            name:  str
                The name of the object to delete
            namespace:  Optional[str]
                The namespace of the object
            api_version:  Optional[str]
                The api_version of the kind
            propagation_policy:  Optional[str]
                One of Foreground, Background or Orphan

        Raises:
            NotFoundError: if the object does not exist
        """

    @abc.abstractmethod
    def get_api_resources(self, group_version: str) -> List[dict]:
        """List the resources served by a group/version

        Args:
            group_version:  str
                "v1" for the core group, otherwise "<group>/<version>"

        Returns:
            resources:  List[dict]
                The APIResource entries of the discovery document

        Raises:
            NotFoundError: if the group/version is not served
        """
