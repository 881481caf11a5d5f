"""
Immutable registry of the kinds the library knows how to address. It maps a
kind to its apiVersion, its REST resource name and whether it is namespaced.

A registry is built once at process start and handed to whatever needs kind
resolution (the cluster clients). It is never mutated; extending it produces a
new registry.
"""

# Standard
from types import MappingProxyType
from typing import Iterable, Iterator, NamedTuple, Optional

# First Party
import alog

# Local
from .exceptions import PreconditionError, assert_precondition

log = alog.use_channel("TYPES")


class KindInfo(NamedTuple):
    """The static type information for one kind"""

    kind: str
    api_version: str
    resource: str
    namespaced: bool = True

    @property
    def group(self) -> str:
        return self.api_version.rpartition("/")[0]

    @property
    def version(self) -> str:
        return self.api_version.rpartition("/")[2]


class TypeRegistry:
    """Read-only mapping from kind to KindInfo"""

    def __init__(self, kinds: Iterable[KindInfo] = ()):
        entries = {}
        for info in kinds:
            assert_precondition(
                info.kind not in entries,
                f"Kind [{info.kind}] registered more than once",
            )
            entries[info.kind] = info
        self._kinds = MappingProxyType(entries)

    def __contains__(self, kind: str) -> bool:
        return kind in self._kinds

    def __iter__(self) -> Iterator[KindInfo]:
        return iter(self._kinds.values())

    def __len__(self) -> int:
        return len(self._kinds)

    def with_kinds(self, *kinds: KindInfo) -> "TypeRegistry":
        """Build a new registry holding these kinds in addition to the current
        ones
        """
        return TypeRegistry(list(self._kinds.values()) + list(kinds))

    def lookup(self, kind: str) -> Optional[KindInfo]:
        return self._kinds.get(kind)

    def api_version_for(self, kind: str, api_version: Optional[str] = None) -> str:
        """Resolve the apiVersion to use for a kind. An explicit api_version
        always wins.
        """
        if api_version:
            return api_version
        info = self._kinds.get(kind)
        if info is None:
            raise PreconditionError(
                f"missing apiVersion for kind [{kind}] and cannot assign it"
            )
        return info.api_version

    def add_type_information(self, resource_definition: dict) -> dict:
        """Fill in the apiVersion of a manifest based on its kind. The manifest
        is updated in place and returned for convenience.
        """
        kind = resource_definition.get("kind")
        assert_precondition(
            bool(kind), "missing kind on object and cannot assign type information"
        )
        if not resource_definition.get("apiVersion"):
            resource_definition["apiVersion"] = self.api_version_for(kind)
            log.debug3(
                "Assigned apiVersion %s to kind %s",
                resource_definition["apiVersion"],
                kind,
            )
        return resource_definition

    def resources_for(self, api_version: str) -> Iterator[KindInfo]:
        """Iterate the kinds served by a given group/version"""
        return (info for info in self if info.api_version == api_version)


DEFAULT_TYPE_REGISTRY = TypeRegistry(
    [
        KindInfo("ConfigMap", "v1", "configmaps"),
        KindInfo("Endpoints", "v1", "endpoints"),
        KindInfo("Namespace", "v1", "namespaces", namespaced=False),
        KindInfo("Pod", "v1", "pods"),
        KindInfo("Secret", "v1", "secrets"),
        KindInfo("Service", "v1", "services"),
        KindInfo("DaemonSet", "apps/v1", "daemonsets"),
        KindInfo("StatefulSet", "apps/v1", "statefulsets"),
        KindInfo("EndpointSlice", "discovery.k8s.io/v1", "endpointslices"),
        KindInfo(
            "SelfSubjectAccessReview",
            "authorization.k8s.io/v1",
            "selfsubjectaccessreviews",
            namespaced=False,
        ),
    ]
)
