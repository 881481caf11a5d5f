"""
The DryRunClusterClient implements the ClusterClientBase interface but does not
actually interact with a cluster. It holds the cluster content in a local map
and enforces the store semantics the reconcile operations depend on:
resourceVersion compare-and-swap, AlreadyExists on create, immutable fields,
atomic JSON patches, finalizers and cascading deletes.
"""

# Standard
from datetime import datetime
from threading import RLock
from typing import Callable, Dict, List, Optional, Tuple
import copy
import json
import random
import string
import uuid

# Third Party
from kubernetes.client.exceptions import ApiException
from openshift.dynamic.exceptions import (
    BadRequestError,
    ConflictError,
    DynamicApiError,
    ForbiddenError,
    NotFoundError,
    UnprocessibleEntityError,
)
import jsonpatch

# First Party
import alog

# Local
from .. import constants
from ..exceptions import assert_precondition
from ..patch import PatchType
from ..type_registry import TypeRegistry
from ..utils import merge_configs, nested_get
from .base import ClusterClientBase

log = alog.use_channel("DRY-RUN")

# Fields the store refuses to change once an object exists
DEFAULT_IMMUTABLE_FIELDS = {
    "StatefulSet": [
        "spec.selector",
        "spec.serviceName",
        "spec.volumeClaimTemplates",
    ],
    "Service": [
        "spec.clusterIP",
        "spec.clusterIPs",
    ],
}

_ERROR_TYPES = {
    400: BadRequestError,
    403: ForbiddenError,
    404: NotFoundError,
    409: ConflictError,
    422: UnprocessibleEntityError,
}

_ObjectKey = Tuple[str, str, str, str]


def make_status_error(
    status_code: int,
    reason: str,
    message: str,
    causes: Optional[List[dict]] = None,
) -> DynamicApiError:
    """Build the error the dynamic client raises for a failed request, with a
    Status body like the one the API server returns

    Args:
        status_code:  int
            The http status of the response
        reason:  str
            The machine readable Status reason (e.g. AlreadyExists)
        message:  str
            The human readable Status message
        causes:  Optional[List[dict]]
            Entries for details.causes

    Returns:
        error:  DynamicApiError
            The matching openshift.dynamic.exceptions error
    """
    status = {
        "kind": "Status",
        "apiVersion": "v1",
        "metadata": {},
        "status": "Failure",
        "message": message,
        "reason": reason,
        "details": {"causes": causes} if causes else {},
        "code": status_code,
    }
    api_exception = ApiException(status=status_code, reason=reason)
    api_exception.body = json.dumps(status)
    api_exception.headers = {"Content-Type": "application/json"}
    return _ERROR_TYPES.get(status_code, DynamicApiError)(api_exception)


class DryRunClusterClient(ClusterClientBase):
    """
    Cluster client which doesn't talk to a cluster!
    """

    def __init__(
        self,
        resources: Optional[List[dict]] = None,
        type_registry: Optional[TypeRegistry] = None,
        immutable_fields: Optional[Dict[str, List[str]]] = None,
        access_review_handler: Optional[Callable[[dict], bool]] = None,
    ):
        """
        Args:
            resources:  Optional[List[dict]]
                Objects to create up front
            type_registry:  Optional[TypeRegistry]
                The registry used to resolve missing apiVersions and to serve
                discovery requests
            immutable_fields:  Optional[Dict[str, List[str]]]
                Per kind dotted paths that may not change on update. Defaults
                to DEFAULT_IMMUTABLE_FIELDS.
            access_review_handler:  Optional[Callable[[dict], bool]]
                Decides the outcome of a SelfSubjectAccessReview given its
                spec.resourceAttributes. Every request is allowed by default.
        """
        super().__init__(type_registry)
        self.immutable_fields = (
            DEFAULT_IMMUTABLE_FIELDS if immutable_fields is None else immutable_fields
        )
        self.access_review_handler = access_review_handler or (lambda _: True)
        self._cluster_content: Dict[_ObjectKey, dict] = {}
        self._resource_version = 0
        self._lock = RLock()

        for resource in resources or []:
            self.create_object(resource)

    ## Interface ###############################################################

    def get_object(
        self,
        kind: str,
        name: str,
        namespace: Optional[str] = None,
        api_version: Optional[str] = None,
    ) -> dict:
        log.debug("DRY RUN get_object of [%s/%s] in [%s]", kind, name, namespace)
        key = self._key(api_version, kind, namespace, name)
        with self._lock:
            return copy.deepcopy(self._get_current(key))

    def create_object(self, resource_definition: dict) -> dict:
        resource = copy.deepcopy(resource_definition)
        self.type_registry.add_type_information(resource)
        if resource["kind"] == "SelfSubjectAccessReview":
            return self._review_access(resource)

        metadata = resource.setdefault("metadata", {})
        metadata.pop("resourceVersion", None)
        if not metadata.get("name") and metadata.get("generateName"):
            metadata["name"] = metadata["generateName"] + "".join(
                random.choices(string.ascii_lowercase + string.digits, k=5)
            )
        if not metadata.get("name"):
            raise self._invalid(
                resource,
                [{"field": "metadata.name", "message": "name or generateName is required"}],
            )

        key = self._key_for(resource)
        log.debug("DRY RUN create [%s]", "/".join(key))
        with self._lock:
            if key in self._cluster_content:
                raise make_status_error(
                    409,
                    constants.STATUS_REASON_ALREADY_EXISTS,
                    f'{self._resource_name(key)} "{metadata["name"]}" already exists',
                )
            metadata["uid"] = str(uuid.uuid4())
            metadata["creationTimestamp"] = _now()
            metadata["generation"] = 1
            self._store(key, resource)
            return copy.deepcopy(resource)

    def update_object(self, resource_definition: dict) -> dict:
        resource = copy.deepcopy(resource_definition)
        self.type_registry.add_type_information(resource)
        key = self._key_for(resource)
        log.debug("DRY RUN update [%s]", "/".join(key))
        with self._lock:
            current = self._get_current(key)
            self._check_resource_version(
                key, resource["metadata"].get("resourceVersion"), current, required=True
            )
            self._check_immutable_fields(current, resource)

            # Server populated fields always come from the stored object
            for field in ["uid", "creationTimestamp", "deletionTimestamp"]:
                if field in current["metadata"]:
                    resource["metadata"][field] = current["metadata"][field]
            generation = current["metadata"].get("generation", 1)
            if resource.get("spec") != current.get("spec"):
                generation += 1
            resource["metadata"]["generation"] = generation

            # An update never touches the status
            if "status" in current:
                resource["status"] = current["status"]
            else:
                resource.pop("status", None)

            return self._store_or_finalize(key, resource)

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
        key = self._key(api_version, kind, namespace, name)
        log.debug(
            "DRY RUN patch [%s] with %s by %s",
            "/".join(key),
            patch_type.name,
            field_manager,
        )
        log.debug4(body)
        with self._lock:
            current = self._get_current(key)
            if patch_type is PatchType.JSON:
                try:
                    patched = jsonpatch.apply_patch(current, body)
                except (
                    jsonpatch.JsonPatchException,
                    jsonpatch.JsonPointerException,
                ) as err:
                    log.debug2("Rejected json patch: %s", err)
                    raise self._invalid(current, [{"message": str(err)}]) from err
            else:
                patch_version = nested_get(body, "metadata.resourceVersion")
                self._check_resource_version(key, patch_version, current)
                patched = merge_configs(copy.deepcopy(current), copy.deepcopy(body))

            self._check_immutable_fields(current, patched)
            for field in ["uid", "creationTimestamp", "name", "namespace"]:
                if field in current["metadata"]:
                    patched["metadata"][field] = current["metadata"][field]
            return self._store_or_finalize(key, patched)

    def delete_object(  # pylint: disable=too-many-arguments
        self,
        kind: str,
        name: str,
        namespace: Optional[str] = None,
        api_version: Optional[str] = None,
        propagation_policy: Optional[str] = None,
    ):
        key = self._key(api_version, kind, namespace, name)
        log.debug(
            "DRY RUN delete [%s] (propagation: %s)", "/".join(key), propagation_policy
        )
        with self._lock:
            self._delete(key, propagation_policy)

    def get_api_resources(self, group_version: str) -> List[dict]:
        resources = [
            {
                "name": info.resource,
                "kind": info.kind,
                "namespaced": info.namespaced,
                "verbs": ["create", "delete", "get", "list", "patch", "update"],
            }
            for info in self.type_registry.resources_for(group_version)
        ]
        if not resources:
            raise make_status_error(
                404,
                constants.STATUS_REASON_NOT_FOUND,
                "the server could not find the requested resource",
            )
        return resources

    ## Implementation Details ##################################################

    def _key(self, api_version, kind, namespace, name) -> _ObjectKey:
        api_version = self.type_registry.api_version_for(kind, api_version)
        return (api_version, kind, namespace or "", name or "")

    def _key_for(self, resource: dict) -> _ObjectKey:
        metadata = resource.get("metadata") or {}
        assert_precondition(
            bool(metadata.get("name")), "Cannot store an object without a name"
        )
        return self._key(
            resource.get("apiVersion"),
            resource.get("kind"),
            metadata.get("namespace"),
            metadata.get("name"),
        )

    def _resource_name(self, key: _ObjectKey) -> str:
        info = self.type_registry.lookup(key[1])
        return info.resource if info else f"{key[1].lower()}s"

    def _get_current(self, key: _ObjectKey) -> dict:
        current = self._cluster_content.get(key)
        if current is None:
            raise make_status_error(
                404,
                constants.STATUS_REASON_NOT_FOUND,
                f'{self._resource_name(key)} "{key[3]}" not found',
            )
        return current

    def _store(self, key: _ObjectKey, resource: dict) -> dict:
        self._resource_version += 1
        resource["metadata"]["resourceVersion"] = str(self._resource_version)
        self._cluster_content[key] = resource
        return resource

    def _store_or_finalize(self, key: _ObjectKey, resource: dict) -> dict:
        """Store the new content and drop the object when it is being deleted
        and no finalizer is left
        """
        self._store(key, resource)
        metadata = resource["metadata"]
        if metadata.get("deletionTimestamp") and not metadata.get("finalizers"):
            log.debug2("Last finalizer removed from [%s]", "/".join(key))
            self._remove(key, constants.PROPAGATION_BACKGROUND)
        return copy.deepcopy(resource)

    def _check_resource_version(
        self,
        key: _ObjectKey,
        resource_version: Optional[str],
        current: dict,
        required: bool = False,
    ):
        if not resource_version:
            if required:
                raise self._invalid(
                    current,
                    [
                        {
                            "field": "metadata.resourceVersion",
                            "message": "metadata.resourceVersion: Invalid value: "
                            "0x0: must be specified for an update",
                        }
                    ],
                )
            return
        if resource_version != current["metadata"]["resourceVersion"]:
            log.debug2(
                "Stale resourceVersion %s for [%s] (current: %s)",
                resource_version,
                "/".join(key),
                current["metadata"]["resourceVersion"],
            )
            raise make_status_error(
                409,
                constants.STATUS_REASON_CONFLICT,
                f'Operation cannot be fulfilled on {self._resource_name(key)} "{key[3]}": '
                "the object has been modified; please apply your changes to the "
                "latest version and try again",
            )

    def _check_immutable_fields(self, current: dict, resource: dict):
        causes = []
        for field in self.immutable_fields.get(current["kind"], []):
            old_value = nested_get(current, field)
            new_value = nested_get(resource, field)
            if old_value != new_value:
                causes.append(
                    {
                        "reason": "FieldValueInvalid",
                        "field": field,
                        "message": f"{field}: Invalid value: {json.dumps(new_value)}: "
                        "field is immutable",
                    }
                )
        if causes:
            raise self._invalid(current, causes)

    @staticmethod
    def _invalid(resource: dict, causes: List[dict]) -> DynamicApiError:
        kind = resource.get("kind")
        name = (resource.get("metadata") or {}).get("name")
        message = ", ".join(cause["message"] for cause in causes)
        return make_status_error(
            422,
            constants.STATUS_REASON_INVALID,
            f'{kind} "{name}" is invalid: {message}',
            causes,
        )

    def _delete(self, key: _ObjectKey, propagation_policy: Optional[str]):
        current = self._get_current(key)
        metadata = current["metadata"]
        if metadata.get("finalizers"):
            if not metadata.get("deletionTimestamp"):
                log.debug2("Marking [%s] for deletion", "/".join(key))
                metadata["deletionTimestamp"] = _now()
                metadata["deletionGracePeriodSeconds"] = 0
                self._store(key, current)
            return
        self._remove(key, propagation_policy)

    def _remove(self, key: _ObjectKey, propagation_policy: Optional[str]):
        removed = self._cluster_content.pop(key)
        if propagation_policy == constants.PROPAGATION_ORPHAN:
            return
        uid = removed["metadata"].get("uid")
        dependents = [
            dependent_key
            for dependent_key, obj in self._cluster_content.items()
            if any(
                ref.get("uid") == uid
                for ref in obj["metadata"].get("ownerReferences") or []
            )
        ]
        for dependent_key in dependents:
            if dependent_key in self._cluster_content:
                log.debug2("Cascading delete to [%s]", "/".join(dependent_key))
                self._delete(dependent_key, propagation_policy)

    def _review_access(self, review: dict) -> dict:
        attributes = nested_get(review, "spec.resourceAttributes", {}) or {}
        allowed = bool(self.access_review_handler(attributes))
        log.debug2("DRY RUN access review %s -> %s", attributes, allowed)
        review["status"] = {"allowed": allowed}
        return review


def _now() -> str:
    return datetime.now().strftime("%Y-%m-%dT%H:%M:%SZ")
