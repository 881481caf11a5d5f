"""
Finalizer lifecycle management through minimal JSON patches.

Removal patches carry a test operation at the exact index where the finalizer
was observed. If another actor changed the list in the meantime the store
rejects the whole patch and the caller has to observe the object again.
"""

# Standard
from typing import List, Optional, Sequence

# First Party
import alog

# Local
from . import constants
from .cluster.base import ClusterClientBase
from .exceptions import assert_precondition
from .patch import (
    AddOperation,
    PatchOperation,
    PatchType,
    RemoveOperation,
    TestOperation,
    encode_json_patch,
)

log = alog.use_channel("FINLZ")

FINALIZERS_PATH = "/metadata/finalizers"


## Patch Generation ############################################################


def finalizer_add_patch(
    finalizers: Optional[Sequence[str]],
    finalizer_name: str,
) -> Optional[List[PatchOperation]]:
    """Build the patch adding a finalizer to an object

    Args:
        finalizers:  Optional[Sequence[str]]
            The finalizers currently set on the object
        finalizer_name:  str
            The finalizer to add

    Returns:
        operations:  Optional[List[PatchOperation]]
            The patch operations, or None if the finalizer is already present
    """
    finalizers = list(finalizers or [])
    if finalizer_name in finalizers:
        return None
    if not finalizers:
        return [AddOperation(FINALIZERS_PATH, [finalizer_name])]
    return [AddOperation(f"{FINALIZERS_PATH}/-", finalizer_name)]


def finalizer_delete_patch(
    finalizers: Optional[Sequence[str]],
    finalizer_name: str,
) -> Optional[List[PatchOperation]]:
    """Build the patch removing a finalizer from an object. The removal is
    guarded by a test of the value at the observed index.

    Args:
        finalizers:  Optional[Sequence[str]]
            The finalizers currently set on the object
        finalizer_name:  str
            The finalizer to remove

    Returns:
        operations:  Optional[List[PatchOperation]]
            The patch operations, or None if the finalizer is not present
    """
    for index, finalizer in enumerate(finalizers or []):
        if finalizer == finalizer_name:
            path = f"{FINALIZERS_PATH}/{index}"
            return [TestOperation(path, finalizer_name), RemoveOperation(path)]
    return None


def has_status_cleanup_finalizer(resource_definition: dict) -> bool:
    finalizers = (resource_definition.get("metadata") or {}).get("finalizers") or []
    return constants.STATUS_CLEANUP_FINALIZER_NAME in finalizers


## Submission ##################################################################


@alog.logged_function(log.debug)
def add_finalizer(
    client: ClusterClientBase,
    resource_definition: dict,
    finalizer_name: str,
) -> Optional[dict]:
    """Add a finalizer to the object as observed in resource_definition

    Returns:
        patched:  Optional[dict]
            The patched object, or None if no patch was needed
    """
    operations = finalizer_add_patch(
        (resource_definition.get("metadata") or {}).get("finalizers"),
        finalizer_name,
    )
    return _submit(client, resource_definition, operations)


@alog.logged_function(log.debug)
def remove_finalizer(
    client: ClusterClientBase,
    resource_definition: dict,
    finalizer_name: str,
) -> Optional[dict]:
    """Remove a finalizer from the object as observed in resource_definition.
    If the finalizer list changed since the observation, the store rejects the
    patch with an Invalid error and nothing is removed.

    Returns:
        patched:  Optional[dict]
            The patched object, or None if no patch was needed
    """
    operations = finalizer_delete_patch(
        (resource_definition.get("metadata") or {}).get("finalizers"),
        finalizer_name,
    )
    return _submit(client, resource_definition, operations)


def _submit(
    client: ClusterClientBase,
    resource_definition: dict,
    operations: Optional[List[PatchOperation]],
) -> Optional[dict]:
    metadata = resource_definition.get("metadata") or {}
    kind = resource_definition.get("kind")
    name = metadata.get("name")
    assert_precondition(
        bool(kind and name), "Cannot patch finalizers of an object without kind or name"
    )
    if operations is None:
        log.debug2("No finalizer patch needed for %s/%s", kind, name)
        return None

    log.debug3("Finalizer patch for %s/%s: %s", kind, name, operations)
    return client.patch_object(
        kind=kind,
        name=name,
        namespace=metadata.get("namespace"),
        body=encode_json_patch(operations),
        patch_type=PatchType.JSON,
        api_version=resource_definition.get("apiVersion"),
    )
