"""
The create-or-update protocol shared by every kind specific reconcile
operation.

Each attempt reads the object fresh, creates it when missing, otherwise merges
the observed metadata into the desired object and writes it back against the
observed resourceVersion. A stale resourceVersion restarts the attempt.
"""

# Standard
from typing import Callable, NamedTuple, Optional
import copy

# Third Party
from openshift.dynamic.exceptions import NotFoundError

# First Party
import alog

# Local
from . import constants
from .cluster.base import ClusterClientBase
from .exceptions import assert_precondition
from .metadata import merge_metadata
from .retry import RetryPolicy, retry_on_conflict
from .utils import prune_empty

log = alog.use_channel("RECON")

# Hook applied to the desired object once the observed object is known
MutateFunction = Callable[[dict, dict], None]


class ResourceIdentifiers(NamedTuple):
    """The key elements of a single resource definition"""

    api_version: str
    kind: str
    name: str
    namespace: Optional[str]


def resource_identifiers(
    client: ClusterClientBase,
    resource_definition: dict,
) -> ResourceIdentifiers:
    """Get the identity of a caller supplied object, filling in a missing
    apiVersion from the client's type registry

    Raises:
        PreconditionError: if the object has no kind or no name
    """
    metadata = resource_definition.get("metadata") or {}
    kind = resource_definition.get("kind")
    name = metadata.get("name")
    assert_precondition(bool(kind), "Cannot reconcile resource without kind")
    assert_precondition(bool(name), f"Cannot reconcile {kind} without name")
    client.type_registry.add_type_information(resource_definition)
    return ResourceIdentifiers(
        resource_definition["apiVersion"], kind, name, metadata.get("namespace")
    )


@alog.logged_function(log.debug2)
def create_or_update(  # pylint: disable=too-many-arguments
    client: ClusterClientBase,
    desired: dict,
    *,
    mutate: Optional[MutateFunction] = None,
    skip_unchanged: bool = False,
    create_missing: bool = True,
    retry_policy: Optional[RetryPolicy] = None,
) -> dict:
    """Converge a single object to the desired content

    Args:
        client:  ClusterClientBase
            The client used for every read and write
        desired:  dict
            The desired manifest. It is mutated in place into the merged object
            that gets written.
        mutate:  Optional[MutateFunction]
            Called with (desired, observed) before the metadata merge to carry
            kind specific fields over from the observed object
        skip_unchanged:  bool
            If true, no write is issued when the merged object is semantically
            equal to the observed one
        create_missing:  bool
            If false, a missing object raises NotFoundError instead of being
            created
        retry_policy:  Optional[RetryPolicy]
            The conflict retry policy, built from the library config if not
            given

    Returns:
        current:  dict
            The object as written, or the observed object if no write was
            needed
    """
    res_id = resource_identifiers(client, desired)
    original = copy.deepcopy(desired)

    def attempt() -> dict:
        # Every attempt starts over from the caller's desired content
        desired.clear()
        desired.update(copy.deepcopy(original))
        try:
            observed = client.get_object(
                kind=res_id.kind,
                name=res_id.name,
                namespace=res_id.namespace,
                api_version=res_id.api_version,
            )
        except NotFoundError:
            if not create_missing:
                raise
            log.debug2(
                "Creating [%s/%s] in %s",
                res_id.kind,
                res_id.name,
                res_id.namespace,
                extra={"resource": desired},
            )
            desired.get("metadata", {}).pop("resourceVersion", None)
            return client.create_object(desired)

        if mutate is not None:
            mutate(desired, observed)
        merge_metadata(desired, observed)

        if skip_unchanged and semantically_equal(desired, observed):
            log.debug2(
                "No change for [%s/%s] in %s",
                res_id.kind,
                res_id.name,
                res_id.namespace,
            )
            return observed

        log.debug2(
            "Updating [%s/%s] in %s at resourceVersion %s",
            res_id.kind,
            res_id.name,
            res_id.namespace,
            desired["metadata"].get("resourceVersion"),
            extra={"resource": desired},
        )
        return client.update_object(desired)

    return retry_on_conflict(attempt, retry_policy)


def semantically_equal(desired: dict, observed: dict) -> bool:
    """Compare two objects ignoring server populated metadata and treating
    absent and empty values as equal
    """
    return _comparable(desired) == _comparable(observed)


def _comparable(resource_definition: dict) -> dict:
    resource_definition = copy.deepcopy(resource_definition)
    metadata = resource_definition.get("metadata") or {}
    for field in constants.SERVER_POPULATED_METADATA:
        metadata.pop(field, None)
    return prune_empty(resource_definition)


## Kind Operations #############################################################


@alog.logged_function(log.debug)
def create_or_update_secret(
    client: ClusterClientBase,
    desired: dict,
    retry_policy: Optional[RetryPolicy] = None,
) -> dict:
    """Create the Secret or merge its metadata into the existing one. No write
    is issued if nothing changed.
    """
    desired.setdefault("kind", "Secret")
    return create_or_update(
        client, desired, skip_unchanged=True, retry_policy=retry_policy
    )


@alog.logged_function(log.debug)
def create_or_update_config_map(
    client: ClusterClientBase,
    desired: dict,
    retry_policy: Optional[RetryPolicy] = None,
) -> dict:
    """Create the ConfigMap or merge its metadata into the existing one. No
    write is issued if nothing changed.
    """
    desired.setdefault("kind", "ConfigMap")
    return create_or_update(
        client, desired, skip_unchanged=True, retry_policy=retry_policy
    )
