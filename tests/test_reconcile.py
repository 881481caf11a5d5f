"""
Tests for the create-or-update protocol and the Secret/ConfigMap operations
"""

# Third Party
from openshift.dynamic.exceptions import ConflictError, NotFoundError
import pytest

# Local
from kconverge.cluster import DryRunClusterClient
from kconverge.exceptions import PreconditionError
from kconverge.reconcile import (
    create_or_update,
    create_or_update_config_map,
    create_or_update_secret,
    resource_identifiers,
    semantically_equal,
)
from kconverge.retry import RetryPolicy
from kconverge.test_helpers.helpers import (
    FailOnce,
    MockClusterClient,
    conflict_error,
    make_config_map,
    make_secret,
)

## Helpers #####################################################################


def no_wait_policy(retries=4):
    return RetryPolicy(retries=retries, backoff_base_seconds=0, sleep=lambda _: None)


class ConcurrentWriter:
    """Fail flag that writes to the stored object right before the update under
    test, making the update's resourceVersion stale
    """

    def __init__(self, client, kind, name, times=1):
        self.client = client
        self.kind = kind
        self.name = name
        self.times = times
        self.calls = 0

    def __call__(self, *_, **__):
        if self.calls >= self.times:
            return
        self.calls += 1
        current = self.client.get_obj(self.kind, self.name)
        current["metadata"].setdefault("labels", {})[f"writer-{self.calls}"] = "x"
        DryRunClusterClient.update_object(self.client, current)


## resource_identifiers ########################################################


def test_resource_identifiers_fills_api_version():
    """Make sure a missing apiVersion is resolved from the type registry"""
    client = MockClusterClient()
    secret = make_secret()
    res_id = resource_identifiers(client, secret)
    assert res_id.api_version == "v1"
    assert res_id.kind == "Secret"
    assert res_id.name == "test-secret"
    assert res_id.namespace == "test"
    assert secret["apiVersion"] == "v1"


@pytest.mark.parametrize(
    "obj",
    [
        {"metadata": {"name": "foo"}},
        {"kind": "Secret", "metadata": {}},
        {"kind": "Secret"},
    ],
)
def test_resource_identifiers_missing_identity(obj):
    with pytest.raises(PreconditionError):
        resource_identifiers(MockClusterClient(), obj)


## create_or_update ############################################################


def test_create_or_update_creates_missing():
    """Make sure a missing object is created"""
    client = MockClusterClient()
    current = create_or_update(client, make_config_map())
    assert current["metadata"]["resourceVersion"]
    assert client.create_object.call_count == 1
    assert not client.update_object.called
    assert client.get_obj("ConfigMap", "test-cm")["data"] == {"key": "value"}


def test_create_or_update_create_strips_resource_version():
    """Make sure a stale resourceVersion on the desired object does not block
    the create
    """
    client = MockClusterClient()
    desired = make_config_map()
    desired["metadata"]["resourceVersion"] = "99"
    create_or_update(client, desired)
    assert client.create_object.call_args.args[0]["metadata"].get(
        "resourceVersion"
    ) is None


def test_create_or_update_no_create():
    """Make sure a missing object raises when creation is disabled"""
    client = MockClusterClient()
    with pytest.raises(NotFoundError):
        create_or_update(client, make_config_map(), create_missing=False)
    assert not client.create_object.called


def test_create_or_update_runs_mutate():
    """Make sure the mutate hook sees the observed object before the write"""
    client = MockClusterClient(resources=[make_config_map(data={"key": "old"})])
    seen = []

    def mutate(desired, observed):
        seen.append(observed["data"]["key"])
        desired["data"]["extra"] = "added"

    create_or_update(client, make_config_map(data={"key": "new"}), mutate=mutate)
    assert seen == ["old"]
    assert client.get_obj("ConfigMap", "test-cm")["data"] == {
        "key": "new",
        "extra": "added",
    }


def test_create_or_update_retries_from_fresh_read():
    """Make sure a conflict causes a fresh read and the concurrent change is
    merged rather than lost
    """
    client = MockClusterClient(resources=[make_config_map(labels={"app": "a"})])
    writer = ConcurrentWriter(client, "ConfigMap", "test-cm")
    original_update = DryRunClusterClient.update_object

    def update(resource_definition):
        writer()
        return original_update(client, resource_definition)

    client.update_object.side_effect = update
    desired = make_config_map(labels={"mine": "yes"})
    create_or_update(client, desired, retry_policy=no_wait_policy())

    assert client.get_object.call_count == 2
    assert client.update_object.call_count == 2
    assert client.get_obj("ConfigMap", "test-cm")["metadata"]["labels"] == {
        "app": "a",
        "writer-1": "x",
        "mine": "yes",
    }


def test_create_or_update_conflict_exhausted():
    """Make sure the conflict is raised once the retries are used up"""
    client = MockClusterClient(
        resources=[make_config_map()],
        update_fail=FailOnce(conflict_error(), times=10),
    )
    with pytest.raises(ConflictError):
        create_or_update(
            client, make_config_map(), retry_policy=no_wait_policy(retries=2)
        )
    assert client.update_object.call_count == 3


def test_create_or_update_attempts_start_from_desired():
    """Make sure a mutation made in a failed attempt does not leak into the
    next one
    """
    client = MockClusterClient(
        resources=[make_config_map()],
        update_fail=FailOnce(conflict_error()),
    )
    calls = []

    def mutate(desired, _):
        calls.append(dict(desired["data"]))
        desired["data"]["count"] = str(len(calls))

    create_or_update(client, make_config_map(), mutate=mutate, retry_policy=no_wait_policy())
    assert calls == [{"key": "value"}, {"key": "value"}]
    assert client.get_obj("ConfigMap", "test-cm")["data"]["count"] == "2"


## semantically_equal ##########################################################


def test_semantically_equal_ignores_server_metadata():
    desired = make_config_map()
    observed = make_config_map()
    observed["metadata"].update(
        {
            "resourceVersion": "3",
            "uid": "abc",
            "generation": 2,
            "creationTimestamp": "2024-01-01T00:00:00Z",
            "managedFields": [{"manager": "kubectl"}],
        }
    )
    assert semantically_equal(desired, observed)


def test_semantically_equal_empty_and_absent():
    """Make sure absent and empty values compare equal"""
    desired = make_config_map()
    desired["metadata"]["labels"] = {}
    assert semantically_equal(desired, make_config_map())


def test_semantically_equal_detects_changes():
    assert not semantically_equal(
        make_config_map(data={"key": "a"}), make_config_map(data={"key": "b"})
    )


## Secret / ConfigMap ##########################################################


def test_create_or_update_secret_creates():
    client = MockClusterClient()
    desired = make_secret()
    del desired["kind"]
    create_or_update_secret(client, desired)
    stored = client.get_obj("Secret", "test-secret")
    assert stored["kind"] == "Secret"
    assert stored["data"] == {"key": "dmFsdWU="}


def test_create_or_update_secret_unchanged():
    """Make sure no write is issued when nothing changed"""
    client = MockClusterClient(resources=[make_secret(labels={"app": "a"})])
    version = client.get_obj("Secret", "test-secret")["metadata"]["resourceVersion"]
    current = create_or_update_secret(client, make_secret(labels={"app": "a"}))
    assert not client.update_object.called
    assert current["metadata"]["resourceVersion"] == version


def test_create_or_update_secret_merges_metadata():
    """Make sure labels and annotations set by others are kept and the desired
    values win
    """
    existing = make_secret(labels={"app": "a", "other": "b"})
    existing["metadata"]["annotations"] = {"note": "keep"}
    client = MockClusterClient(resources=[existing])
    create_or_update_secret(
        client, make_secret(data={"key": "bmV3"}, labels={"app": "new"})
    )
    stored = client.get_obj("Secret", "test-secret")
    assert client.update_object.call_count == 1
    assert stored["data"] == {"key": "bmV3"}
    assert stored["metadata"]["labels"] == {"app": "new", "other": "b"}
    assert stored["metadata"]["annotations"] == {"note": "keep"}


def test_create_or_update_secret_conflict_retry():
    client = MockClusterClient(
        resources=[make_secret()],
        update_fail=FailOnce(conflict_error()),
    )
    create_or_update_secret(
        client, make_secret(data={"key": "bmV3"}), retry_policy=no_wait_policy()
    )
    assert client.update_object.call_count == 2
    assert client.get_obj("Secret", "test-secret")["data"] == {"key": "bmV3"}


def test_create_or_update_config_map_creates_and_updates():
    client = MockClusterClient()
    create_or_update_config_map(client, make_config_map())
    create_or_update_config_map(client, make_config_map(data={"key": "changed"}))
    assert client.create_object.call_count == 1
    assert client.update_object.call_count == 1
    assert client.get_obj("ConfigMap", "test-cm")["data"] == {"key": "changed"}


def test_create_or_update_config_map_unchanged():
    client = MockClusterClient(resources=[make_config_map()])
    create_or_update_config_map(client, make_config_map())
    assert not client.update_object.called
