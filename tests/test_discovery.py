"""
Tests for the API discovery helpers
"""

# Standard
from unittest import mock

# Third Party
from openshift.dynamic.exceptions import ForbiddenError
import pytest

# Local
from kconverge.cluster.dry_run_cluster_client import make_status_error
from kconverge.discovery import is_api_group_version_resource_supported
from kconverge.test_helpers.helpers import MockClusterClient
from kconverge.type_registry import DEFAULT_TYPE_REGISTRY, KindInfo


@pytest.mark.parametrize(
    ["group_version", "resource", "expected"],
    [
        ("apps/v1", "statefulsets", True),
        ("v1", "secrets", True),
        ("discovery.k8s.io/v1", "endpointslices", True),
        ("apps/v1", "deployments", False),
        ("apps/v1beta1", "statefulsets", False),
        ("unknown.io/v1", "things", False),
    ],
)
def test_is_api_group_version_resource_supported(group_version, resource, expected):
    client = MockClusterClient()
    assert (
        is_api_group_version_resource_supported(client, group_version, resource)
        is expected
    )


def test_is_api_group_version_resource_supported_extended_registry():
    """Make sure kinds added to the registry are discoverable"""
    registry = DEFAULT_TYPE_REGISTRY.with_kinds(
        KindInfo("Widget", "foo.bar.com/v1", "widgets")
    )
    client = MockClusterClient(type_registry=registry)
    assert is_api_group_version_resource_supported(client, "foo.bar.com/v1", "widgets")


def test_is_api_group_version_resource_supported_error():
    """Make sure errors other than a missing group version propagate"""
    client = MockClusterClient()
    client.get_api_resources = mock.Mock(
        side_effect=make_status_error(403, "Forbidden", "forbidden")
    )
    with pytest.raises(ForbiddenError):
        is_api_group_version_resource_supported(client, "apps/v1", "statefulsets")
