"""
Tests for the Pod helpers
"""

# Third Party
import pytest

# Local
from kconverge.exceptions import VerificationError
from kconverge.pod import pod_running_and_ready, update_dns_config, update_dns_policy
from kconverge.test_helpers.helpers import make_object

## Helpers #####################################################################


def make_pod(phase, conditions=None):
    status = {"phase": phase}
    if conditions is not None:
        status["conditions"] = conditions
    return make_object("Pod", "test-pod", status=status)


## pod_running_and_ready #######################################################


@pytest.mark.parametrize(
    ["phase", "conditions", "expected"],
    [
        ("Running", [{"type": "Ready", "status": "True"}], True),
        ("Running", [{"type": "Ready", "status": "False"}], False),
        (
            "Running",
            [
                {"type": "PodScheduled", "status": "True"},
                {"type": "Ready", "status": "True"},
            ],
            True,
        ),
        ("Pending", None, False),
        ("Unknown", [{"type": "Ready", "status": "True"}], False),
    ],
)
def test_pod_running_and_ready(phase, conditions, expected):
    assert pod_running_and_ready(make_pod(phase, conditions)) is expected


@pytest.mark.parametrize("phase", ["Failed", "Succeeded"])
def test_pod_completed(phase):
    """Make sure a completed pod is reported as an error"""
    with pytest.raises(VerificationError, match=phase):
        pod_running_and_ready(make_pod(phase))


def test_pod_running_without_ready_condition():
    with pytest.raises(VerificationError, match="ready condition not found"):
        pod_running_and_ready(
            make_pod("Running", [{"type": "PodScheduled", "status": "True"}])
        )


## update_dns_config / update_dns_policy #######################################


def test_update_dns_config():
    """Make sure only the known fields are carried over"""
    pod_spec = {"containers": []}
    update_dns_config(
        pod_spec,
        {
            "nameservers": ["1.1.1.1"],
            "searches": ["svc.cluster.local"],
            "options": [
                {"name": "ndots", "value": "2", "extra": "dropped"},
                {"name": "edns0"},
            ],
            "unknown": "dropped",
        },
    )
    assert pod_spec["dnsConfig"] == {
        "nameservers": ["1.1.1.1"],
        "searches": ["svc.cluster.local"],
        "options": [{"name": "ndots", "value": "2"}, {"name": "edns0"}],
    }


def test_update_dns_config_replaces_existing():
    pod_spec = {"dnsConfig": {"nameservers": ["8.8.8.8"]}}
    update_dns_config(pod_spec, {"searches": ["local"]})
    assert pod_spec["dnsConfig"] == {"searches": ["local"]}


def test_update_dns_config_none():
    pod_spec = {"dnsConfig": {"nameservers": ["8.8.8.8"]}}
    update_dns_config(pod_spec, None)
    assert pod_spec["dnsConfig"] == {"nameservers": ["8.8.8.8"]}


def test_update_dns_policy():
    pod_spec = {}
    update_dns_policy(pod_spec, "ClusterFirstWithHostNet")
    assert pod_spec["dnsPolicy"] == "ClusterFirstWithHostNet"
    update_dns_policy(pod_spec, None)
    assert pod_spec["dnsPolicy"] == "ClusterFirstWithHostNet"
