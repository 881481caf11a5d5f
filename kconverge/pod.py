"""
Helpers operating on Pod manifests and pod specs
"""

# Standard
from typing import List, Optional

# Local
from .exceptions import VerificationError


def pod_running_and_ready(pod: dict) -> bool:
    """Whether the pod is running and its Ready condition is true

    Raises:
        VerificationError: if the pod completed or a running pod has no Ready
            condition
    """
    status = pod.get("status") or {}
    phase = status.get("phase")
    if phase in ["Failed", "Succeeded"]:
        raise VerificationError(f"pod completed with phase {phase}")
    if phase != "Running":
        return False
    for condition in status.get("conditions") or []:
        if condition.get("type") == "Ready":
            return condition.get("status") == "True"
    raise VerificationError("pod ready condition not found")


def update_dns_config(pod_spec: dict, dns_config: Optional[dict]):
    """Set the DNS configuration of a pod spec. Only nameservers, searches and
    the name/value of each option are carried over. Nothing is changed when
    dns_config is None.
    """
    if dns_config is None:
        return
    new_config = {}
    for field in ["nameservers", "searches"]:
        if dns_config.get(field) is not None:
            new_config[field] = list(dns_config[field])
    options: List[dict] = []
    for option in dns_config.get("options") or []:
        new_option = {"name": option.get("name")}
        if option.get("value") is not None:
            new_option["value"] = option["value"]
        options.append(new_option)
    if options:
        new_config["options"] = options
    pod_spec["dnsConfig"] = new_config


def update_dns_policy(pod_spec: dict, dns_policy: Optional[str]):
    """Set the DNS policy of a pod spec unless dns_policy is None"""
    if dns_policy is None:
        return
    pod_spec["dnsPolicy"] = dns_policy
