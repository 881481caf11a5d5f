"""
This module holds the merge policy applied to the metadata of an observed
object and the desired object that is about to replace it
"""

# Standard
from typing import Dict, List, Optional

# First Party
import alog

# Local
from .constants import KUBECTL_ANNOTATION_PREFIX

log = alog.use_channel("MERGE")


def merge_metadata(desired: dict, observed: dict):
    """Merge the metadata of the observed object into the desired object in
    place.

    The resourceVersion is copied from the observed object so that the write is
    checked against the version that was just read. Labels and annotations are
    the union of both objects. If a key is present in both, the desired value
    wins.

    Args:
        desired:  dict
            The full desired manifest, updated in place
        observed:  dict
            The full manifest as currently stored in the cluster
    """
    desired_meta = desired.setdefault("metadata", {})
    observed_meta = observed.get("metadata") or {}

    resource_version = observed_meta.get("resourceVersion")
    if resource_version is None:
        desired_meta.pop("resourceVersion", None)
    else:
        desired_meta["resourceVersion"] = resource_version

    for field in ["labels", "annotations"]:
        merged = merge_maps(desired_meta.get(field), observed_meta.get(field))
        if merged or field in desired_meta:
            desired_meta[field] = merged
    log.debug4("Merged metadata: %s", desired_meta)


def merge_maps(
    desired: Optional[Dict[str, str]],
    observed: Optional[Dict[str, str]],
) -> Dict[str, str]:
    """Union of two string maps where the desired values win"""
    return merge_maps_by_prefix(desired, observed, "")


def merge_maps_by_prefix(
    source: Optional[Dict[str, str]],
    target: Optional[Dict[str, str]],
    prefix: str,
) -> Dict[str, str]:
    """Copy every entry of source whose key starts with prefix over target.
    The result is a new dict; neither input is changed.
    """
    merged = dict(target or {})
    for key, val in (source or {}).items():
        if key.startswith(prefix):
            merged[key] = val
    return merged


def merge_owner_references(
    observed_refs: Optional[List[dict]],
    desired_refs: Optional[List[dict]],
) -> List[dict]:
    """Append each desired reference that is not already on the observed
    object. References are compared on their full content and existing ones
    are never dropped.
    """
    merged = list(observed_refs or [])
    for ref in desired_refs or []:
        if ref not in merged:
            merged.append(ref)
    return merged


def merge_kubectl_annotations(
    observed_template_meta: Optional[dict],
    desired_template_meta: dict,
):
    """Carry the kubectl annotations of the observed pod template over to the
    desired pod template, in place.

    kubectl writes these (e.g. kubectl.kubernetes.io/restartedAt for a rolling
    restart) directly on the live object. The observed value always replaces
    the desired one so that a reconciliation does not revert them.

    Args:
        observed_template_meta:  Optional[dict]
            spec.template.metadata of the observed object
        desired_template_meta:  dict
            spec.template.metadata of the desired object, updated in place
    """
    merged = merge_maps_by_prefix(
        (observed_template_meta or {}).get("annotations"),
        desired_template_meta.get("annotations"),
        KUBECTL_ANNOTATION_PREFIX,
    )
    if merged or "annotations" in desired_template_meta:
        desired_template_meta["annotations"] = merged


def make_owner_reference(owner: dict, controller: bool = False) -> dict:
    """Make an owner reference pointing at the given object

    Args:
        owner:  dict
            The full manifest of the owning object
        controller:  bool
            Whether the owner is the managing controller of the dependent

    Returns:
        owner_reference:  dict
            The entry for metadata.ownerReferences of the dependent object
    """
    metadata = owner.get("metadata", {})
    ref = {
        "apiVersion": owner.get("apiVersion"),
        "kind": owner.get("kind"),
        "name": metadata.get("name"),
        "uid": metadata.get("uid"),
        # The owner will not be deleted until this object completes its
        # deletion
        "blockOwnerDeletion": True,
    }
    if controller:
        ref["controller"] = True
    return ref
