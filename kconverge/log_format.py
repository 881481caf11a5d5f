"""
Custom logging formats that carry the identity of the resource being
reconciled
"""

# First Party
from alog import AlogJsonFormatter


class KConvergeJsonFormatter(AlogJsonFormatter):
    """Json formatter that adds the identifiers of a resource to every record
    logged with a `resource` entry in `extra`
    """

    _FIELDS_TO_PRINT = AlogJsonFormatter._FIELDS_TO_PRINT + [
        "kind",
        "apiVersion",
        "namespace",
        "resourceVersion",
        "resourceName",
    ]

    def format(self, record):
        resource = getattr(record, "resource", None)
        if isinstance(resource, dict):
            metadata = resource.get("metadata") or {}
            record.kind = resource.get("kind")
            record.apiVersion = resource.get("apiVersion")
            record.namespace = metadata.get("namespace")
            record.resourceVersion = metadata.get("resourceVersion")
            record.resourceName = metadata.get("name")

        return super().format(record)
