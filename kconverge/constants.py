"""
Shared module to hold constant values for the library
"""

# Field manager name used for every patch issued by the library
FIELD_MANAGER = "KConverge"

# Prefix for pod template annotations written by kubectl (e.g. the
# restartedAt marker of `kubectl rollout restart`)
KUBECTL_ANNOTATION_PREFIX = "kubectl.kubernetes.io/"

# Finalizer used to garbage collect status bindings on configuration resources
STATUS_CLEANUP_FINALIZER_NAME = "kconverge.org/status-cleanup"

# DNS-1123 label limits
DNS1123_LABEL_MAX_LENGTH = 63
UNIQUE_SUFFIX_LENGTH = 9

# An empty namespace means "all namespaces" for namespace-scoped resources
ALL_NAMESPACES = ""

# Delete propagation policies
PROPAGATION_FOREGROUND = "Foreground"
PROPAGATION_BACKGROUND = "Background"
PROPAGATION_ORPHAN = "Orphan"

# Status reasons returned by the API server
STATUS_REASON_ALREADY_EXISTS = "AlreadyExists"
STATUS_REASON_CONFLICT = "Conflict"
STATUS_REASON_INVALID = "Invalid"
STATUS_REASON_NOT_FOUND = "NotFound"

# Metadata fields that the API server populates and which never take part in a
# semantic comparison between an observed and a desired object
SERVER_POPULATED_METADATA = [
    "resourceVersion",
    "generation",
    "managedFields",
    "uid",
    "creationTimestamp",
    "selfLink",
]

# Delimiter used for nested dict keys
NESTED_DICT_DELIM = "."
