"""
The public classes and functions for cluster clients
"""

# Local
from .base import ClusterClientBase
from .cluster_config import ClusterConfig, TLSConfig, new_api_client
from .dry_run_cluster_client import DryRunClusterClient, make_status_error
from .openshift_cluster_client import OpenshiftClusterClient
