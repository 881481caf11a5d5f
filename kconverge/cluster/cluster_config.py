"""
Connection setup for the live cluster client
"""

# Standard
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urlparse
import importlib.metadata
import os

# Third Party
import kubernetes

# First Party
import alog

# Local
from .. import config
from ..exceptions import ConfigError, assert_config

log = alog.use_channel("CCONF")


@dataclass
class TLSConfig:
    """Client side TLS settings used when talking to an explicit https host"""

    insecure: bool = False
    ca_file: Optional[str] = None
    cert_file: Optional[str] = None
    key_file: Optional[str] = None
    server_name: Optional[str] = None


@dataclass
class ClusterConfig:
    """How to reach the cluster and which identity to act as"""

    host: str = ""
    kubeconfig_path: str = ""
    as_user: str = ""
    tls: TLSConfig = field(default_factory=TLSConfig)


def user_agent() -> str:
    """The user agent sent with every request, e.g. KConverge/0.1.0"""
    try:
        version = importlib.metadata.version("kconverge")
    except importlib.metadata.PackageNotFoundError:
        version = "unknown"
    return f"{config.client.user_agent_name}/{version}"


@alog.logged_function(log.debug)
def new_cluster_configuration(
    cluster_config: Optional[ClusterConfig] = None,
) -> kubernetes.client.Configuration:
    """Build the client configuration for a cluster. The connection settings
    are resolved in this order:

    1. cluster_config.kubeconfig_path
    2. The kubeconfig named by the env var in config.client.kubeconfig_env
    3. cluster_config.host (TLS settings only apply to an https host)
    4. The in-cluster service account

    Args:
        cluster_config:  Optional[ClusterConfig]
            The connection settings, all defaults if not given

    Returns:
        configuration:  kubernetes.client.Configuration
            The configuration with the library wide tuning applied

    Raises:
        ConfigError: if no valid configuration can be loaded
    """
    cluster_config = cluster_config or ClusterConfig()
    configuration = kubernetes.client.Configuration()

    kubeconfig_path = cluster_config.kubeconfig_path or os.environ.get(
        config.client.kubeconfig_env, ""
    )
    if kubeconfig_path:
        log.debug2("Loading kubeconfig from %s", kubeconfig_path)
        try:
            kubernetes.config.load_kube_config(
                config_file=kubeconfig_path,
                client_configuration=configuration,
            )
        except (kubernetes.config.ConfigException, OSError) as err:
            raise ConfigError(
                f"error creating config from {kubeconfig_path}: {err}"
            ) from err
    elif cluster_config.host:
        log.debug2("Using explicit host %s", cluster_config.host)
        host_url = urlparse(cluster_config.host)
        assert_config(
            bool(host_url.scheme and host_url.netloc),
            f"error parsing host url {cluster_config.host}",
        )
        configuration.host = cluster_config.host
        if host_url.scheme == "https":
            _apply_tls(configuration, cluster_config.tls)
    else:
        log.debug2("Running with in-cluster config")
        try:
            kubernetes.config.load_incluster_config(client_configuration=configuration)
        except kubernetes.config.ConfigException as err:
            raise ConfigError(f"error loading in-cluster config: {err}") from err

    configuration.connection_pool_maxsize = config.client.burst
    return configuration


def new_api_client(
    cluster_config: Optional[ClusterConfig] = None,
) -> kubernetes.client.ApiClient:
    """Build an ApiClient carrying the user agent and impersonation header"""
    cluster_config = cluster_config or ClusterConfig()
    api_client = kubernetes.client.ApiClient(new_cluster_configuration(cluster_config))
    api_client.user_agent = user_agent()
    if cluster_config.as_user:
        log.debug2("Impersonating user %s", cluster_config.as_user)
        api_client.set_default_header("Impersonate-User", cluster_config.as_user)
    return api_client


def _apply_tls(configuration: kubernetes.client.Configuration, tls: TLSConfig):
    configuration.verify_ssl = not tls.insecure
    if tls.ca_file:
        configuration.ssl_ca_cert = tls.ca_file
    if tls.cert_file:
        configuration.cert_file = tls.cert_file
    if tls.key_file:
        configuration.key_file = tls.key_file
    if tls.server_name:
        configuration.tls_server_name = tls.server_name
