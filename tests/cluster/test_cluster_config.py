"""
Tests for the live cluster connection setup
"""

# Standard
from unittest import mock

# Third Party
import kubernetes
import pytest

# Local
from kconverge.cluster.cluster_config import (
    ClusterConfig,
    TLSConfig,
    new_api_client,
    new_cluster_configuration,
    user_agent,
)
from kconverge.exceptions import ConfigError


@pytest.fixture
def kube_loaders():
    """Mock both kubernetes config loaders"""
    with mock.patch("kubernetes.config.load_kube_config") as load_kube:
        with mock.patch("kubernetes.config.load_incluster_config") as load_incluster:
            yield load_kube, load_incluster


def test_explicit_kubeconfig(kube_loaders):
    """Make sure an explicit kubeconfig path wins over everything else"""
    load_kube, load_incluster = kube_loaders
    with mock.patch.dict("os.environ", {"KUBECONFIG": "/env/config"}):
        configuration = new_cluster_configuration(
            ClusterConfig(kubeconfig_path="/my/config", host="https://ignored:6443")
        )
    assert load_kube.call_args.kwargs["config_file"] == "/my/config"
    assert load_kube.call_args.kwargs["client_configuration"] is configuration
    assert not load_incluster.called


def test_env_kubeconfig(kube_loaders):
    load_kube, _ = kube_loaders
    with mock.patch.dict("os.environ", {"KUBECONFIG": "/env/config"}):
        new_cluster_configuration()
    assert load_kube.call_args.kwargs["config_file"] == "/env/config"


def test_in_cluster(kube_loaders):
    """Make sure the in-cluster account is used when nothing else is set"""
    load_kube, load_incluster = kube_loaders
    configuration = new_cluster_configuration()
    assert not load_kube.called
    assert load_incluster.call_args.kwargs["client_configuration"] is configuration


def test_in_cluster_unavailable(kube_loaders):
    _, load_incluster = kube_loaders
    load_incluster.side_effect = kubernetes.config.ConfigException("not in a pod")
    with pytest.raises(ConfigError, match="in-cluster"):
        new_cluster_configuration()


def test_bad_kubeconfig(kube_loaders):
    load_kube, _ = kube_loaders
    load_kube.side_effect = kubernetes.config.ConfigException("bad file")
    with pytest.raises(ConfigError, match="/bad/config"):
        new_cluster_configuration(ClusterConfig(kubeconfig_path="/bad/config"))


def test_explicit_https_host(kube_loaders):
    """Make sure the TLS settings are applied to an https host"""
    load_kube, load_incluster = kube_loaders
    configuration = new_cluster_configuration(
        ClusterConfig(
            host="https://cluster.example.com:6443",
            tls=TLSConfig(
                insecure=True,
                ca_file="/ca.crt",
                cert_file="/tls.crt",
                key_file="/tls.key",
                server_name="kubernetes",
            ),
        )
    )
    assert not load_kube.called
    assert not load_incluster.called
    assert configuration.host == "https://cluster.example.com:6443"
    assert configuration.verify_ssl is False
    assert configuration.ssl_ca_cert == "/ca.crt"
    assert configuration.cert_file == "/tls.crt"
    assert configuration.key_file == "/tls.key"
    assert configuration.tls_server_name == "kubernetes"


def test_explicit_http_host_ignores_tls(kube_loaders):
    configuration = new_cluster_configuration(
        ClusterConfig(host="http://localhost:8001", tls=TLSConfig(ca_file="/ca.crt"))
    )
    assert configuration.host == "http://localhost:8001"
    assert configuration.ssl_ca_cert != "/ca.crt"


def test_bad_host(kube_loaders):
    with pytest.raises(ConfigError, match="error parsing host url"):
        new_cluster_configuration(ClusterConfig(host="not a url"))


def test_burst_sets_pool_size(kube_loaders):
    configuration = new_cluster_configuration()
    assert configuration.connection_pool_maxsize == 100


def test_user_agent():
    assert user_agent().startswith("KConverge/")


def test_new_api_client_impersonation(kube_loaders):
    """Make sure the impersonation header and user agent are set"""
    api_client = new_api_client(ClusterConfig(as_user="system:admin"))
    assert api_client.default_headers["Impersonate-User"] == "system:admin"
    assert api_client.user_agent == user_agent()


def test_new_api_client_no_impersonation(kube_loaders):
    api_client = new_api_client()
    assert "Impersonate-User" not in api_client.default_headers
