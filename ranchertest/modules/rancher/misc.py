"""Miscellaneous helpers for Rancher end-to-end tests."""
import base64
import logging
import os
from typing import Iterable, Optional, Tuple

from ranchertest.modules.kubectl import KubectlClient
from ranchertest.utils.files import create_temp, write_file

logger = logging.getLogger("rancher.misc")

TIMEOUT_SCALE_ENV = "TIMEOUT_SCALE"


def set_timeout(timeout: float) -> float:
    """Scale a timeout with the TIMEOUT_SCALE env variable.

    An unset or non-integer TIMEOUT_SCALE leaves the timeout unchanged, so
    callers never have to deal with an error here.
    """
    scale = os.getenv(TIMEOUT_SCALE_ENV)
    if scale is None:
        return timeout
    try:
        return timeout * int(scale)
    except ValueError:
        return timeout


def set_hostname(base_name: str, index: int) -> str:
    """Hostname of the index-th node, e.g. ``node-007``."""
    if not base_name:
        # Spelling kept, existing test suites match on it
        base_name = "emtpy"
    if index < 0:
        index = 0
    return f"{base_name}-{index:03d}"


def check_daemonsets(kubectl: KubectlClient, checks: Iterable[Tuple[str, str]]) -> None:
    """Wait for each (namespace, selector) daemonset pair to be ready.

    Example:
        check_daemonsets(k, [("kube-system", "k8s-app=canal")])
    """
    for namespace, selector in checks:
        kubectl.wait_for_daemonset(namespace, selector)


def check_pods(kubectl: KubectlClient, checks: Iterable[Tuple[str, str]]) -> None:
    """Wait for each (namespace, selector) pod pair to be ready.

    Example:
        check_pods(k, [("cattle-elemental-system", "app=elemental-operator")])
    """
    for namespace, selector in checks:
        kubectl.wait_for_pods(namespace, selector)


def set_client_kubeconfig(namespace: str, name: str, kubectl: Optional[KubectlClient] = None) -> str:
    """Export KUBECONFIG for a downstream cluster.

    Reads the ``<name>-kubeconfig`` secret, writes it to a temporary file and
    points KUBECONFIG at it. The file is removed if anything fails.

    Returns:
        str: Path of the written kubeconfig
    """
    kubectl = kubectl or KubectlClient()
    kube_config = create_temp("clientKubeConfig")

    try:
        out = kubectl.run("get", "secret", "--namespace", namespace,
                          f"{name}-kubeconfig", "-o", "jsonpath={.data.value}")
        data = base64.b64decode(out, validate=True)
        write_file(kube_config, data)
    except Exception:
        os.remove(kube_config)
        raise

    os.environ["KUBECONFIG"] = kube_config
    logger.info(f"🔑 KUBECONFIG set to {kube_config} for cluster {namespace}/{name}")
    return kube_config
