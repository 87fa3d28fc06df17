"""Provisioning cluster access through the Kubernetes API."""
import logging
import os
from typing import Any, Dict, Optional

import yaml
from kubernetes import client, config
from kubernetes.client.rest import ApiException

from ranchertest.errors import ResourceConflictError
from ranchertest.utils.files import create_temp, write_file

logger = logging.getLogger("kube")

GROUP = "provisioning.cattle.io"
VERSION = "v1"
PLURAL = "clusters"


def load_client_config(kubeconfig: Optional[str] = None) -> str:
    """Configure the kubernetes client.

    Sources, first match wins: kubeconfig, KUBECONFIG_CONTENT (written to a
    temporary file), KUBECONFIG, then the in-cluster service account.

    Returns:
        str: The kubeconfig file used, or "in-cluster"
    """
    if not kubeconfig and os.getenv("KUBECONFIG_CONTENT"):
        kubeconfig = create_temp("ci-kubeconfig")
        write_file(kubeconfig, os.environ["KUBECONFIG_CONTENT"].encode())

    kubeconfig = kubeconfig or os.getenv("KUBECONFIG")
    if not kubeconfig:
        config.load_incluster_config()
        return "in-cluster"

    path = os.path.expanduser(kubeconfig)
    if not os.path.isfile(path):
        raise FileNotFoundError(f"❌ Kubeconfig not found: {path}")
    config.load_kube_config(config_file=path)
    logger.debug(f"Loaded kubeconfig {path}")
    return path


class KubernetesResourceClient:
    """Fetches and replaces provisioning clusters with the CustomObjects API."""

    def __init__(self, api: Optional[client.CustomObjectsApi] = None, kubeconfig: Optional[str] = None):
        if api is None:
            load_client_config(kubeconfig)
            api = client.CustomObjectsApi()
        self.api = api

    def fetch_resource(self, namespace: str, name: str) -> Dict[str, Any]:
        return self.api.get_namespaced_custom_object(
            group=GROUP,
            version=VERSION,
            namespace=namespace,
            plural=PLURAL,
            name=name,
        )

    def replace_resource(self, namespace: str, document: str) -> None:
        body = yaml.safe_load(document)
        name = body["metadata"]["name"]
        kwargs = dict(group=GROUP, version=VERSION, namespace=namespace, plural=PLURAL, name=name, body=body)
        try:
            if body["metadata"].get("resourceVersion"):
                self.api.replace_namespaced_custom_object(**kwargs)
            else:
                # Custom resources refuse an unconditional PUT, a merge patch of
                # the whole document gives the same last-writer-wins result
                self.api.patch_namespaced_custom_object(**kwargs)
        except ApiException as e:
            if e.status == 409:
                raise ResourceConflictError(namespace, name, e.reason or "") from e
            raise
