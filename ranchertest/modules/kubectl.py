"""kubectl wrappers used by the test helpers."""
import logging
import os
import subprocess
import tempfile
import time
from typing import Any, Dict, List, Optional

import yaml

from ranchertest.config import Config
from ranchertest.errors import ResourceConflictError
from ranchertest.utils import run_command

logger = logging.getLogger("kubectl")

CLUSTER_RESOURCE = "cluster.v1.provisioning.cattle.io"
CONFLICT_MARKERS = ("the object has been modified",)


class KubectlClient:
    """Runs kubectl, every failure is raised to the caller."""

    def __init__(self, binary: str = "kubectl", kubeconfig: Optional[str] = None):
        self.binary = binary
        self.kubeconfig = kubeconfig

    def run(self, *args: str) -> str:
        cmd = [self.binary]
        if self.kubeconfig:
            cmd += ["--kubeconfig", self.kubeconfig]
        return run_command(cmd + list(args), capture_output=True).stdout

    def apply(self, namespace: str, path: str) -> str:
        return self.run("apply", "--namespace", namespace, "-f", path)

    def delete(self, kind: str, name: str, namespace: str = "default") -> str:
        return self.run("delete", kind, name, "--namespace", namespace)

    def get_pod_names(self, namespace: str, selector: str = "") -> List[str]:
        args = ["get", "pods", "--namespace", namespace,
                "-o", "jsonpath={.items[*].metadata.name}"]
        if selector:
            args += ["-l", selector]
        return self.run(*args).split()

    def wait_for_pods(self, namespace: str, selector: str, timeout: int = None) -> None:
        """Wait until pods matching selector exist and are Ready."""
        timeout = timeout or Config.WAIT_TIMEOUT
        deadline = time.time() + timeout

        # kubectl wait fails right away when nothing matches yet
        while not self.get_pod_names(namespace, selector):
            if time.time() > deadline:
                raise TimeoutError(f"No pod matching '{selector}' in namespace {namespace}")
            time.sleep(Config.WAIT_INTERVAL)

        remaining = max(int(deadline - time.time()), 1)
        self.run("wait", "pods", "--namespace", namespace, "-l", selector,
                 "--for=condition=Ready", f"--timeout={remaining}s")

    def wait_for_daemonset(self, namespace: str, selector: str, timeout: int = None) -> None:
        """Wait until every daemonset matching selector has all its pods ready."""
        timeout = timeout or Config.WAIT_TIMEOUT
        deadline = time.time() + timeout

        while True:
            out = self.run("get", "daemonsets", "--namespace", namespace, "-l", selector, "-o", "yaml")
            items = (yaml.safe_load(out) or {}).get("items") or []
            if items and all(_daemonset_ready(ds) for ds in items):
                logger.debug(f"Daemonset(s) '{selector}' ready in {namespace}")
                return
            if time.time() > deadline:
                raise TimeoutError(f"Daemonset(s) '{selector}' not ready in namespace {namespace}")
            time.sleep(Config.WAIT_INTERVAL)


def _daemonset_ready(daemonset: Dict[str, Any]) -> bool:
    status = daemonset.get("status") or {}
    desired = status.get("desiredNumberScheduled", 0)
    return desired > 0 and status.get("numberReady", 0) == desired


class KubectlResourceClient:
    """Fetches and replaces provisioning clusters with kubectl."""

    def __init__(self, kubectl: Optional[KubectlClient] = None, resource: str = CLUSTER_RESOURCE):
        self.kubectl = kubectl or KubectlClient()
        self.resource = resource

    def fetch_resource(self, namespace: str, name: str) -> Dict[str, Any]:
        out = self.kubectl.run("get", self.resource, "--namespace", namespace, name, "-o", "yaml")
        return yaml.safe_load(out)

    def replace_resource(self, namespace: str, document: str) -> None:
        fd, path = tempfile.mkstemp(prefix="updatedCluster", suffix=".yaml")
        try:
            with os.fdopen(fd, "w") as f:
                f.write(document)
            self.kubectl.apply(namespace, path)
        except subprocess.CalledProcessError as e:
            stderr = e.stderr or ""
            if any(marker in stderr for marker in CONFLICT_MARKERS):
                name = (yaml.safe_load(document) or {}).get("metadata", {}).get("name", "")
                raise ResourceConflictError(namespace, name, stderr.strip()) from e
            raise
        finally:
            os.remove(path)
