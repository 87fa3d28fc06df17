import copy

import pytest
import yaml

from ranchertest.errors import ResourceConflictError

CLUSTER_DOC = {
    "apiVersion": "provisioning.cattle.io/v1",
    "kind": "Cluster",
    "metadata": {
        "name": "cluster-k3s",
        "namespace": "fleet-default",
        "resourceVersion": "1000",
        "uid": "5e0a1d3c-5bd5-4ab0-9c1b-6a2b4c2b0c0e",
        "annotations": {"objectset.rio.cattle.io/id": "cluster-create"},
    },
    "spec": {
        "kubernetesVersion": "v1.30.4+k3s1",
        "rkeConfig": {
            "machinePools": [
                {
                    "name": "pool-master-cluster-k3s",
                    "quantity": 1,
                    "controlPlaneRole": True,
                    "etcdRole": True,
                    "machineConfigRef": {
                        "apiVersion": "elemental.cattle.io/v1beta1",
                        "kind": "MachineInventorySelectorTemplate",
                        "name": "selector-master-cluster-k3s",
                    },
                },
                {
                    "name": "worker",
                    "quantity": 3,
                    "workerRole": True,
                    "drainBeforeDelete": True,
                    "unhealthyNodeTimeout": "0s",
                    "machineConfigRef": {
                        "apiVersion": "elemental.cattle.io/v1beta1",
                        "kind": "MachineInventorySelectorTemplate",
                        "name": "selector-worker-cluster-k3s",
                    },
                },
            ],
        },
    },
    "status": {"ready": True, "clusterName": "c-m-abcdef"},
}


class FakeResourceClient:
    """In-memory resource store recording every call."""

    def __init__(self, document=None, conflicts=0, fetch_error=None, replace_error=None):
        self.document = copy.deepcopy(document if document is not None else CLUSTER_DOC)
        self.conflicts = conflicts
        self.fetch_error = fetch_error
        self.replace_error = replace_error
        self.fetches = []
        self.writes = []

    def fetch_resource(self, namespace, name):
        self.fetches.append((namespace, name))
        if self.fetch_error:
            raise self.fetch_error
        return copy.deepcopy(self.document)

    def replace_resource(self, namespace, document):
        self.writes.append((namespace, document))
        if self.replace_error:
            raise self.replace_error
        body = yaml.safe_load(document)
        if self.conflicts > 0:
            self.conflicts -= 1
            raise ResourceConflictError(namespace, body["metadata"]["name"], "the object has been modified")
        version = int(self.document["metadata"].get("resourceVersion", "0")) + 1
        body["metadata"]["resourceVersion"] = str(version)
        self.document = body

    @property
    def last_written(self):
        return yaml.safe_load(self.writes[-1][1])


class FakeHelm:
    """Records helm calls, optionally failing one of them."""

    def __init__(self, fail_on=None, error=None):
        self.calls = []
        self.fail_on = fail_on
        self.error = error or RuntimeError("helm failed")

    def _record(self, call, *args):
        self.calls.append((call,) + args)
        if call == self.fail_on:
            raise self.error

    def add_repository(self, name, url):
        self._record("add_repository", name, url)

    def refresh_repositories(self):
        self._record("refresh_repositories")

    def upgrade(self, args, redact=()):
        self._record("upgrade", list(args))


@pytest.fixture
def cluster_doc():
    return copy.deepcopy(CLUSTER_DOC)


@pytest.fixture
def resource_client():
    return FakeResourceClient()


@pytest.fixture
def helm():
    return FakeHelm()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ("RANCHER_PASSWORD", "RANCHER_PROXY_HOST", "TIMEOUT_SCALE", "ELEMENTAL_CMD_ARGS",
                "COS_HOST", "COS_USER", "COS_PASS"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def make_client():
    return FakeResourceClient


@pytest.fixture
def make_helm():
    return FakeHelm
