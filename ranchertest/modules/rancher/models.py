"""
Data models for Rancher deployments and provisioning clusters.
"""
import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple


class Channel(str, Enum):
    """Rancher Manager release channels."""
    STABLE = 'stable'
    LATEST = 'latest'
    ALPHA = 'alpha'
    PRIME = 'prime'
    PRIME_OPTIMUS = 'prime-optimus'
    PRIME_OPTIMUS_ALPHA = 'prime-optimus-alpha'
    HEAD = 'head'


class CAMode(str, Enum):
    """Certificate authority used by the Rancher ingress."""
    SELFSIGNED = 'selfsigned'
    PRIVATE = 'private'


class ProxyMode(str, Enum):
    """Whether Rancher Manager runs behind a proxy."""
    NONE = 'none'
    RANCHER = 'rancher'


@dataclass
class DeploymentRequest:
    """One install/upgrade intent for Rancher Manager.

    ``channel`` is kept as a plain string: unknown channels are accepted and
    only fail when the chart repository gets registered.
    """
    hostname: str
    channel: str = Channel.STABLE.value
    version: str = ''
    head_version: str = ''
    ca: str = CAMode.SELFSIGNED.value
    proxy: str = ProxyMode.NONE.value
    extra_flags: List[Tuple[str, str]] = field(default_factory=list)

    def __post_init__(self):
        # Enum members are accepted, but names and URLs are built from plain values
        self.channel = getattr(self.channel, 'value', self.channel)
        self.ca = getattr(self.ca, 'value', self.ca)
        self.proxy = getattr(self.proxy, 'value', self.proxy)


@dataclass
class MachinePool:
    """A named group of nodes inside a provisioning cluster."""
    name: str
    quantity: int = 0
    control_plane_role: bool = False
    etcd_role: bool = False
    worker_role: bool = False
    drain_before_delete: bool = False
    unhealthy_node_timeout: str = ''
    # Keys we don't model (machineConfigRef, labels...) are written back untouched
    extra: Dict[str, Any] = field(default_factory=dict)
    # Document keys the pool was read with, false flags not in it stay unset
    present: Set[str] = field(default_factory=set, repr=False, compare=False)

    # attribute name -> document key
    KEYS = {
        'name': 'name',
        'quantity': 'quantity',
        'control_plane_role': 'controlPlaneRole',
        'etcd_role': 'etcdRole',
        'worker_role': 'workerRole',
        'drain_before_delete': 'drainBeforeDelete',
        'unhealthy_node_timeout': 'unhealthyNodeTimeout',
    }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MachinePool':
        data = data or {}
        known = set(cls.KEYS.values())
        return cls(
            name=data.get('name', ''),
            quantity=int(data.get('quantity') or 0),
            control_plane_role=bool(data.get('controlPlaneRole', False)),
            etcd_role=bool(data.get('etcdRole', False)),
            worker_role=bool(data.get('workerRole', False)),
            drain_before_delete=bool(data.get('drainBeforeDelete', False)),
            unhealthy_node_timeout=data.get('unhealthyNodeTimeout') or '',
            extra={k: copy.deepcopy(v) for k, v in data.items() if k not in known},
            present=set(data),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = copy.deepcopy(self.extra)
        for attr, key in self.KEYS.items():
            value = getattr(self, attr)
            if (value is False or value == '') and key not in self.present:
                continue
            data[key] = value
        return data


@dataclass
class ClusterResource:
    """A ``cluster.v1.provisioning.cattle.io`` object.

    Only the machine pools are modelled, the rest of the document is kept
    as-is in ``raw`` so a fetch/replace cycle doesn't lose anything.
    """
    api_version: str
    kind: str
    metadata: Dict[str, Any]
    machine_pools: List[MachinePool] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.metadata.get('name', '')

    @property
    def namespace(self) -> str:
        return self.metadata.get('namespace', '')

    @property
    def resource_version(self) -> str:
        return self.metadata.get('resourceVersion', '')

    @classmethod
    def from_dict(cls, document: Dict[str, Any]) -> 'ClusterResource':
        if not isinstance(document, dict):
            raise ValueError(f"Invalid cluster document: expected a mapping, got {type(document).__name__}")

        raw = copy.deepcopy(document)
        rke_config = (raw.get('spec') or {}).get('rkeConfig') or {}
        pools = [MachinePool.from_dict(p) for p in rke_config.get('machinePools') or []]
        return cls(
            api_version=raw.get('apiVersion', ''),
            kind=raw.get('kind', ''),
            metadata=raw.get('metadata') or {},
            machine_pools=pools,
            raw=raw,
        )

    def to_dict(self, keep_resource_version: bool = False) -> Dict[str, Any]:
        """Serialize the whole resource for a replace.

        Args:
            keep_resource_version: Send resourceVersion back so the server can
                refuse a stale write

        Returns:
            dict: The full document
        """
        document = copy.deepcopy(self.raw)
        document['apiVersion'] = self.api_version
        document['kind'] = self.kind

        metadata = copy.deepcopy(self.metadata)
        metadata.pop('managedFields', None)
        if not keep_resource_version:
            metadata.pop('resourceVersion', None)
        document['metadata'] = metadata

        spec = document.setdefault('spec', {}) or {}
        document['spec'] = spec
        rke_config = spec.setdefault('rkeConfig', {}) or {}
        spec['rkeConfig'] = rke_config
        rke_config['machinePools'] = [p.to_dict() for p in self.machine_pools]
        return document

    def find_pool(self, name: str) -> Optional[MachinePool]:
        """Return the first pool with the given name."""
        for pool in self.machine_pools:
            if pool.name == name:
                return pool
        return None
