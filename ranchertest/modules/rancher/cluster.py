"""Machine pool changes on provisioning clusters.

Every call is a full FETCH -> MUTATE -> REPLACE cycle. By default no lock or
resourceVersion is involved: two callers changing the same cluster at the
same time race and the last write wins. Pass ``conditional=True`` to send
the resourceVersion back and restart the whole cycle on a conflict.
"""
import logging
from typing import Any, Callable, Dict, Optional, Tuple

import yaml

from ranchertest.config import Config
from ranchertest.utils import retry
from .errors import PoolNotFoundError, ResourceConflictError, UnknownRoleError
from .models import ClusterResource, MachinePool

logger = logging.getLogger("rancher.cluster")

Getter = Callable[[MachinePool], bool]
Setter = Callable[[MachinePool, bool], None]


def _role(attr: str) -> Tuple[Getter, Setter]:
    return (lambda pool: getattr(pool, attr),
            lambda pool, value: setattr(pool, attr, bool(value)))


# Role flags that can be toggled by name
POOL_ROLES: Dict[str, Tuple[Getter, Setter]] = {
    'controlPlaneRole': _role('control_plane_role'),
    'etcdRole': _role('etcd_role'),
    'workerRole': _role('worker_role'),
}


class ClusterMutator:
    """Read-modify-write of machine pools through a resource client.

    The client needs ``fetch_resource(namespace, name) -> dict`` and
    ``replace_resource(namespace, document: str)``, see
    ``KubectlResourceClient`` and ``KubernetesResourceClient``.
    """

    def __init__(
        self,
        client: Any,
        conditional: bool = False,
        max_conflict_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
    ):
        self.client = client
        self.conditional = conditional
        self.max_conflict_retries = (
            Config.MAX_CONFLICT_RETRIES if max_conflict_retries is None else max_conflict_retries
        )
        self.retry_delay = Config.RETRY_DELAY if retry_delay is None else retry_delay

    def _fetch(self, namespace: str, name: str) -> ClusterResource:
        return ClusterResource.from_dict(self.client.fetch_resource(namespace, name))

    def _replace(self, namespace: str, cluster: ClusterResource) -> None:
        document = yaml.safe_dump(
            cluster.to_dict(keep_resource_version=self.conditional),
            default_flow_style=False,
            sort_keys=False,
        )
        self.client.replace_resource(namespace, document)

    def _cycle(self, namespace: str, name: str, pool_name: str, mutate: Callable[[MachinePool], Any]) -> Any:
        cluster = self._fetch(namespace, name)

        pool = cluster.find_pool(pool_name)
        if pool is None:
            raise PoolNotFoundError(pool_name)

        result = mutate(pool)
        self._replace(namespace, cluster)
        return result

    def _run(self, namespace: str, name: str, pool_name: str, mutate: Callable[[MachinePool], Any]) -> Any:
        if not self.conditional:
            return self._cycle(namespace, name, pool_name, mutate)

        cycle = retry(
            max_retries=self.max_conflict_retries,
            delay=self.retry_delay,
            exceptions=(ResourceConflictError,),
        )(self._cycle)
        return cycle(namespace, name, pool_name, mutate)

    def adjust_pool_quantity(self, namespace: str, name: str, pool_name: str, delta: int) -> int:
        """Add delta to the quantity of a pool.

        Args:
            namespace: Cluster namespace
            name: Cluster name
            pool_name: Pool to resize
            delta: Nodes to add, negative to remove (not checked against zero)

        Returns:
            int: The new quantity

        Raises:
            PoolNotFoundError: If no pool has that name, nothing is written
        """
        def mutate(pool: MachinePool) -> int:
            pool.quantity += delta
            return pool.quantity

        quantity = self._run(namespace, name, pool_name, mutate)
        logger.info(f"📈 Pool '{pool_name}' of {namespace}/{name} set to {quantity} node(s)")
        return quantity

    def set_pool_role(self, namespace: str, name: str, pool_name: str, role: str, value: bool) -> None:
        """Set or unset a role flag (controlPlaneRole, etcdRole, workerRole) of a pool.

        Raises:
            PoolNotFoundError: If no pool has that name, nothing is written
            UnknownRoleError: If the role is not a pool role flag, nothing is written
        """
        def mutate(pool: MachinePool) -> None:
            if role not in POOL_ROLES:
                raise UnknownRoleError(role)
            _, setter = POOL_ROLES[role]
            setter(pool, value)

        self._run(namespace, name, pool_name, mutate)
        logger.info(f"🔧 {role}={value} on pool '{pool_name}' of {namespace}/{name}")


def _default_mutator() -> ClusterMutator:
    from ranchertest.modules.kubectl import KubectlResourceClient
    return ClusterMutator(KubectlResourceClient())


def set_node_quantity(namespace: str, name: str, pool: str, quantity: int) -> int:
    """Increase (or decrease) the node quantity of a pool using kubectl."""
    return _default_mutator().adjust_pool_quantity(namespace, name, pool, quantity)


def set_role(namespace: str, name: str, pool: str, role: str, value: bool) -> None:
    """Set or unset a role of a pool using kubectl.

    Example:
        set_role(cluster_ns, cluster_name, "pool-worker-" + cluster_name, "controlPlaneRole", True)
    """
    _default_mutator().set_pool_role(namespace, name, pool, role, value)
