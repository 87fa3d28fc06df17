"""
Rancher Manager helpers

- Deployment of Rancher Manager for every release channel
- Machine pool scaling and role changes on provisioning clusters
- Miscellaneous test helpers (timeouts, hostnames, downstream kubeconfig)
"""

from .config import RancherConfig
from .models import (
    Channel, CAMode, ProxyMode, DeploymentRequest, MachinePool, ClusterResource
)
from .errors import (
    ClusterResourceError, PoolNotFoundError, UnknownRoleError, ResourceConflictError
)
from .install import RancherResolver, channel_name, repository_url, deploy_rancher_manager
from .cluster import ClusterMutator, POOL_ROLES, set_node_quantity, set_role
from .misc import set_timeout, set_hostname, check_daemonsets, check_pods, set_client_kubeconfig

__all__ = [
    # Configuration and models
    'RancherConfig',
    'Channel',
    'CAMode',
    'ProxyMode',
    'DeploymentRequest',
    'MachinePool',
    'ClusterResource',

    # Errors
    'ClusterResourceError',
    'PoolNotFoundError',
    'UnknownRoleError',
    'ResourceConflictError',

    # Installation
    'RancherResolver',
    'channel_name',
    'repository_url',
    'deploy_rancher_manager',

    # Cluster operations
    'ClusterMutator',
    'POOL_ROLES',
    'set_node_quantity',
    'set_role',

    # Misc
    'set_timeout',
    'set_hostname',
    'check_daemonsets',
    'check_pods',
    'set_client_kubeconfig',
]
