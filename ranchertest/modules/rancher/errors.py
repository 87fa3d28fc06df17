"""Exceptions raised by the Rancher helpers."""
from ranchertest.errors import ResourceConflictError  # noqa: F401

NO_EXIST = "'{}' does not exist!"


class ClusterResourceError(Exception):
    """Base class for cluster resource lookup failures."""
    pass


class PoolNotFoundError(ClusterResourceError):
    """No machine pool with the requested name."""

    def __init__(self, pool: str):
        self.pool = pool
        super().__init__("pool " + NO_EXIST.format(pool))


class UnknownRoleError(ClusterResourceError):
    """The requested role flag is not part of the machine pool schema."""

    def __init__(self, role: str):
        self.role = role
        super().__init__("role " + NO_EXIST.format(role))
