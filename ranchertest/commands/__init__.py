from . import rancher, cluster

__all__ = ['rancher', 'cluster']
