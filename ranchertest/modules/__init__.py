"""
Collaborators wrapping external tools.
"""
from .helm import HelmClient
from .kubectl import KubectlClient, KubectlResourceClient
from .ssh import Client, SSHCommandError

__all__ = [
    'HelmClient',
    'KubectlClient',
    'KubectlResourceClient',
    'Client',
    'SSHCommandError',
]
