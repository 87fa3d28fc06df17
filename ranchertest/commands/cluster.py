"""Provisioning cluster commands."""
import logging
import subprocess

import typer

from ..modules.kubectl import KubectlResourceClient
from ..modules.rancher.cluster import ClusterMutator
from ..modules.rancher.errors import ClusterResourceError
from ..modules.rancher.misc import set_client_kubeconfig
from ..utils import RetryError

logger = logging.getLogger("cluster")

app = typer.Typer(help="Provisioning cluster commands")


def get_mutator(backend: str, conditional: bool) -> ClusterMutator:
    if backend == "kubectl":
        client = KubectlResourceClient()
    elif backend == "api":
        from ..modules.kube import KubernetesResourceClient
        client = KubernetesResourceClient()
    else:
        raise typer.BadParameter(f"Unknown backend '{backend}'", param_hint="--backend")
    return ClusterMutator(client, conditional=conditional)


@app.command("scale")
def scale(
    namespace: str = typer.Option('fleet-default', '--namespace', '-n', help='Cluster namespace'),
    name: str = typer.Option(..., '--name', help='Cluster name'),
    pool: str = typer.Option(..., '--pool', '-p', help='Machine pool name'),
    delta: int = typer.Option(1, '--delta', help='Nodes to add (negative to remove)'),
    conditional: bool = typer.Option(False, '--conditional', help='Refuse stale writes and retry on conflict'),
    backend: str = typer.Option('kubectl', '--backend', help='kubectl or api'),
):
    """Change the node quantity of a machine pool."""
    try:
        quantity = get_mutator(backend, conditional).adjust_pool_quantity(namespace, name, pool, delta)
    except (ClusterResourceError, RetryError, subprocess.CalledProcessError) as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(code=1)
    typer.echo(quantity)


@app.command("role")
def role(
    namespace: str = typer.Option('fleet-default', '--namespace', '-n', help='Cluster namespace'),
    name: str = typer.Option(..., '--name', help='Cluster name'),
    pool: str = typer.Option(..., '--pool', '-p', help='Machine pool name'),
    role_name: str = typer.Option(..., '--role', '-r', help='controlPlaneRole, etcdRole or workerRole'),
    value: bool = typer.Option(True, '--value/--no-value', help='Set or unset the role'),
    conditional: bool = typer.Option(False, '--conditional', help='Refuse stale writes and retry on conflict'),
    backend: str = typer.Option('kubectl', '--backend', help='kubectl or api'),
):
    """Set or unset a role on a machine pool."""
    try:
        get_mutator(backend, conditional).set_pool_role(namespace, name, pool, role_name, value)
    except (ClusterResourceError, RetryError, subprocess.CalledProcessError) as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(code=1)
    typer.echo(f"{role_name}={value}")


@app.command("kubeconfig")
def kubeconfig(
    namespace: str = typer.Option('fleet-default', '--namespace', '-n', help='Cluster namespace'),
    name: str = typer.Option(..., '--name', help='Cluster name'),
):
    """Write the kubeconfig of a downstream cluster and print its path."""
    try:
        path = set_client_kubeconfig(namespace, name)
    except (subprocess.CalledProcessError, ValueError) as e:
        logger.error(f"❌ Could not get kubeconfig of {namespace}/{name}: {e}")
        raise typer.Exit(code=1)
    typer.echo(path)
