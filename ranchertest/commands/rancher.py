"""Rancher Manager deployment commands."""
import logging
import subprocess
from typing import List, Optional, Tuple

import typer

from ..modules.rancher.config import RancherConfig
from ..modules.rancher.install import RancherResolver, channel_name, deploy_rancher_manager, repository_url, head_tag
from ..modules.rancher.models import DeploymentRequest
from ..utils import redact_args

logger = logging.getLogger("rancher")

app = typer.Typer(help="Rancher Manager deployment commands")


def parse_set_values(values: Optional[List[str]]) -> List[Tuple[str, str]]:
    """Turn ``KEY=VALUE`` strings into ``--set`` flag pairs, keeping their order."""
    pairs = []
    for value in values or []:
        if "=" not in value:
            raise typer.BadParameter(f"Expected KEY=VALUE, got '{value}'", param_hint="--set")
        pairs.append(("--set", value))
    return pairs


@app.command("deploy")
def deploy(
    hostname: str = typer.Option(..., '--hostname', '-H', help='Hostname/URL of the Rancher Manager'),
    channel: str = typer.Option('stable', '--channel', '-c', help='Release channel (stable, latest, alpha, prime, prime-optimus, prime-optimus-alpha, head)'),
    version: str = typer.Option('', '--version', '-v', help='Version to install (latest, devel or an explicit version)'),
    head_version: str = typer.Option('', '--head-version', help='Head version (head, 2.8, 2.12...)'),
    ca: str = typer.Option('selfsigned', '--ca', help='CA to use (selfsigned, private)'),
    proxy: str = typer.Option('none', '--proxy', help='Proxy mode (none, rancher)'),
    set_values: Optional[List[str]] = typer.Option(None, '--set', help='Extra KEY=VALUE chart value, repeatable'),
    dry_run: bool = typer.Option(False, '--dry-run', help='Print the helm arguments without running them'),
):
    """Install or upgrade Rancher Manager.

    Example:
        ranchertest rancher deploy --hostname rancher.example.com --channel head --head-version 2.12
    """
    request = DeploymentRequest(
        hostname=hostname,
        channel=channel,
        version=version,
        head_version=head_version,
        ca=ca,
        proxy=proxy,
        extra_flags=parse_set_values(set_values),
    )
    config = RancherConfig.from_env()

    if dry_run:
        flags = RancherResolver(config).resolve_flags(request)
        typer.echo(f"helm repo add {channel_name(request)} {repository_url(request.channel, head_tag(request))}")
        typer.echo("helm " + " ".join(redact_args(flags, [config.bootstrap_password])))
        return

    try:
        deploy_rancher_manager(request, config=config)
    except subprocess.CalledProcessError as e:
        logger.error(f"❌ Rancher Manager deployment failed: {e}")
        raise typer.Exit(code=1)
