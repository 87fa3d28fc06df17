"""Rancher Manager installation.

Works out the Helm repository and the ``helm upgrade --install`` arguments
for every supported channel/version combination, then runs them.
"""
import logging
import re
from typing import List, Optional

from ranchertest.modules.helm import HelmClient
from .config import RancherConfig
from .models import CAMode, Channel, DeploymentRequest, ProxyMode

logger = logging.getLogger("rancher.install")

CHANNEL_PREFIX = "rancher"
NAMESPACE = "cattle-system"

PUBLIC_REGISTRY = "rancher"
STAGING_REGISTRY = "stgregistry.suse.com/rancher"

# Public devel images only exist for 2.12 and later
PUBLIC_HEAD_RE = re.compile(r'2\.(1[2-9]|[2-9]\d)')

NO_PROXY = (
    "127.0.0.0/8\\,10.0.0.0/8\\,cattle-system.svc\\,172.16.0.0/12"
    "\\,192.168.0.0/16\\,.svc\\,.cluster.local"
)

CHART_REPOSITORIES = {
    Channel.STABLE.value: "https://releases.rancher.com/server-charts/stable",
    Channel.LATEST.value: "https://releases.rancher.com/server-charts/latest",
    Channel.ALPHA.value: "https://releases.rancher.com/server-charts/alpha",
    Channel.PRIME.value: "https://charts.rancher.com/server-charts/prime",
    Channel.PRIME_OPTIMUS.value: "https://charts.optimus.rancher.io/server-charts/latest",
    Channel.PRIME_OPTIMUS_ALPHA.value: "https://charts.optimus.rancher.io/server-charts/alpha",
    Channel.HEAD.value: "https://charts.optimus.rancher.io/server-charts/release-{head_version}",
}


def head_tag(request: DeploymentRequest) -> str:
    """Version used to pick the head repository, falling back to version."""
    return request.head_version or request.version


def channel_name(request: DeploymentRequest) -> str:
    """Name used to register the chart repository."""
    name = f"{CHANNEL_PREFIX}-{request.channel}"
    if request.channel == Channel.HEAD:
        # head repositories are per release, not rolling
        name += f"-{head_tag(request)}"
    return name


def repository_url(channel: str, head_version: str = "") -> str:
    """Chart repository of a channel, empty string if the channel is unknown."""
    url = CHART_REPOSITORIES.get(channel, "")
    if not url:
        logger.warning(f"⚠️  Unknown Rancher channel '{channel}', no chart repository")
        return ""
    return url.format(head_version=head_version)


def _set(key: str, value: str) -> List[str]:
    return ["--set", f"{key}={value}"]


def _agent_image(image: str) -> List[str]:
    return _set("extraEnv[2].name", "CATTLE_AGENT_IMAGE") + _set("extraEnv[2].value", image)


class RancherResolver:
    """Computes Helm arguments for a Rancher Manager deployment.

    Pure: nothing external is touched, instances can be shared.
    """

    def __init__(self, config: Optional[RancherConfig] = None):
        self.config = config or RancherConfig.from_env()

    def base_flags(self, request: DeploymentRequest) -> List[str]:
        password = self.config.bootstrap_password
        return [
            "upgrade", "--install", "rancher", f"{channel_name(request)}/rancher",
            "--namespace", NAMESPACE,
            "--create-namespace",
            *_set("hostname", request.hostname),
            *_set("bootstrapPassword", password),
            *_set("extraEnv[0].name", "CATTLE_SERVER_URL"),
            *_set("extraEnv[0].value", f"https://{request.hostname}"),
            *_set("extraEnv[1].name", "CATTLE_BOOTSTRAP_PASSWORD"),
            *_set("extraEnv[1].value", password),
            *_set("replicas", "1"),
            "--wait",
        ]

    def version_flags(self, request: DeploymentRequest) -> List[str]:
        channel, version = request.channel, request.version

        if channel == Channel.HEAD and request.head_version != "":
            # The head repository only carries one version
            return ["--devel"]
        if version in ("", "latest") and channel != Channel.HEAD:
            return []
        if version == "devel":
            return self.devel_flags(request.head_version)
        if "-rc" in version or "-alpha" in version:
            return self.prerelease_flags(channel, version)
        return ["--version", version]

    def devel_flags(self, head_version: str) -> List[str]:
        if head_version == "head":
            return ["--devel", *_set("rancherImageTag", "head"),
                    *_agent_image(f"{PUBLIC_REGISTRY}/rancher-agent:head")]

        tag = f"v{head_version}-head"
        if PUBLIC_HEAD_RE.fullmatch(head_version):
            return ["--devel", *_set("rancherImageTag", tag),
                    *_agent_image(f"{PUBLIC_REGISTRY}/rancher-agent:{tag}")]

        # 2.7 to 2.11 devel images are only published on the staging registry
        return ["--devel", *_set("rancherImageTag", tag),
                *_set("rancherImage", f"{STAGING_REGISTRY}/rancher"),
                *_agent_image(f"{STAGING_REGISTRY}/rancher-agent:{tag}")]

    def prerelease_flags(self, channel: str, version: str) -> List[str]:
        flags = ["--devel", "--version", version]
        if Channel.PRIME_OPTIMUS.value in channel:
            flags += [*_set("rancherImage", f"{STAGING_REGISTRY}/rancher"),
                      *_agent_image(f"{STAGING_REGISTRY}/rancher-agent:{version}")]
        return flags

    def resolve_flags(self, request: DeploymentRequest) -> List[str]:
        """Full argument list for ``helm``, order matters."""
        flags = self.base_flags(request)
        flags += self.version_flags(request)

        if request.ca == CAMode.PRIVATE:
            flags += [*_set("ingress.tls.source", "secret"), *_set("privateCA", "true")]

        if request.proxy == ProxyMode.RANCHER:
            flags += [*_set("proxy", self.config.proxy_host), *_set("noProxy", NO_PROXY)]

        for flag in request.extra_flags:
            flags += list(flag)

        return flags


def deploy_rancher_manager(
    request: DeploymentRequest,
    helm: Optional[HelmClient] = None,
    config: Optional[RancherConfig] = None,
) -> List[str]:
    """Install or upgrade Rancher Manager.

    Registers the channel's chart repository, refreshes the index and runs
    ``helm upgrade --install``. Any helm failure aborts and is raised as-is.

    Args:
        request: What to deploy
        helm: Helm collaborator (default: the helm binary in PATH)
        config: Password/proxy overrides (default: from environment)

    Returns:
        The argument list given to helm
    """
    helm = helm or HelmClient()
    resolver = RancherResolver(config)

    name = channel_name(request)
    url = repository_url(request.channel, head_tag(request))
    flags = resolver.resolve_flags(request)

    logger.info(f"🚀 Deploying Rancher Manager on {request.hostname} from {name}")
    helm.add_repository(name, url)
    helm.refresh_repositories()
    helm.upgrade(flags, redact=[resolver.config.bootstrap_password])
    logger.info("✅ Rancher Manager deployed")
    return flags
