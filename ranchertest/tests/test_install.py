import subprocess

import pytest

from ranchertest.modules.rancher.config import RancherConfig
from ranchertest.modules.rancher.install import (
    NO_PROXY, RancherResolver, channel_name, deploy_rancher_manager, repository_url
)
from ranchertest.modules.rancher.models import CAMode, Channel, DeploymentRequest, ProxyMode

HOSTNAME = "rancher.192.168.122.2.sslip.io"


def has_pair(args, first, second):
    return any(a == first and b == second for a, b in zip(args, args[1:]))


def resolve(**kwargs):
    kwargs.setdefault("hostname", HOSTNAME)
    return RancherResolver(RancherConfig()).resolve_flags(DeploymentRequest(**kwargs))


@pytest.mark.parametrize("channel,url", [
    ("stable", "https://releases.rancher.com/server-charts/stable"),
    ("latest", "https://releases.rancher.com/server-charts/latest"),
    ("alpha", "https://releases.rancher.com/server-charts/alpha"),
    ("prime", "https://charts.rancher.com/server-charts/prime"),
    ("prime-optimus", "https://charts.optimus.rancher.io/server-charts/latest"),
    ("prime-optimus-alpha", "https://charts.optimus.rancher.io/server-charts/alpha"),
])
def test_repository_url(channel, url):
    assert repository_url(channel) == url


def test_repository_url_head_includes_version():
    assert repository_url("head", "2.12") == "https://charts.optimus.rancher.io/server-charts/release-2.12"


def test_repository_url_unknown_channel_is_empty():
    assert repository_url("nightly") == ""


def test_channel_name():
    assert channel_name(DeploymentRequest(hostname=HOSTNAME, channel="stable")) == "rancher-stable"
    assert channel_name(DeploymentRequest(hostname=HOSTNAME, channel="head", head_version="2.12")) == "rancher-head-2.12"
    # head version falls back to version
    assert channel_name(DeploymentRequest(hostname=HOSTNAME, channel="head", version="2.11")) == "rancher-head-2.11"


def test_enum_members_are_plain_values():
    request = DeploymentRequest(hostname=HOSTNAME, channel=Channel.HEAD, head_version="2.12",
                                ca=CAMode.PRIVATE, proxy=ProxyMode.RANCHER)

    assert request.channel == "head" and type(request.channel) is str
    assert channel_name(request) == "rancher-head-2.12"
    args = RancherResolver(RancherConfig()).resolve_flags(request)
    assert args[3] == "rancher-head-2.12/rancher"
    assert has_pair(args, "--set", "privateCA=true")
    assert has_pair(args, "--set", f"noProxy={NO_PROXY}")


def test_base_flags():
    args = resolve(channel="stable")
    assert args[:4] == ["upgrade", "--install", "rancher", "rancher-stable/rancher"]
    assert has_pair(args, "--namespace", "cattle-system")
    assert "--create-namespace" in args
    assert has_pair(args, "--set", f"hostname={HOSTNAME}")
    assert has_pair(args, "--set", "bootstrapPassword=rancherpassword")
    assert has_pair(args, "--set", "extraEnv[0].name=CATTLE_SERVER_URL")
    assert has_pair(args, "--set", f"extraEnv[0].value=https://{HOSTNAME}")
    assert has_pair(args, "--set", "extraEnv[1].value=rancherpassword")
    assert has_pair(args, "--set", "replicas=1")
    assert "--wait" in args


def test_head_channel_uses_devel_without_version():
    request = DeploymentRequest(hostname=HOSTNAME, channel="head", version="", head_version="2.12")
    args = RancherResolver(RancherConfig()).resolve_flags(request)
    assert "--devel" in args
    assert "--version" not in args
    assert channel_name(request) == "rancher-head-2.12"


@pytest.mark.parametrize("version", ["", "latest"])
def test_latest_version_adds_nothing(version):
    args = resolve(channel="latest", version=version)
    assert "--version" not in args
    assert "--devel" not in args


def test_explicit_version_is_pinned():
    args = resolve(channel="stable", version="2.9.1", head_version="")
    assert has_pair(args, "--version", "2.9.1")
    assert "--devel" not in args


def test_devel_public_head_image():
    args = resolve(channel="latest", version="devel", head_version="2.12")
    assert "--devel" in args
    assert has_pair(args, "--set", "rancherImageTag=v2.12-head")
    assert has_pair(args, "--set", "extraEnv[2].name=CATTLE_AGENT_IMAGE")
    assert has_pair(args, "--set", "extraEnv[2].value=rancher/rancher-agent:v2.12-head")
    assert not any("stgregistry" in a for a in args)
    assert not any(a.startswith("rancherImage=") for a in args)


def test_devel_legacy_head_uses_staging_registry():
    args = resolve(channel="latest", version="devel", head_version="2.8")
    assert has_pair(args, "--set", "rancherImageTag=v2.8-head")
    assert has_pair(args, "--set", "rancherImage=stgregistry.suse.com/rancher/rancher")
    assert has_pair(args, "--set", "extraEnv[2].value=stgregistry.suse.com/rancher/rancher-agent:v2.8-head")


@pytest.mark.parametrize("head_version,public", [
    ("2.11", False),
    ("2.12", True),
    ("2.19", True),
    ("2.20", True),
    ("2.7", False),
    ("2.1", False),
    ("3.0", False),
    ("2.12\n", False),
    ("2.123", False),
])
def test_devel_registry_selection(head_version, public):
    args = resolve(channel="latest", version="devel", head_version=head_version)
    assert any("stgregistry" in a for a in args) is not public


def test_devel_head_tag():
    args = resolve(channel="latest", version="devel", head_version="head")
    assert has_pair(args, "--set", "rancherImageTag=head")
    assert has_pair(args, "--set", "extraEnv[2].value=rancher/rancher-agent:head")


def test_release_candidate_prime_optimus():
    args = resolve(channel="prime-optimus", version="1.0.0-rc1")
    start = args.index("--devel")
    assert args[start:start + 3] == ["--devel", "--version", "1.0.0-rc1"]
    assert has_pair(args, "--set", "rancherImage=stgregistry.suse.com/rancher/rancher")
    assert has_pair(args, "--set", "extraEnv[2].value=stgregistry.suse.com/rancher/rancher-agent:1.0.0-rc1")


def test_release_candidate_prime_optimus_alpha_channel():
    args = resolve(channel="prime-optimus-alpha", version="2.13.0-alpha2")
    assert has_pair(args, "--version", "2.13.0-alpha2")
    assert has_pair(args, "--set", "extraEnv[2].value=stgregistry.suse.com/rancher/rancher-agent:2.13.0-alpha2")


def test_release_candidate_public_channel():
    args = resolve(channel="latest", version="2.10.0-rc3")
    assert "--devel" in args
    assert has_pair(args, "--version", "2.10.0-rc3")
    assert not any("stgregistry" in a for a in args)


def test_private_ca():
    args = resolve(ca="private")
    assert has_pair(args, "--set", "ingress.tls.source=secret")
    assert has_pair(args, "--set", "privateCA=true")


def test_selfsigned_ca_has_no_tls_source():
    assert not any("ingress.tls.source" in a for a in resolve(ca="selfsigned"))


def test_proxy_default_and_env_override(monkeypatch):
    args = resolve(proxy="rancher")
    assert has_pair(args, "--set", "proxy=http://172.17.0.1:3128")
    assert has_pair(args, "--set", f"noProxy={NO_PROXY}")

    monkeypatch.setenv("RANCHER_PROXY_HOST", "http://10.0.0.1:8080")
    request = DeploymentRequest(hostname=HOSTNAME, proxy="rancher")
    args = RancherResolver(RancherConfig.from_env()).resolve_flags(request)
    assert has_pair(args, "--set", "proxy=http://10.0.0.1:8080")


def test_no_proxy_flags_without_proxy():
    assert not any(a.startswith("proxy=") for a in resolve(proxy="none"))


def test_password_env_override(monkeypatch):
    monkeypatch.setenv("RANCHER_PASSWORD", "s3cr3t")
    args = RancherResolver().resolve_flags(DeploymentRequest(hostname=HOSTNAME))
    assert has_pair(args, "--set", "bootstrapPassword=s3cr3t")
    assert has_pair(args, "--set", "extraEnv[1].value=s3cr3t")


def test_explicit_config_wins_over_env(monkeypatch):
    monkeypatch.setenv("RANCHER_PASSWORD", "from-env")
    config = RancherConfig.from_env(bootstrap_password="explicit")
    assert config.bootstrap_password == "explicit"


def test_extra_flags_are_appended_last_in_order():
    extra = [("--set", "b=2"), ("--set", "a=1"), ("--set", "b=2")]
    args = resolve(ca="private", proxy="rancher", extra_flags=extra)
    assert args[-6:] == ["--set", "b=2", "--set", "a=1", "--set", "b=2"]


def test_deploy_rancher_manager(helm):
    request = DeploymentRequest(hostname=HOSTNAME, channel="head", head_version="2.12")
    flags = deploy_rancher_manager(request, helm=helm, config=RancherConfig())

    assert [c[0] for c in helm.calls] == ["add_repository", "refresh_repositories", "upgrade"]
    assert helm.calls[0][1:] == ("rancher-head-2.12", "https://charts.optimus.rancher.io/server-charts/release-2.12")
    assert helm.calls[2][1] == flags


@pytest.mark.parametrize("failing", ["add_repository", "refresh_repositories", "upgrade"])
def test_deploy_rancher_manager_aborts_on_failure(make_helm, failing):
    error = subprocess.CalledProcessError(1, ["helm"])
    helm = make_helm(fail_on=failing, error=error)

    with pytest.raises(subprocess.CalledProcessError) as exc:
        deploy_rancher_manager(DeploymentRequest(hostname=HOSTNAME), helm=helm, config=RancherConfig())

    assert exc.value is error
    assert helm.calls[-1][0] == failing


def test_deploy_unknown_channel_defers_failure(helm):
    deploy_rancher_manager(DeploymentRequest(hostname=HOSTNAME, channel="nightly"), helm=helm, config=RancherConfig())
    assert helm.calls[0] == ("add_repository", "rancher-nightly", "")
