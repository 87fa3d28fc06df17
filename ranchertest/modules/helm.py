"""Thin wrapper around the helm binary."""
import logging
from typing import Iterable, List, Sequence

from ranchertest.utils import run_command

logger = logging.getLogger("helm")


class HelmClient:
    """Runs helm commands, every failure is raised to the caller."""

    def __init__(self, binary: str = "helm", kubeconfig: str = None):
        self.binary = binary
        self.kubeconfig = kubeconfig

    def _cmd(self, args: Sequence[str]) -> List[str]:
        cmd = [self.binary]
        if self.kubeconfig:
            cmd += ["--kubeconfig", self.kubeconfig]
        return cmd + list(args)

    def run(self, *args: str, redact: Iterable[str] = ()) -> str:
        result = run_command(self._cmd(args), capture_output=True, redact=redact)
        return result.stdout

    def add_repository(self, name: str, url: str) -> None:
        logger.info(f"📦 Adding Helm repository {name} ({url})")
        self.run("repo", "add", name, url)

    def refresh_repositories(self) -> None:
        self.run("repo", "update")

    def upgrade(self, args: Sequence[str], redact: Iterable[str] = ()) -> None:
        """Run an upgrade/install, args starting with the helm sub-command."""
        self.run(*args, redact=redact)
