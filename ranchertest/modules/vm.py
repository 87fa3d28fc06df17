"""System under test: a VM reachable over SSH."""
import logging
import os
from typing import Optional

from ranchertest.modules.ssh import Client

logger = logging.getLogger("vm")

DEFAULT_HOST = "127.0.0.1:2222"
DEFAULT_USER = "root"
DEFAULT_PASSWORD = "cos"
DEFAULT_ELEMENTAL_ARGS = "--debug --logfile /tmp/elemental.log"


class SUT:
    """Machine under test.

    Connection settings come from COS_HOST, COS_USER and COS_PASS when not
    given explicitly.
    """

    def __init__(self, host: Optional[str] = None, username: Optional[str] = None,
                 password: Optional[str] = None):
        self.host = host or os.getenv("COS_HOST", DEFAULT_HOST)
        self.username = username or os.getenv("COS_USER", DEFAULT_USER)
        self.password = password or os.getenv("COS_PASS", DEFAULT_PASSWORD)
        self.client = Client(self.host, self.username, self.password)

    def command(self, cmd: str, check: bool = True) -> str:
        return self.client.run_ssh(cmd, check=check)

    def elemental_cmd(self, *args: str) -> str:
        """Build an elemental command line.

        ELEMENTAL_CMD_ARGS replaces the default arguments when set.
        """
        default_args = os.getenv("ELEMENTAL_CMD_ARGS") or DEFAULT_ELEMENTAL_ARGS
        return " ".join(["elemental", default_args, *args])


def systemd_unit_is_started(unit: str, sut: SUT) -> bool:
    out = sut.command(f"systemctl status {unit}", check=False)
    return f"{unit}.service; enabled" in out and "status=0/SUCCESS" in out


def systemd_unit_is_active(unit: str, sut: SUT) -> bool:
    return sut.command(f"systemctl is-active {unit}", check=False) == "active\n"
