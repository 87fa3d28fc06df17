"""
SSH command execution and file upload with password authentication.
"""
import logging
import os
from contextlib import contextmanager
from typing import Iterator, Tuple

import paramiko

logger = logging.getLogger("ssh")


class SSHCommandError(RuntimeError):
    """A remote command exited with a non-zero status."""

    def __init__(self, command: str, exit_status: int, stdout: str, stderr: str):
        self.command = command
        self.exit_status = exit_status
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(f"'{command}' failed with exit status {exit_status}: {stderr.strip()}")


def split_host(host: str, default_port: int = 22) -> Tuple[str, int]:
    """Split ``host:port``, the port being optional."""
    name, sep, port = host.rpartition(":")
    if not sep:
        return host, default_port
    return name, int(port)


class Client:
    """SSH client for a test machine.

    Host keys are not verified, test VMs are recreated all the time.
    """

    def __init__(self, host: str, username: str, password: str, timeout: int = 30):
        """Initialize the client.

        Args:
            host: Remote host, optionally with a port (``192.168.122.2:22``)
            username: Username for authentication
            password: Password for authentication
            timeout: Connection timeout in seconds (default: 30)
        """
        self.host = host
        self.username = username
        self.password = password
        self.timeout = timeout

    @contextmanager
    def connect(self) -> Iterator[paramiko.SSHClient]:
        hostname, port = split_host(self.host)
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        try:
            client.connect(
                hostname,
                port=port,
                username=self.username,
                password=self.password,
                timeout=self.timeout,
                allow_agent=False,
                look_for_keys=False,
            )
            yield client
        finally:
            client.close()

    def run_ssh(self, cmd: str, check: bool = True) -> str:
        """Run a command and return its stdout.

        Raises:
            SSHCommandError: If the command fails and check is True
            paramiko.SSHException: If the connection fails
        """
        logger.debug(f"💻 [{self.host}] Running: {cmd}")
        with self.connect() as client:
            _, stdout, stderr = client.exec_command(cmd)
            exit_status = stdout.channel.recv_exit_status()
            out = stdout.read().decode(errors="replace")
            err = stderr.read().decode(errors="replace")

        if check and exit_status != 0:
            raise SSHCommandError(cmd, exit_status, out, err)
        return out

    def send_file(self, src: str, dst: str, permission: str = "0644") -> None:
        """Copy a local file to the remote host and set its mode."""
        if not os.path.isfile(src):
            raise FileNotFoundError(f"Local file not found: {src}")

        logger.debug(f"📤 Sending {src} to {self.host}:{dst}")
        with self.connect() as client:
            sftp = client.open_sftp()
            try:
                sftp.put(src, dst)
                sftp.chmod(dst, int(permission, 8))
            finally:
                sftp.close()
