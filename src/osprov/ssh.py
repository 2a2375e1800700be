"""SSH readiness polling and key bootstrap for freshly created servers."""

import shlex
import socket
import time
from typing import Callable, Optional

import paramiko

from osprov.exceptions import ActionFailed, SSHBootstrapError
from osprov.helpers.logger import get_logger

logger = get_logger(__name__)


def wait_for_sshd(
    hostname: str,
    port: int = 22,
    timeout: float = 600,
    interval: float = 3,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> None:
    """
    Block until ``hostname:port`` accepts TCP connections.

    Args:
        hostname: Address of the server
        port: SSH port
        timeout: Seconds to keep trying
        interval: Seconds between attempts, also used as connect timeout

    Raises:
        ActionFailed: If the port is not reachable before the timeout
    """
    deadline = clock() + timeout
    logger.info("Waiting for SSH service on %s:%s", hostname, port)
    while True:
        try:
            with socket.create_connection((hostname, port), timeout=interval):
                return
        except OSError as e:
            if clock() >= deadline:
                raise ActionFailed(
                    f"SSH service on {hostname}:{port} not reachable after {timeout}s: {e}"
                ) from e
            logger.debug("SSH not ready on %s:%s (%s), retrying", hostname, port, e)
            sleep(interval)


class SSHBootstrapper:
    """Installs a public key for ``username`` using the server's admin password."""

    def __init__(self, port: int = 22, connect_timeout: float = 30) -> None:
        self.port = port
        self.connect_timeout = connect_timeout

    def build_commands(self, username: str, public_key: str) -> list[str]:
        """Commands appending ``public_key`` to authorized_keys and locking the password."""
        return [
            "mkdir .ssh",
            f"echo {shlex.quote(public_key)} >> ~/.ssh/authorized_keys",
            f"passwd -l {shlex.quote(username)}",
        ]

    def setup(
        self,
        hostname: str,
        username: str,
        password: Optional[str],
        public_key_path: str,
    ) -> None:
        """
        Set up key-based SSH access on ``hostname``.

        Raises:
            SSHBootstrapError: If the key cannot be read or the session fails
        """
        logger.info("Setting up SSH access for key <%s>", public_key_path)
        try:
            with open(public_key_path) as f:
                public_key = f.read().strip()
        except OSError as e:
            raise SSHBootstrapError(f"Cannot read public key {public_key_path}: {e}") from e

        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        try:
            client.connect(
                hostname,
                port=self.port,
                username=username,
                password=password,
                look_for_keys=False,
                allow_agent=False,
                timeout=self.connect_timeout,
            )
            for command in self.build_commands(username, public_key):
                self._run(client, command)
        except (paramiko.SSHException, OSError) as e:
            raise SSHBootstrapError(f"SSH setup on {hostname} failed: {e}") from e
        finally:
            client.close()

    @staticmethod
    def _run(client: paramiko.SSHClient, command: str) -> int:
        _stdin, stdout, stderr = client.exec_command(command)
        status = stdout.channel.recv_exit_status()
        if status != 0:
            # mkdir fails harmlessly when .ssh already exists
            logger.debug(
                "Command %r exited with %s: %s", command, status, stderr.read().decode(errors="replace")
            )
        return status
