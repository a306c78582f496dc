"""
Port conflict detection and resolution
"""
import os
import re
import signal
import time
import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from .utils import run_command, is_port_in_use

logger = logging.getLogger(__name__)

USERS_RE = re.compile(r'users:\(\("(?P<name>[^"]+)",pid=(?P<pid>\d+)')
PID_RE = re.compile(r'pid=(\d+)')

POLL_INTERVAL = 0.2


@dataclass
class PortOwner:
    """Process listening on a port"""
    port: int
    pid: Optional[int]
    process_name: str = "unknown"


class PortBusy(Exception):
    """Raised when a required port is held by another process"""

    def __init__(self, owner: PortOwner, message: str = None):
        self.owner = owner
        if message is None:
            message = f"Port {owner.port} is in use by {owner.process_name} (PID {owner.pid})"
        super().__init__(message)


class PortGuard:
    """Make sure the ports nginx and certbot need are free"""

    def __init__(self, grace_period: float = 2.0):
        self.grace_period = grace_period

    def _local_port(self, address: str) -> Optional[int]:
        # ss prints 0.0.0.0:80, [::]:80 or *:80
        _, _, port = address.rpartition(':')
        return int(port) if port.isdigit() else None

    def _process_name(self, pid: int) -> str:
        result = run_command(["ps", "-p", str(pid), "-o", "comm="])
        name = result.stdout.strip() if result.returncode == 0 else ""
        return name or "unknown"

    def find_listener(self, port: int) -> Optional[PortOwner]:
        """
        Find the process listening on a TCP port

        Args:
            port: Port number

        Returns:
            PortOwner, or None if nothing listens on the port
        """
        try:
            result = run_command(["ss", "-H", "-tlnp"])
        except FileNotFoundError:
            result = None
        if result is None or result.returncode != 0:
            logger.warning("Could not list sockets with ss, falling back to a bind test")
            return PortOwner(port=port, pid=None) if is_port_in_use(port) else None

        for line in result.stdout.splitlines():
            columns = line.split()
            # State Recv-Q Send-Q Local Peer [Process]
            if len(columns) < 5 or self._local_port(columns[3]) != port:
                continue

            users = USERS_RE.search(line)
            if users:
                return PortOwner(port=port, pid=int(users.group('pid')), process_name=users.group('name'))

            pid_match = PID_RE.search(line)
            if pid_match:
                pid = int(pid_match.group(1))
                return PortOwner(port=port, pid=pid, process_name=self._process_name(pid))

            return PortOwner(port=port, pid=None)

        return None

    def is_free(self, port: int) -> bool:
        return self.find_listener(port) is None

    def _is_alive(self, pid: int) -> bool:
        try:
            os.kill(pid, 0)
            return True
        except ProcessLookupError:
            return False
        except PermissionError:
            # Exists but belongs to someone else
            return True

    def _wait_for_exit(self, pid: int, timeout: float) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if not self._is_alive(pid):
                return True
            time.sleep(POLL_INTERVAL)
        return not self._is_alive(pid)

    def terminate(self, owner: PortOwner) -> None:
        """
        Stop the process holding a port: SIGTERM, then SIGKILL after the grace period

        Raises:
            PortBusy: If the process could not be signalled
        """
        try:
            os.kill(owner.pid, signal.SIGTERM)
        except ProcessLookupError:
            return
        except PermissionError as e:
            raise PortBusy(owner, f"Cannot terminate PID {owner.pid}: {e}")

        if self._wait_for_exit(owner.pid, self.grace_period):
            logger.info(f"Process {owner.pid} ({owner.process_name}) exited after SIGTERM")
            return

        logger.warning(f"Process {owner.pid} ignored SIGTERM, sending SIGKILL")
        try:
            os.kill(owner.pid, signal.SIGKILL)
        except ProcessLookupError:
            return
        except PermissionError as e:
            raise PortBusy(owner, f"Cannot kill PID {owner.pid}: {e}")
        self._wait_for_exit(owner.pid, 1.0)

    def ensure_free(self, port: int, confirm: Callable[[PortOwner], bool],
                    allowed: Iterable[str] = ()) -> None:
        """
        Make sure a port is free, terminating its owner if the operator agrees

        Args:
            port: Port number
            confirm: Asked before anything is killed; returns True to proceed
            allowed: Process names that may keep the port (e.g. our own nginx)

        Raises:
            PortBusy: If the port stays occupied
        """
        owner = self.find_listener(port)
        if owner is None:
            return
        if owner.process_name in allowed:
            logger.info(f"Port {port} is held by {owner.process_name}, which is allowed")
            return

        logger.warning(f"Port {port} is held by {owner.process_name} (PID {owner.pid})")
        if owner.pid is None:
            raise PortBusy(owner, f"Port {port} is in use but its process could not be identified")

        if not confirm(owner):
            raise PortBusy(owner)

        self.terminate(owner)

        if not self.is_free(port):
            raise PortBusy(owner, f"Port {port} is still in use after terminating PID {owner.pid}")
        logger.info(f"Port {port} is free")
