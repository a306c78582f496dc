"""
Package installation per OS family
"""
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List

from .utils import run_command, command_output

logger = logging.getLogger(__name__)

INSTALL_TIMEOUT = 600


class PlatformInstaller(ABC):
    """Install the packages the proxy needs"""

    name = ""
    marker_file: Path = None
    packages: List[str] = []

    @classmethod
    def detect(cls) -> bool:
        """Whether this installer matches the running system"""
        return cls.marker_file is not None and cls.marker_file.exists()

    def _run(self, command: List[str]) -> None:
        result = run_command(command, timeout=INSTALL_TIMEOUT)
        if result.returncode != 0:
            raise InstallError(f"{' '.join(command)} failed:\n{command_output(result)}")

    @abstractmethod
    def install(self, packages: List[str]) -> None:
        """
        Install packages

        Args:
            packages: Package names for this OS family

        Raises:
            InstallError: If the package manager fails
        """
        pass

    def install_proxy(self) -> None:
        """Install nginx, TLS libraries and certbot"""
        logger.info(f"Installing {', '.join(self.packages)} via {self.name}")
        self.install(self.packages)


class DebianInstaller(PlatformInstaller):
    """Debian and Ubuntu"""

    name = "apt-get"
    marker_file = Path("/etc/debian_version")
    packages = ["nginx", "openssl", "libssl-dev", "certbot"]

    def install(self, packages: List[str]) -> None:
        self._run(["apt-get", "update"])
        self._run(["apt-get", "install", "-y", *packages])


class RhelInstaller(PlatformInstaller):
    """RHEL, CentOS, Rocky and Alma"""

    name = "yum"
    marker_file = Path("/etc/redhat-release")
    packages = ["nginx", "openssl", "openssl-devel", "certbot"]

    def install(self, packages: List[str]) -> None:
        # certbot lives in EPEL
        self._run(["yum", "install", "-y", "epel-release"])
        self._run(["yum", "install", "-y", *packages])


class InstallError(Exception):
    """Package installation error"""
    pass


class UnsupportedPlatform(InstallError):
    """Raised when no installer matches the running system"""
    pass
