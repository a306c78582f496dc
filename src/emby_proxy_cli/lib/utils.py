"""
Utility functions for Emby Proxy CLI
"""
import os
import logging
import shutil
import socket
import subprocess
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60


def run_command(command: List[str], timeout: Optional[float] = DEFAULT_TIMEOUT,
                input: Optional[str] = None) -> subprocess.CompletedProcess:
    """
    Run an external command and capture its output

    Args:
        command: Command and arguments
        timeout: Seconds before the command is abandoned
        input: Optional text fed to stdin

    Returns:
        CompletedProcess with text stdout/stderr; never raises on non-zero exit
    """
    logger.debug(f"Running: {' '.join(command)}")
    return subprocess.run(
        command,
        capture_output=True,
        text=True,
        check=False,  # Callers inspect returncode
        timeout=timeout,
        input=input,
    )


def command_output(result: subprocess.CompletedProcess) -> str:
    """Combined, stripped stdout and stderr of a finished command"""
    parts = [result.stdout or "", result.stderr or ""]
    return "\n".join(p.strip() for p in parts if p and p.strip())


def command_exists(name: str) -> bool:
    """Check whether an executable is on PATH"""
    return shutil.which(name) is not None


def is_root() -> bool:
    """Check whether we run with root privileges"""
    return os.geteuid() == 0


def is_port_in_use(port: int, host: str = '0.0.0.0') -> bool:
    """Check if a port is already in use on the system"""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        try:
            s.bind((host, port))
            return False
        except socket.error:
            return True


def ensure_permissions(path: Path, mode: int = 0o600) -> None:
    """
    Ensure file has correct permissions

    Args:
        path: Path to file
        mode: Permission mode
    """
    path.chmod(mode)


def get_public_ip() -> str:
    """Get the public IP address of the current machine"""
    import requests

    # List of services that can return the public IP
    services = [
        "https://api.ipify.org",
        "https://ipinfo.io/ip",
        "https://ifconfig.me/ip",
        "https://icanhazip.com"
    ]

    for service in services:
        try:
            response = requests.get(service, timeout=5)
            if response.status_code == 200:
                return response.text.strip()
        except requests.RequestException as e:
            logger.debug(f"Public IP lookup via {service} failed: {e}")
            continue

    raise Exception("Could not determine public IP address")
