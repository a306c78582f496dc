"""
nginx reverse proxy implementation
"""
import logging
import subprocess

from ...config import Config
from ...request import ProxyConfigRequest
from ...utils import run_command, command_output, command_exists
from ..base import ReverseProxy, ProxyStatus, ProxyError, ValidationFailed, ReloadFailed
from .renderer import NginxRenderer

logger = logging.getLogger(__name__)


class NginxProxy(ReverseProxy):
    """nginx managed through systemd"""

    def __init__(self, config: Config):
        """Initialize nginx proxy"""
        self.config = config
        self.service = config.service_name
        self.renderer = NginxRenderer(client_max_body_size=config.client_max_body_size)

    def _systemctl(self, *args: str) -> subprocess.CompletedProcess:
        return run_command(["systemctl", *args, self.service])

    def render(self, request: ProxyConfigRequest) -> str:
        """Generate nginx configuration"""
        return self.renderer.render(request)

    def validate_syntax(self) -> None:
        """Validate the full nginx configuration with nginx -t"""
        try:
            result = run_command(["nginx", "-t"])
        except (OSError, subprocess.SubprocessError) as e:
            raise ValidationFailed(f"Could not run nginx -t: {e}")

        # nginx -t reports on stderr even when successful
        if result.returncode != 0:
            diagnostics = command_output(result)
            logger.error(f"Configuration validation failed: {diagnostics}")
            raise ValidationFailed(diagnostics)

        logger.info("Configuration validation successful")

    def stop(self) -> None:
        """Stop nginx"""
        result = self._systemctl("stop")
        if result.returncode != 0:
            raise ProxyError(f"Failed to stop {self.service}: {command_output(result)}")
        logger.info(f"Stopped {self.service}")

    def restart(self) -> None:
        """Restart nginx"""
        result = self._systemctl("restart")
        if result.returncode != 0:
            raise ReloadFailed(f"Failed to restart {self.service}: {command_output(result)}")
        logger.info(f"Restarted {self.service}")

    def enable(self) -> None:
        """Enable nginx at boot and start it now"""
        result = run_command(["systemctl", "enable", "--now", self.service])
        if result.returncode != 0:
            raise ProxyError(f"Failed to enable {self.service}: {command_output(result)}")
        logger.info(f"Enabled {self.service}")

    def status(self) -> ProxyStatus:
        """Get nginx service status"""
        try:
            active = self._systemctl("is-active")
            enabled = self._systemctl("is-enabled")
        except (OSError, subprocess.SubprocessError) as e:
            logger.error(f"Failed to get {self.service} status: {e}")
            return ProxyStatus(running=False, enabled=False, error=str(e))

        running = active.stdout.strip() == "active"
        return ProxyStatus(
            running=running,
            enabled=enabled.stdout.strip() == "enabled",
            error=None if running else (command_output(active) or None),
        )

    def is_installed(self) -> bool:
        return command_exists("nginx")
