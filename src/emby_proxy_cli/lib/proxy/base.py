"""
Base class for reverse proxy servers
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ..request import ProxyConfigRequest


@dataclass
class ProxyStatus:
    """Proxy service status"""
    running: bool
    enabled: bool
    error: Optional[str] = None


class ReverseProxy(ABC):
    """Abstract base class for reverse proxy servers"""

    @abstractmethod
    def render(self, request: ProxyConfigRequest) -> str:
        """
        Generate proxy configuration

        Args:
            request: Validated request carrying TLS paths

        Returns:
            Configuration text

        Raises:
            RenderError: If the request cannot be rendered
        """
        pass

    @abstractmethod
    def validate_syntax(self) -> None:
        """
        Check the complete configuration set with the proxy's own checker

        Raises:
            ValidationFailed: With the checker's diagnostics
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """
        Stop the proxy service

        Raises:
            ProxyError: If the service fails to stop
        """
        pass

    @abstractmethod
    def restart(self) -> None:
        """
        Restart the proxy service

        Raises:
            ReloadFailed: If the service does not come back
        """
        pass

    @abstractmethod
    def enable(self) -> None:
        """
        Enable and start the proxy service at boot

        Raises:
            ProxyError: If the service cannot be enabled
        """
        pass

    @abstractmethod
    def status(self) -> ProxyStatus:
        """
        Get proxy service status

        Returns:
            ProxyStatus object
        """
        pass

    @abstractmethod
    def is_installed(self) -> bool:
        """Whether the proxy binary is available"""
        pass


class ProxyError(Exception):
    """Base exception for proxy operations"""
    pass


class RenderError(ProxyError):
    """Raised when a request cannot be turned into configuration"""
    pass


class ValidationFailed(ProxyError):
    """Raised when the proxy rejects the configuration set"""

    def __init__(self, diagnostics: str, restored: bool = False):
        self.diagnostics = diagnostics
        self.restored = restored
        super().__init__(f"Configuration test failed:\n{diagnostics}")


class ReloadFailed(ProxyError):
    """Raised when the proxy service cannot be restarted"""
    pass
