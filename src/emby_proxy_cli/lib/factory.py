"""
Factory classes for provider instantiation
"""
from typing import Type, Dict, Optional

from .config import Config
from .installer import PlatformInstaller, DebianInstaller, RhelInstaller, UnsupportedPlatform
from .proxy.base import ReverseProxy
from .proxy.nginx import NginxProxy


class ProviderFactory:
    """Base factory class for providers"""

    @classmethod
    def create(cls, provider_type: str, config: Config):
        """Create provider instance"""
        if provider_type not in cls.get_providers():
            raise ValueError(f"Unsupported provider: {provider_type}")
        return cls.get_providers()[provider_type](config)

    @classmethod
    def get_providers(cls) -> Dict[str, Type]:
        """Get available providers"""
        raise NotImplementedError


class ProxyProviderFactory(ProviderFactory):
    """Factory for proxy providers"""

    _providers = {
        'nginx': NginxProxy
    }

    @classmethod
    def create(cls, provider_type: Optional[str] = None, config: Config = None) -> ReverseProxy:
        """
        Create proxy provider instance

        Args:
            provider_type: Provider type (defaults to nginx)
            config: Configuration object

        Returns:
            ReverseProxy instance

        Raises:
            ValueError: If provider type is not supported
        """
        return super().create(provider_type or 'nginx', config)

    @classmethod
    def get_providers(cls) -> Dict[str, Type[ReverseProxy]]:
        """Get available proxy providers"""
        return cls._providers


class PlatformInstallerFactory:
    """Pick the installer for the running OS family"""

    _installers = [DebianInstaller, RhelInstaller]

    @classmethod
    def detect(cls) -> PlatformInstaller:
        """
        Detect the OS family from its marker file

        Returns:
            PlatformInstaller instance

        Raises:
            UnsupportedPlatform: If no marker file is present
        """
        for installer in cls._installers:
            if installer.detect():
                return installer()
        markers = ", ".join(str(i.marker_file) for i in cls._installers)
        raise UnsupportedPlatform(f"Unsupported operating system (none of {markers} found)")
