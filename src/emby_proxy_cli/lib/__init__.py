"""
Core library for Emby Proxy CLI
"""

from .config import Config, ConfigError
from .request import ProxyConfigRequest, TlsMode, RequestError
from .factory import ProxyProviderFactory, PlatformInstallerFactory

# Import utils module, not individual functions
import emby_proxy_cli.lib.utils as utils

__all__ = [
    "Config",
    "ConfigError",
    "ProxyConfigRequest",
    "TlsMode",
    "RequestError",
    "ProxyProviderFactory",
    "PlatformInstallerFactory",
    "utils"
]
