"""
Proxy module initialization
"""
from .base import ReverseProxy, ProxyStatus, ProxyError, RenderError, ValidationFailed, ReloadFailed
from .activator import ConfigActivator, ActivationResult
from .nginx import NginxProxy, NginxRenderer

__all__ = [
    "ReverseProxy",
    "ProxyStatus",
    "ProxyError",
    "RenderError",
    "ValidationFailed",
    "ReloadFailed",
    "ConfigActivator",
    "ActivationResult",
    "NginxProxy",
    "NginxRenderer"
]
