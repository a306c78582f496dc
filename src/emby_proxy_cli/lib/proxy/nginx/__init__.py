"""
nginx reverse proxy package
"""
from .nginx import NginxProxy
from .renderer import NginxRenderer

__all__ = ["NginxProxy", "NginxRenderer"]
