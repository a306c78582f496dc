"""
Emby Proxy CLI - nginx reverse proxy setup for Emby with stream paths
"""

__version__ = "0.1.0"
