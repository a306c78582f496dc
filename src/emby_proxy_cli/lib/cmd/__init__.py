"""
Command implementations for Emby Proxy CLI
"""

# Prompt utilities
from .prompt import (
    ask_validated,
    confirm_kill,
    collect_request
)

# Port utilities
from .port import (
    validate_port,
    DEFAULT_PORTS
)

# Command implementations
from .deploy import deploy_command
from .init import init_command
from .install import install_command
from .port import port_command
from .proxy import status_command, stop_command, restart_command, check_command
from .render import render_command, show_command

__all__ = [
    # Prompt utilities
    'ask_validated',
    'confirm_kill',
    'collect_request',

    # Port utilities
    'validate_port',
    'DEFAULT_PORTS',

    # Command implementations
    'deploy_command',
    'init_command',
    'install_command',
    'port_command',
    'status_command',
    'stop_command',
    'restart_command',
    'check_command',
    'render_command',
    'show_command'
]
