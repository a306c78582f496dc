"""
Port command implementation for Emby Proxy CLI
"""
from typing import List

import typer
from rich.console import Console
from rich.table import Table

from ..config import Config, ConfigError
from ..port_guard import PortGuard, PortBusy
from .prompt import confirm_kill

# Ports nginx and certbot need
DEFAULT_PORTS = [80, 443]

console = Console()


def validate_port(port: int) -> bool:
    """Validate port number is in valid range"""
    return 1 <= port <= 65535


def port_command(ports: List[int], free: bool = False):
    """Show which processes hold the given ports, optionally freeing them"""
    try:
        ports = ports or DEFAULT_PORTS
        invalid = [p for p in ports if not validate_port(p)]
        if invalid:
            console.print(f"[bold red]Invalid port number(s): {', '.join(map(str, invalid))}")
            raise typer.Exit(code=1)

        config = Config.load()
        guard = PortGuard(config.port_grace_period)

        table = Table(title="Listening ports")
        table.add_column("Port", style="cyan")
        table.add_column("Status", style="magenta")
        table.add_column("Process", style="green")
        table.add_column("PID", style="dim")

        owners = {port: guard.find_listener(port) for port in ports}
        for port, owner in owners.items():
            if owner is None:
                table.add_row(str(port), "free", "", "")
            else:
                table.add_row(str(port), "in use", owner.process_name, str(owner.pid or "?"))
        console.print(table)

        if not free:
            return

        for port, owner in owners.items():
            if owner is not None:
                guard.ensure_free(port, confirm_kill)
                console.print(f"[bold green]✓ Port {port} is free")

    except ConfigError as e:
        console.print(f"[bold red]Configuration error: {str(e)}")
        raise typer.Exit(code=1)
    except PortBusy as e:
        console.print(f"[bold red]{str(e)}")
        raise typer.Exit(code=1)
