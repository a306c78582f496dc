"""
Init command implementation for Emby Proxy CLI
"""
import typer
from rich.console import Console

from ..config import Config, ConfigError, CONFIG_FILE

console = Console()

def init_command():
    """Initialize Emby Proxy CLI configuration"""
    try:
        config = Config.initialize_interactive()
        console.print(f"[bold green]✓ Configuration saved to {CONFIG_FILE}")
        console.print(f"\nSite files will be written to {config.sites_available}. Run 'emby-proxy deploy' next.")
    except ConfigError as e:
        console.print(f"[bold red]Error: {str(e)}")
        raise typer.Exit(code=1)
