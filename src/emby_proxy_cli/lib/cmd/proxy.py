"""
Proxy command implementations for Emby Proxy CLI
"""
import typer
from rich.console import Console

from ..config import Config, ConfigError
from ..factory import ProxyProviderFactory
from ..proxy.base import ProxyError, ValidationFailed

console = Console()


def _proxy():
    try:
        return ProxyProviderFactory.create(config=Config.load())
    except ConfigError as e:
        console.print(f"[bold red]Configuration error: {str(e)}")
        raise typer.Exit(code=1)


def status_command():
    """Show the nginx service status"""
    proxy = _proxy()
    if not proxy.is_installed():
        console.print("[bold yellow]! nginx is not installed. Run 'emby-proxy install' first.")
        raise typer.Exit(code=1)

    status = proxy.status()
    if status.running:
        console.print("[bold green]✓ nginx is running")
    else:
        console.print("[bold yellow]! nginx is not running")
        if status.error:
            console.print(status.error, markup=False)
    console.print(f"Enabled at boot: {'yes' if status.enabled else 'no'}")


def stop_command():
    """Stop the nginx service"""
    proxy = _proxy()
    try:
        console.print("Stopping nginx...")
        proxy.stop()
        console.print("[bold green]✓ nginx stopped")
    except ProxyError as e:
        console.print(f"[bold red]{str(e)}")
        raise typer.Exit(code=1)


def restart_command():
    """Test the configuration, then restart nginx"""
    proxy = _proxy()
    try:
        proxy.validate_syntax()
        console.print("Restarting nginx...")
        proxy.restart()
        console.print("[bold green]✓ nginx restarted")
    except ValidationFailed as e:
        console.print("[bold red]nginx rejected the configuration, not restarting:")
        console.print(e.diagnostics, markup=False)
        raise typer.Exit(code=1)
    except ProxyError as e:
        console.print(f"[bold red]{str(e)}")
        raise typer.Exit(code=1)


def check_command():
    """Check the nginx configuration with nginx -t"""
    proxy = _proxy()
    try:
        proxy.validate_syntax()
        console.print("[bold green]✓ nginx configuration is valid")
    except ValidationFailed as e:
        console.print("[bold red]nginx rejected the configuration:")
        console.print(e.diagnostics, markup=False)
        raise typer.Exit(code=1)
