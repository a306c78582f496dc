"""
Install command implementation for Emby Proxy CLI
"""
import typer
from rich.console import Console

from ..config import Config, ConfigError
from ..factory import ProxyProviderFactory, PlatformInstallerFactory
from ..installer import InstallError, UnsupportedPlatform
from ..proxy.base import ProxyError
import emby_proxy_cli.lib.utils as utils

console = Console()


def install_command():
    """Install nginx, OpenSSL headers and certbot"""
    try:
        if not utils.is_root():
            console.print("[bold red]This command must be run as root")
            raise typer.Exit(code=1)

        config = Config.load()
        installer = PlatformInstallerFactory.detect()
        console.print(f"Installing {', '.join(installer.packages)} with {installer.name}...")
        installer.install_proxy()

        proxy = ProxyProviderFactory.create(config=config)
        proxy.enable()
        console.print("[bold green]✓ Packages installed and nginx enabled")

    except ConfigError as e:
        console.print(f"[bold red]Configuration error: {str(e)}")
        console.print("Please run 'emby-proxy init' to fix the configuration.")
        raise typer.Exit(code=1)
    except UnsupportedPlatform as e:
        console.print(f"[bold red]{str(e)}")
        console.print("Only Debian- and RHEL-family systems are supported.")
        raise typer.Exit(code=1)
    except (InstallError, ProxyError) as e:
        console.print(f"[bold red]Error: {str(e)}")
        raise typer.Exit(code=1)
