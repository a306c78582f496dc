"""
Command-line interface for Emby Proxy CLI
"""
from typing import List, Optional
from pathlib import Path

import typer

from .lib.cmd import (
    # Command implementations
    deploy_command,
    init_command,
    install_command,
    port_command,
    render_command,
    show_command,
    status_command,
    stop_command,
    restart_command,
    check_command
)

app = typer.Typer(help="Emby Proxy CLI - nginx reverse proxy for Emby with stream paths")
proxy_app = typer.Typer(help="Manage the nginx service")
app.add_typer(proxy_app, name="proxy")


@app.command()
def init():
    """Initialize Emby Proxy CLI configuration"""
    return init_command()


@app.command()
def install():
    """Install nginx, OpenSSL headers and certbot"""
    return install_command()


@app.command()
def deploy(
    reuse: Optional[bool] = typer.Option(None, '--reuse/--no-reuse', help='Reuse saved settings without asking'),
    yes: bool = typer.Option(False, '--yes', '-y', help='Skip the final confirmation'),
    debug: bool = typer.Option(False, '--debug', '-d', help='Enable debug logging')
):
    """
    Deploy an HTTPS reverse proxy for an Emby server

    This command:
    1. Collects the domain, Emby URL, stream paths and certificate source
    2. Obtains a Let's Encrypt certificate or checks the supplied files
    3. Writes the nginx site, tests it and restarts nginx
    """
    return deploy_command(reuse=reuse, assume_yes=yes, debug=debug)


@app.command()
def render(
    settings: Optional[Path] = typer.Option(None, '--settings', '-s', help='Settings file to render'),
    plain: bool = typer.Option(False, '--plain', help='Print without highlighting')
):
    """Print the nginx configuration for the saved settings"""
    return render_command(settings=settings, plain=plain)


@app.command()
def show(settings: Optional[Path] = typer.Option(None, '--settings', '-s', help='Settings file to show')):
    """Show the saved settings"""
    return show_command(settings=settings)


@app.command()
def port(
    ports: Optional[List[int]] = typer.Argument(None, help='Ports to check (default: 80 443)'),
    free: bool = typer.Option(False, '--free', '-f', help='Offer to terminate processes holding the ports')
):
    """Show which processes hold the given ports"""
    return port_command(ports=ports or [], free=free)


@proxy_app.command()
def status():
    """Show the nginx service status"""
    return status_command()


@proxy_app.command()
def stop():
    """Stop nginx"""
    return stop_command()


@proxy_app.command()
def restart():
    """Test the configuration and restart nginx"""
    return restart_command()


@proxy_app.command("test")
def check():
    """Check the nginx configuration with nginx -t"""
    return check_command()


def main():
    """Main entry point"""
    import logging

    # Set up basic logging
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    # Run the app
    app()


if __name__ == "__main__":
    main()
