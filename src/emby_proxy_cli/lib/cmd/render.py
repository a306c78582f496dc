"""
Render and show command implementations for Emby Proxy CLI
"""
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.syntax import Syntax

from ..config import Config, ConfigError
from ..factory import ProxyProviderFactory
from ..proxy.base import ProxyError
from ..request import TlsMode
from ..settings import SettingsStore, SettingsError
from ..validators import ValidationPolicy

console = Console()


def _store(config: Config, settings: Optional[Path]) -> SettingsStore:
    return SettingsStore(settings or config.settings_file)


def render_command(settings: Optional[Path] = None, plain: bool = False):
    """Print the nginx configuration for the saved settings without touching the system"""
    try:
        config = Config.load()
        policy = ValidationPolicy(https_only=config.https_only, min_stream_count=config.min_stream_count)
        request = _store(config, settings).load(policy)

        if request.tls_mode is TlsMode.AUTOMATIC and not request.has_tls_paths:
            live_dir = config.get_live_dir(request.domain)
            request = request.with_tls_paths(str(live_dir / "fullchain.pem"), str(live_dir / "privkey.pem"))

        proxy = ProxyProviderFactory.create(config=config)
        text = proxy.render(request)

        if plain:
            typer.echo(text, nl=False)
        else:
            console.print(Syntax(text, "nginx", theme="ansi_dark"))

    except ConfigError as e:
        console.print(f"[bold red]Configuration error: {str(e)}")
        raise typer.Exit(code=1)
    except (SettingsError, ProxyError) as e:
        console.print(f"[bold red]Error: {str(e)}")
        raise typer.Exit(code=1)


def show_command(settings: Optional[Path] = None):
    """Print the saved settings file"""
    try:
        config = Config.load()
        store = _store(config, settings)
        if not store.exists():
            console.print(f"[yellow]No saved settings at {store.path}")
            raise typer.Exit(code=1)
        console.print(f"[bold blue]{store.path}")
        console.print(store.dump().rstrip(), markup=False)
    except ConfigError as e:
        console.print(f"[bold red]Configuration error: {str(e)}")
        raise typer.Exit(code=1)
