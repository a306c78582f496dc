"""
Deploy command implementation for Emby Proxy CLI
"""
import logging
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table

from ..config import Config, ConfigError
from ..certs import CertificateResolver, CertificateError, MissingCertFile
from ..factory import ProxyProviderFactory, PlatformInstallerFactory
from ..installer import InstallError
from ..port_guard import PortGuard, PortBusy
from ..proxy.activator import ConfigActivator
from ..proxy.base import ProxyError, ValidationFailed, ReloadFailed
from ..request import ProxyConfigRequest, TlsMode
from ..settings import SettingsStore, SettingsError
from ..validators import ValidationPolicy
import emby_proxy_cli.lib.utils as utils
from .prompt import collect_request, confirm_kill

console = Console()
logger = logging.getLogger(__name__)

REQUIRED_PORTS = (80, 443)


def show_request(request: ProxyConfigRequest) -> None:
    """Print a summary of what is about to be deployed"""
    table = Table(title=f"Proxy for {request.domain}", show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Domain", request.domain)
    table.add_row("Emby server", request.backend_url)
    if request.unify_subdomains:
        table.add_row("Subdomains", f"*.{request.domain} -> Emby server")
    for index, url in request.streams.items():
        table.add_row(f"/s{index}", url)
    table.add_row("Certificate", request.tls_mode.value)
    if request.tls_mode is TlsMode.AUTOMATIC:
        table.add_row("Contact email", request.tls_contact_email)
        if request.wildcard_cert:
            table.add_row("Wildcard certificate", f"*.{request.domain}")
    else:
        table.add_row("Certificate file", request.tls_cert_path)
        table.add_row("Key file", request.tls_key_path)

    console.print(table)


def ensure_proxy_installed(proxy) -> None:
    """Install and enable nginx if it is missing"""
    if proxy.is_installed():
        return
    console.print("[bold yellow]! nginx not found, installing it now")
    installer = PlatformInstallerFactory.detect()
    installer.install_proxy()
    proxy.enable()
    console.print("[bold green]✓ nginx installed")


def restart_previous(proxy) -> None:
    """Start the restored configuration after nginx was stopped for certbot"""
    try:
        proxy.restart()
        console.print("[bold yellow]! nginx was restarted with the previous configuration")
    except ProxyError as e:
        logger.error(f"Could not restart nginx with the previous configuration: {e}")
        console.print(f"[bold red]nginx is stopped and could not be restarted: {str(e)}")


def load_or_collect(store: SettingsStore, policy: ValidationPolicy, reuse: Optional[bool]) -> ProxyConfigRequest:
    """Reuse saved settings or prompt for new ones"""
    previous = None
    if store.exists():
        console.print(Panel(store.dump().rstrip(), title=f"Saved settings ({store.path})"))
        try:
            previous = store.load(policy)
        except SettingsError as e:
            console.print(f"[bold yellow]! Saved settings cannot be reused: {e}")

        if previous is not None:
            if reuse is None:
                reuse = Confirm.ask("Reuse these settings?", default=False)
            if reuse:
                console.print("[bold blue]Using saved settings")
                return previous
    elif reuse:
        raise SettingsError(f"No saved settings at {store.path}")

    return collect_request(policy, previous)


def deploy_command(
    reuse: Optional[bool] = None,
    assume_yes: bool = False,
    debug: bool = False,
) -> None:
    """
    Configure nginx as an HTTPS reverse proxy for an Emby server.

    Collects (or reloads) the settings, obtains or checks the certificate,
    writes the site file, tests it with nginx -t and restarts nginx.
    """
    try:
        if debug:
            logging.basicConfig(
                level=logging.DEBUG,
                format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                force=True
            )

        if not utils.is_root():
            console.print("[bold red]This command must be run as root")
            raise typer.Exit(code=1)

        config = Config.load()
        policy = ValidationPolicy(https_only=config.https_only, min_stream_count=config.min_stream_count)
        proxy = ProxyProviderFactory.create(config=config)

        ensure_proxy_installed(proxy)

        # Our own nginx may keep its ports; anything else has to go
        guard = PortGuard(config.port_grace_period)
        for port in REQUIRED_PORTS:
            guard.ensure_free(port, confirm_kill, allowed=(config.service_name,))

        store = SettingsStore(config.settings_file)
        request = load_or_collect(store, policy, reuse)

        show_request(request)
        if not assume_yes and not Confirm.ask("Deploy this configuration?", default=True):
            console.print("[yellow]Cancelled, nothing was changed")
            raise typer.Exit(code=0)

        # Automatic issuance stops nginx
        was_running = proxy.status().running
        resolver = CertificateResolver(config, proxy, port_guard=guard, confirm_kill=confirm_kill)
        if request.tls_mode is TlsMode.AUTOMATIC:
            try:
                public_ip = utils.get_public_ip()
                console.print(f"[blue]{request.domain} must resolve to this server ({public_ip}) for validation")
            except Exception as e:
                logger.debug(f"Public IP lookup failed: {e}")
            console.print(f"[bold blue]Requesting a certificate for {request.domain} (nginx is stopped meanwhile)...")
        request = resolver.resolve(request)

        config_text = proxy.render(request)
        paths = config.get_site_paths(request.domain)
        activator = ConfigActivator(proxy, config.backup_dir)
        try:
            result = activator.activate(config_text, paths['available'], paths['enabled'])
        except ValidationFailed:
            if request.tls_mode is TlsMode.AUTOMATIC and was_running:
                restart_previous(proxy)
            raise

        store.save(request)

        console.print(f"[bold green]✓ Deployed! Visit https://{request.domain}")
        console.print(f"Config: {result.target_path}")
        if result.backup_path:
            console.print(f"Previous config backed up to {result.backup_path}")
        if request.streams:
            console.print(f"Stream paths: /s1 to /s{request.stream_count}")
        if request.unify_subdomains:
            console.print(f"All subdomains of {request.domain} are proxied to {request.backend_url}")

    except typer.Exit:
        raise
    except ConfigError as e:
        console.print(f"[bold red]Configuration error: {str(e)}")
        console.print("Please run 'emby-proxy init' to fix the configuration.")
        raise typer.Exit(code=1)
    except SettingsError as e:
        console.print(f"[bold red]Settings error: {str(e)}")
        raise typer.Exit(code=1)
    except InstallError as e:
        console.print(f"[bold red]Installation failed: {str(e)}")
        raise typer.Exit(code=1)
    except PortBusy as e:
        console.print(f"[bold red]{str(e)}")
        console.print("Free the port and run the command again.")
        raise typer.Exit(code=1)
    except MissingCertFile as e:
        console.print(f"[bold red]{str(e)}")
        console.print("No configuration was written.")
        raise typer.Exit(code=1)
    except CertificateError as e:
        console.print(f"[bold red]Certificate error: {str(e)}")
        console.print("No configuration was written. Check DNS for the domain and run the command again.")
        raise typer.Exit(code=1)
    except ValidationFailed as e:
        console.print("[bold red]nginx rejected the configuration:")
        console.print(e.diagnostics, markup=False)
        if e.restored:
            console.print("The previous configuration was restored; the new one was not applied.")
        else:
            console.print("The new configuration was removed; it was not applied.")
        console.print("Other files in the nginx configuration may still need fixing.")
        raise typer.Exit(code=1)
    except ReloadFailed as e:
        console.print(f"[bold red]{str(e)}")
        console.print("The configuration is valid but nginx did not restart. Inspect it with:")
        console.print("  systemctl status nginx")
        console.print("  journalctl -u nginx -e")
        raise typer.Exit(code=1)
    except ProxyError as e:
        console.print(f"[bold red]Proxy error: {str(e)}")
        raise typer.Exit(code=1)
