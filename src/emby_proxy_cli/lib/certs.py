"""
Certificate resolution for Emby Proxy CLI

Automatic mode runs certbot in standalone mode; manual mode checks the
operator's files and tightens their permissions.
"""
import logging
import os
import pwd
import subprocess
from pathlib import Path
from typing import Callable, Optional

from .config import Config
from .port_guard import PortGuard, PortOwner, PortBusy
from .proxy.base import ReverseProxy, ProxyError
from .request import ProxyConfigRequest, TlsMode
from .scheduler import CronScheduler, SchedulerError, RENEWAL_MARKER, renewal_entry
from .utils import run_command, command_output, ensure_permissions

logger = logging.getLogger(__name__)

CERTBOT_TIMEOUT = 300
TLS_PORTS = (80, 443)


class CertbotClient:
    """Thin wrapper around the certbot command"""

    def __init__(self, live_dir: Path):
        self.live_dir = Path(live_dir)

    def issue(self, domain: str, email: str, wildcard: bool = False) -> Path:
        """
        Obtain a certificate in standalone mode

        Args:
            domain: Domain to certify
            email: Contact address for the certificate authority
            wildcard: Also request *.domain

        Returns:
            Live directory holding fullchain.pem and privkey.pem

        Raises:
            CertificateIssuanceFailed: If certbot fails
        """
        command = [
            "certbot", "certonly", "--standalone",
            "--non-interactive", "--agree-tos",
            "-m", email,
            "-d", domain,
        ]
        if wildcard:
            command += ["-d", f"*.{domain}"]
            logger.warning("Wildcard names need a DNS challenge; certbot may reject them in standalone mode")

        logger.info(f"Requesting certificate for {domain}{' and *.' + domain if wildcard else ''}")
        try:
            result = run_command(command, timeout=CERTBOT_TIMEOUT)
        except FileNotFoundError:
            raise CertificateIssuanceFailed("certbot is not installed")
        except subprocess.TimeoutExpired:
            raise CertificateIssuanceFailed(f"certbot did not finish within {CERTBOT_TIMEOUT}s")

        if result.returncode != 0:
            raise CertificateIssuanceFailed(f"certbot failed for {domain}:\n{command_output(result)}")

        return self.live_dir / domain


class CertificateResolver:
    """Fill in certificate and key paths for a request"""

    def __init__(self, config: Config, proxy: ReverseProxy,
                 certbot: Optional[CertbotClient] = None,
                 port_guard: Optional[PortGuard] = None,
                 scheduler: Optional[CronScheduler] = None,
                 confirm_kill: Optional[Callable[[PortOwner], bool]] = None):
        self.config = config
        self.proxy = proxy
        self.certbot = certbot or CertbotClient(config.letsencrypt_live_dir)
        self.port_guard = port_guard or PortGuard(config.port_grace_period)
        self.scheduler = scheduler or CronScheduler()
        # Without a prompt nothing gets killed
        self.confirm_kill = confirm_kill or (lambda owner: False)

    def resolve(self, request: ProxyConfigRequest) -> ProxyConfigRequest:
        """
        Resolve TLS material for a request

        Returns:
            A copy of the request with certificate and key paths set

        Raises:
            CertificateIssuanceFailed: If automatic issuance fails
            MissingCertFile: If a manual file does not exist
            PortBusy: If ports 80/443 cannot be freed for certbot
        """
        if request.tls_mode is TlsMode.MANUAL:
            return self.resolve_manual(request)
        return self.resolve_automatic(request)

    def resolve_automatic(self, request: ProxyConfigRequest) -> ProxyConfigRequest:
        was_running = self.proxy.status().running

        # certbot --standalone binds 80 itself
        self.proxy.stop()
        try:
            for port in TLS_PORTS:
                self.port_guard.ensure_free(port, self.confirm_kill)
            live_dir = self.certbot.issue(request.domain, request.tls_contact_email, wildcard=request.wildcard_cert)
        except (PortBusy, CertificateIssuanceFailed):
            if was_running:
                # Bring the untouched previous configuration back up
                try:
                    self.proxy.restart()
                except ProxyError as e:
                    logger.error(f"Could not restart the proxy after aborted issuance: {e}")
            raise
        cert_path = live_dir / "fullchain.pem"
        key_path = live_dir / "privkey.pem"
        logger.info(f"Certificate issued at {live_dir}")

        try:
            self.schedule_renewal()
        except SchedulerError as e:
            logger.error(f"Could not schedule certificate renewal: {e}")
        return request.with_tls_paths(str(cert_path), str(key_path))

    def schedule_renewal(self) -> bool:
        return self.scheduler.ensure_entry(renewal_entry(self.config.service_name), RENEWAL_MARKER)

    def resolve_manual(self, request: ProxyConfigRequest) -> ProxyConfigRequest:
        cert_path = Path(request.tls_cert_path)
        key_path = Path(request.tls_key_path)
        for path in (cert_path, key_path):
            if not path.is_file():
                raise MissingCertFile(path)

        self.tighten_permissions(cert_path, key_path)
        return request

    def tighten_permissions(self, cert_path: Path, key_path: Path) -> None:
        """Give the service account sole ownership of the certificate files"""
        owner = pwd.getpwnam(self.config.service_user)
        for path in (cert_path, key_path):
            if path.stat().st_uid == owner.pw_uid:
                continue
            logger.warning(
                f"{path} is not owned by {self.config.service_user}; "
                f"changing owner and setting mode 600"
            )
            ensure_permissions(path, 0o600)
            os.chown(path, owner.pw_uid, owner.pw_gid)


class CertificateError(Exception):
    """Base exception for certificate operations"""
    pass


class CertificateIssuanceFailed(CertificateError):
    """Raised when the certificate authority client fails"""
    pass


class MissingCertFile(CertificateError):
    """Raised when a manually supplied certificate file does not exist"""

    def __init__(self, path: Path):
        self.path = Path(path)
        super().__init__(f"Certificate file not found: {path}")
