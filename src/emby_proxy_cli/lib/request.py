"""
Proxy configuration request model
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Optional


class TlsMode(Enum):
    """Where the TLS certificate comes from"""
    AUTOMATIC = "auto"
    MANUAL = "manual"


@dataclass
class ProxyConfigRequest:
    """Validated parameters for one proxy deployment"""
    domain: str
    backend_url: str
    tls_mode: TlsMode = TlsMode.AUTOMATIC
    unify_subdomains: bool = False
    streams: Dict[int, str] = field(default_factory=dict)
    tls_contact_email: str = ""
    tls_cert_path: Optional[str] = None
    tls_key_path: Optional[str] = None
    wildcard_cert: bool = False  # Also request *.domain in automatic mode

    def __post_init__(self):
        if isinstance(self.tls_mode, str):
            self.tls_mode = TlsMode(self.tls_mode)
        # Keep streams ordered by index
        self.streams = dict(sorted(self.streams.items()))
        self.validate()

    def validate(self) -> None:
        """
        Check the structural invariants of the request

        Raises:
            RequestError: If any invariant is violated
        """
        if "://" in self.domain or self.domain.endswith("/"):
            raise RequestError(f"Domain must be a bare hostname, got '{self.domain}'")

        if self.unify_subdomains and self.streams:
            raise RequestError("Subdomain unification and stream paths cannot be combined")

        expected = list(range(1, len(self.streams) + 1))
        if list(self.streams) != expected:
            raise RequestError(f"Stream indices must run 1..{len(self.streams)} without gaps, got {list(self.streams)}")

        if (self.tls_cert_path is None) != (self.tls_key_path is None):
            raise RequestError("Certificate and key paths must be set together")

        if self.tls_mode is TlsMode.AUTOMATIC and not self.tls_contact_email:
            raise RequestError("Automatic certificates require a contact email")

        if self.tls_mode is TlsMode.MANUAL and self.tls_cert_path is None:
            raise RequestError("Manual certificates require certificate and key paths")

    @property
    def stream_count(self) -> int:
        return len(self.streams)

    @property
    def has_tls_paths(self) -> bool:
        return self.tls_cert_path is not None

    def with_tls_paths(self, cert_path: str, key_path: str) -> 'ProxyConfigRequest':
        """Return a copy carrying the given certificate material"""
        return replace(self, tls_cert_path=str(cert_path), tls_key_path=str(key_path))


class RequestError(ValueError):
    """Raised when a request violates its invariants"""
    pass
