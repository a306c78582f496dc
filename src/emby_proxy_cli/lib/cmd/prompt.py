"""
Interactive prompting utilities for command-line operations
"""
from typing import Dict, Optional

from rich.console import Console
from rich.prompt import Prompt, Confirm

from ..port_guard import PortOwner
from ..request import ProxyConfigRequest, TlsMode
from ..validators import FieldKind, InvalidFormat, ValidationPolicy, validate, is_valid

console = Console()


def ask_validated(prompt: str, kind: FieldKind, default: Optional[str] = None,
                  policy: Optional[ValidationPolicy] = None) -> str:
    """
    Ask until the answer passes validation

    An empty answer takes the default, which is validated like any other
    answer. A default that can never validate is a bug in the caller.
    """
    if default:
        try:
            validate(kind, default, policy)
        except InvalidFormat as e:
            raise ValueError(f"Default for {kind.value} is invalid: {e.message}")

    while True:
        raw = Prompt.ask(prompt, default=default or None, show_default=bool(default))
        try:
            return validate(kind, raw, policy)
        except InvalidFormat as e:
            console.print(f"[yellow]! {e.message}")


def confirm_kill(owner: PortOwner) -> bool:
    """Ask before terminating the process that holds a port"""
    console.print(f"[bold yellow]! Port {owner.port} is in use by {owner.process_name} (PID {owner.pid})")
    return Confirm.ask(f"Terminate {owner.process_name} to free port {owner.port}?", default=False)


def _default(previous: Optional[ProxyConfigRequest], attr: str, kind: FieldKind,
             policy: ValidationPolicy) -> Optional[str]:
    # Saved values that no longer validate (e.g. a deleted cert file) are dropped
    value = getattr(previous, attr, None) if previous else None
    return value if value and is_valid(kind, value, policy) else None


def collect_request(policy: ValidationPolicy, previous: Optional[ProxyConfigRequest] = None) -> ProxyConfigRequest:
    """Prompt for every field of a ProxyConfigRequest"""
    domain = ask_validated("Domain name (e.g. emby.example.com)", FieldKind.DOMAIN,
                           _default(previous, 'domain', FieldKind.DOMAIN, policy), policy)
    backend_url = ask_validated("Emby server URL (e.g. http://192.168.1.100:8096)", FieldKind.URL,
                                _default(previous, 'backend_url', FieldKind.URL, policy), policy)

    unify = Confirm.ask(
        f"Send every subdomain of {domain} to the Emby server instead of using stream paths?",
        default=bool(previous and previous.unify_subdomains)
    )

    streams: Dict[int, str] = {}
    if not unify:
        count_default = str(max(previous.stream_count if previous else 0, policy.min_stream_count))
        count = int(ask_validated("How many stream paths (/s1, /s2, ...)?", FieldKind.NONNEG_INT,
                                  count_default, policy))
        for i in range(1, count + 1):
            default = previous.streams.get(i) if previous else None
            if default and not is_valid(FieldKind.URL, default, policy):
                default = None
            streams[i] = ask_validated(f"Stream {i} URL (e.g. https://stream{i}.example.com)", FieldKind.URL,
                                       default, policy)

    previous_mode = previous.tls_mode.value if previous else TlsMode.AUTOMATIC.value
    tls_mode = TlsMode(Prompt.ask(
        "Certificate source",
        choices=[TlsMode.AUTOMATIC.value, TlsMode.MANUAL.value],
        default=previous_mode
    ))

    if tls_mode is TlsMode.AUTOMATIC:
        email = ask_validated("Email for certificate notices", FieldKind.EMAIL,
                              _default(previous, 'tls_contact_email', FieldKind.EMAIL, policy), policy)
        wildcard = Confirm.ask(f"Also request a wildcard certificate for *.{domain}?",
                               default=bool(previous and previous.wildcard_cert))
        return ProxyConfigRequest(
            domain=domain,
            backend_url=backend_url,
            tls_mode=tls_mode,
            unify_subdomains=unify,
            streams=streams,
            tls_contact_email=email,
            wildcard_cert=wildcard,
        )

    cert_path = ask_validated("Certificate file (e.g. /path/to/fullchain.pem)", FieldKind.EXISTING_FILE,
                              _default(previous, 'tls_cert_path', FieldKind.EXISTING_FILE, policy),
                              policy)
    key_path = ask_validated("Private key file (e.g. /path/to/privkey.pem)", FieldKind.EXISTING_FILE,
                             _default(previous, 'tls_key_path', FieldKind.EXISTING_FILE, policy),
                             policy)
    return ProxyConfigRequest(
        domain=domain,
        backend_url=backend_url,
        tls_mode=tls_mode,
        unify_subdomains=unify,
        streams=streams,
        tls_cert_path=cert_path,
        tls_key_path=key_path,
    )
