"""
Persisted settings store

Keeps the last deployed request in a flat KEY='value' file so a rerun can
skip the prompts.
"""
import logging
import re
import shlex
from pathlib import Path
from typing import Dict, Optional

from .request import ProxyConfigRequest, TlsMode
from .validators import FieldKind, InvalidFormat, ValidationPolicy, validate

logger = logging.getLogger(__name__)

STREAM_KEY_RE = re.compile(r'^STREAMS\[(\d+)\]$')
LINE_RE = re.compile(r'^(?P<key>[A-Z_]+(\[\d+\])?)=(?P<value>.*)$')


def _flag(value: bool) -> str:
    return 'y' if value else 'n'


def _is_yes(value: str) -> bool:
    return value.strip().lower() in ('y', 'yes', 'true', '1')


class SettingsStore:
    """Read and write the saved settings file"""

    def __init__(self, path: Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def dump(self) -> str:
        """Raw file contents, for showing to the operator"""
        return self.path.read_text()

    def serialize(self, request: ProxyConfigRequest) -> str:
        """Render a request in the settings file format"""
        values = [
            ('DOMAIN', request.domain),
            ('EMBY_URL', request.backend_url),
            ('STREAM_COUNT', str(request.stream_count)),
            ('UNIFY_SUBDOMAINS', _flag(request.unify_subdomains)),
            ('SSL_MODE', request.tls_mode.value),
            ('SSL_CERT', request.tls_cert_path or ''),
            ('SSL_KEY', request.tls_key_path or ''),
            ('EMAIL', request.tls_contact_email),
            ('WILDCARD_CERT', _flag(request.wildcard_cert)),
        ]
        values.extend((f'STREAMS[{i}]', url) for i, url in request.streams.items())

        lines = []
        for key, value in values:
            # Counts stay unquoted like the shell scripts wrote them
            lines.append(f"{key}={value}" if key == 'STREAM_COUNT' else f"{key}={shlex.quote(value)}")
        return "\n".join(lines) + "\n"

    def save(self, request: ProxyConfigRequest) -> None:
        """Write the request to the settings file"""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(self.serialize(request))
        self.path.chmod(0o644)
        logger.info(f"Saved settings to {self.path}")

    def parse(self, content: str) -> Dict[str, str]:
        """
        Parse settings text into raw key/value pairs

        Raises:
            SettingsError: On lines that are not KEY=value assignments
        """
        values = {}
        # Files edited on Windows carry CRLF endings
        for lineno, line in enumerate(content.replace('\r\n', '\n').split('\n'), start=1):
            line = line.strip()
            if not line or line.startswith('#'):
                continue
            match = LINE_RE.match(line)
            if not match:
                raise SettingsError(f"{self.path}:{lineno}: expected KEY=value, got {line!r}")
            try:
                tokens = shlex.split(match.group('value'))
            except ValueError as e:
                raise SettingsError(f"{self.path}:{lineno}: {e}")
            if len(tokens) > 1:
                raise SettingsError(f"{self.path}:{lineno}: value must be a single quoted word")
            values[match.group('key')] = tokens[0] if tokens else ''
        return values

    def load(self, policy: Optional[ValidationPolicy] = None) -> ProxyConfigRequest:
        """
        Load the saved request

        Raises:
            SettingsError: If the file is missing, malformed or inconsistent
        """
        if not self.exists():
            raise SettingsError(f"No saved settings at {self.path}")

        values = self.parse(self.path.read_text())

        streams = {}
        known = {'DOMAIN', 'EMBY_URL', 'STREAM_COUNT', 'UNIFY_SUBDOMAINS', 'SSL_MODE',
                 'SSL_CERT', 'SSL_KEY', 'EMAIL', 'WILDCARD_CERT'}
        for key, value in values.items():
            stream_match = STREAM_KEY_RE.match(key)
            if stream_match:
                streams[int(stream_match.group(1))] = value
            elif key not in known:
                logger.warning(f"Ignoring unknown settings key {key}")

        try:
            stream_count = int(values.get('STREAM_COUNT') or 0)
        except ValueError:
            raise SettingsError(f"STREAM_COUNT must be a number, got {values['STREAM_COUNT']!r}")
        if stream_count != len(streams):
            raise SettingsError(f"STREAM_COUNT is {stream_count} but {len(streams)} stream URLs are saved")

        for key in ('DOMAIN', 'EMBY_URL', 'SSL_MODE'):
            if not values.get(key):
                raise SettingsError(f"Saved settings are missing {key}")

        try:
            tls_mode = TlsMode(values['SSL_MODE'])
            email = values.get('EMAIL', '')
            return ProxyConfigRequest(
                domain=validate(FieldKind.DOMAIN, values['DOMAIN'], policy),
                backend_url=validate(FieldKind.URL, values['EMBY_URL'], policy),
                tls_mode=tls_mode,
                unify_subdomains=_is_yes(values.get('UNIFY_SUBDOMAINS', 'n')),
                streams={i: validate(FieldKind.URL, url, policy) for i, url in streams.items()},
                tls_contact_email=validate(FieldKind.EMAIL, email, policy) if email else '',
                tls_cert_path=values.get('SSL_CERT') or None,
                tls_key_path=values.get('SSL_KEY') or None,
                wildcard_cert=_is_yes(values.get('WILDCARD_CERT', 'n')),
            )
        except InvalidFormat as e:
            raise SettingsError(f"Saved settings contain an invalid value: {e.message}")
        except ValueError as e:
            # RequestError and unknown SSL_MODE values
            raise SettingsError(f"Saved settings are inconsistent: {e}")


class SettingsError(Exception):
    """Settings store error"""
    pass
