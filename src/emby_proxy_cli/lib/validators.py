"""
Input validation for Emby Proxy CLI

Every raw value typed by the operator or read from the settings file goes
through ``validate`` before it reaches a ``ProxyConfigRequest``.
"""
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

DOMAIN_RE = re.compile(r'^[A-Za-z0-9.-]+\.[A-Za-z]{2,}$')
EMAIL_RE = re.compile(r'^[^@\s]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$')
URL_RE = re.compile(r'^(?P<scheme>https?)://[A-Za-z0-9.-]+(:[0-9]+)?(/.*)?$')
INT_RE = re.compile(r'^[0-9]+$')


class FieldKind(Enum):
    """Kinds of fields the validator understands"""
    DOMAIN = "domain"
    EMAIL = "email"
    URL = "url"
    ABSOLUTE_PATH = "absolute_path"
    EXISTING_FILE = "existing_file"
    NONNEG_INT = "nonneg_int"


@dataclass(frozen=True)
class ValidationPolicy:
    """Tunable strictness of the validator"""
    https_only: bool = False
    min_stream_count: int = 0


DEFAULT_POLICY = ValidationPolicy()


class InvalidFormat(ValueError):
    """Raised when a raw value does not match its field format"""

    def __init__(self, kind: FieldKind, raw: str, message: str):
        self.kind = kind
        self.raw = raw
        self.message = message
        super().__init__(message)


def _validate_domain(raw: str, policy: ValidationPolicy) -> str:
    if not DOMAIN_RE.match(raw):
        raise InvalidFormat(FieldKind.DOMAIN, raw, f"'{raw}' is not a valid domain name (e.g. emby.example.com)")
    return raw.lower()


def _validate_email(raw: str, policy: ValidationPolicy) -> str:
    if not EMAIL_RE.match(raw):
        raise InvalidFormat(FieldKind.EMAIL, raw, f"'{raw}' is not a valid email address")
    return raw


def _validate_url(raw: str, policy: ValidationPolicy) -> str:
    match = URL_RE.match(raw)
    if not match:
        raise InvalidFormat(FieldKind.URL, raw, f"'{raw}' is not a valid URL (must start with http:// or https://)")
    if policy.https_only and match.group('scheme') != 'https':
        raise InvalidFormat(FieldKind.URL, raw, f"'{raw}' must use https://")
    # The referer is built as URL + "/web/index.html"
    if raw.endswith('/'):
        raw = raw[:-1]
    return raw


def _validate_absolute_path(raw: str, policy: ValidationPolicy) -> str:
    if not raw.startswith('/'):
        raise InvalidFormat(FieldKind.ABSOLUTE_PATH, raw, f"'{raw}' must be an absolute path")
    return raw


def _validate_existing_file(raw: str, policy: ValidationPolicy) -> str:
    raw = _validate_absolute_path(raw, policy)
    if not Path(raw).is_file():
        raise InvalidFormat(FieldKind.EXISTING_FILE, raw, f"'{raw}' does not exist or is not a regular file")
    return raw


def _validate_nonneg_int(raw: str, policy: ValidationPolicy) -> str:
    if not INT_RE.match(raw):
        raise InvalidFormat(FieldKind.NONNEG_INT, raw, f"'{raw}' is not a non-negative whole number")
    value = int(raw, 10)
    if value < policy.min_stream_count:
        raise InvalidFormat(FieldKind.NONNEG_INT, raw, f"At least {policy.min_stream_count} required, got {value}")
    return str(value)


_VALIDATORS = {
    FieldKind.DOMAIN: _validate_domain,
    FieldKind.EMAIL: _validate_email,
    FieldKind.URL: _validate_url,
    FieldKind.ABSOLUTE_PATH: _validate_absolute_path,
    FieldKind.EXISTING_FILE: _validate_existing_file,
    FieldKind.NONNEG_INT: _validate_nonneg_int,
}


def validate(kind: FieldKind, raw: Optional[str], policy: Optional[ValidationPolicy] = None) -> str:
    """
    Validate and normalize a raw field value

    Args:
        kind: Field kind
        raw: Raw input; surrounding whitespace is ignored
        policy: Strictness settings (defaults to the permissive policy)

    Returns:
        The normalized value

    Raises:
        InvalidFormat: If the value does not match the field format
    """
    raw = (raw or "").strip()
    if not raw:
        raise InvalidFormat(kind, raw, "A value is required")
    return _VALIDATORS[kind](raw, policy or DEFAULT_POLICY)


def is_valid(kind: FieldKind, raw: Optional[str], policy: Optional[ValidationPolicy] = None) -> bool:
    """Check a value without raising"""
    try:
        validate(kind, raw, policy)
        return True
    except InvalidFormat:
        return False
