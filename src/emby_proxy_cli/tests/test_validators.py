"""
Tests for input validation
"""
import pytest

from emby_proxy_cli.lib.validators import (
    FieldKind,
    InvalidFormat,
    ValidationPolicy,
    validate,
    is_valid
)


@pytest.mark.parametrize("raw", ["example.com", "p.example.com", "emby-1.my.site.io", "  Emby.Example.COM "])
def test_valid_domains(raw):
    """Test domains that match the hostname rule"""
    assert validate(FieldKind.DOMAIN, raw) == raw.strip().lower()


@pytest.mark.parametrize("raw", ["localhost", "https://example.com", "example.com/", "exa mple.com", "example.c0m", "example.c"])
def test_invalid_domains(raw):
    """Test domains that must be rejected"""
    with pytest.raises(InvalidFormat) as exc:
        validate(FieldKind.DOMAIN, raw)
    assert exc.value.kind is FieldKind.DOMAIN


def test_email():
    """Test email validation"""
    assert validate(FieldKind.EMAIL, "admin@example.com") == "admin@example.com"
    assert not is_valid(FieldKind.EMAIL, "admin@localhost")
    assert not is_valid(FieldKind.EMAIL, "admin example@example.com")


@pytest.mark.parametrize("raw", [
    "http://192.168.1.100:8096",
    "https://emby.example.com",
    "https://emby.example.com:8920/emby",
])
def test_valid_urls(raw):
    """Test URLs with optional port and path"""
    assert validate(FieldKind.URL, raw) == raw


def test_url_trailing_slash_stripped():
    """Test a trailing slash is dropped"""
    assert validate(FieldKind.URL, "https://emby.example.com/") == "https://emby.example.com"


@pytest.mark.parametrize("raw", ["ftp://example.com", "emby.example.com", "https://", "https://exa_mple.com"])
def test_invalid_urls(raw):
    """Test URLs that must be rejected"""
    assert not is_valid(FieldKind.URL, raw)


def test_https_only_policy():
    """Test the https-only policy rejects plain http"""
    policy = ValidationPolicy(https_only=True)
    assert validate(FieldKind.URL, "https://emby.example.com", policy) == "https://emby.example.com"
    with pytest.raises(InvalidFormat, match="must use https"):
        validate(FieldKind.URL, "http://emby.example.com", policy)


def test_absolute_path():
    """Test absolute path validation"""
    assert validate(FieldKind.ABSOLUTE_PATH, "/etc/ssl/cert.pem") == "/etc/ssl/cert.pem"
    assert not is_valid(FieldKind.ABSOLUTE_PATH, "cert.pem")


def test_existing_file(tmp_path):
    """Test existing file validation"""
    cert = tmp_path / "cert.pem"
    cert.write_text("cert")
    assert validate(FieldKind.EXISTING_FILE, str(cert)) == str(cert)
    assert not is_valid(FieldKind.EXISTING_FILE, str(tmp_path / "missing.pem"))
    # Directories are not regular files
    assert not is_valid(FieldKind.EXISTING_FILE, str(tmp_path))


def test_nonneg_int():
    """Test counts"""
    assert validate(FieldKind.NONNEG_INT, "0") == "0"
    assert validate(FieldKind.NONNEG_INT, "007") == "7"
    assert not is_valid(FieldKind.NONNEG_INT, "-1")
    assert not is_valid(FieldKind.NONNEG_INT, "two")


def test_min_stream_count_policy():
    """Test the minimum stream count policy"""
    policy = ValidationPolicy(min_stream_count=1)
    assert not is_valid(FieldKind.NONNEG_INT, "0", policy)
    assert validate(FieldKind.NONNEG_INT, "1", policy) == "1"


def test_empty_value_rejected():
    """Test empty input is never accepted"""
    with pytest.raises(InvalidFormat, match="required"):
        validate(FieldKind.DOMAIN, "   ")
    with pytest.raises(InvalidFormat):
        validate(FieldKind.URL, None)
