"""
Tests for the proxy configuration request model
"""
import pytest

from emby_proxy_cli.lib.request import ProxyConfigRequest, RequestError, TlsMode


def make_request(**overrides):
    values = dict(
        domain="p.example.com",
        backend_url="https://emby.example.com",
        tls_mode=TlsMode.MANUAL,
        tls_cert_path="/etc/ssl/p.pem",
        tls_key_path="/etc/ssl/p.key",
    )
    values.update(overrides)
    return ProxyConfigRequest(**values)


def test_valid_request():
    """Test a plain request"""
    request = make_request(streams={1: "https://s1.example.com"})
    assert request.stream_count == 1
    assert request.has_tls_paths


def test_unify_and_streams_are_exclusive():
    """Test unify mode cannot carry stream paths"""
    with pytest.raises(RequestError, match="cannot be combined"):
        make_request(unify_subdomains=True, streams={1: "https://s1.example.com"})


def test_unify_without_streams():
    """Test unify mode alone is fine"""
    assert make_request(unify_subdomains=True).unify_subdomains is True


def test_streams_must_be_contiguous():
    """Test index gaps are rejected"""
    with pytest.raises(RequestError, match="without gaps"):
        make_request(streams={1: "https://s1.example.com", 3: "https://s3.example.com"})
    with pytest.raises(RequestError):
        make_request(streams={0: "https://s0.example.com"})


def test_streams_sorted():
    """Test streams given out of order are kept in index order"""
    request = make_request(streams={2: "https://s2.example.com", 1: "https://s1.example.com"})
    assert list(request.streams) == [1, 2]


def test_cert_and_key_together():
    """Test certificate and key paths come as a pair"""
    with pytest.raises(RequestError, match="together"):
        make_request(tls_key_path=None)


def test_domain_without_scheme():
    """Test scheme prefixes and trailing slashes are rejected"""
    with pytest.raises(RequestError):
        make_request(domain="https://p.example.com")
    with pytest.raises(RequestError):
        make_request(domain="p.example.com/")


def test_automatic_requires_email():
    """Test automatic mode needs a contact email"""
    with pytest.raises(RequestError, match="email"):
        ProxyConfigRequest(domain="p.example.com", backend_url="https://emby.example.com", tls_mode=TlsMode.AUTOMATIC)


def test_automatic_without_paths():
    """Test automatic mode starts without certificate paths"""
    request = ProxyConfigRequest(
        domain="p.example.com",
        backend_url="https://emby.example.com",
        tls_mode="auto",
        tls_contact_email="admin@example.com",
    )
    assert request.tls_mode is TlsMode.AUTOMATIC
    assert not request.has_tls_paths


def test_with_tls_paths_returns_copy():
    """Test resolving paths does not mutate the original"""
    request = ProxyConfigRequest(
        domain="p.example.com",
        backend_url="https://emby.example.com",
        tls_contact_email="admin@example.com",
    )
    resolved = request.with_tls_paths("/live/fullchain.pem", "/live/privkey.pem")
    assert resolved.tls_cert_path == "/live/fullchain.pem"
    assert request.tls_cert_path is None
