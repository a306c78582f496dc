"""
Tests for interactive prompting
"""
from unittest.mock import patch

import pytest

from emby_proxy_cli.lib.cmd.prompt import ask_validated, collect_request
from emby_proxy_cli.lib.request import ProxyConfigRequest, TlsMode
from emby_proxy_cli.lib.validators import FieldKind, ValidationPolicy


def test_ask_validated_reprompts():
    """Test invalid answers are asked again"""
    with patch('emby_proxy_cli.lib.cmd.prompt.Prompt.ask', side_effect=["not a domain", "", "P.Example.com"]) as mock_ask:
        value = ask_validated("Domain", FieldKind.DOMAIN)

    assert value == "p.example.com"
    assert mock_ask.call_count == 3


def test_ask_validated_rejects_bad_default():
    """Test a default that can never validate"""
    with pytest.raises(ValueError):
        ask_validated("Domain", FieldKind.DOMAIN, default="no spaces allowed")


def test_ask_validated_applies_policy():
    """Test the https-only policy"""
    answers = ["http://emby.example.com", "https://emby.example.com/"]
    with patch('emby_proxy_cli.lib.cmd.prompt.Prompt.ask', side_effect=answers):
        value = ask_validated("URL", FieldKind.URL, policy=ValidationPolicy(https_only=True))
    assert value == "https://emby.example.com"


def test_collect_streams_manual(tmp_path):
    """Test a stream-path request with manual certificates"""
    cert = tmp_path / "fullchain.pem"
    key = tmp_path / "privkey.pem"
    cert.write_text("cert")
    key.write_text("key")
    answers = [
        "p.example.com",
        "http://192.168.1.100:8096",
        "2",
        "https://s1.example.com",
        "https://s2.example.com",
        "manual",
        str(cert),
        str(key),
    ]
    with patch('emby_proxy_cli.lib.cmd.prompt.Prompt.ask', side_effect=answers), \
         patch('emby_proxy_cli.lib.cmd.prompt.Confirm.ask', return_value=False):
        request = collect_request(ValidationPolicy())

    assert request.domain == "p.example.com"
    assert request.streams == {1: "https://s1.example.com", 2: "https://s2.example.com"}
    assert request.tls_mode is TlsMode.MANUAL
    assert request.tls_cert_path == str(cert)
    assert request.tls_key_path == str(key)


def test_collect_unify_automatic():
    """Test unified subdomains skip the stream questions"""
    answers = ["p.example.com", "https://emby.example.com", "auto", "admin@example.com"]
    with patch('emby_proxy_cli.lib.cmd.prompt.Prompt.ask', side_effect=answers), \
         patch('emby_proxy_cli.lib.cmd.prompt.Confirm.ask', side_effect=[True, False]):
        request = collect_request(ValidationPolicy())

    assert request.unify_subdomains is True
    assert request.streams == {}
    assert request.tls_mode is TlsMode.AUTOMATIC
    assert request.tls_contact_email == "admin@example.com"
    assert request.wildcard_cert is False


def test_collect_drops_stale_defaults(tmp_path):
    """Test saved certificate paths that vanished are not offered"""
    previous = ProxyConfigRequest(
        domain="p.example.com",
        backend_url="https://emby.example.com",
        tls_mode=TlsMode.MANUAL,
        tls_cert_path=str(tmp_path / "gone.pem"),
        tls_key_path=str(tmp_path / "gone.key"),
    )
    cert = tmp_path / "fullchain.pem"
    key = tmp_path / "privkey.pem"
    cert.write_text("cert")
    key.write_text("key")
    answers = ["p.example.com", "https://emby.example.com", "0", "manual", str(cert), str(key)]
    with patch('emby_proxy_cli.lib.cmd.prompt.Prompt.ask', side_effect=answers) as mock_ask, \
         patch('emby_proxy_cli.lib.cmd.prompt.Confirm.ask', return_value=False):
        request = collect_request(ValidationPolicy(), previous)

    assert request.tls_cert_path == str(cert)
    assert mock_ask.call_args_list[0].kwargs['default'] == "p.example.com"
    assert mock_ask.call_args_list[1].kwargs['default'] == "https://emby.example.com"
    assert mock_ask.call_args_list[4].kwargs['default'] is None
    assert mock_ask.call_args_list[5].kwargs['default'] is None
