"""
Tests for nginx proxy handler
"""
import subprocess
from unittest.mock import patch

import pytest

from emby_proxy_cli.lib.config import Config
from emby_proxy_cli.lib.factory import ProxyProviderFactory
from emby_proxy_cli.lib.proxy.base import ProxyError, ValidationFailed, ReloadFailed
from emby_proxy_cli.lib.proxy.nginx import NginxProxy


def completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def config():
    """Default configuration"""
    return Config()


@pytest.fixture
def proxy_handler(config):
    return NginxProxy(config)


def test_factory_creates_nginx(config):
    """Test nginx is the default provider"""
    proxy = ProxyProviderFactory.create(config=config)
    assert isinstance(proxy, NginxProxy)
    assert proxy.config == config


def test_factory_rejects_unknown(config):
    with pytest.raises(ValueError, match="Unsupported provider"):
        ProxyProviderFactory.create("caddy", config)


def test_validate_syntax_ok(proxy_handler):
    """Test a passing nginx -t"""
    ok = completed(stderr="nginx: configuration file /etc/nginx/nginx.conf test is successful")
    with patch('emby_proxy_cli.lib.proxy.nginx.nginx.run_command', return_value=ok) as mock_run:
        proxy_handler.validate_syntax()
    mock_run.assert_called_once_with(["nginx", "-t"])


def test_validate_syntax_failure(proxy_handler):
    """Test nginx -t diagnostics are kept"""
    failed = completed(returncode=1, stderr="nginx: [emerg] unknown directive \"proxy_pas\"")
    with patch('emby_proxy_cli.lib.proxy.nginx.nginx.run_command', return_value=failed):
        with pytest.raises(ValidationFailed) as exc:
            proxy_handler.validate_syntax()
    assert "unknown directive" in exc.value.diagnostics
    assert exc.value.restored is False


def test_validate_syntax_missing_binary(proxy_handler):
    with patch('emby_proxy_cli.lib.proxy.nginx.nginx.run_command', side_effect=FileNotFoundError("nginx")):
        with pytest.raises(ValidationFailed):
            proxy_handler.validate_syntax()


def test_restart(proxy_handler):
    """Test restart goes through systemctl"""
    with patch('emby_proxy_cli.lib.proxy.nginx.nginx.run_command', return_value=completed()) as mock_run:
        proxy_handler.restart()
    mock_run.assert_called_once_with(["systemctl", "restart", "nginx"])


def test_restart_failure(proxy_handler):
    failed = completed(returncode=1, stderr="Job for nginx.service failed")
    with patch('emby_proxy_cli.lib.proxy.nginx.nginx.run_command', return_value=failed):
        with pytest.raises(ReloadFailed, match="Job for nginx.service failed"):
            proxy_handler.restart()


def test_stop_failure(proxy_handler):
    failed = completed(returncode=5, stderr="Unit nginx.service not loaded")
    with patch('emby_proxy_cli.lib.proxy.nginx.nginx.run_command', return_value=failed):
        with pytest.raises(ProxyError):
            proxy_handler.stop()


def test_enable(proxy_handler):
    with patch('emby_proxy_cli.lib.proxy.nginx.nginx.run_command', return_value=completed()) as mock_run:
        proxy_handler.enable()
    mock_run.assert_called_once_with(["systemctl", "enable", "--now", "nginx"])


def test_status_running(proxy_handler):
    """Test a running, enabled service"""
    outputs = [completed(stdout="active\n"), completed(stdout="enabled\n")]
    with patch('emby_proxy_cli.lib.proxy.nginx.nginx.run_command', side_effect=outputs):
        status = proxy_handler.status()
    assert status.running is True
    assert status.enabled is True
    assert status.error is None


def test_status_stopped(proxy_handler):
    """Test a stopped service"""
    outputs = [completed(returncode=3, stdout="inactive\n"), completed(returncode=1, stdout="disabled\n")]
    with patch('emby_proxy_cli.lib.proxy.nginx.nginx.run_command', side_effect=outputs):
        status = proxy_handler.status()
    assert status.running is False
    assert status.enabled is False
    assert status.error == "inactive"


def test_custom_service_name():
    """Test the service name comes from the configuration"""
    proxy = NginxProxy(Config(service_name="openresty"))
    with patch('emby_proxy_cli.lib.proxy.nginx.nginx.run_command', return_value=completed()) as mock_run:
        proxy.restart()
    mock_run.assert_called_once_with(["systemctl", "restart", "openresty"])


def test_is_installed(proxy_handler):
    with patch('emby_proxy_cli.lib.proxy.nginx.nginx.command_exists', return_value=False):
        assert proxy_handler.is_installed() is False
