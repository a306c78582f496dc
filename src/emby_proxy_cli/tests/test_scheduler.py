"""
Tests for crontab scheduling
"""
import subprocess
from unittest.mock import patch

import pytest

from emby_proxy_cli.lib.scheduler import CronScheduler, SchedulerError, RENEWAL_MARKER, renewal_entry


def completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


def test_renewal_entry():
    """Test the renewal line reloads the service"""
    line = renewal_entry("nginx")
    assert line.startswith("0 3 * * * certbot renew --quiet")
    assert '--post-hook "systemctl reload nginx"' in line
    assert line.endswith(RENEWAL_MARKER)


def test_adds_entry_to_existing_crontab():
    """Test the entry is appended and existing lines kept"""
    existing = completed(stdout="*/5 * * * * /usr/local/bin/backup\n")
    with patch('emby_proxy_cli.lib.scheduler.run_command', side_effect=[existing, completed()]) as mock_run:
        added = CronScheduler().ensure_entry(renewal_entry(), RENEWAL_MARKER)

    assert added is True
    write = mock_run.call_args_list[1]
    assert write.args[0] == ["crontab", "-"]
    assert write.kwargs['input'] == "*/5 * * * * /usr/local/bin/backup\n" + renewal_entry() + "\n"


def test_creates_crontab():
    """Test users without a crontab"""
    missing = completed(returncode=1, stderr="no crontab for root")
    with patch('emby_proxy_cli.lib.scheduler.run_command', side_effect=[missing, completed()]) as mock_run:
        assert CronScheduler().ensure_entry(renewal_entry(), RENEWAL_MARKER)

    assert mock_run.call_args_list[1].kwargs['input'] == renewal_entry() + "\n"


def test_entry_is_idempotent():
    """Test a second run does not duplicate the entry"""
    existing = completed(stdout=renewal_entry() + "\n")
    with patch('emby_proxy_cli.lib.scheduler.run_command', return_value=existing) as mock_run:
        added = CronScheduler().ensure_entry(renewal_entry(), RENEWAL_MARKER)

    assert added is False
    assert mock_run.call_count == 1


def test_write_failure():
    """Test crontab write errors"""
    with patch('emby_proxy_cli.lib.scheduler.run_command',
               side_effect=[completed(), completed(returncode=1, stderr="permission denied")]):
        with pytest.raises(SchedulerError, match="permission denied"):
            CronScheduler().ensure_entry(renewal_entry(), RENEWAL_MARKER)
