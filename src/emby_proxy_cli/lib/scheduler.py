"""
Recurring job scheduling through the user's crontab
"""
import logging
from typing import List

from .utils import run_command, command_output

logger = logging.getLogger(__name__)

RENEWAL_MARKER = "emby-proxy-cli-renew"


def renewal_entry(service_name: str = "nginx") -> str:
    """Cron line renewing certificates and reloading the proxy afterwards"""
    return (
        f'0 3 * * * certbot renew --quiet --post-hook "systemctl reload {service_name}"'
        f'  # {RENEWAL_MARKER}'
    )


class CronScheduler:
    """Idempotent crontab editing"""

    def read_entries(self) -> List[str]:
        """Current crontab lines (empty if the user has no crontab yet)"""
        result = run_command(["crontab", "-l"])
        if result.returncode != 0:
            # "no crontab for root" is not an error
            logger.debug(f"crontab -l: {command_output(result)}")
            return []
        return result.stdout.splitlines()

    def ensure_entry(self, line: str, marker: str) -> bool:
        """
        Add a crontab line unless one carrying the marker already exists

        Args:
            line: Full cron line to add
            marker: Substring identifying our entry

        Returns:
            True if the entry was added, False if it was already present

        Raises:
            SchedulerError: If the crontab could not be written
        """
        entries = self.read_entries()
        if any(marker in existing for existing in entries):
            logger.info("Renewal job already scheduled")
            return False

        entries.append(line)
        result = run_command(["crontab", "-"], input="\n".join(entries) + "\n")
        if result.returncode != 0:
            raise SchedulerError(f"Failed to update crontab: {command_output(result)}")

        logger.info(f"Scheduled cron job: {line}")
        return True


class SchedulerError(Exception):
    """Scheduler error"""
    pass
