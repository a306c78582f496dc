"""
Configuration activation with backup and rollback
"""
import logging
import os
import shutil
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from .base import ReverseProxy, ProxyError, ValidationFailed

logger = logging.getLogger(__name__)


@dataclass
class ActivationResult:
    """Outcome of a successful activation"""
    target_path: Path
    link_path: Path
    backup_path: Optional[Path]


class ConfigActivator:
    """Write, link, test and apply a rendered site file"""

    def __init__(self, proxy: ReverseProxy, backup_dir: Path):
        self.proxy = proxy
        self.backup_dir = Path(backup_dir)

    def backup(self, target_path: Path) -> Optional[Path]:
        """
        Copy an existing file to a timestamped backup

        Returns:
            Backup path, or None if there was nothing to back up
        """
        if not target_path.exists():
            return None

        self.backup_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d%H%M%S")
        backup_path = self.backup_dir / f"{target_path.name}.{stamp}.bak"
        counter = 1
        while backup_path.exists():
            backup_path = self.backup_dir / f"{target_path.name}.{stamp}.{counter}.bak"
            counter += 1

        shutil.copy2(target_path, backup_path)
        logger.info(f"Backed up {target_path} to {backup_path}")
        return backup_path

    def link(self, target_path: Path, link_path: Path) -> None:
        """Point the enabled-site symlink at the target"""
        link_path.parent.mkdir(parents=True, exist_ok=True)
        if link_path.is_symlink() or link_path.exists():
            if link_path.is_dir() and not link_path.is_symlink():
                raise ProxyError(f"{link_path} is a directory")
            link_path.unlink()
        link_path.symlink_to(target_path)

    def restore_link(self, link_path: Path, previous_link: Optional[str],
                     link_backup: Optional[Path]) -> None:
        """Put the enabled-sites entry back the way it was before the run"""
        if link_path.is_symlink():
            link_path.unlink()
        if previous_link is not None:
            link_path.symlink_to(previous_link)
        elif link_backup is not None:
            shutil.copy2(link_backup, link_path)
        else:
            logger.warning(f"Removed {link_path}")

    def rollback(self, target_path: Path, link_path: Path, backup_path: Optional[Path],
                 previous_link: Optional[str] = None, link_backup: Optional[Path] = None) -> bool:
        """
        Undo a write after a failed syntax check

        Both the site file and its enabled-sites entry return to their
        state before the run.

        Returns:
            True if a previous version of the site file was restored
        """
        self.restore_link(link_path, previous_link, link_backup)

        if backup_path is not None:
            shutil.copy2(backup_path, target_path)
            logger.warning(f"Restored {target_path} from {backup_path}")
            return True

        target_path.unlink(missing_ok=True)
        logger.warning(f"Removed new configuration {target_path}")
        return False

    def activate(self, config_text: str, target_path: Path, link_path: Path) -> ActivationResult:
        """
        Install a configuration file and restart the proxy

        Args:
            config_text: Rendered configuration
            target_path: File in the available-sites directory
            link_path: Symlink in the enabled-sites directory

        Returns:
            ActivationResult

        Raises:
            ValidationFailed: If the proxy rejects the configuration; the
                previous file is restored and the proxy is left alone
            ReloadFailed: If the proxy fails to restart with the new file
        """
        target_path = Path(target_path)
        link_path = Path(link_path)
        previous_link = os.readlink(link_path) if link_path.is_symlink() else None
        # A plain file in sites-enabled is replaced by the link; keep a copy
        link_backup = None
        if previous_link is None and link_path.is_file():
            link_backup = self.backup(link_path)

        backup_path = self.backup(target_path)

        target_path.parent.mkdir(parents=True, exist_ok=True)
        # Write beside the target and rename so readers never see half a file
        tmp_path = target_path.with_name(f".{target_path.name}.tmp")
        tmp_path.write_text(config_text)
        os.replace(tmp_path, target_path)
        self.link(target_path, link_path)
        logger.info(f"Wrote {target_path} and linked {link_path}")

        try:
            self.proxy.validate_syntax()
        except ValidationFailed as e:
            restored = self.rollback(target_path, link_path, backup_path, previous_link, link_backup)
            if restored:
                logger.warning("Previous file restored; other broken files in the set are not repaired")
            raise ValidationFailed(e.diagnostics, restored=restored)

        # Not rolled back: the file itself passed the syntax check
        self.proxy.restart()

        return ActivationResult(target_path=target_path, link_path=link_path, backup_path=backup_path)
