"""
Configuration management for Emby Proxy CLI
"""
import os
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Dict

from dotenv import load_dotenv
import yaml
from rich.prompt import Prompt, Confirm, IntPrompt

# Load environment variables from .env file
load_dotenv()

CONFIG_DIR = Path("~/.config/emby-proxy-cli").expanduser()
CONFIG_FILE = CONFIG_DIR / "config.yaml"

PATH_FIELDS = ['sites_available', 'sites_enabled', 'backup_dir', 'settings_file', 'letsencrypt_live_dir']


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ('1', 'true', 'yes', 'y', 'on')


@dataclass
class Config:
    """Configuration data"""
    # nginx layout
    sites_available: Path = Path("/etc/nginx/sites-available")
    sites_enabled: Path = Path("/etc/nginx/sites-enabled")
    backup_dir: Path = Path("/var/backups/emby-proxy-cli")
    settings_file: Path = Path("/etc/nginx/proxy_louis.conf")
    service_name: str = "nginx"
    service_user: str = "root"
    client_max_body_size: str = "20M"

    # Certificates
    letsencrypt_live_dir: Path = Path("/etc/letsencrypt/live")

    # Input policy
    https_only: bool = False  # Reject http:// backend and stream URLs
    min_stream_count: int = 0

    # Port guard
    port_grace_period: float = 2.0

    def __post_init__(self):
        for key in PATH_FIELDS:
            value = getattr(self, key)
            if not isinstance(value, Path):
                setattr(self, key, Path(value).expanduser())

    @classmethod
    def load(cls, config_file: Path = None) -> 'Config':
        """Load configuration from file, falling back to defaults"""
        config_file = config_file or CONFIG_FILE
        data = {}
        if config_file.exists():
            try:
                with open(config_file) as f:
                    data = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                raise ConfigError(f"Failed to read configuration {config_file}: {e}")

            if not isinstance(data, dict):
                raise ConfigError(f"Configuration {config_file} must be a mapping")

            known = {f.name for f in fields(cls)}
            unknown = set(data) - known
            if unknown:
                raise ConfigError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        config = cls(**data)

        # Environment variables take precedence over the config file
        env_settings = os.getenv("EMBY_PROXY_SETTINGS_FILE")
        env_nginx_dir = os.getenv("EMBY_PROXY_NGINX_DIR")
        env_live_dir = os.getenv("EMBY_PROXY_LIVE_DIR")
        env_https_only = os.getenv("EMBY_PROXY_HTTPS_ONLY")
        env_min_streams = os.getenv("EMBY_PROXY_MIN_STREAMS")

        if env_settings:
            config.settings_file = Path(env_settings).expanduser()
        if env_nginx_dir:
            nginx_dir = Path(env_nginx_dir).expanduser()
            config.sites_available = nginx_dir / "sites-available"
            config.sites_enabled = nginx_dir / "sites-enabled"
        if env_live_dir:
            config.letsencrypt_live_dir = Path(env_live_dir).expanduser()
        if env_https_only:
            config.https_only = _env_flag(env_https_only)
        if env_min_streams:
            try:
                config.min_stream_count = int(env_min_streams)
            except ValueError:
                raise ConfigError(f"EMBY_PROXY_MIN_STREAMS must be an integer, got {env_min_streams!r}")

        if config.min_stream_count < 0:
            raise ConfigError("min_stream_count cannot be negative")

        return config

    def save(self, config_file: Path = None):
        """Save configuration to file"""
        config_file = config_file or CONFIG_FILE
        config_file.parent.mkdir(parents=True, exist_ok=True)

        # Convert to dict and ensure paths are strings
        data = asdict(self)
        for key in PATH_FIELDS:
            data[key] = str(data[key])

        with open(config_file, 'w') as f:
            yaml.safe_dump(data, f)

    @classmethod
    def initialize_interactive(cls) -> 'Config':
        """Initialize configuration interactively"""
        print("Welcome to Emby Proxy CLI setup!")
        print("\nPress enter to keep the suggested value.")

        current = cls.load()

        config = cls(
            sites_available=Prompt.ask("nginx sites-available directory", default=str(current.sites_available)),
            sites_enabled=Prompt.ask("nginx sites-enabled directory", default=str(current.sites_enabled)),
            backup_dir=Prompt.ask("Backup directory for replaced configs", default=str(current.backup_dir)),
            settings_file=Prompt.ask("Saved settings file", default=str(current.settings_file)),
            letsencrypt_live_dir=Prompt.ask("Let's Encrypt live directory", default=str(current.letsencrypt_live_dir)),
            service_name=Prompt.ask("nginx service name", default=current.service_name),
            service_user=Prompt.ask("Account that should own certificate files", default=current.service_user),
            client_max_body_size=Prompt.ask("Maximum request body size", default=current.client_max_body_size),
            https_only=Confirm.ask("Only accept https:// backend URLs?", default=current.https_only),
            min_stream_count=IntPrompt.ask("Minimum number of stream paths", default=current.min_stream_count),
            port_grace_period=current.port_grace_period,
        )

        config.save()

        return config

    def get_site_paths(self, domain: str) -> Dict[str, Path]:
        """Get the available/enabled paths for a domain's config file"""
        return {
            'available': self.sites_available / domain,
            'enabled': self.sites_enabled / domain,
        }

    def get_live_dir(self, domain: str) -> Path:
        """Get the certbot live directory for a domain"""
        return self.letsencrypt_live_dir / domain


class ConfigError(Exception):
    """Configuration error"""
    pass
