# hardware_report/config/settings.py
"""
Configuration management for hardware report runs.
"""

import os
import yaml
from pathlib import Path
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field, asdict
import logging

CATEGORIES = ('system', 'cpu', 'memory', 'storage', 'gpu', 'network')
OUTPUT_FORMATS = ('json', 'yaml', 'toml')


@dataclass
class ReportConfig:
    """How a report run behaves"""
    command_timeout: int = 30
    use_sudo: bool = False
    parallel_categories: bool = True
    parallel_detectors: bool = True
    max_workers: int = 6
    strict_units: bool = False  # re-raise unit contract violations (tests)
    categories: List[str] = field(default_factory=lambda: list(CATEGORIES))
    disabled_detectors: List[str] = field(default_factory=list)
    output_format: str = 'json'  # 'json', 'yaml', 'toml'
    include_sensitive: bool = True  # serial numbers, UUIDs, BMC MAC

    def __post_init__(self):
        """Validate configuration after initialization"""
        if self.command_timeout is None or self.command_timeout <= 0:
            raise ValueError(f"command_timeout must be positive, got {self.command_timeout}")

        if self.max_workers is None or self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")

        if self.output_format not in OUTPUT_FORMATS:
            raise ValueError(f"output_format must be one of {OUTPUT_FORMATS}, got {self.output_format!r}")

        unknown = [c for c in self.categories if c not in CATEGORIES]
        if unknown:
            raise ValueError(f"Unknown categories: {', '.join(unknown)}")


@dataclass
class ConnectionConfig:
    """Target host. No host means the local machine."""
    host: Optional[str] = None
    port: int = 22
    username: str = 'root'
    ssh_key_path: Optional[str] = None
    password_env: Optional[str] = None
    timeout: int = 30

    @property
    def is_remote(self) -> bool:
        return bool(self.host) and self.host not in ('localhost', '127.0.0.1', '::1')

    def get_password(self) -> Optional[str]:
        """Resolve the SSH password from the configured environment variable"""
        if not self.password_env:
            return None
        return os.getenv(self.password_env)


@dataclass
class LogSettings:
    """Logging configuration"""
    level: str = 'INFO'
    log_to_file: bool = False
    log_dir: str = 'logs'


class ConfigManager:
    """Loads report, connection and logging configuration from YAML"""

    def __init__(self, config_file: str = None):
        self.logger = logging.getLogger('config_manager')

        # Determine config file path
        if config_file:
            self.config_file = Path(config_file)
            if not self.config_file.exists():
                raise ValueError(f"Configuration file not found: {config_file}")
        else:
            self.config_file = self._find_config_file()

        self.report = ReportConfig()
        self.connection = ConnectionConfig()
        self.logging = LogSettings()

        if self.config_file is not None:
            self._load_config()
        else:
            self.logger.debug("No configuration file found, using defaults")

    def _find_config_file(self) -> Optional[Path]:
        """Find configuration file in standard locations"""
        possible_locations = [
            Path('config/hardware_report.yml'),
            Path.home() / '.config' / 'hardware-report' / 'config.yml',
            Path('/etc/hardware-report/config.yml'),
        ]

        for location in possible_locations:
            if location.exists():
                self.logger.info(f"Found config file at {location}")
                return location
        return None

    def _load_config(self):
        """Load configuration from file"""
        try:
            with open(self.config_file, 'r') as f:
                config_data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            self.logger.error(f"Failed to load configuration: {e}")
            raise ValueError(f"Cannot read configuration {self.config_file}: {e}")

        if not isinstance(config_data, dict):
            raise ValueError(f"Configuration {self.config_file} must be a mapping")

        try:
            self.report = ReportConfig(**(config_data.get('report') or {}))
            self.connection = ConnectionConfig(**(config_data.get('connection') or {}))
            self.logging = LogSettings(**(config_data.get('logging') or {}))
        except TypeError as e:
            # Unknown keys in a section
            self.logger.error(f"Invalid configuration: {e}")
            raise ValueError(f"Invalid configuration in {self.config_file}: {e}")

        self.logger.info(f"Loaded configuration from {self.config_file}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'report': asdict(self.report),
            'connection': asdict(self.connection),
            'logging': asdict(self.logging),
        }


def write_default_config(config_path: str) -> Path:
    """Write a configuration file populated with the defaults"""
    path = Path(config_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    default_config = {
        'report': asdict(ReportConfig()),
        'connection': asdict(ConnectionConfig()),
        'logging': asdict(LogSettings()),
    }

    with open(path, 'w') as f:
        yaml.dump(default_config, f, default_flow_style=False, indent=2, sort_keys=False)

    logging.getLogger('config_manager').info(f"Created default configuration at {path}")
    return path


# Global configuration instance
config_manager = None


def get_config() -> ConfigManager:
    """Get global configuration manager instance"""
    global config_manager
    if config_manager is None:
        config_manager = ConfigManager()
    return config_manager


def initialize_config(config_file: str = None) -> ConfigManager:
    """Initialize configuration manager with specific config file"""
    global config_manager
    config_manager = ConfigManager(config_file)
    return config_manager
