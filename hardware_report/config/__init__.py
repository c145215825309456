# hardware_report/config/__init__.py
from .settings import (
    CATEGORIES, ConfigManager, ConnectionConfig, LogSettings, ReportConfig,
    get_config, initialize_config, write_default_config,
)

__all__ = [
    'CATEGORIES', 'ConfigManager', 'ConnectionConfig', 'LogSettings', 'ReportConfig',
    'get_config', 'initialize_config', 'write_default_config',
]
