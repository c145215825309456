# hardware_report/__init__.py
"""
Hardware inventory for Linux servers.

Each hardware category runs several detection methods, parses their output
into partial records and merges them into one record per physical device.
"""

from .collectors.main_collector import HardwareReport, MainCollector, resolve_category
from .config.settings import ConnectionConfig, ReportConfig
from .connectors import LocalConnector, SSHConnector

__version__ = "0.1.0"

__all__ = [
    'HardwareReport',
    'MainCollector',
    'resolve_category',
    'ConnectionConfig',
    'ReportConfig',
    'LocalConnector',
    'SSHConnector',
]
