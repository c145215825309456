# hardware_report/connectors/__init__.py
"""
Connectors: the process-execution and file-read capability used by detectors.
"""

from .base_connector import BaseConnector, CommandResult
from .local_connector import LocalConnector
from .ssh_connector import SSHConnector

__all__ = [
    'BaseConnector',
    'CommandResult',
    'LocalConnector',
    'SSHConnector'
]
