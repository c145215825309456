# hardware_report/utils/__init__.py
from .logging_config import LoggingConfig, setup_logging, get_logger

__all__ = ['LoggingConfig', 'setup_logging', 'get_logger']
