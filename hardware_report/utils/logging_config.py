# hardware_report/utils/logging_config.py
"""
Centralized logging configuration for hardware report runs.

Reports are written to stdout, so every handler installed here writes to
stderr or to files under the log directory.
"""

import logging
import logging.handlers
import sys
from pathlib import Path

DETAILED_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
SIMPLE_FORMAT = '%(levelname)s: %(message)s'

# Logger name prefix -> level when debug is off. Debug runs open all of them.
COMPONENT_LEVELS = {
    'paramiko': logging.WARNING,
    'ssh_connector': logging.INFO,
    'connector': logging.INFO,
    'detector': logging.INFO,
    'chain': logging.INFO,
    'merge': logging.INFO,
    'subcollector': logging.INFO,
    'collector': logging.INFO,
    'config_manager': logging.INFO,
    'publisher': logging.INFO,
}

# Third-party loggers stay quiet even in debug runs
ALWAYS_QUIET = ('paramiko',)


class LoggingConfig:
    """Manages logging configuration for the entire application"""

    @staticmethod
    def resolve_level(log_level: str, enable_debug: bool = False) -> int:
        """
        Translate a configured level name.

        Args:
            log_level: 'DEBUG', 'INFO', 'WARNING' or 'ERROR' (any case)
            enable_debug: Force DEBUG

        Returns:
            The logging module's numeric level
        """
        if enable_debug:
            return logging.DEBUG
        level = logging.getLevelName(str(log_level).upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {log_level}")
        return level

    @staticmethod
    def setup_logging(log_level='INFO', enable_debug=False, log_to_file=False, log_dir='logs'):
        """
        Set up logging for the application

        Args:
            log_level: Default log level ('DEBUG', 'INFO', 'WARNING', 'ERROR')
            enable_debug: Enable debug logging and the detailed console format
            log_to_file: Also write rotating log files
            log_dir: Directory for log files
        """
        level = LoggingConfig.resolve_level(log_level, enable_debug)

        root_logger = logging.getLogger()
        root_logger.setLevel(level)
        root_logger.handlers.clear()

        detailed_formatter = logging.Formatter(DETAILED_FORMAT)

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(detailed_formatter if enable_debug else logging.Formatter(SIMPLE_FORMAT))
        root_logger.addHandler(console_handler)

        if log_to_file:
            log_path = Path(log_dir)
            log_path.mkdir(parents=True, exist_ok=True)

            # Full run history; detector diagnostics land here at DEBUG
            root_logger.addHandler(LoggingConfig._rotating_handler(
                log_path / 'hardware_report.log', logging.DEBUG if enable_debug else logging.INFO,
                detailed_formatter, max_mb=10, backups=5,
            ))
            root_logger.addHandler(LoggingConfig._rotating_handler(
                log_path / 'errors.log', logging.ERROR, detailed_formatter, max_mb=5, backups=3,
            ))

        LoggingConfig._configure_component_loggers(enable_debug)

    @staticmethod
    def _rotating_handler(path: Path, level: int, formatter: logging.Formatter,
                          max_mb: int, backups: int) -> logging.Handler:
        handler = logging.handlers.RotatingFileHandler(
            path, maxBytes=max_mb * 1024 * 1024, backupCount=backups
        )
        handler.setLevel(level)
        handler.setFormatter(formatter)
        return handler

    @staticmethod
    def _configure_component_loggers(enable_debug):
        """Configure logging levels for specific components"""
        for name, level in COMPONENT_LEVELS.items():
            if enable_debug and name not in ALWAYS_QUIET:
                level = logging.DEBUG
            logging.getLogger(name).setLevel(level)

    @staticmethod
    def get_logger(name):
        """Get a logger for a specific component"""
        return logging.getLogger(name)


# Convenience functions
def setup_logging(log_level='INFO', enable_debug=False, log_to_file=False, log_dir='logs'):
    """Convenience function to set up logging"""
    LoggingConfig.setup_logging(log_level, enable_debug, log_to_file, log_dir)


def get_logger(name):
    """Convenience function to get a logger"""
    return LoggingConfig.get_logger(name)
