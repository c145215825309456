# hardware_report/collectors/base_collector.py
"""
Base collector class that all report collectors inherit from.
Provides common functionality for result wrapping, error handling and
sanitization of sensitive identifiers.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict
import logging
from datetime import datetime

from ..config.settings import ConnectionConfig, ReportConfig

# Keys removed from report data when sensitive output is disabled
SENSITIVE_KEYS = frozenset({
    'serial_number',
    'uuid',
    'board_serial',
    'chassis_serial',
    'bmc_mac_address',
    'port_guid',
    'wwn',
})


class CollectionResult:
    """Container for collection results with metadata"""

    def __init__(self, success: bool, data: Any = None, error: str = None, metadata: Dict = None):
        self.success = success
        self.data = data
        self.error = error
        self.metadata = metadata or {}
        self.timestamp = datetime.now().isoformat()

    def to_dict(self) -> Dict:
        """Convert result to dictionary for serialization"""
        data = self.data.to_dict() if hasattr(self.data, 'to_dict') else self.data
        return {
            'success': self.success,
            'data': data,
            'error': self.error,
            'metadata': self.metadata,
            'timestamp': self.timestamp
        }


class BaseCollector(ABC):
    """
    Abstract base class for collectors.

    A collector owns the connection to one target host and produces one
    CollectionResult.
    """

    def __init__(self, name: str, connection: ConnectionConfig = None, report_config: ReportConfig = None):
        self.name = name
        self.connection_config = connection or ConnectionConfig()
        self.report_config = report_config or ReportConfig()
        self.logger = logging.getLogger(f"collector.{name}")

        # Common configuration
        self.host = self.connection_config.host or 'localhost'
        self.port = self.connection_config.port
        self.username = self.connection_config.username
        self.timeout = self.connection_config.timeout

    @abstractmethod
    def collect(self) -> CollectionResult:
        """
        Main collection method that each collector must implement.

        Returns:
            CollectionResult: Success/failure status with collected data
        """
        pass

    @abstractmethod
    def validate_config(self) -> bool:
        """
        Validate that the collector has all required configuration.

        Returns:
            bool: True if configuration is valid
        """
        pass

    def get_connection_info(self) -> Dict:
        """Get connection information for logging/debugging"""
        return {
            'host': self.host,
            'port': self.port if self.connection_config.is_remote else None,
            'username': self.username if self.connection_config.is_remote else None,
            'collector_type': self.__class__.__name__
        }

    def log_collection_start(self):
        """Log the start of collection process"""
        self.logger.info(f"Starting collection from {self.host}")

    def log_collection_end(self, result: CollectionResult):
        """Log the end of collection process"""
        if result.success:
            self.logger.info("Collection completed successfully")
        else:
            self.logger.error(f"Collection failed: {result.error}")

    def handle_collection_error(self, error: Exception, context: str = "") -> CollectionResult:
        """Handle collection errors with consistent logging"""
        context_prefix = f"[{context}] " if context else ""
        error_msg = f"{context_prefix}Collection failed: {str(error)}"

        self.logger.exception(error_msg)

        return CollectionResult(
            success=False,
            error=error_msg,
            metadata={
                'collector_type': self.__class__.__name__,
                'connection_info': self.get_connection_info(),
                'error_context': context
            }
        )

    def sanitize_data(self, data: Any) -> Any:
        """
        Drop host-unique identifiers unless the configuration includes them.

        Args:
            data: Report section data

        Returns:
            Data safe to share outside the fleet inventory
        """
        if self.report_config.include_sensitive:
            return data
        if isinstance(data, dict):
            return {k: self.sanitize_data(v) for k, v in data.items() if k not in SENSITIVE_KEYS}
        elif isinstance(data, list):
            return [self.sanitize_data(item) for item in data]
        else:
            return data

    def create_metadata(self, additional_metadata: Dict = None) -> Dict:
        """Create standard metadata for collection results"""
        metadata = {
            'collector_type': self.__class__.__name__,
            'connection_info': self.get_connection_info(),
            'collection_timestamp': datetime.now().isoformat()
        }

        if additional_metadata:
            metadata.update(additional_metadata)

        return metadata
