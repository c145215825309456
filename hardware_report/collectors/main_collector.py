# hardware_report/collectors/main_collector.py
"""
Main Collector
Runs every category sub-collector against one host and assembles the
hardware report.
"""

import socket
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Tuple

from ..config.settings import ConnectionConfig, ReportConfig
from ..connectors.local_connector import LocalConnector
from ..connectors.ssh_connector import SSHConnector
from ..errors import UnitContractError
from ..processors.summary_processor import SummaryProcessor
from .base_collector import BaseCollector, CollectionResult
from .sub_collectors import SUB_COLLECTORS


@dataclass
class HardwareReport:
    """One host's hardware inventory snapshot"""
    hostname: str
    collected_at: str
    collection_time_seconds: float = 0.0
    summary: Dict[str, Any] = field(default_factory=dict)
    sections: Dict[str, Any] = field(default_factory=dict)
    diagnostics: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)

    def to_dict(self, include_diagnostics: bool = True) -> Dict[str, Any]:
        report = {
            'hostname': self.hostname,
            'collected_at': self.collected_at,
            'collection_time_seconds': self.collection_time_seconds,
            'summary': self.summary,
        }
        report.update(self.sections)
        if include_diagnostics:
            report['diagnostics'] = self.diagnostics
        return report


class MainCollector(BaseCollector):
    """
    Report assembler.

    Sub-collectors share no state, so categories run concurrently on one
    connector and are joined before the report is composed. A failing
    category is reported in diagnostics; it never aborts the report.
    """

    def __init__(self, name: str = None, connection: ConnectionConfig = None,
                 report_config: ReportConfig = None, connector=None):
        connection = connection or ConnectionConfig()
        super().__init__(name or connection.host or socket.gethostname(), connection, report_config)
        self.connector = connector or self._create_connector()

    def _create_connector(self):
        if self.connection_config.is_remote:
            return SSHConnector(
                host=self.connection_config.host,
                port=self.connection_config.port,
                username=self.connection_config.username,
                password=self.connection_config.get_password(),
                ssh_key_path=self.connection_config.ssh_key_path,
                timeout=self.report_config.command_timeout,
                use_sudo=self.report_config.use_sudo,
            )
        return LocalConnector(timeout=self.report_config.command_timeout,
                              use_sudo=self.report_config.use_sudo)

    def validate_config(self) -> bool:
        """Validate main collector configuration"""
        if not self.report_config.categories:
            self.logger.error("No categories selected")
            return False
        return True

    def collect(self) -> CollectionResult:
        """
        Main collection orchestration:
        1. Connect to the host
        2. Run the selected sub-collectors
        3. Assemble the report
        """
        try:
            self.log_collection_start()

            if not self.validate_config():
                return CollectionResult(False, error="Invalid configuration", metadata=self.create_metadata())

            if not self.connector.connect():
                raise ConnectionError(f"Failed to connect to {self.connector.describe()}")

            start_time = time.time()
            sections, diagnostics = self._run_sub_collectors()
            sections = self.sanitize_data(sections)

            report = HardwareReport(
                hostname=self._report_hostname(sections),
                collected_at=datetime.now().isoformat(),
                collection_time_seconds=round(time.time() - start_time, 3),
                summary=SummaryProcessor(self.name).process(sections),
                sections=sections,
                diagnostics=diagnostics,
            )

            result = CollectionResult(
                success=True,
                data=report,
                metadata=self.create_metadata({
                    'categories': list(sections.keys()),
                    'diagnostic_count': sum(len(v) for v in diagnostics.values()),
                })
            )
            self.log_collection_end(result)
            return result

        except UnitContractError as e:
            if self.report_config.strict_units:
                raise
            return self.handle_collection_error(e, "hardware collection")
        except Exception as e:
            return self.handle_collection_error(e, "hardware collection")
        finally:
            self.connector.disconnect()

    def _run_sub_collectors(self) -> Tuple[Dict[str, Any], Dict[str, List[Dict[str, Any]]]]:
        """
        Run the selected sub-collectors

        Returns:
            Tuple of (sections, diagnostics), both keyed by category name
        """
        categories = [c for c in SUB_COLLECTORS if c in self.report_config.categories]

        if self.report_config.parallel_categories and len(categories) > 1:
            with ThreadPoolExecutor(max_workers=min(self.report_config.max_workers, len(categories))) as executor:
                futures = {category: executor.submit(self._run_sub_collector, category) for category in categories}
                outcomes = {category: future.result() for category, future in futures.items()}
        else:
            outcomes = {category: self._run_sub_collector(category) for category in categories}

        sections = {category: outcomes[category][0] for category in categories}
        diagnostics = {category: outcomes[category][1] for category in categories}
        return sections, diagnostics

    def _run_sub_collector(self, category: str) -> Tuple[Any, List[Dict[str, Any]]]:
        """Run one sub-collector, turning unexpected failures into diagnostics"""
        collector = SUB_COLLECTORS[category](self.connector, self.name, self.report_config)
        try:
            section = collector.collect()
            return section, collector.diagnostics()
        except UnitContractError as e:
            if self.report_config.strict_units:
                raise
            collector.log_error(e)
            return {'error': str(e)}, collector.diagnostics()
        except Exception as e:
            collector.log_error(e)
            failure = {'method': None, 'kind': 'collector_failed', 'message': str(e)}
            return {'error': str(e)}, collector.diagnostics() + [failure]

    def _report_hostname(self, sections: Dict[str, Any]) -> str:
        system = sections.get('system')
        if isinstance(system, dict):
            return system.get('fqdn') or system.get('hostname') or self.name
        return self.name


def resolve_category(name: str, connector=None, config: ReportConfig = None) -> List[Any]:
    """
    Resolve one category without building a full report.

    Args:
        name: Category name ('cpu', 'memory', 'storage', 'gpu', 'network', 'system')
        connector: Connector to probe with (local host when None)
        config: Report configuration

    Returns:
        The category's resolved records
    """
    if name not in SUB_COLLECTORS:
        raise ValueError(f"Unknown category {name!r}; expected one of {', '.join(SUB_COLLECTORS)}")
    config = config or ReportConfig()
    connector = connector or LocalConnector(timeout=config.command_timeout, use_sudo=config.use_sudo)
    return SUB_COLLECTORS[name](connector, socket.gethostname(), config).resolve()
