# hardware_report/collectors/sub_collectors/base_sub_collector.py
"""
Base class for all category sub-collectors.
A sub-collector is the orchestrator for one hardware category: it owns the
category's detector list, runs the detection chain, merges the partial
records and post-processes the resolved records.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Sequence, Type
import logging

from ...config.settings import ReportConfig
from ...errors import DetectionError
from ...models.base import PartialRecord, ResolvedRecord
from ...processors.merge_engine import MergeEngine
from ..detection_chain import DetectionChain
from ..detector import Detector, DetectorDescriptor


class SubCollector(ABC):
    """
    Abstract base class for all sub-collectors.

    Sub-collectors:
    - Don't manage connections (receive a connected connector)
    - Never raise for undetectable hardware; resolve() returns an empty or
      all-unknown result and the reasons are kept in last_errors
    - Keep no state between resolve() calls
    - Are orchestrated by MainCollector
    """

    def __init__(self, connector, system_name: str, config: ReportConfig = None):
        """
        Initialize sub-collector

        Args:
            connector: Already-connected connector instance
            system_name: Name of the system being collected from
            config: Report configuration (defaults when None)
        """
        self.connector = connector
        self.system_name = system_name
        self.config = config or ReportConfig()
        self.logger = logging.getLogger(f"subcollector.{self.__class__.__name__}")
        self.last_errors: List[DetectionError] = []

    @abstractmethod
    def get_section_name(self) -> str:
        """
        Get the name of the section this sub-collector produces.

        Returns:
            String name for the section in the report
        """
        pass

    @abstractmethod
    def resolve(self) -> List[ResolvedRecord]:
        """
        Run every detector of the category and return the resolved records.

        Returns:
            Resolved records; empty (multi-entity categories) or a single
            all-unknown record (singletons) when nothing was detected
        """
        pass

    def collect(self) -> Dict[str, Any]:
        """Resolve and render the category as a report section"""
        self.log_start()
        records = self.resolve()
        self.log_end(len(records))
        return self.build_section(records)

    def build_section(self, records: List[ResolvedRecord]) -> Any:
        return [record.to_dict() for record in records]

    def run_detectors(self, name: str, descriptors: Sequence[DetectorDescriptor],
                      partial_type: Type[PartialRecord],
                      resolved_type: Type[ResolvedRecord]) -> List[ResolvedRecord]:
        """
        Run one detection chain and merge its records.

        Args:
            name: Chain name for logging
            descriptors: Declared detectors of the chain
            partial_type: Partial record type the parsers produce
            resolved_type: Resolved record type to build

        Returns:
            Merged records in first-seen order
        """
        detectors = [Detector.from_descriptor(d, self.connector) for d in descriptors]
        chain = DetectionChain(
            detectors,
            strict=self.config.strict_units,
            parallel=self.config.parallel_detectors,
            max_workers=self.config.max_workers,
            disabled=self.config.disabled_detectors,
            name=name,
        )
        result = chain.run()
        self.last_errors.extend(result.errors)

        self.logger.debug(
            f"{name}: {len(result.records)} partial record(s) from "
            f"{', '.join(result.succeeded) or 'no detector'}, {len(result.errors)} error(s)"
        )
        return MergeEngine(partial_type, resolved_type).merge(result.records)

    def diagnostics(self) -> List[Dict[str, Any]]:
        return [error.to_dict() for error in self.last_errors]

    def log_start(self):
        """Log the start of collection"""
        self.logger.info(f"Starting {self.get_section_name()} collection for {self.system_name}")

    def log_end(self, item_count: int = None):
        """Log the end of collection"""
        if item_count is not None:
            self.logger.info(f"Completed {self.get_section_name()} collection: {item_count} items")
        else:
            self.logger.info(f"Completed {self.get_section_name()} collection")

    def log_error(self, error: Exception):
        """Log collection error"""
        self.logger.error(f"Failed to collect {self.get_section_name()}: {error}")
