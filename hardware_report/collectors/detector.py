# hardware_report/collectors/detector.py
"""
Detector: one raw source bound to one parser, a method name and a priority.
"""

import dataclasses
import logging
from dataclasses import dataclass
from typing import Callable, List

from ..errors import DetectionError, ParseFailedError, UnitContractError
from ..models.base import PartialRecord
from .sources import RawSource


@dataclass(frozen=True)
class DetectorDescriptor:
    """Declarative detector entry in a category's detector list"""
    method: str
    priority: int
    source: RawSource
    parser: Callable[..., List[PartialRecord]]


class Detector:
    """
    Binds a source and parser to a connector.

    attempt() returns the partial records stamped with this detector's method
    name and priority, or raises a DetectionError.
    """

    def __init__(self, method: str, priority: int, source: RawSource,
                 parser: Callable[..., List[PartialRecord]], connector):
        self.method = method
        self.priority = priority
        self.source = source
        self.parser = parser
        self.connector = connector
        self.logger = logging.getLogger(f"detector.{method}")

    @classmethod
    def from_descriptor(cls, descriptor: DetectorDescriptor, connector) -> "Detector":
        return cls(descriptor.method, descriptor.priority, descriptor.source,
                   descriptor.parser, connector)

    @property
    def privileged(self) -> bool:
        return self.source.privileged

    def attempt(self) -> List[PartialRecord]:
        self.logger.debug(f"Probing {self.source.describe()}")
        try:
            raw = self.source.fetch(self.connector)
        except DetectionError as e:
            raise e.with_method(self.method)

        try:
            records = self.parser(raw.content)
        except DetectionError as e:
            raise e.with_method(self.method)
        except UnitContractError:
            raise
        except Exception as e:
            # Parsers must only raise ParseFailedError; anything else is malformed input
            raise ParseFailedError(f"{type(e).__name__}: {e}", self.method)

        stamped = [
            dataclasses.replace(record, detection_method=self.method, priority=self.priority)
            for record in records
        ]
        self.logger.debug(f"{len(stamped)} record(s) from {self.source.describe()}")
        return stamped

    def __repr__(self):
        return f"Detector({self.method!r}, priority={self.priority})"
