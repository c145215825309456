# hardware_report/collectors/__init__.py
from .base_collector import BaseCollector, CollectionResult
from .detection_chain import ChainResult, DetectionChain
from .detector import Detector, DetectorDescriptor
from .main_collector import HardwareReport, MainCollector, resolve_category
from .sources import (
    CommandSource, FileSource, LibrarySource, PerEntryCommandSource, RawOutput,
    RawSource, SysfsTreeSource,
)

__all__ = [
    'BaseCollector', 'CollectionResult',
    'ChainResult', 'DetectionChain',
    'Detector', 'DetectorDescriptor',
    'HardwareReport', 'MainCollector', 'resolve_category',
    'CommandSource', 'FileSource', 'LibrarySource', 'PerEntryCommandSource',
    'RawOutput', 'RawSource', 'SysfsTreeSource',
]
