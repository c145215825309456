# hardware_report/models/__init__.py
"""
Typed records produced by parsers (partials) and by the merge engine
(resolved records).
"""

from .base import PartialRecord, ResolvedRecord
from .cpu import CpuPartial, CpuInfo, NumaNodePartial, NumaNode
from .memory import (
    MemoryModulePartial, MemoryModule,
    MemoryCapacityPartial, MemoryCapacity, MemorySummary,
)
from .storage import StorageType, StoragePartial, StorageDevice, classify_storage
from .gpu import GpuVendor, GpuPartial, GpuDevice
from .network import NetworkPartial, NetworkInterface, InfinibandPartial, InfinibandPort
from .system import SystemPartial, SystemIdentity

__all__ = [
    'PartialRecord', 'ResolvedRecord',
    'CpuPartial', 'CpuInfo', 'NumaNodePartial', 'NumaNode',
    'MemoryModulePartial', 'MemoryModule',
    'MemoryCapacityPartial', 'MemoryCapacity', 'MemorySummary',
    'StorageType', 'StoragePartial', 'StorageDevice', 'classify_storage',
    'GpuVendor', 'GpuPartial', 'GpuDevice',
    'NetworkPartial', 'NetworkInterface', 'InfinibandPartial', 'InfinibandPort',
    'SystemPartial', 'SystemIdentity',
]
