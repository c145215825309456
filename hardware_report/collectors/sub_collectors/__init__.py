# hardware_report/collectors/sub_collectors/__init__.py
"""
Sub-collectors for the hardware report.
Each sub-collector resolves one hardware category.
"""

from .base_sub_collector import SubCollector
from .system_sub_collector import SystemSubCollector
from .cpu_sub_collector import CpuSubCollector
from .memory_sub_collector import MemorySubCollector
from .storage_sub_collector import StorageSubCollector
from .gpu_sub_collector import GpuSubCollector
from .network_sub_collector import NetworkSubCollector

# Category name -> sub-collector class
SUB_COLLECTORS = {
    'system': SystemSubCollector,
    'cpu': CpuSubCollector,
    'memory': MemorySubCollector,
    'storage': StorageSubCollector,
    'gpu': GpuSubCollector,
    'network': NetworkSubCollector,
}

__all__ = [
    'SubCollector',
    'SystemSubCollector',
    'CpuSubCollector',
    'MemorySubCollector',
    'StorageSubCollector',
    'GpuSubCollector',
    'NetworkSubCollector',
    'SUB_COLLECTORS',
]
