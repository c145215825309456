# hardware_report/collectors/sub_collectors/memory_sub_collector.py
"""
Memory Sub-Collector
Resolves installed DIMMs and the memory summary.
"""

from typing import Any, Dict, List, Optional

from ...models.memory import (
    GIB, MemoryCapacity, MemoryCapacityPartial, MemoryModule, MemoryModulePartial,
    MemorySummary,
)
from ...parsers.memory import (
    parse_dmidecode_memory, parse_lshw_memory, parse_proc_meminfo, parse_psutil_memory,
)
from .. import library_probes
from ..detector import DetectorDescriptor
from ..sources import CommandSource, FileSource, LibrarySource
from .base_sub_collector import SubCollector

MODULE_DETECTORS = [
    DetectorDescriptor(
        'dmidecode_memory', 0,
        CommandSource('dmidecode', ['-t', '17'], privileged=True),
        parse_dmidecode_memory,
    ),
    DetectorDescriptor(
        'lshw_memory', 1,
        CommandSource('lshw', ['-class', 'memory', '-json'], privileged=True),
        parse_lshw_memory,
    ),
]

CAPACITY_DETECTORS = [
    DetectorDescriptor('proc_meminfo', 0, FileSource('/proc/meminfo'), parse_proc_meminfo),
    DetectorDescriptor('psutil_memory', 1, LibrarySource('psutil.memory', library_probes.psutil_memory),
                       parse_psutil_memory),
]

MIXED = "Mixed"


def summarize_memory(modules: List[MemoryModule], capacity: Optional[MemoryCapacity]) -> MemorySummary:
    """
    Build the memory summary.

    Total is the sum of DIMM sizes, falling back to the kernel's view when no
    DIMM reported a size. Differing DIMM types are reported as 'Mixed';
    differing speeds report the slowest, which is what mixed DIMMs run at.
    """
    sizes = [m.size_bytes for m in modules if m.size_bytes is not None]
    os_total = capacity.total_bytes if capacity else None
    total = sum(sizes) if sizes else os_total

    types = {m.memory_type for m in modules if m.memory_type}
    if len(types) == 1:
        memory_type = types.pop()
    elif types:
        memory_type = MIXED
    else:
        memory_type = None

    speeds = {m.configured_speed_mts or m.speed_mts for m in modules
              if (m.configured_speed_mts or m.speed_mts)}

    return MemorySummary(
        total_bytes=total,
        total_gb=round(total / GIB, 2) if total is not None else None,
        memory_type=memory_type,
        speed_mts=min(speeds) if speeds else None,
        mixed_speeds=len(speeds) > 1,
        os_total_bytes=os_total,
        available_bytes=capacity.available_bytes if capacity else None,
        module_count=len(modules),
        modules=modules,
    )


class MemorySubCollector(SubCollector):
    """
    Collects DIMM inventory (SMBIOS, lshw) and the kernel's memory capacity.
    resolve() returns the modules; summarize() adds the capacity chain.
    """

    def get_section_name(self) -> str:
        return "memory"

    def resolve(self) -> List[MemoryModule]:
        self.last_errors = []
        return self._resolve_modules()

    def resolve_capacity(self) -> MemoryCapacity:
        resolved = self.run_detectors('memory_capacity', CAPACITY_DETECTORS,
                                      MemoryCapacityPartial, MemoryCapacity)
        return resolved[0] if resolved else MemoryCapacity()

    def summarize(self) -> MemorySummary:
        self.last_errors = []
        modules = self._resolve_modules()
        return summarize_memory(modules, self.resolve_capacity())

    def collect(self) -> Dict[str, Any]:
        self.log_start()
        summary = self.summarize()
        self.log_end(summary.module_count)
        return summary.to_dict()

    def _resolve_modules(self) -> List[MemoryModule]:
        return self.run_detectors('memory_modules', MODULE_DETECTORS,
                                  MemoryModulePartial, MemoryModule)
