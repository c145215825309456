# hardware_report/collectors/sub_collectors/cpu_sub_collector.py
"""
CPU Sub-Collector
Resolves the processor summary and NUMA topology.
"""

from typing import Any, Dict, List

from ...models.cpu import CpuInfo, CpuPartial, NumaNode, NumaNodePartial
from ...parsers.cpu import (
    parse_dmidecode_processor, parse_lscpu, parse_numactl_hardware, parse_proc_cpuinfo,
    parse_psutil_cpu, parse_sysfs_cpu, parse_sysfs_numa,
)
from .. import library_probes
from ..detector import DetectorDescriptor
from ..sources import CommandSource, FileSource, LibrarySource, SysfsTreeSource
from .base_sub_collector import SubCollector

CPU_SYSFS_ATTRIBUTES = [
    'topology/physical_package_id',
    'topology/core_id',
    'cpufreq/cpuinfo_max_freq',
    'cpufreq/cpuinfo_min_freq',
    'cpufreq/base_frequency',
] + [
    f'cache/index{index}/{attr}'
    for index in range(4)
    for attr in ('level', 'type', 'size', 'shared_cpu_list')
]

CPU_DETECTORS = [
    DetectorDescriptor('lscpu', 0, CommandSource('lscpu', ['-J']), parse_lscpu),
    DetectorDescriptor('proc_cpuinfo', 1, FileSource('/proc/cpuinfo'), parse_proc_cpuinfo),
    DetectorDescriptor(
        'sysfs_cpu', 2,
        SysfsTreeSource('/sys/devices/system/cpu', CPU_SYSFS_ATTRIBUTES, entry_filter=r'^cpu\d+$'),
        parse_sysfs_cpu,
    ),
    DetectorDescriptor(
        'dmidecode_processor', 3,
        CommandSource('dmidecode', ['-t', 'processor'], privileged=True),
        parse_dmidecode_processor,
    ),
    DetectorDescriptor('psutil_cpu', 4, LibrarySource('psutil.cpu', library_probes.psutil_cpu), parse_psutil_cpu),
]

NUMA_DETECTORS = [
    DetectorDescriptor('numactl', 0, CommandSource('numactl', ['--hardware']), parse_numactl_hardware),
    DetectorDescriptor(
        'sysfs_numa', 1,
        SysfsTreeSource('/sys/devices/system/node', ['cpulist', 'meminfo', 'distance'],
                        entry_filter=r'^node\d+$'),
        parse_sysfs_numa,
    ),
]


class CpuSubCollector(SubCollector):
    """
    Collects processor model, topology, frequencies and caches.
    CPU is a singleton: resolve() always returns exactly one CpuInfo.
    """

    def get_section_name(self) -> str:
        return "cpu"

    def resolve(self) -> List[CpuInfo]:
        self.last_errors = []

        resolved = self.run_detectors('cpu', CPU_DETECTORS, CpuPartial, CpuInfo)
        cpu = resolved[0] if resolved else CpuInfo()

        numa_nodes = self.run_detectors('numa', NUMA_DETECTORS, NumaNodePartial, NumaNode)
        cpu.numa_nodes = sorted(numa_nodes, key=lambda n: n.node_id if n.node_id is not None else -1)

        # Topology totals need the NUMA count and every merged field
        cpu.compute_derived()
        return [cpu]

    def build_section(self, records: List[CpuInfo]) -> Dict[str, Any]:
        cpu = records[0]
        section = cpu.to_dict()
        section['summary'] = cpu.summary()
        return section
