# hardware_report/models/cpu.py
"""CPU and NUMA topology records"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .base import PartialRecord, ResolvedRecord
from .identity import SINGLETON_KEY


@dataclass(frozen=True)
class CpuPartial(PartialRecord):
    """
    What one source learned about the host's processors.

    The CPU is a singleton entity: every source describes the same package
    set, so all partials share one identity key.
    """
    model_name: Optional[str] = None
    vendor: Optional[str] = None
    architecture: Optional[str] = None
    microarchitecture: Optional[str] = None
    cpu_family: Optional[int] = None
    cpu_model_id: Optional[int] = None
    stepping: Optional[int] = None
    sockets: Optional[int] = None
    cores_per_socket: Optional[int] = None
    threads_per_core: Optional[int] = None
    logical_cpus: Optional[int] = None
    base_frequency_mhz: Optional[int] = None
    max_frequency_mhz: Optional[int] = None
    min_frequency_mhz: Optional[int] = None
    l1d_cache_kb: Optional[int] = None
    l1i_cache_kb: Optional[int] = None
    l2_cache_kb: Optional[int] = None
    l3_cache_kb: Optional[int] = None
    numa_node_count: Optional[int] = None
    virtualization: Optional[str] = None
    flags: Optional[Tuple[str, ...]] = None

    NON_NEGATIVE_FIELDS = (
        'cpu_family', 'cpu_model_id', 'stepping',
        'sockets', 'cores_per_socket', 'threads_per_core', 'logical_cpus',
        'base_frequency_mhz', 'max_frequency_mhz', 'min_frequency_mhz',
        'l1d_cache_kb', 'l1i_cache_kb', 'l2_cache_kb', 'l3_cache_kb',
        'numa_node_count',
    )

    def identity_key(self) -> Optional[str]:
        return SINGLETON_KEY


@dataclass(frozen=True)
class NumaNodePartial(PartialRecord):
    node_id: Optional[int] = None
    cpu_list: Optional[str] = None
    memory_total_bytes: Optional[int] = None
    memory_free_bytes: Optional[int] = None
    distances: Optional[Tuple[int, ...]] = None

    NON_NEGATIVE_FIELDS = ('node_id', 'memory_total_bytes', 'memory_free_bytes')
    KEY_FIELDS = ('node_id',)

    def identity_key(self) -> Optional[str]:
        if self.node_id is None:
            return None
        return str(self.node_id)


@dataclass
class NumaNode(ResolvedRecord):
    node_id: Optional[int] = None
    cpu_list: Optional[str] = None
    memory_total_bytes: Optional[int] = None
    memory_free_bytes: Optional[int] = None
    distances: Optional[Tuple[int, ...]] = None


@dataclass
class CpuInfo(ResolvedRecord):
    model_name: Optional[str] = None
    vendor: Optional[str] = None
    architecture: Optional[str] = None
    microarchitecture: Optional[str] = None
    cpu_family: Optional[int] = None
    cpu_model_id: Optional[int] = None
    stepping: Optional[int] = None
    sockets: Optional[int] = None
    cores_per_socket: Optional[int] = None
    threads_per_core: Optional[int] = None
    logical_cpus: Optional[int] = None
    total_cores: Optional[int] = None
    total_threads: Optional[int] = None
    base_frequency_mhz: Optional[int] = None
    max_frequency_mhz: Optional[int] = None
    min_frequency_mhz: Optional[int] = None
    l1d_cache_kb: Optional[int] = None
    l1i_cache_kb: Optional[int] = None
    l2_cache_kb: Optional[int] = None
    l3_cache_kb: Optional[int] = None
    numa_node_count: Optional[int] = None
    virtualization: Optional[str] = None
    flags: Optional[Tuple[str, ...]] = None
    numa_nodes: List[NumaNode] = field(default_factory=list)

    def compute_derived(self):
        """Aggregate topology into physical and logical totals"""
        if self.sockets is not None and self.cores_per_socket is not None:
            self.total_cores = self.sockets * self.cores_per_socket
        else:
            self.total_cores = None

        if self.total_cores is not None and self.threads_per_core is not None:
            self.total_threads = self.total_cores * self.threads_per_core
        else:
            self.total_threads = self.logical_cpus

        if self.numa_nodes:
            self.numa_node_count = len(self.numa_nodes)

    def summary(self) -> Optional[str]:
        """e.g. 'AMD EPYC 7763 (2 Sockets, 64 Cores/Socket, 2 Threads/Core, 8 NUMA Nodes)'"""
        if self.model_name is None:
            return None

        def _count(value, noun):
            if value is None:
                return f"? {noun}s"
            return f"{value} {noun}" + ("" if value == 1 else "s")

        parts = [
            _count(self.sockets, "Socket"),
            _count(self.cores_per_socket, "Core") + "/Socket",
            _count(self.threads_per_core, "Thread") + "/Core",
            _count(self.numa_node_count, "NUMA Node"),
        ]
        return f"{self.model_name} ({', '.join(parts)})"
