# hardware_report/processors/summary_processor.py
"""
Summary Processor
Builds the one-line-per-category host summary from the report sections.
"""

from collections import Counter
from typing import Any, Dict, List, Optional
import logging


def _format_bytes_decimal(size_bytes: Optional[int]) -> Optional[str]:
    if size_bytes is None:
        return None
    if size_bytes >= 1e12:
        return f"{size_bytes / 1e12:.2f} TB"
    return f"{size_bytes / 1e9:.0f} GB"


def _counted(items: List[str]) -> Optional[str]:
    """['A', 'A', 'B'] -> '2 x A, 1 x B' (first-seen order)"""
    if not items:
        return None
    counts = Counter(items)
    seen = []
    for item in items:
        if item not in seen:
            seen.append(item)
    return ", ".join(f"{counts[item]} x {item}" for item in seen)


class SummaryProcessor:
    """
    Condenses resolved sections into the report summary.

    Sections that are missing or failed are summarized as None.
    """

    def __init__(self, system_name: str):
        self.system_name = system_name
        self.logger = logging.getLogger('processor.summary')

    def process(self, sections: Dict[str, Any]) -> Dict[str, Any]:
        self.logger.debug(f"Building summary for {self.system_name}")
        system = self._section(sections, 'system', dict)
        cpu = self._section(sections, 'cpu', dict)
        memory = self._section(sections, 'memory', dict)
        storage = self._section(sections, 'storage', list)
        gpus = self._section(sections, 'gpu', list)
        network = self._section(sections, 'network', dict)

        return {
            'hostname': system.get('fqdn') or system.get('hostname') or self.system_name,
            'system': self._system_summary(system),
            'cpu': cpu.get('summary'),
            'memory': self._memory_summary(memory),
            'storage': self._storage_summary(storage),
            'total_storage_tb': self._total_storage_tb(storage),
            'gpus': self._gpu_summary(gpus),
            'gpu_count': len(gpus),
            'network': self._network_summary(network.get('interfaces') or []),
            'infiniband': self._infiniband_summary(network.get('infiniband') or []),
            'bmc_ip_address': system.get('bmc_ip_address'),
        }

    def _section(self, sections: Dict[str, Any], name: str, expected: type):
        section = sections.get(name)
        if not isinstance(section, expected):
            return expected()
        return section

    def _system_summary(self, system: Dict[str, Any]) -> Optional[str]:
        parts = [p for p in (system.get('manufacturer'), system.get('product_name')) if p]
        return " ".join(parts) or None

    def _memory_summary(self, memory: Dict[str, Any]) -> Optional[str]:
        total_gb = memory.get('total_gb')
        if total_gb is None:
            return None
        config = memory.get('config')
        size = f"{total_gb:g} GB"
        return f"{size} {config}" if config else size

    def _storage_summary(self, devices: List[Dict[str, Any]]) -> Optional[str]:
        labels = []
        for device in devices:
            label = device.get('device_type') or 'Unknown'
            size = _format_bytes_decimal(device.get('size_bytes'))
            labels.append(f"{label} {size}" if size else label)
        return _counted(labels)

    def _total_storage_tb(self, devices: List[Dict[str, Any]]) -> Optional[float]:
        sizes = [d['size_bytes'] for d in devices if d.get('size_bytes') is not None]
        if not sizes:
            return None
        return round(sum(sizes) / 1e12, 3)

    def _gpu_summary(self, gpus: List[Dict[str, Any]]) -> Optional[str]:
        labels = []
        for gpu in gpus:
            name = gpu.get('name') or f"{gpu.get('vendor') or 'Unknown'} GPU"
            memory_gb = gpu.get('memory_gb')
            labels.append(f"{name} {memory_gb:.0f} GB" if memory_gb else name)
        return _counted(labels)

    def _network_summary(self, interfaces: List[Dict[str, Any]]) -> Optional[str]:
        labels = []
        for interface in interfaces:
            speed = interface.get('speed_mbps')
            speed_label = f"{speed / 1000:g} Gb/s" if speed and speed >= 1000 else (
                f"{speed} Mb/s" if speed else "unknown speed")
            vendor = interface.get('vendor') or interface.get('driver')
            labels.append(f"{speed_label} ({vendor})" if vendor else speed_label)
        return _counted(labels)

    def _infiniband_summary(self, ports: List[Dict[str, Any]]) -> Optional[str]:
        labels = []
        for port in ports:
            rate = port.get('rate_gbps')
            labels.append(f"{rate} Gb/s {port.get('state') or ''}".strip() if rate else (port.get('state') or 'Unknown'))
        return _counted(labels)
