# hardware_report/models/memory.py
"""Memory module and memory capacity records"""

from dataclasses import dataclass, field
from typing import List, Optional

from .base import PartialRecord, ResolvedRecord
from .identity import normalize_text_key, SINGLETON_KEY

GIB = 1024 ** 3


@dataclass(frozen=True)
class MemoryModulePartial(PartialRecord):
    locator: Optional[str] = None
    bank_locator: Optional[str] = None
    size_bytes: Optional[int] = None
    memory_type: Optional[str] = None
    speed_mts: Optional[int] = None
    configured_speed_mts: Optional[int] = None
    manufacturer: Optional[str] = None
    serial_number: Optional[str] = None
    part_number: Optional[str] = None
    form_factor: Optional[str] = None
    rank: Optional[int] = None

    NON_NEGATIVE_FIELDS = ('size_bytes', 'speed_mts', 'configured_speed_mts', 'rank')
    KEY_FIELDS = ('bank_locator', 'locator')

    def identity_key(self) -> Optional[str]:
        # Boards reuse 'DIMM 0' on every channel; the bank tells them apart
        locator = normalize_text_key(self.locator)
        bank = normalize_text_key(self.bank_locator)
        if locator is None or bank is None:
            return locator
        return f"{bank}/{locator}"

    def coarse_key(self) -> Optional[str]:
        return normalize_text_key(self.locator)

    def is_identity_complete(self) -> bool:
        return normalize_text_key(self.bank_locator) is not None


@dataclass
class MemoryModule(ResolvedRecord):
    locator: Optional[str] = None
    bank_locator: Optional[str] = None
    size_bytes: Optional[int] = None
    size_gb: Optional[float] = None
    memory_type: Optional[str] = None
    speed_mts: Optional[int] = None
    configured_speed_mts: Optional[int] = None
    manufacturer: Optional[str] = None
    serial_number: Optional[str] = None
    part_number: Optional[str] = None
    form_factor: Optional[str] = None
    rank: Optional[int] = None

    def compute_derived(self):
        self.size_gb = round(self.size_bytes / GIB, 2) if self.size_bytes is not None else None


@dataclass(frozen=True)
class MemoryCapacityPartial(PartialRecord):
    """Operating-system view of installed memory"""
    total_bytes: Optional[int] = None
    available_bytes: Optional[int] = None
    swap_total_bytes: Optional[int] = None

    NON_NEGATIVE_FIELDS = ('total_bytes', 'available_bytes', 'swap_total_bytes')

    def identity_key(self) -> Optional[str]:
        return SINGLETON_KEY


@dataclass
class MemoryCapacity(ResolvedRecord):
    total_bytes: Optional[int] = None
    available_bytes: Optional[int] = None
    swap_total_bytes: Optional[int] = None


@dataclass
class MemorySummary:
    """Memory section of the report"""
    total_bytes: Optional[int] = None
    total_gb: Optional[float] = None
    memory_type: Optional[str] = None
    speed_mts: Optional[int] = None
    mixed_speeds: bool = False
    os_total_bytes: Optional[int] = None
    available_bytes: Optional[int] = None
    module_count: int = 0
    modules: List[MemoryModule] = field(default_factory=list)

    def config_string(self) -> Optional[str]:
        """e.g. 'DDR4 @ 3200 MT/s'"""
        if self.memory_type is None and self.speed_mts is None:
            return None
        speed = f"{self.speed_mts} MT/s" if self.speed_mts is not None else "Unknown"
        if self.mixed_speeds:
            speed += " (mixed speeds)"
        return f"{self.memory_type or 'Unknown'} @ {speed}"

    def to_dict(self):
        return {
            'total_bytes': self.total_bytes,
            'total_gb': self.total_gb,
            'memory_type': self.memory_type,
            'speed_mts': self.speed_mts,
            'mixed_speeds': self.mixed_speeds,
            'config': self.config_string(),
            'os_total_bytes': self.os_total_bytes,
            'available_bytes': self.available_bytes,
            'module_count': self.module_count,
            'modules': [module.to_dict() for module in self.modules],
        }
