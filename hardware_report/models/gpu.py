# hardware_report/models/gpu.py
"""GPU records"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .base import PartialRecord, ResolvedRecord
from .identity import normalize_pci_address
from ..parsers.tables import PCI_VENDOR_NAMES, lookup

GIB = 1024 ** 3


class GpuVendor(Enum):
    NVIDIA = "NVIDIA"
    AMD = "AMD"
    INTEL = "Intel"
    ASPEED = "ASPEED"
    MATROX = "Matrox"
    UNKNOWN = "Unknown"

    @classmethod
    def from_pci_vendor(cls, vendor_id: Optional[str]) -> "GpuVendor":
        """
        Map a PCI vendor id ('10de', '0x10DE') to a vendor.

        Unrecognized ids map to UNKNOWN, never raise.
        """
        name = lookup(PCI_VENDOR_NAMES, _normalize_vendor_id(vendor_id))
        for vendor in cls:
            if vendor.value == name:
                return vendor
        return cls.UNKNOWN

    @classmethod
    def from_name(cls, text: Optional[str]) -> "GpuVendor":
        """Guess a vendor from a marketing or driver name"""
        if not text:
            return cls.UNKNOWN
        lowered = text.lower()
        if 'nvidia' in lowered or 'geforce' in lowered or 'tesla' in lowered:
            return cls.NVIDIA
        if 'amd' in lowered or 'radeon' in lowered or 'instinct' in lowered or 'ati ' in lowered:
            return cls.AMD
        if 'intel' in lowered:
            return cls.INTEL
        if 'aspeed' in lowered:
            return cls.ASPEED
        if 'matrox' in lowered:
            return cls.MATROX
        return cls.UNKNOWN


def _normalize_vendor_id(vendor_id: Optional[str]) -> Optional[str]:
    if vendor_id is None:
        return None
    value = str(vendor_id).strip().lower()
    if value.startswith('0x'):
        value = value[2:]
    return value.zfill(4) if value else None


@dataclass(frozen=True)
class GpuPartial(PartialRecord):
    pci_address: Optional[str] = None
    index: Optional[int] = None
    name: Optional[str] = None
    vendor: Optional[GpuVendor] = None
    pci_vendor_id: Optional[str] = None
    pci_device_id: Optional[str] = None
    uuid: Optional[str] = None
    memory_total_bytes: Optional[int] = None
    memory_free_bytes: Optional[int] = None
    driver_version: Optional[str] = None
    vbios_version: Optional[str] = None
    compute_capability: Optional[str] = None
    architecture: Optional[str] = None
    power_limit_watts: Optional[float] = None
    numa_node: Optional[int] = None

    NON_NEGATIVE_FIELDS = ('index', 'memory_total_bytes', 'memory_free_bytes', 'power_limit_watts')
    ENRICHMENT_FIELDS = ('numa_node',)
    KEY_FIELDS = ('pci_address',)

    def identity_key(self) -> Optional[str]:
        return normalize_pci_address(self.pci_address)


@dataclass
class GpuDevice(ResolvedRecord):
    pci_address: Optional[str] = None
    index: Optional[int] = None
    name: Optional[str] = None
    vendor: Optional[GpuVendor] = None
    pci_vendor_id: Optional[str] = None
    pci_device_id: Optional[str] = None
    uuid: Optional[str] = None
    memory_total_bytes: Optional[int] = None
    memory_free_bytes: Optional[int] = None
    memory_gb: Optional[float] = None
    driver_version: Optional[str] = None
    vbios_version: Optional[str] = None
    compute_capability: Optional[str] = None
    architecture: Optional[str] = None
    power_limit_watts: Optional[float] = None
    numa_node: Optional[int] = None

    def compute_derived(self):
        self.pci_address = normalize_pci_address(self.pci_address) or self.pci_address
        if self.memory_total_bytes is not None:
            self.memory_gb = round(self.memory_total_bytes / GIB, 2)
        else:
            self.memory_gb = None
        if self.vendor is None and self.pci_vendor_id is not None:
            self.vendor = GpuVendor.from_pci_vendor(self.pci_vendor_id)
        if self.vendor in (None, GpuVendor.UNKNOWN) and self.name:
            vendor = GpuVendor.from_name(self.name)
            if vendor != GpuVendor.UNKNOWN or self.vendor is None:
                self.vendor = vendor
