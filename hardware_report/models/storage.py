# hardware_report/models/storage.py
"""Storage device records"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .base import PartialRecord, ResolvedRecord
from .identity import normalize_block_device


class StorageType(Enum):
    """Storage device type classification"""
    NVME = "NVMe"
    SSD = "SSD"
    HDD = "HDD"
    EMMC = "eMMC"
    UNKNOWN = "Unknown"


def classify_storage(name: Optional[str], rotational: Optional[bool]) -> StorageType:
    """
    Classify a block device.

    The name prefix wins over the rotational flag: NVMe namespaces and eMMC
    devices are never rotational even when the kernel reports otherwise.
    """
    key = normalize_block_device(name) or ""
    if key.startswith('nvme'):
        return StorageType.NVME
    if key.startswith('mmcblk'):
        return StorageType.EMMC
    if rotational is True:
        return StorageType.HDD
    if rotational is False:
        return StorageType.SSD
    return StorageType.UNKNOWN


@dataclass(frozen=True)
class StoragePartial(PartialRecord):
    name: Optional[str] = None
    size_bytes: Optional[int] = None
    model: Optional[str] = None
    vendor: Optional[str] = None
    serial_number: Optional[str] = None
    firmware_version: Optional[str] = None
    interface: Optional[str] = None
    is_rotational: Optional[bool] = None
    is_removable: Optional[bool] = None
    wwn: Optional[str] = None
    kernel_type: Optional[str] = None

    NON_NEGATIVE_FIELDS = ('size_bytes',)
    KEY_FIELDS = ('name',)

    def identity_key(self) -> Optional[str]:
        return normalize_block_device(self.name)


@dataclass
class StorageDevice(ResolvedRecord):
    name: Optional[str] = None
    device_type: StorageType = StorageType.UNKNOWN
    size_bytes: Optional[int] = None
    size_gb: Optional[float] = None
    size_tb: Optional[float] = None
    model: Optional[str] = None
    vendor: Optional[str] = None
    serial_number: Optional[str] = None
    firmware_version: Optional[str] = None
    interface: Optional[str] = None
    is_rotational: Optional[bool] = None
    is_removable: Optional[bool] = None
    wwn: Optional[str] = None
    kernel_type: Optional[str] = None

    def compute_derived(self):
        self.device_type = classify_storage(self.name, self.is_rotational)
        if self.interface is None:
            if self.device_type == StorageType.NVME:
                self.interface = "NVMe"
            elif self.device_type == StorageType.EMMC:
                self.interface = "eMMC"
        # Display sizes are decimal, the way drive vendors label capacity
        if self.size_bytes is not None:
            self.size_gb = round(self.size_bytes / 1e9, 2)
            self.size_tb = round(self.size_bytes / 1e12, 3)
        else:
            self.size_gb = None
            self.size_tb = None
