# hardware_report/collectors/sub_collectors/storage_sub_collector.py
"""
Storage Sub-Collector
Resolves physical block devices.
"""

import re
from typing import List

from ...models.identity import normalize_block_device
from ...models.storage import StorageDevice, StoragePartial
from ...parsers.storage import parse_lsblk, parse_nvme_list, parse_psutil_disks, parse_sysfs_block
from .. import library_probes
from ..detector import DetectorDescriptor
from ..sources import CommandSource, LibrarySource, SysfsTreeSource
from .base_sub_collector import SubCollector

# Kernel-created devices that are not physical hardware
VIRTUAL_PREFIXES = ('loop', 'ram', 'zram', 'dm-', 'md', 'nbd', 'sr', 'fd')

_PARTITION_RE = re.compile(
    r'^(?:(?:sd|vd|xvd|hd)[a-z]+\d+|(?:nvme\d+n\d+|mmcblk\d+)p\d+|mmcblk\d+(?:boot\d+|rpmb))$'
)

BLOCK_SYSFS_ATTRIBUTES = [
    'size',
    'removable',
    'queue/rotational',
    'device/model',
    'device/vendor',
    'device/serial',
    'device/firmware_rev',
    'device/rev',
    'device/wwid',
    'wwid',
]

STORAGE_DETECTORS = [
    DetectorDescriptor('sysfs_block', 0, SysfsTreeSource('/sys/block', BLOCK_SYSFS_ATTRIBUTES), parse_sysfs_block),
    DetectorDescriptor(
        'lsblk', 1,
        CommandSource('lsblk', ['-J', '-b', '-d', '-o', 'NAME,SIZE,TYPE,ROTA,RM,MODEL,SERIAL,VENDOR,TRAN,WWN,REV']),
        parse_lsblk,
    ),
    DetectorDescriptor(
        'nvme_list', 2,
        CommandSource('nvme', ['list', '-o', 'json'], privileged=True),
        parse_nvme_list,
    ),
    DetectorDescriptor('psutil_disks', 3, LibrarySource('psutil.disks', library_probes.psutil_disks),
                       parse_psutil_disks),
]


def is_virtual_block_device(device: StorageDevice) -> bool:
    """Loop devices, RAM disks, device-mapper and md volumes, optical/floppy placeholders, partitions"""
    name = normalize_block_device(device.name)
    if name is None:
        return False
    if name.startswith(VIRTUAL_PREFIXES):
        return True
    if device.kernel_type in ('part', 'loop', 'rom', 'lvm', 'crypt') or (
            device.kernel_type or '').startswith('raid'):
        return True
    return bool(_PARTITION_RE.match(name))


class StorageSubCollector(SubCollector):
    """
    Collects physical disks: NVMe namespaces, SATA/SAS drives, eMMC.
    """

    def get_section_name(self) -> str:
        return "storage"

    def resolve(self) -> List[StorageDevice]:
        self.last_errors = []
        devices = self.run_detectors('storage', STORAGE_DETECTORS, StoragePartial, StorageDevice)

        physical = []
        for device in devices:
            if is_virtual_block_device(device):
                self.logger.debug(f"Skipping virtual block device {device.name}")
                continue
            physical.append(device)
        return physical
