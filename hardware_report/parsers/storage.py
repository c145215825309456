# hardware_report/parsers/storage.py
"""Block storage parsers: sysfs /sys/block, lsblk, nvme-cli, psutil"""

from typing import Any, Dict, List

from ..errors import ParseFailedError
from ..models.storage import StoragePartial
from .common import (
    clean_value, load_json, parse_bool_flag, parse_int, require_mapping,
    require_text, sectors_to_bytes,
)

TRANSPORT_NAMES = {
    'nvme': 'NVMe',
    'sata': 'SATA',
    'sas': 'SAS',
    'ata': 'ATA',
    'usb': 'USB',
    'mmc': 'eMMC',
    'spi': 'SPI',
    'fc': 'Fibre Channel',
    'iscsi': 'iSCSI',
    'virtio': 'virtio',
}


def parse_sysfs_block(content: Dict[str, Dict[str, str]]) -> List[StoragePartial]:
    """
    Parse a walk of /sys/block.

    'size' is in 512-byte sectors regardless of the device's logical block
    size. Entries are whole disks; virtual devices are filtered later.
    """
    entries = require_mapping(content, "sysfs block")
    partials = []
    for name in sorted(entries):
        attrs = entries[name] or {}
        partials.append(StoragePartial(
            name=name,
            size_bytes=sectors_to_bytes(attrs.get('size')),
            model=clean_value(attrs.get('device/model')),
            vendor=clean_value(attrs.get('device/vendor')),
            serial_number=clean_value(attrs.get('device/serial')),
            firmware_version=clean_value(attrs.get('device/firmware_rev') or attrs.get('device/rev')),
            is_rotational=parse_bool_flag(attrs.get('queue/rotational')),
            is_removable=parse_bool_flag(attrs.get('removable')),
            wwn=clean_value(attrs.get('wwid') or attrs.get('device/wwid')),
        ))
    return partials


def parse_lsblk(content: str) -> List[StoragePartial]:
    """
    Parse `lsblk -J -b -d -o NAME,SIZE,TYPE,ROTA,RM,MODEL,SERIAL,VENDOR,TRAN,WWN,REV`.

    Older util-linux prints numbers and booleans as strings; both forms are
    accepted.
    """
    data = load_json(require_text(content, "lsblk"), "lsblk")
    devices = data.get('blockdevices') if isinstance(data, dict) else None
    if not isinstance(devices, list):
        raise ParseFailedError("lsblk JSON has no 'blockdevices' array")

    partials = []
    for device in devices:
        if not isinstance(device, dict) or not device.get('name'):
            continue
        transport = clean_value(device.get('tran'))
        partials.append(StoragePartial(
            name=str(device['name']),
            size_bytes=parse_int(device.get('size')),
            model=clean_value(device.get('model')),
            vendor=clean_value(device.get('vendor')),
            serial_number=clean_value(device.get('serial')),
            firmware_version=clean_value(device.get('rev')),
            interface=TRANSPORT_NAMES.get(transport.lower(), transport) if transport else None,
            is_rotational=parse_bool_flag(device.get('rota')),
            is_removable=parse_bool_flag(device.get('rm')),
            wwn=clean_value(device.get('wwn')),
            kernel_type=clean_value(device.get('type')),
        ))
    return partials


def _nvme_namespace_name(path: Any) -> Any:
    if isinstance(path, str) and path.startswith('/dev/'):
        return path[len('/dev/'):]
    return path


def parse_nvme_list(content: str) -> List[StoragePartial]:
    """
    Parse `nvme list -o json`.

    nvme-cli 1.x lists one flat entry per namespace; 2.x nests namespaces
    under subsystems and controllers. Both yield namespace-level names
    (nvme0n1) so they join with the kernel's block device names.
    """
    data = load_json(require_text(content, "nvme list"), "nvme list")
    devices = data.get('Devices') if isinstance(data, dict) else None
    if not isinstance(devices, list):
        raise ParseFailedError("nvme list JSON has no 'Devices' array")

    partials = []
    for device in devices:
        if not isinstance(device, dict):
            continue
        if 'DevicePath' in device:
            partials.append(StoragePartial(
                name=_nvme_namespace_name(device.get('DevicePath')),
                size_bytes=parse_int(device.get('PhysicalSize')),
                model=clean_value(device.get('ModelNumber')),
                serial_number=clean_value(device.get('SerialNumber')),
                firmware_version=clean_value(device.get('Firmware')),
                interface='NVMe',
            ))
            continue
        for subsystem in device.get('Subsystems') or []:
            for controller in subsystem.get('Controllers') or []:
                for namespace in controller.get('Namespaces') or []:
                    partials.append(StoragePartial(
                        name=_nvme_namespace_name(namespace.get('NameSpace')),
                        size_bytes=parse_int(namespace.get('PhysicalSize')),
                        model=clean_value(controller.get('ModelNumber')),
                        serial_number=clean_value(controller.get('SerialNumber')),
                        firmware_version=clean_value(controller.get('Firmware')),
                        interface='NVMe',
                    ))
    return partials


def parse_psutil_disks(content: Dict[str, Any]) -> List[StoragePartial]:
    """
    psutil per-disk I/O counters only prove that a disk exists; they carry no
    size or model.
    """
    disks = require_mapping(content, "psutil disks")
    return [StoragePartial(name=name) for name in sorted(disks)]
